from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vault_engine.core.events.event_sink import EventSink
from vault_engine.core.events.sinks.file_recorder import FileRecorderSink
from vault_engine.core.events.sinks.sink_logging import LoggingEventSink
from vault_engine.sim.runtime.prometheus_metrics import PrometheusMetricsClient
from vault_engine.sim.scenario import Scenario, ScenarioResult, run_scenario

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def _print_summary(result: ScenarioResult) -> None:
    print(f"Scenario: {result.scenario_id}")
    print(f"Steps:    {len(result.steps)} ({len(result.failed_steps)} rejected)")
    for step in result.steps:
        if step.error is not None:
            print(f"  [{step.index:>3}] {step.action:<20} REJECTED {step.error}")
        else:
            status = (step.result or {}).get("status", "ok")
            print(f"  [{step.index:>3}] {step.action:<20} {status}")
    print()
    print("Final state:")
    for key, value in result.final_state.items():
        print(f"  {key:<24} {value}")


def _push_metrics(result: ScenarioResult) -> None:
    metrics = PrometheusMetricsClient()
    if not metrics.is_enabled():
        LOGGER.info("Prometheus push skipped; PROMETHEUS_PUSHGATEWAY_URL not set")
        return

    # Side-effect only; the run result stands regardless.
    try:
        metrics.record_vault_state(
            result.final_state,
            labels={"scenario_id": result.scenario_id},
        )
        metrics.push_all(job="vault_scenario")
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Prometheus push failed")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a vault scenario against simulated tokens and pool"
    )

    parser.add_argument(
        "--scenario",
        type=Path,
        required=True,
        help="Path to scenario JSON (vault config, pool setup, steps).",
    )

    parser.add_argument(
        "--events-out",
        type=Path,
        default=None,
        help="Optional JSONL file receiving every emitted vault event.",
    )

    parser.add_argument(
        "--result-out",
        type=Path,
        default=None,
        help="Optional JSON file receiving per-step results and final state.",
    )

    parser.add_argument(
        "--push-metrics",
        action="store_true",
        help="Push final vault state gauges to the Prometheus Pushgateway.",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Root logging level.",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # ------------------------------------------------------------------
    # Load scenario
    # ------------------------------------------------------------------

    try:
        scenario = Scenario.from_json_obj(_load_json(args.scenario))
    except (FileNotFoundError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Error: invalid scenario {args.scenario}: {exc}", file=sys.stderr)
        return 2

    sinks: list[EventSink] = [LoggingEventSink(logging.getLogger("vault_engine.events"))]
    if args.events_out is not None:
        args.events_out.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(FileRecorderSink(args.events_out))

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    sim, result = run_scenario(scenario, sinks=sinks)
    sim.event_bus.close()

    _print_summary(result)

    if args.result_out is not None:
        args.result_out.parent.mkdir(parents=True, exist_ok=True)
        args.result_out.write_text(
            json.dumps(asdict(result), indent=2, default=str),
            encoding="utf-8",
        )

    if args.push_metrics:
        _push_metrics(result)

    return 0


if __name__ == "__main__":
    sys.exit(main())
