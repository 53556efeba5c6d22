"""Pushgateway export of vault state after a scenario run."""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

if TYPE_CHECKING:
    from collections.abc import Mapping

LOGGER = logging.getLogger(__name__)

# Metric name -> key in the vault state summary.
VAULT_STATE_GAUGES: dict[str, str] = {
    "vault_nav_assets": "nav",
    "vault_total_principal_assets": "total_principal",
    "vault_claim_supply": "total_supply",
    "vault_idle_assets": "idle",
    "vault_pending_redemptions": "pending_redemptions",
    "vault_earmarked_assets": "earmarked_assets",
    "vault_fee_collector_assets": "fee_collector_balance",
}


class PrometheusMetricsClient:
    """Pushgateway client for batch scenario runs.

    Environment:
    - PROMETHEUS_PUSHGATEWAY_URL: Pushgateway URL. Unset disables pushing.
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: optional JSON object of
      string labels used as the grouping key, e.g. {"vault": "usdc-main"}.

    Delivery is best-effort from the caller's point of view: a scenario's
    result does not depend on whether the push succeeded.
    """

    def __init__(self, pushgateway_url: str | None = None) -> None:
        self._pushgateway_url = pushgateway_url or os.environ.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key()
        self._registry = CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @staticmethod
    def _load_grouping_key() -> dict[str, str]:
        raw = os.environ.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring")
            return {}

        if not isinstance(data, dict):
            return {}

        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def set_gauge(self, *, name: str, value: float, labels: dict[str, str]) -> None:
        # A registry rejects duplicate metric names; reuse the gauge.
        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = Gauge(
                name,
                documentation=name,
                labelnames=list(labels.keys()),
                registry=self._registry,
            )
            self._gauges[name] = gauge

        gauge.labels(**labels).set(value)

    def record_vault_state(self, state: Mapping[str, Any], *, labels: dict[str, str]) -> None:
        """Set one gauge per known key present in ``state``."""
        for metric, key in VAULT_STATE_GAUGES.items():
            if key in state:
                self.set_gauge(name=metric, value=float(state[key]), labels=labels)

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=job,
            registry=self._registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )
