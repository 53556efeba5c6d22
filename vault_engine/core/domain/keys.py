"""Utilities for deterministic pending-redemption keys."""

from __future__ import annotations

import hashlib


def pending_redemption_key(owner: str, receiver: str) -> str:
    """Return the registry key for an (owner, receiver) pair.

    The key hashes ``receiver`` first and ``owner`` second, so the pairs
    (a, b) and (b, a) map to different keys. The result is a 32 character
    hex string and is stable across processes.
    """
    if not owner:
        raise ValueError("owner must be non-empty")
    if not receiver:
        raise ValueError("receiver must be non-empty")

    payload = f"{receiver}:{owner}".encode("utf-8")
    return hashlib.blake2b(payload, digest_size=16).hexdigest()
