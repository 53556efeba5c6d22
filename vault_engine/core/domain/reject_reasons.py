"""Canonical reject reason codes.

Reasons are plain strings so they can be counted, logged and serialized
without conversion.
"""

from __future__ import annotations


class RejectReason:
    STILL_PENDING = "STILL_PENDING"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    INSUFFICIENT_POOL_BACKING = "INSUFFICIENT_POOL_BACKING"
    STALE_FINALIZE = "STALE_FINALIZE"
    REENTRANT_CALL = "REENTRANT_CALL"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    DEPOSITS_DISABLED = "DEPOSITS_DISABLED"
    TVL_CAP_EXCEEDED = "TVL_CAP_EXCEEDED"
    ZERO_SHARES = "ZERO_SHARES"
