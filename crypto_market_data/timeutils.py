"""
Single source for "now" in payload timestamps (last_updated, updated_at).
Supports deterministic mode for tests via CRYPTO_MARKET_DATA_DETERMINISTIC_TIME
(ISO format, e.g. 2026-01-01T00:00:00Z).

Cache freshness does not use this module; CacheStore takes its own clock.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone


def _fixed_now() -> datetime | None:
    fixed = os.environ.get("CRYPTO_MARKET_DATA_DETERMINISTIC_TIME", "").strip()
    if not fixed:
        return None
    parsed = datetime.fromisoformat(fixed.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def now_utc() -> datetime:
    return _fixed_now() or datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """
    Return current UTC time in ISO format with milliseconds and a Z suffix,
    matching the last_updated fields upstream APIs emit.
    """
    return now_utc().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_epoch_ms() -> int:
    return int(now_utc().timestamp() * 1000)
