"""
In-memory cache store: one map per resource family, fixed TTL per family.

Entries live until invalidated or the process exits; there is no size or LRU
eviction because the key space is bounded by the parameter combinations
callers actually request. A stale entry is kept on purpose: clients serve it
as fallback data when the upstream is unreachable.
"""
from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .base import CacheEntry, Provenance, ResourceFamily


DEFAULT_TTL_SECONDS: Dict[ResourceFamily, float] = {
    ResourceFamily.MARKETS: 5 * 60.0,
    ResourceFamily.ENTITY_DETAIL: 2 * 60.0,
    ResourceFamily.GLOBAL: 15 * 60.0,
    ResourceFamily.EXCHANGE_RATES: 10 * 60.0,
    ResourceFamily.HISTORY: 2 * 60.0,
}


def render_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(render_param(v) for v in value)
    return str(value)


def cache_key(
    family: ResourceFamily,
    params: Optional[Mapping[str, Any]] = None,
    prefix: Optional[str] = None,
) -> str:
    """
    Deterministic key from family + params. None values are dropped and keys
    are sorted, so permutations of the same params map to the same key.
    `prefix` scopes the key to one entity (e.g. a coin id) for prefix invalidation.
    """
    parts = sorted(
        f"{k}={render_param(v)}" for k, v in (params or {}).items() if v is not None
    )
    key = f"{family.value}:{'&'.join(parts)}"
    return f"{prefix}:{key}" if prefix else key


class CacheStore:
    """
    Keyed store of CacheEntry, one dict per ResourceFamily.

    `clock` returns epoch seconds; tests inject a fake to cross TTL
    boundaries without sleeping.
    """

    def __init__(
        self,
        ttl_by_family: Optional[Mapping[ResourceFamily, float]] = None,
        families: Optional[Iterable[ResourceFamily]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = dict(DEFAULT_TTL_SECONDS)
        self._ttl.update(ttl_by_family or {})
        self._clock = clock
        self._maps: Dict[ResourceFamily, Dict[str, CacheEntry]] = {
            f: {} for f in (families or ResourceFamily)
        }

    @property
    def families(self) -> list[ResourceFamily]:
        return list(self._maps)

    def ttl(self, family: ResourceFamily) -> float:
        return self._ttl[family]

    def now(self) -> float:
        return self._clock()

    def _map(self, family: ResourceFamily) -> Dict[str, CacheEntry]:
        try:
            return self._maps[family]
        except KeyError:
            raise KeyError(f"No cache map for family '{family.value}'") from None

    def get(self, family: ResourceFamily, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, fresh or stale, or None."""
        return self._map(family).get(key)

    def put(
        self,
        family: ResourceFamily,
        key: str,
        data: Any,
        provenance: Provenance,
    ) -> CacheEntry:
        entry = CacheEntry(data=data, captured_at=self._clock(), provenance=provenance)
        self._map(family)[key] = entry
        return entry

    def is_fresh(self, family: ResourceFamily, entry: CacheEntry) -> bool:
        return (self._clock() - entry.captured_at) < self._ttl[family]

    def get_fresh(self, family: ResourceFamily, key: str) -> Optional[CacheEntry]:
        entry = self.get(family, key)
        if entry is not None and self.is_fresh(family, entry):
            return entry
        return None

    def invalidate(
        self,
        family: Optional[ResourceFamily] = None,
        key: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> int:
        """
        Remove entries and return how many were removed.

        - family + key: one entry
        - family + prefix: every entry whose key starts with "<prefix>:"
        - family only: the whole family
        - nothing: every family
        """
        if family is None:
            removed = sum(len(m) for m in self._maps.values())
            for m in self._maps.values():
                m.clear()
            return removed

        target = self._map(family)
        if key is not None:
            return 1 if target.pop(key, None) is not None else 0
        if prefix is not None:
            doomed = [k for k in target if k.startswith(f"{prefix}:")]
            for k in doomed:
                del target[k]
            return len(doomed)
        removed = len(target)
        target.clear()
        return removed

    def stats(self) -> Dict[str, Dict[str, Any]]:
        """Entry count, approximate JSON byte size, and keys per family."""
        out: Dict[str, Dict[str, Any]] = {}
        for family, entries in self._maps.items():
            size = 0
            for entry in entries.values():
                size += len(
                    json.dumps(
                        {
                            "data": entry.data,
                            "timestamp": entry.captured_at,
                            "source": entry.provenance.value,
                        },
                        default=str,
                    )
                )
            out[family.value] = {
                "entries": len(entries),
                "size": size,
                "keys": list(entries),
            }
        return out
