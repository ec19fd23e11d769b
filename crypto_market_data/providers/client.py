"""
Upstream client base: cache check, live fetch with retry, degrade to stale
cache or seed data. Subclasses describe endpoints; this class owns the policy.

Per resource request:

    ColdOrStale -> LiveAttempting(1..max_retries)
        -> live            (write-through, provenance "live")
        -> stale cache     (entry untouched, provenance "fallback")
        -> seed payload    (cached as "fallback" so the TTL window suppresses retries)

Upstream unavailability never raises out of fetch_resource. Invalid params
and unparseable payloads do.
"""
from __future__ import annotations

import contextlib
import logging
import threading
import time
from typing import Any, Callable, ContextManager, Dict, Mapping, Optional

import requests

from ..core.errors import InvalidParamsError, MarketDataError, ResponseFormatError, UpstreamUnavailableError
from .base import CacheEntry, Provenance, ResourceFamily, UnifiedResult
from .cache import CacheStore, cache_key, render_param
from .resilience import ResilienceConfig, fetch_json_with_retry
from .seeds import SeedBuilder

logger = logging.getLogger(__name__)


class UpstreamClient:
    """
    Shared fetch/caching policy for one upstream API.

    `clock` and `sleep` are injectable so tests can cross TTL boundaries and
    skip backoff waits. With `single_flight` (default), concurrent callers of
    the same key in one process wait for the first caller and then share its
    outcome (fresh entry or stale fallback) instead of issuing duplicate
    live requests.
    """

    provider_name = "upstream"
    families: tuple = ()
    # Families whose keys are prefixed with an entity id (coin or asset).
    scoped_families: tuple = ()

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        config: Optional[ResilienceConfig] = None,
        seeds: Optional[Mapping[ResourceFamily, SeedBuilder]] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[CacheStore] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        single_flight: bool = True,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers: Dict[str, str] = {"Accept": "application/json"}
        self.headers.update(headers or {})
        self.config = config or ResilienceConfig()
        self._seeds = dict(seeds or {})
        self._session = session or requests.Session()
        self.cache = cache or CacheStore(
            self.config.ttl_by_family, families=self.families, clock=clock
        )
        self._sleep = sleep
        self._single_flight = single_flight
        self._locks: Dict[str, threading.Lock] = {}
        # Finished live attempts per key.
        self._flights: Dict[str, int] = {}
        self._locks_guard = threading.Lock()

    def _key_lock(self, key: str) -> ContextManager[Any]:
        if not self._single_flight:
            return contextlib.nullcontext()
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
        return lock

    def _flight_count(self, key: str) -> int:
        with self._locks_guard:
            return self._flights.get(key, 0)

    def _check_family(self, family: ResourceFamily) -> None:
        if family not in self.families:
            raise InvalidParamsError(f"{self.provider_name} does not serve '{family.value}'")

    def fetch_resource(
        self,
        family: ResourceFamily,
        params: Optional[Mapping[str, Any]] = None,
        *,
        path: str,
        query: Optional[Mapping[str, Any]] = None,
        prefix: Optional[str] = None,
        seed_context: Optional[Mapping[str, Any]] = None,
        parse: Optional[Callable[[Any], Any]] = None,
    ) -> UnifiedResult:
        """
        Return `{data, source}` for one resource. `params` builds the cache
        key; `query` (defaults to params) is what goes on the wire.
        """
        self._check_family(family)
        key = cache_key(family, params, prefix=prefix)

        entry = self.cache.get_fresh(family, key)
        if entry is not None:
            logger.debug(
                "%s cache hit for %s (%.0fs old)",
                self.provider_name, key, entry.age(self.cache.now()),
            )
            return self._from_cache(entry)

        flight = self._flight_count(key)
        with self._key_lock(key):
            # Another caller may have filled the key while we waited.
            entry = self.cache.get_fresh(family, key)
            if entry is not None:
                return self._from_cache(entry)
            if self._single_flight and self._flight_count(key) != flight:
                # The flight we waited on fell back to a stale entry; share it.
                stale = self.cache.get(family, key)
                if stale is not None:
                    logger.debug("%s joined in-flight fallback for %s", self.provider_name, key)
                    return UnifiedResult(stale.data, Provenance.FALLBACK.value)
            wire = query if query is not None else params
            try:
                return self._fetch_live_or_degrade(family, key, path, wire, seed_context, parse)
            finally:
                with self._locks_guard:
                    self._flights[key] = self._flights.get(key, 0) + 1

    @staticmethod
    def _from_cache(entry: CacheEntry) -> UnifiedResult:
        # Live entries report "cache" on a hit; seeded entries keep reporting "fallback".
        if entry.provenance is Provenance.LIVE:
            return UnifiedResult(entry.data, Provenance.CACHE.value)
        return UnifiedResult(entry.data, entry.provenance.value)

    def _fetch_live_or_degrade(
        self,
        family: ResourceFamily,
        key: str,
        path: str,
        query: Optional[Mapping[str, Any]],
        seed_context: Optional[Mapping[str, Any]],
        parse: Optional[Callable[[Any], Any]],
    ) -> UnifiedResult:
        url = f"{self.base_url}{path}"
        try:
            payload = fetch_json_with_retry(
                self._session,
                url,
                params={k: render_param(v) for k, v in (query or {}).items() if v is not None},
                headers=self.headers,
                config=self.config,
                sleep=self._sleep,
                label=f"{self.provider_name} {family.value}",
            )
        except UpstreamUnavailableError as exc:
            return self._degrade(family, key, seed_context, str(exc))

        data = self._parse(payload, parse, url)
        self.cache.put(family, key, data, Provenance.LIVE)
        logger.info("%s %s refreshed from live API (%s)", self.provider_name, family.value, key)
        return UnifiedResult(data, Provenance.LIVE.value)

    def _parse(self, payload: Any, parse: Optional[Callable[[Any], Any]], url: str) -> Any:
        if parse is None:
            return payload
        try:
            return parse(payload)
        except ResponseFormatError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ResponseFormatError(
                f"{self.provider_name} payload from {url} could not be parsed: {type(exc).__name__}: {exc}"
            ) from exc

    def _degrade(
        self,
        family: ResourceFamily,
        key: str,
        seed_context: Optional[Mapping[str, Any]],
        reason: str,
    ) -> UnifiedResult:
        stale = self.cache.get(family, key)
        if stale is not None:
            logger.warning(
                "%s: %s; returning stale cache for %s from %.0fs ago",
                self.provider_name, reason, key, stale.age(self.cache.now()),
            )
            return UnifiedResult(stale.data, Provenance.FALLBACK.value)

        builder = self._seeds.get(family)
        if builder is None:
            raise MarketDataError(f"{self.provider_name} has no seed data for '{family.value}'")
        data = builder(**dict(seed_context or {}))
        self.cache.put(family, key, data, Provenance.FALLBACK)
        logger.warning(
            "%s: %s; no cache for %s, serving seed data", self.provider_name, reason, key
        )
        return UnifiedResult(data, Provenance.FALLBACK.value)

    def invalidate_cache(
        self,
        family: Optional[ResourceFamily] = None,
        key: Optional[str] = None,
    ) -> int:
        """
        Drop cached entries. With family and key, `key` is either a full cache
        key or an entity scope (coin/asset id) for entity-scoped families.
        """
        if family is not None:
            self._check_family(family)
        if family is None:
            removed = self.cache.invalidate()
            logger.info("%s: invalidated all caches (%d entries)", self.provider_name, removed)
            return removed
        if key is None:
            removed = self.cache.invalidate(family)
        elif self.cache.get(family, key) is not None:
            removed = self.cache.invalidate(family, key=key)
        else:
            removed = self.cache.invalidate(family, prefix=key) if family in self.scoped_families else 0
        logger.info(
            "%s: invalidated %s cache%s (%d entries)",
            self.provider_name, family.value, f" for {key}" if key else "", removed,
        )
        return removed

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        return self.cache.stats()
