"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider priority, API keys, retry policy, and cache TTLs.

Layering: built-in defaults <- config.yaml <- environment.
config.yaml lives at the repo root unless CRYPTO_MARKET_DATA_CONFIG points elsewhere.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .providers.base import ResourceFamily
from .providers.resilience import ResilienceConfig

_TTL_DEFAULTS = {
    "markets": 300,
    "entity_detail": 120,
    "global": 900,
    "exchange_rates": 600,
    "history": 120,
}

_DEFAULTS: Dict[str, Any] = {
    "providers": {
        "priority": ["coingecko", "coinapi"],
        "coingecko": {
            "api_key": None,
            "base_url": None,
            "max_retries": 3,
            "backoff_base_s": 1.0,
            "max_rate_limit_wait_s": 60.0,
            "default_retry_after_s": 30.0,
            "timeout_s": 15.0,
            "single_flight": True,
            "ttl_seconds": dict(_TTL_DEFAULTS),
        },
        "coinapi": {
            "api_key": None,
            "base_url": None,
            "max_retries": 3,
            "backoff_base_s": 1.0,
            "max_rate_limit_wait_s": 60.0,
            "default_retry_after_s": 30.0,
            "timeout_s": 15.0,
            "single_flight": True,
            # Stricter upstream quota: keep listings longer.
            "ttl_seconds": {**_TTL_DEFAULTS, "markets": 600},
        },
    },
}


def _config_yaml_path() -> Path:
    """Config.yaml lives at repo root (parent of package dir) unless overridden."""
    override = os.environ.get("CRYPTO_MARKET_DATA_CONFIG", "").strip()
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    providers: dict = {}
    cg_key = os.environ.get("COINGECKO_API_KEY") or os.environ.get("VITE_COINGECKO_API_KEY")
    if cg_key:
        providers.setdefault("coingecko", {})["api_key"] = cg_key
    coinapi_key = os.environ.get("COINAPI_KEY")
    if coinapi_key:
        providers.setdefault("coinapi", {})["api_key"] = coinapi_key
    priority = os.environ.get("CRYPTO_MARKET_DATA_PRIORITY")
    if priority:
        providers["priority"] = [p.strip() for p in priority.split(",") if p.strip()]
    max_retries = os.environ.get("CRYPTO_MARKET_DATA_MAX_RETRIES")
    if max_retries:
        for name in ("coingecko", "coinapi"):
            providers.setdefault(name, {})["max_retries"] = int(max_retries)
    if providers:
        overrides["providers"] = providers
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def provider_priority() -> List[str]:
    return list(get_config()["providers"]["priority"])


def provider_settings(name: str) -> dict:
    return dict(get_config()["providers"].get(name) or {})


def api_key(name: str) -> Optional[str]:
    return provider_settings(name).get("api_key") or None


def resilience_config(name: str) -> ResilienceConfig:
    """Build the retry/TTL policy for one provider from merged config."""
    base = _DEFAULTS["providers"].get(name, _DEFAULTS["providers"]["coingecko"])
    settings = _deep_merge(base, provider_settings(name))
    ttl = {ResourceFamily(family): float(seconds) for family, seconds in settings["ttl_seconds"].items()}
    return ResilienceConfig(
        max_retries=int(settings["max_retries"]),
        backoff_base_s=float(settings["backoff_base_s"]),
        max_rate_limit_wait_s=float(settings["max_rate_limit_wait_s"]),
        default_retry_after_s=float(settings["default_retry_after_s"]),
        timeout_s=float(settings["timeout_s"]),
        ttl_by_family=ttl,
    )
