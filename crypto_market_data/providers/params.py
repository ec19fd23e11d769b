"""Request parameter normalization shared by the CoinGecko-shaped operations."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..core.errors import InvalidParamsError

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 250

# camelCase aliases accepted from JS-style callers.
_ALIASES = {
    "vsCurrency": "vs_currency",
    "perPage": "per_page",
    "priceChangePercentage": "price_change_percentage",
}

MARKET_PARAM_NAMES = ("vs_currency", "order", "per_page", "page", "sparkline", "price_change_percentage")


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParamsError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidParamsError(f"{name} must be a positive integer, got {value!r}") from None
    if number < 1:
        raise InvalidParamsError(f"{name} must be a positive integer, got {value!r}")
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def normalize_keys(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if params is not None and not isinstance(params, Mapping):
        raise InvalidParamsError(f"params must be a mapping, got {type(params).__name__}")
    return {_ALIASES.get(k, k): v for k, v in (params or {}).items() if v is not None}


def normalize_market_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Canonical /coins/markets params: vs_currency defaults to usd, per_page to 20
    (capped at 250), page and per_page must be positive integers. Unknown keys
    are rejected.
    """
    raw = normalize_keys(params)
    unknown = sorted(set(raw) - set(MARKET_PARAM_NAMES))
    if unknown:
        raise InvalidParamsError(f"Unknown market params: {unknown}")

    out: Dict[str, Any] = {
        "vs_currency": str(raw.get("vs_currency", "usd")).lower(),
        "per_page": min(_positive_int("per_page", raw.get("per_page", DEFAULT_PER_PAGE)), MAX_PER_PAGE),
    }
    if "page" in raw:
        out["page"] = _positive_int("page", raw["page"])
    if "order" in raw:
        out["order"] = str(raw["order"])
    if "sparkline" in raw:
        out["sparkline"] = _as_bool(raw["sparkline"])
    if "price_change_percentage" in raw:
        pcp = raw["price_change_percentage"]
        out["price_change_percentage"] = ",".join(pcp) if isinstance(pcp, (list, tuple)) else str(pcp)
    return out


def require_id(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip() or "/" in value:
        raise InvalidParamsError(f"{name} must be a non-empty identifier, got {value!r}")
    return value.strip()
