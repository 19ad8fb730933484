"""Field coercion helpers shared by the backend payload parsers.

The storefront backend wraps every public payload in a ``{"success": bool,
"data": ...}`` envelope and serializes decimals as strings, so parsers lean
on these helpers instead of trusting raw JSON types.
"""

from __future__ import annotations

from typing import Any

from storefront.core.backend.exceptions import BackendResponseError


def unwrap_data(payload: Any) -> Any:
    """Return the ``data`` member of a successful envelope, or ``None`` when absent."""
    if not isinstance(payload, dict):
        raise BackendResponseError(f"Expected response envelope, received {type(payload).__name__}")
    if payload.get("success") is False:
        return None
    return payload.get("data")


def require_mapping(raw: Any, field: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise BackendResponseError(f"Expected mapping for '{field}', received {raw!r}")
    return raw


def require_list(raw: Any, field: str) -> list[Any]:
    if not isinstance(raw, list):
        raise BackendResponseError(f"Expected list for '{field}', received {raw!r}")
    return raw


def require_int(raw: Any, field: str) -> int:
    if isinstance(raw, bool):
        raise BackendResponseError(f"Expected integer for '{field}', received boolean")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise BackendResponseError(f"Expected integer for '{field}', received {raw!r}") from exc


def optional_int(raw: Any, field: str) -> int | None:
    if raw is None or raw == "":
        return None
    return require_int(raw, field)


def optional_float(raw: Any, field: str) -> float | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise BackendResponseError(f"Expected number for '{field}', received boolean")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise BackendResponseError(f"Expected number for '{field}', received {raw!r}") from exc


def coerce_bool(raw: Any, field: str, default: bool = False) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true"}:
            return True
        if normalized in {"0", "false"}:
            return False
    raise BackendResponseError(f"Expected boolean-indicative value for '{field}', received {raw!r}")


def require_identifier(raw: Any, field: str) -> str:
    """Identifiers arrive as ints or strings; normalize to a non-empty string."""
    if raw is None or isinstance(raw, bool):
        raise BackendResponseError(f"Expected identifier for '{field}', received {raw!r}")
    value = str(raw).strip()
    if not value:
        raise BackendResponseError(f"Expected non-empty identifier for '{field}'")
    return value


def optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    value = str(raw).strip()
    return value if value else None
