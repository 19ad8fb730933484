from __future__ import annotations

from pathlib import Path

from storefront.core.config import settings


def resolve_cache_path(name: str, root: Path | None = None) -> Path:
    """Return (and create) the directory backing the named disk cache."""
    base = Path(root) if root is not None else Path(settings.CACHE_ROOT)
    cache_dir = base / name
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir
