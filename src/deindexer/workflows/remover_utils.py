"""Shared helper functions used by the removal workflow."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .remover_config import (
    ACCESS_TOKEN_ENV_VARS,
    CLIENT_ID_ENV,
    CLIENT_SECRET_ENV,
    DEFAULT_CACHE_DIR,
    DEFAULT_CONCURRENCY,
    REFRESH_TOKEN_ENV,
)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float = 0.0) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: str = "0") -> bool:
    raw = os.getenv(name, default)
    return str(raw).strip().lower() not in {"0", "false", "no", "off", ""}


def env_present(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def resolve_cache_dir(explicit: Optional[Path] = None) -> Path:
    if explicit is not None:
        return Path(explicit)
    env_dir = os.getenv("DEINDEXER_CACHE_DIR")
    if env_dir:
        return Path(env_dir)
    return DEFAULT_CACHE_DIR


def resolve_concurrency(explicit: Optional[int] = None) -> int:
    value = explicit if explicit is not None else _env_int("DEINDEXER_CONCURRENCY", DEFAULT_CONCURRENCY)
    return max(1, value)


def site_cache_name(site_url: str) -> str:
    """Return a filesystem-safe cache file name for a site identifier.

    ``https://example.com/`` -> ``https_example.com_.json``;
    ``sc-domain:example.com`` -> ``sc-domain_example.com.json``.
    """

    name = site_url.replace("http://", "http_").replace("https://", "https_")
    name = _UNSAFE_FILENAME.sub("_", name)
    return f"{name}.json"


def collect_environment_warnings() -> List[Dict[str, Any]]:
    warnings: List[Dict[str, Any]] = []
    has_token = env_present(*ACCESS_TOKEN_ENV_VARS)
    refresh_vars = [CLIENT_ID_ENV, CLIENT_SECRET_ENV, REFRESH_TOKEN_ENV]
    refresh_set = [name for name in refresh_vars if os.getenv(name)]
    if not has_token and len(refresh_set) < len(refresh_vars):
        warnings.append(
            {
                "code": "credentials_missing",
                "message": "No access token or complete OAuth refresh credentials configured.",
                "remedy": f"Set {ACCESS_TOKEN_ENV_VARS[0]} or {', '.join(refresh_vars)}.",
            }
        )
    if refresh_set and len(refresh_set) < len(refresh_vars):
        missing = sorted(set(refresh_vars) - set(refresh_set))
        warnings.append(
            {
                "code": "refresh_credentials_partial",
                "message": f"Partial OAuth refresh config; missing {', '.join(missing)}.",
                "remedy": "Set client id, client secret and refresh token together.",
            }
        )
    return warnings


__all__ = [
    "env_present",
    "resolve_cache_dir",
    "resolve_concurrency",
    "site_cache_name",
    "collect_environment_warnings",
]
