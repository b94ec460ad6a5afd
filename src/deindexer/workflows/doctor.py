"""Environment diagnostics for ``deindexer doctor``."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .remover_config import (
    ACCESS_TOKEN_ENV_VARS,
    CLIENT_ID_ENV,
    CLIENT_SECRET_ENV,
    DEFAULT_CONCURRENCY,
    DEFAULT_RATE_LIMIT_RETRIES,
    REFRESH_TOKEN_ENV,
)
from .remover_utils import _env_int, env_present, resolve_cache_dir, resolve_concurrency

SECTIONS = ("credentials", "cache", "runtime")


def mask_credential(value: str) -> str:
    """Show only the token family prefix and the length of a credential."""

    raw = (value or "").strip()
    if len(raw) <= 8:
        return "*" * len(raw)
    return f"{raw[:4]}… ({len(raw)} chars)"


def _cache_dir_writable(path: Path) -> bool:
    # The directory is created on first save, so the nearest existing ancestor decides.
    existing = path
    while not existing.exists() and existing != existing.parent:
        existing = existing.parent
    return existing.is_dir() and os.access(existing, os.W_OK)


def _credential_checks() -> List[Dict[str, Any]]:
    token = env_present(*ACCESS_TOKEN_ENV_VARS)
    if token:
        source = next(name for name in ACCESS_TOKEN_ENV_VARS if os.getenv(name))
        return [{"name": "credentials", "ok": True, "detail": f"access token from {source}", "value": mask_credential(token)}]

    refresh_vars = (CLIENT_ID_ENV, CLIENT_SECRET_ENV, REFRESH_TOKEN_ENV)
    missing = [name for name in refresh_vars if not os.getenv(name)]
    if not missing:
        return [
            {
                "name": "credentials",
                "ok": True,
                "detail": "OAuth refresh token (exchanged at run time)",
                "value": mask_credential(os.getenv(REFRESH_TOKEN_ENV, "")),
            }
        ]
    remedy = f"Set {ACCESS_TOKEN_ENV_VARS[0]}, or all of {', '.join(refresh_vars)}."
    if len(missing) < len(refresh_vars):
        detail = f"refresh credentials incomplete, missing {', '.join(missing)}"
    else:
        detail = "no access token or refresh credentials"
    return [{"name": "credentials", "ok": False, "detail": detail, "remedy": remedy}]


def _cache_checks(cache_dir: Optional[Path]) -> List[Dict[str, Any]]:
    resolved = resolve_cache_dir(cache_dir)
    checks = [
        {
            "name": "cache_dir",
            "ok": _cache_dir_writable(resolved),
            "detail": str(resolved),
            "remedy": "Pass --cache-dir or set DEINDEXER_CACHE_DIR to a writable directory.",
        }
    ]
    if resolved.is_dir():
        sites = sorted(path.stem for path in resolved.glob("*.json"))
        checks.append(
            {
                "name": "cached_sites",
                "ok": True,
                "informational": True,
                "detail": ", ".join(sites) if sites else "none yet",
            }
        )
    return checks


def _runtime_checks() -> List[Dict[str, Any]]:
    concurrency = resolve_concurrency()
    retries = max(0, _env_int("DEINDEXER_RATE_LIMIT_RETRIES", DEFAULT_RATE_LIMIT_RETRIES))
    return [
        {
            "name": "concurrency",
            "ok": True,
            "informational": True,
            "detail": f"{concurrency} inspections per batch" + ("" if concurrency == DEFAULT_CONCURRENCY else " (from env)"),
        },
        {
            "name": "rate_limit_retries",
            "ok": True,
            "informational": True,
            "detail": "429 on metadata is reported, not retried" if retries == 0 else f"{retries} retries after a 429",
        },
    ]


def build_doctor_report(*, cache_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Collect credential, cache and runtime checks; ``ok`` is False on any failed check."""

    sections = {
        "credentials": _credential_checks(),
        "cache": _cache_checks(cache_dir),
        "runtime": _runtime_checks(),
    }
    failed = [check["name"] for checks in sections.values() for check in checks if not check["ok"]]
    return {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": not failed,
        "failed": failed,
        "sections": sections,
    }


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = [f"🩺 deindexer doctor ({report.get('generated_at')})"]
    sections = report.get("sections") or {}
    for section in SECTIONS:
        checks = sections.get(section) or []
        if not checks:
            continue
        lines.append("")
        lines.append(f"{section.capitalize()}:")
        for check in checks:
            mark = "•" if check.get("informational") else ("✅" if check.get("ok") else "❌")
            text = f"  {mark} {check['name']}: {check.get('detail') or ''}".rstrip()
            if check.get("value"):
                text += f" [{check['value']}]"
            lines.append(text)
            if not check.get("ok") and check.get("remedy"):
                lines.append(f"      👉 {check['remedy']}")

    lines.append("")
    failed = report.get("failed") or []
    if failed:
        lines.append(f"❌ Not ready: fix {', '.join(failed)} before running `deindexer remove`.")
    else:
        lines.append("👍 Ready to run `deindexer remove`.")
    return "\n".join(lines) + "\n"


__all__ = ["build_doctor_report", "format_doctor_report", "mask_credential"]
