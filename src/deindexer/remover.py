from __future__ import annotations

import asyncio
import csv
import logging
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dotenv import load_dotenv

from .core.keys import K_COUNTS, K_DELETION, K_SITE_URL, K_URL
from .workflows.auth import credentials_configured, get_access_token
from .workflows.cache import StatusRecord, cache_path_for_site, load_cache, save_cache
from .workflows.deletion import DeletionReport, reconcile_deletions
from .workflows.errors import MissingCredentialsError, NoInputURLsError
from .workflows.gsc import RemoverConfig, SearchConsoleClient, convert_to_site_url
from .workflows.polling import poll
from .workflows.remover_config import DELETABLE_STATUSES
from .workflows.remover_utils import collect_environment_warnings, resolve_cache_dir
from .workflows.statuses import InspectionOutcome, Status, emoji_for_status

load_dotenv(override=True)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
ClientFactory = Callable[[str, RemoverConfig], SearchConsoleClient]

TRANSPORT_FAILURES = (Status.RateLimited, Status.Forbidden, Status.Error)


def parse_url_rows(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    urls: List[str] = []
    for row in rows:
        value = (row.get(K_URL) or "").strip()
        if value:
            urls.append(value)
    return urls


def load_urls(path: Path) -> List[str]:
    """Read the ``url`` column of a CSV file, keeping order and duplicates."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle, delimiter=",")
        if reader.fieldnames is None:
            return []
        if K_URL not in reader.fieldnames:
            raise ValueError(f"CSV file {path} has no '{K_URL}' column")
        return parse_url_rows(reader)


def generate_run_id(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    suffix = secrets.token_hex(3)
    return f"{stamp}_{suffix}"


def _isoformat(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def deletable_urls(groups: Mapping[Status, Sequence[str]]) -> List[str]:
    urls: List[str] = []
    for status, members in groups.items():
        if status in DELETABLE_STATUSES:
            urls.extend(members)
    return urls


def build_summary(
    *,
    run_id: str,
    site_url: str,
    cache_path: Optional[Path],
    started_at: datetime,
    finished_at: datetime,
    urls: Sequence[str],
    groups: Mapping[Status, Sequence[str]],
    inspected: int,
    deletion: Optional[DeletionReport],
) -> Dict[str, Any]:
    by_status = {status.value: len(groups.get(status, [])) for status in Status}
    deletion_payload = deletion.to_dict() if deletion is not None else None
    return {
        "command": "remove",
        "run_id": run_id,
        K_SITE_URL: site_url,
        "cache_path": str(cache_path) if cache_path else None,
        "started_at": _isoformat(started_at),
        "finished_at": _isoformat(finished_at),
        "duration_ms": int((finished_at - started_at).total_seconds() * 1000),
        K_COUNTS: {
            "total": len(urls),
            "unique": len(set(urls)),
            "inspected": inspected,
            "from_cache": len(set(urls)) - inspected,
            "transport_failures": sum(by_status[status.value] for status in TRANSPORT_FAILURES),
            "by_status": by_status,
        },
        "statuses": {status.value: list(groups.get(status, [])) for status in Status if groups.get(status)},
        "deletable": deletable_urls(groups),
        K_DELETION: deletion_payload,
    }


def render_report(summary: Dict[str, Any]) -> str:
    """Render a run summary as the human-readable console report."""

    lines: List[str] = []
    counts = summary.get(K_COUNTS) or {}
    by_status = counts.get("by_status") or {}
    lines.append(f"🔎 Site: {summary.get(K_SITE_URL)}")
    lines.append(f"👍 Done, here's the status of all {counts.get('total', 0)} pages:")
    for status in Status:
        count = by_status.get(status.value, 0)
        if not count:
            continue
        lines.append(f"• {emoji_for_status(status)} {status.value}: {count} pages")
    lines.append("")

    deletable = summary.get("deletable") or []
    if not deletable:
        lines.append("✨ There are no pages that can be deleted. Everything is already deleted!")
    else:
        lines.append(f"✨ Found {len(deletable)} pages that can be removed.")
        for url in deletable:
            lines.append(f"• {url}")
    lines.append("")

    deletion = summary.get(K_DELETION)
    if deletion is None:
        if deletable:
            lines.append("⏭️ Removal requests skipped.")
            lines.append("")
    else:
        requested = deletion.get("requested") or []
        already = deletion.get("already_requested") or []
        not_eligible = deletion.get("not_eligible") or {}
        lines.append(f"🚀 Removal requested: {len(requested)}")
        for url in requested:
            lines.append(f"  - {url}")
        lines.append(f"🕛 Already requested: {len(already)}")
        for url in already:
            lines.append(f"  - {url}")
        if not_eligible:
            lines.append(f"⏸️ Not yet eligible: {len(not_eligible)}")
            for url, code in not_eligible.items():
                lines.append(f"  - {url} ({code})")
        lines.append("")

    lines.append("👍 All done!")
    return "\n".join(lines).rstrip() + "\n"


def _log_batch_progress(index: int, total: int) -> None:
    logger.info("📦 Batch %d of %d complete", index + 1, total)


async def _run_async(
    client: SearchConsoleClient,
    *,
    site_url: str,
    urls: Sequence[str],
    existing: Mapping[str, StatusRecord],
    cache_path: Optional[Path],
    concurrency: int,
    skip_delete: bool,
) -> Tuple[Dict[str, StatusRecord], Dict[Status, List[str]], int, Optional[DeletionReport]]:
    inspected = 0

    async def _inspect(url: str) -> InspectionOutcome:
        nonlocal inspected
        inspected += 1
        return await client.inspect_url(site_url, url)

    async with client:
        records, groups = await poll(
            urls,
            existing,
            inspect=_inspect,
            concurrency=concurrency,
            on_batch_done=_log_batch_progress,
        )
        if cache_path is not None:
            save_cache(cache_path, records)
            logger.info("💾 Cached %d statuses in %s", len(records), cache_path)

        for status in Status:
            if groups[status]:
                logger.info("• %s %s: %d pages", emoji_for_status(status), status.value, len(groups[status]))

        targets = deletable_urls(groups)
        deletion: Optional[DeletionReport] = None
        if not targets:
            logger.info("✨ There are no pages that can be deleted.")
        elif skip_delete:
            logger.info("✨ Found %d pages that can be removed; skipping removal requests.", len(targets))
        else:
            logger.info("✨ Found %d pages that can be removed.", len(targets))
            deletion = await reconcile_deletions(client, targets)
    return records, groups, inspected, deletion


def run_removal(
    site: str,
    csv_path: Path,
    *,
    cache_dir: Optional[Path] = None,
    config: Optional[RemoverConfig] = None,
    use_cache: bool = True,
    skip_delete: bool = False,
    strict: bool = False,
    token_provider: TokenProvider = get_access_token,
    client_factory: ClientFactory = SearchConsoleClient,
) -> Tuple[Dict[str, Any], int]:
    """Poll every URL in ``csv_path`` and request removal of dead indexed pages.

    Raises :class:`NoInputURLsError` or :class:`MissingCredentialsError`
    before any network call. Any polling failure propagates before the cache
    is written.
    """

    started_at = datetime.now(timezone.utc)
    run_id = generate_run_id(started_at)
    config = config or RemoverConfig.from_env()

    urls = load_urls(csv_path)
    if not urls:
        raise NoInputURLsError(str(csv_path))
    access_token = token_provider()
    if not access_token:
        raise MissingCredentialsError()
    site_url = convert_to_site_url(site)
    logger.info("🔎 Processing site: %s", site_url)
    logger.info("👉 Found %d URLs in %s", len(urls), csv_path)

    cache_path = cache_path_for_site(resolve_cache_dir(cache_dir), site_url) if use_cache else None
    existing = load_cache(cache_path) if cache_path is not None else {}

    client = client_factory(access_token, config)
    records, groups, inspected, deletion = asyncio.run(
        _run_async(
            client,
            site_url=site_url,
            urls=urls,
            existing=existing,
            cache_path=cache_path,
            concurrency=config.concurrency,
            skip_delete=skip_delete,
        )
    )

    summary = build_summary(
        run_id=run_id,
        site_url=site_url,
        cache_path=cache_path,
        started_at=started_at,
        finished_at=datetime.now(timezone.utc),
        urls=urls,
        groups=groups,
        inspected=inspected,
        deletion=deletion,
    )
    exit_code = 0
    if strict and summary[K_COUNTS]["transport_failures"] > 0:
        exit_code = 3
    return summary, exit_code


def run_removal_dry_run(
    site: str,
    csv_path: Path,
    *,
    cache_dir: Optional[Path] = None,
    credentials_check: Callable[[], bool] = credentials_configured,
) -> Tuple[Dict[str, Any], int]:
    """Validate inputs, credentials and cache without touching the network.

    Credentials are only checked for presence; no token is exchanged.
    """

    urls = load_urls(csv_path)
    site_url = convert_to_site_url(site)
    cache_path = cache_path_for_site(resolve_cache_dir(cache_dir), site_url)
    existing = load_cache(cache_path)
    env_warnings = collect_environment_warnings()
    has_token = credentials_check()
    errors: List[str] = []
    if not has_token:
        errors.append("credentials_missing")
    if not urls:
        errors.append("no_input_urls")
    summary = {
        "command": "remove",
        "dry_run": True,
        K_SITE_URL: site_url,
        "cache_path": str(cache_path),
        K_COUNTS: {
            "total": len(urls),
            "cached": sum(1 for url in set(urls) if url in existing),
        },
        "environment_warnings": env_warnings,
        "errors": errors,
    }
    return summary, 2 if errors else 0


__all__ = [
    "load_urls",
    "parse_url_rows",
    "generate_run_id",
    "build_summary",
    "render_report",
    "deletable_urls",
    "run_removal",
    "run_removal_dry_run",
]
