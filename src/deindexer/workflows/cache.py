"""Status cache: reconciliation policy plus JSON persistence."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping

from ..core.keys import K_LAST_CHECKED_AT, K_STATUS
from .remover_config import CACHE_TIMEOUT, DELETABLE_STATUSES
from .remover_utils import site_cache_name
from .statuses import Status

logger = logging.getLogger(__name__)


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class StatusRecord:
    """Last known status of one URL and when it was observed."""

    status: Status
    last_checked_at: datetime

    def to_dict(self) -> Dict[str, str]:
        return {K_STATUS: self.status.value, K_LAST_CHECKED_AT: _isoformat(self.last_checked_at)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StatusRecord":
        return cls(
            status=Status(payload[K_STATUS]),
            last_checked_at=_parse_timestamp(str(payload[K_LAST_CHECKED_AT])),
        )


def should_recheck(status: Status, last_checked_at: datetime, now: datetime) -> bool:
    """Return True when a cached status must be fetched again.

    Deletable statuses are always rechecked since they trigger a removal.
    Everything else is trusted until it is older than ``CACHE_TIMEOUT``.
    """

    if status in DELETABLE_STATUSES:
        return True
    return last_checked_at < now - CACHE_TIMEOUT


def cache_path_for_site(cache_dir: Path, site_url: str) -> Path:
    return Path(cache_dir) / site_cache_name(site_url)


def load_cache(path: Path) -> Dict[str, StatusRecord]:
    """Load a cache file; missing or unreadable files yield an empty cache."""

    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("ignoring unreadable cache %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring cache %s: expected a JSON object", path)
        return {}
    records: Dict[str, StatusRecord] = {}
    for url, payload in data.items():
        try:
            records[url] = StatusRecord.from_dict(payload)
        except (KeyError, TypeError, ValueError):
            logger.debug("dropping malformed cache entry for %s", url)
    logger.debug("loaded %d cached statuses from %s", len(records), path)
    return records


def save_cache(path: Path, records: Mapping[str, StatusRecord]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {url: record.to_dict() for url, record in records.items()}
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


__all__ = [
    "StatusRecord",
    "should_recheck",
    "cache_path_for_site",
    "load_cache",
    "save_cache",
]
