"""Deletion driver: request removal for indexed pages that no longer exist."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence

logger = logging.getLogger(__name__)


class RemovalClient(Protocol):
    async def get_publish_metadata(self, url: str) -> int: ...

    async def request_deleting(self, url: str) -> Any: ...


@dataclass
class DeletionReport:
    """Outcome of one deletion pass, in processing order."""

    requested: List[str] = field(default_factory=list)
    already_requested: List[str] = field(default_factory=list)
    not_eligible: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requested": list(self.requested),
            "already_requested": list(self.already_requested),
            "not_eligible": dict(self.not_eligible),
        }


async def reconcile_deletions(client: RemovalClient, urls: Sequence[str]) -> DeletionReport:
    """Walk ``urls`` one at a time and request removal where appropriate.

    404 metadata means the page is gone and was never submitted for removal,
    so a removal is requested. Any other status below 400 means a removal
    notification already exists. Everything else, including a metadata
    request that got no response at all, is left for a later run.
    """

    report = DeletionReport()
    for url in urls:
        logger.info("📄 Processing url: %s", url)
        status = await client.get_publish_metadata(url)
        if status == 404:
            await client.request_deleting(url)
            report.requested.append(url)
            logger.info("🚀 Deletion requested. It may take a few days for Google to process it.")
        elif 0 < status < 400:
            report.already_requested.append(url)
            logger.info("🕛 Deletion already requested previously. It may take a few days for Google to process it.")
        else:
            report.not_eligible[url] = status
            logger.info("⏸️ Skipping %s for now (metadata status %d).", url, status)
    return report


__all__ = ["DeletionReport", "RemovalClient", "reconcile_deletions"]
