"""Polling orchestrator: reconcile cached statuses and inspect the rest."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .batch import BatchHook, run_batches
from .cache import StatusRecord, should_recheck
from .remover_config import DEFAULT_CONCURRENCY
from .statuses import InspectionOutcome, Status, classify, empty_groups

logger = logging.getLogger(__name__)

InspectFunc = Callable[[str], Awaitable[InspectionOutcome]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def group_by_status(urls: Sequence[str], records: Mapping[str, StatusRecord]) -> Dict[Status, List[str]]:
    """Group ``urls`` (input order, duplicates kept) by their recorded status."""

    groups = empty_groups()
    for url in urls:
        groups[records[url].status].append(url)
    return groups


async def poll(
    urls: Sequence[str],
    existing_cache: Mapping[str, StatusRecord],
    *,
    inspect: InspectFunc,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_batch_done: Optional[BatchHook] = None,
    clock: Clock = _utcnow,
) -> Tuple[Dict[str, StatusRecord], Dict[Status, List[str]]]:
    """Build the status map and grouping for ``urls``.

    ``existing_cache`` is left untouched; the returned map starts as a copy of
    it and gains one record per input URL. Records are only refreshed when
    they are missing or :func:`should_recheck` says so. A URL listed more
    than once is inspected once; the grouping keeps every occurrence.
    """

    records: Dict[str, StatusRecord] = dict(existing_cache)

    async def _check(url: str) -> None:
        current = records.get(url)
        if current is not None and not should_recheck(current.status, current.last_checked_at, clock()):
            logger.debug("cache hit for %s (%s)", url, current.status.value)
            return
        outcome = await inspect(url)
        status = classify(outcome)
        records[url] = StatusRecord(status=status, last_checked_at=clock())
        logger.debug("inspected %s -> %s", url, status.value)

    unique_urls = list(dict.fromkeys(urls))
    await run_batches(_check, unique_urls, concurrency, on_batch_done)
    return records, group_by_status(urls, records)


__all__ = ["poll", "group_by_status", "InspectFunc"]
