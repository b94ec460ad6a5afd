"""Index status taxonomy and the classifier for URL Inspection responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.keys import K_COVERAGE_STATE, K_INDEX_STATUS_RESULT, K_INSPECTION_RESULT
from .errors import UnmappedStatusError


class Status(str, Enum):
    """Coverage states reported by Search Console plus transport outcomes."""

    SubmittedAndIndexed = "Submitted and indexed"
    DuplicateWithoutUserSelectedCanonical = "Duplicate without user-selected canonical"
    CrawledCurrentlyNotIndexed = "Crawled - currently not indexed"
    DiscoveredCurrentlyNotIndexed = "Discovered - currently not indexed"
    PageWithRedirect = "Page with redirect"
    URLIsUnknownToGoogle = "URL is unknown to Google"
    RateLimited = "RateLimited"
    Forbidden = "Forbidden"
    Error = "Error"


# coverageState -> Status; only the remote verdicts, never the synthetic ones
_COVERAGE_STATES: Dict[str, Status] = {
    Status.SubmittedAndIndexed.value: Status.SubmittedAndIndexed,
    Status.DuplicateWithoutUserSelectedCanonical.value: Status.DuplicateWithoutUserSelectedCanonical,
    Status.CrawledCurrentlyNotIndexed.value: Status.CrawledCurrentlyNotIndexed,
    Status.DiscoveredCurrentlyNotIndexed.value: Status.DiscoveredCurrentlyNotIndexed,
    Status.PageWithRedirect.value: Status.PageWithRedirect,
    Status.URLIsUnknownToGoogle.value: Status.URLIsUnknownToGoogle,
}

_EMOJI: Dict[Status, str] = {
    Status.SubmittedAndIndexed: "✅",
    Status.DuplicateWithoutUserSelectedCanonical: "😵",
    Status.CrawledCurrentlyNotIndexed: "👀",
    Status.DiscoveredCurrentlyNotIndexed: "👀",
    Status.PageWithRedirect: "🔀",
    Status.URLIsUnknownToGoogle: "❓",
    Status.RateLimited: "🚦",
    Status.Forbidden: "🔐",
    Status.Error: "❌",
}


@dataclass
class InspectionOutcome:
    """Raw result of one URL Inspection call, before classification."""

    url: str
    http_status: int
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def _coverage_state(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    inspection = payload.get(K_INSPECTION_RESULT)
    if not isinstance(inspection, dict):
        return None
    index_status = inspection.get(K_INDEX_STATUS_RESULT)
    if not isinstance(index_status, dict):
        return None
    state = index_status.get(K_COVERAGE_STATE)
    return state if isinstance(state, str) else None


def classify(outcome: InspectionOutcome) -> Status:
    """Map an inspection outcome onto :class:`Status`.

    429 and 403 become ``RateLimited`` and ``Forbidden``. Any other failure,
    including a body without a coverage state, becomes ``Error``. A coverage
    state outside the known table raises :class:`UnmappedStatusError` so an
    unknown verdict can never be mistaken for a deletable one.
    """

    if outcome.http_status == 429:
        return Status.RateLimited
    if outcome.http_status == 403:
        return Status.Forbidden
    if outcome.error or not (200 <= outcome.http_status < 300):
        return Status.Error
    state = _coverage_state(outcome.payload)
    if state is None:
        return Status.Error
    try:
        return _COVERAGE_STATES[state]
    except KeyError:
        raise UnmappedStatusError(state, outcome.url) from None


def emoji_for_status(status: Status) -> str:
    return _EMOJI.get(status, "❌")


def empty_groups() -> Dict[Status, list]:
    """Return a grouping with every status present, in declaration order."""

    return {status: [] for status in Status}


__all__ = [
    "Status",
    "InspectionOutcome",
    "classify",
    "emoji_for_status",
    "empty_groups",
]
