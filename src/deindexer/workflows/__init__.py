"""High-level exports for the removal workflows."""

from .batch import run_batches
from .cache import StatusRecord, load_cache, save_cache, should_recheck
from .deletion import DeletionReport, reconcile_deletions
from .errors import (
    BatchAbortedError,
    DeindexerError,
    MissingCredentialsError,
    NoInputURLsError,
    RemovalRateLimitedError,
    UnmappedStatusError,
)
from .gsc import RemoverConfig, SearchConsoleClient, convert_to_site_url
from .polling import poll
from .statuses import InspectionOutcome, Status, classify

__all__ = [
    "run_batches",
    "StatusRecord",
    "load_cache",
    "save_cache",
    "should_recheck",
    "DeletionReport",
    "reconcile_deletions",
    "BatchAbortedError",
    "DeindexerError",
    "MissingCredentialsError",
    "NoInputURLsError",
    "RemovalRateLimitedError",
    "UnmappedStatusError",
    "RemoverConfig",
    "SearchConsoleClient",
    "convert_to_site_url",
    "poll",
    "InspectionOutcome",
    "Status",
    "classify",
]
