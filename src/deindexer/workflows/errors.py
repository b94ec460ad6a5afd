"""Exception types raised by the removal workflow."""

from __future__ import annotations

from typing import Optional


class DeindexerError(RuntimeError):
    """Base class for fatal deindexer errors."""


class MissingCredentialsError(DeindexerError):
    def __init__(self, message: str = "Failed to get access token, check your credentials.") -> None:
        super().__init__(message)


class NoInputURLsError(DeindexerError):
    def __init__(self, source: str = "") -> None:
        where = f" in {source}" if source else ""
        super().__init__(f"No pages found{where}, add them to the csv.")


class UnmappedStatusError(DeindexerError):
    """Raised when the inspection API reports a coverage state we do not know."""

    def __init__(self, coverage_state: str, url: Optional[str] = None) -> None:
        self.coverage_state = coverage_state
        self.url = url
        suffix = f" for {url}" if url else ""
        super().__init__(f"Unmapped coverage state {coverage_state!r}{suffix}")


class BatchAbortedError(DeindexerError):
    """A batch item failed; remaining batches were not started."""

    def __init__(self, batch_index: int, batch_count: int, item: object = None) -> None:
        self.batch_index = batch_index
        self.batch_count = batch_count
        self.item = item
        super().__init__(f"Batch {batch_index + 1} of {batch_count} aborted (item: {item!r})")


class RemovalRateLimitedError(DeindexerError):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Rate limit exceeded while requesting removal of {url}, try again later.")


__all__ = [
    "DeindexerError",
    "MissingCredentialsError",
    "NoInputURLsError",
    "UnmappedStatusError",
    "BatchAbortedError",
    "RemovalRateLimitedError",
]
