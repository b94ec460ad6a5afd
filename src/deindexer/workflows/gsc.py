"""Async Search Console / Indexing API client."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import aiohttp

from .remover_config import (
    DEFAULT_BACKOFF_INITIAL,
    DEFAULT_BACKOFF_MAX,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RATE_LIMIT_RETRIES,
    DEFAULT_RATE_LIMIT_WAIT,
    DEFAULT_TIMEOUT,
    HDR_AUTHORIZATION,
    HDR_CONTENT_TYPE,
    INSPECTION_ENDPOINT,
    PUBLISH_ENDPOINT,
    PUBLISH_METADATA_ENDPOINT,
    TRANSPORT_FAILURE_STATUS,
    URL_DELETED,
)
from .errors import RemovalRateLimitedError
from .remover_utils import _env_float, _env_int
from .statuses import InspectionOutcome

logger = logging.getLogger(__name__)


@dataclass
class RemoverConfig:
    """Runtime knobs for talking to the Google APIs."""

    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_initial: float = DEFAULT_BACKOFF_INITIAL
    backoff_max: float = DEFAULT_BACKOFF_MAX
    rate_limit_retries: int = DEFAULT_RATE_LIMIT_RETRIES
    rate_limit_wait: float = DEFAULT_RATE_LIMIT_WAIT

    @classmethod
    def from_env(cls) -> "RemoverConfig":
        return cls(
            concurrency=max(1, _env_int("DEINDEXER_CONCURRENCY", DEFAULT_CONCURRENCY)),
            timeout=_env_float("DEINDEXER_TIMEOUT", DEFAULT_TIMEOUT),
            max_attempts=max(1, _env_int("DEINDEXER_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
            rate_limit_retries=max(0, _env_int("DEINDEXER_RATE_LIMIT_RETRIES", DEFAULT_RATE_LIMIT_RETRIES)),
        )


def convert_to_site_url(value: str) -> str:
    """Turn a domain or URL prefix into a Search Console property identifier."""

    raw = (value or "").strip()
    if raw.startswith("http://") or raw.startswith("https://"):
        return raw if raw.endswith("/") else f"{raw}/"
    return f"sc-domain:{raw}"


class SearchConsoleClient:
    """Thin wrapper over the three endpoints the removal workflow needs.

    Use as an async context manager; a session may also be injected.
    """

    def __init__(
        self,
        access_token: str,
        config: Optional[RemoverConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.access_token = access_token
        self.config = config or RemoverConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "SearchConsoleClient":
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=self.config.concurrency)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    def _headers(self) -> Dict[str, str]:
        return {
            HDR_AUTHORIZATION: f"Bearer {self.access_token}",
            HDR_CONTENT_TYPE: "application/json",
        }

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("SearchConsoleClient used outside of 'async with'")
        return self._session

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, str]:
        """Send one request, retrying transport errors and 5xx responses."""

        delay = self.config.backoff_initial
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                async with self.session.request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    headers=self._headers(),
                    timeout=timeout,
                ) as resp:
                    status = resp.status
                    text = await resp.text()
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if attempt == self.config.max_attempts:
                    raise
                logger.debug("%s %s failed (%s), retry %d", method, url, exc, attempt)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.config.backoff_max)
                continue
            if status >= 500 and attempt < self.config.max_attempts:
                logger.debug("%s %s returned %d, retry %d", method, url, status, attempt)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.config.backoff_max)
                continue
            return status, text
        raise RuntimeError("unexpected retry state")

    async def inspect_url(self, site_url: str, url: str) -> InspectionOutcome:
        body = {"inspectionUrl": url, "siteUrl": site_url}
        try:
            status, text = await self._request("POST", INSPECTION_ENDPOINT, json_body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("❌ Failed to get indexing status of %s: %s", url, exc)
            return InspectionOutcome(url=url, http_status=TRANSPORT_FAILURE_STATUS, error=str(exc) or type(exc).__name__)
        if status == 403:
            logger.error("🔐 This account doesn't have access to %s. Response was: %s", site_url, text)
            return InspectionOutcome(url=url, http_status=status, error="forbidden")
        if status == 429:
            return InspectionOutcome(url=url, http_status=status, error="rate_limited")
        if status >= 300:
            logger.error("❌ Failed to get indexing status of %s. Response was: %d %s", url, status, text)
            return InspectionOutcome(url=url, http_status=status, error=f"http_{status}")
        try:
            payload = json.loads(text)
        except ValueError as exc:
            return InspectionOutcome(url=url, http_status=status, error=f"invalid_json: {exc}")
        return InspectionOutcome(url=url, http_status=status, payload=payload)

    async def get_publish_metadata(self, url: str) -> int:
        retries = self.config.rate_limit_retries
        while True:
            try:
                status, text = await self._request("GET", PUBLISH_METADATA_ENDPOINT, params={"url": url})
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.error("❌ Failed to get publish metadata of %s: %s", url, exc)
                return TRANSPORT_FAILURE_STATUS
            if status == 429 and retries > 0:
                retries -= 1
                logger.warning("🚦 Rate limited, waiting %.0fs before retrying %s", self.config.rate_limit_wait, url)
                await asyncio.sleep(self.config.rate_limit_wait)
                continue
            break
        if status == 403:
            logger.error("🔐 This account doesn't have access to this site. Response was: %s", text)
        elif status == 429:
            logger.error("🚦 Rate limit exceeded, try again later.")
        elif status >= 500:
            logger.error("❌ Failed to get publish metadata of %s. Response was: %d %s", url, status, text)
        return status

    async def request_deleting(self, url: str) -> bool:
        try:
            status, text = await self._request("POST", PUBLISH_ENDPOINT, json_body={"url": url, "type": URL_DELETED})
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("❌ Failed to request deletion of %s: %s", url, exc)
            return False
        if status == 429:
            raise RemovalRateLimitedError(url)
        if status == 403:
            logger.error("🔐 This account doesn't have access to this site. Response was: %s", text)
        if status >= 300:
            logger.error("❌ Failed to request deletion of %s. Response was: %d %s", url, status, text)
            return False
        return True


__all__ = ["RemoverConfig", "SearchConsoleClient", "convert_to_site_url"]
