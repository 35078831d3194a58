"""HTTP download of the Onionoo details document."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry, RetryTransport

from torhistory.config.consensus import DownloadConfig
from torhistory.domain.ports.fetching import SnapshotSourceError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

RETRYABLE_EXCEPTIONS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def build_retry(config: DownloadConfig) -> Retry:
    return Retry(
        total=config.attempts,
        backoff_factor=config.backoff_factor,
        max_backoff_wait=config.max_backoff_wait,
        status_forcelist=sorted(config.retry_statuses),
        allowed_methods=("GET",),
        retry_on_exceptions=RETRYABLE_EXCEPTIONS,
    )


def build_client(
    config: DownloadConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Async client whose transport retries transient failures.

    ``transport`` replaces the network layer underneath the retries, which
    lets tests plug in ``httpx.MockTransport``.
    """

    return httpx.AsyncClient(
        timeout=config.timeout_seconds,
        headers={"User-Agent": config.user_agent},
        follow_redirects=True,
        transport=RetryTransport(transport=transport, retry=build_retry(config)),
    )


@dataclass(slots=True)
class OnionooDownloader:
    """Fetch the raw details document."""

    config: DownloadConfig = field(default_factory=DownloadConfig)
    client_factory: Callable[[DownloadConfig], httpx.AsyncClient] = build_client

    def __call__(self, url: str) -> bytes:
        return asyncio.run(self._download(url))

    async def _download(self, url: str) -> bytes:
        log.info("Downloading consensus details from %s", url)
        async with self.client_factory(self.config) as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise SnapshotSourceError(f"Consensus download from {url} failed: {exc}") from exc
        log.info("Consensus download complete: %s bytes", len(response.content))
        return response.content
