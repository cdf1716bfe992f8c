"""
Media download.

Streams the bytes of one ResourceVariant over httpx. When the content
length is known the file is fetched in ranged chunks (the media host
throttles long single requests); otherwise a single streamed GET is used.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

import httpx

from tubegraph.errors import TransportError

from .variant import ResourceVariant

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class DownloadOptions:
    """
    Options for a download.

    Attributes:
        chunk_size: Bytes per ranged request
        byte_range: Inclusive (start, end) sub-range to fetch; whole file if None
        decipher: Hook resolving cipher-only variants
        url_transformer: Applied to the resolved URL before fetching
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    byte_range: tuple[int, int] | None = None
    decipher: Callable[[str], str] | None = None
    url_transformer: Callable[[str], str] | None = None

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.byte_range is not None:
            start, end = self.byte_range
            if start < 0 or end < start:
                raise ValueError(f"Invalid byte_range {self.byte_range}")


class MediaDownloader:
    """
    Downloads variant bytes.

    Example:
        async with MediaDownloader() as downloader:
            async for chunk in downloader.stream(variant):
                out.write(chunk)
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ):
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._headers = headers or {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def stream(
        self,
        variant: ResourceVariant,
        options: DownloadOptions | None = None,
    ) -> AsyncIterator[bytes]:
        """
        Yield the variant's bytes in order.

        Raises:
            LocatorError: If the variant has no resolvable URL
            TransportError: On network failures or non-success statuses
        """
        options = options or DownloadOptions()
        url = variant.resolve_url(options.decipher)
        if options.url_transformer is not None:
            url = options.url_transformer(url)

        start, end = self._bounds(variant, options)
        if end is None:
            logger.debug(f"[download] itag={variant.itag} length unknown, single request")
            async for chunk in self._get(url, start, None):
                yield chunk
            return

        logger.debug(
            f"[download] itag={variant.itag} bytes {start}-{end} "
            f"in chunks of {options.chunk_size}"
        )
        position = start
        while position <= end:
            chunk_end = min(position + options.chunk_size - 1, end)
            async for chunk in self._get(url, position, chunk_end):
                yield chunk
            position = chunk_end + 1

    async def download(
        self,
        variant: ResourceVariant,
        options: DownloadOptions | None = None,
    ) -> bytes:
        """Collect the whole stream into memory."""
        parts = [chunk async for chunk in self.stream(variant, options)]
        return b"".join(parts)

    @staticmethod
    def _bounds(
        variant: ResourceVariant,
        options: DownloadOptions,
    ) -> tuple[int, int | None]:
        if options.byte_range is not None:
            return options.byte_range
        if variant.content_length:
            return 0, variant.content_length - 1
        return 0, None

    async def _get(self, url: str, start: int, end: int | None) -> AsyncIterator[bytes]:
        client = self._get_client()
        range_header = f"bytes={start}-{'' if end is None else end}"
        try:
            async with client.stream("GET", url, headers={"Range": range_header}) as response:
                if not response.is_success:
                    body = (await response.aread()).decode(errors="replace")
                    raise TransportError(
                        f"Download failed: {body[:200]}",
                        endpoint="download",
                        status_code=response.status_code,
                        response_body=body,
                        retryable=response.status_code >= 500 or response.status_code == 429,
                    )
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}", endpoint="download", retryable=True) from e
        except httpx.NetworkError as e:
            raise TransportError(f"Network error: {e}", endpoint="download", retryable=True) from e

    async def __aenter__(self) -> MediaDownloader:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
