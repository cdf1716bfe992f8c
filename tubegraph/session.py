"""
Session facade.

A Session binds a Transport to a GraphBuilder: every fetch returns a
ResponsePage, and every cursor it hands out fetches through the same
transport. Aggregates (TrackInfo, KidsChannel) hold a Session so their
endpoints can be followed.

Usage:
    async with Session.from_settings(ClientSettings.from_env()) as session:
        info = await session.get_track_info("dQw4w9WgXcQ")
        queue = await info.get_up_next()
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tubegraph.aggregates.kids_channel import KIDS_CLIENT_PARAMS, KidsChannel
from tubegraph.aggregates.track_info import TrackInfo
from tubegraph.config import ClientSettings
from tubegraph.continuation.cursor import ContinuationCursor, PageFetcher
from tubegraph.errors import TubeGraphError
from tubegraph.page import ResponsePage
from tubegraph.parser.builder import GraphBuilder
from tubegraph.transport.endpoints import BROWSE, NEXT, PLAYER, Endpoint
from tubegraph.transport.http import HttpTransport
from tubegraph.transport.protocol import StatsTransport, Transport

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

_CPN_ALPHABET = string.ascii_letters + string.digits + "-_"


def generate_cpn(length: int = 16) -> str:
    """Random client playback nonce."""
    return "".join(secrets.choice(_CPN_ALPHABET) for _ in range(length))


class Session:
    """Fetches pages and opens cursors over one transport."""

    def __init__(
        self,
        transport: Transport,
        builder: GraphBuilder | None = None,
        *,
        cpn: str | None = None,
    ):
        """
        Initialize the session.

        Args:
            transport: Transport used for every fetch
            builder: Graph builder (default registry if None)
            cpn: Client playback nonce (generated if None)
        """
        self.transport = transport
        self.builder = builder or GraphBuilder()
        self.cpn = cpn or generate_cpn()

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> Session:
        """Create a session over an HttpTransport configured from settings."""
        return cls(
            HttpTransport(settings.to_transport_config()),
            GraphBuilder(discriminator=settings.discriminator),
        )

    # ==================== Pages ====================

    async def fetch(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
        continuation: str | None = None,
    ) -> ResponsePage:
        """
        Fetch and parse one page.

        Raises:
            TransportError / ServiceError: From the transport, unchanged
            MalformedDocumentError: If the document cannot be built
        """
        logger.debug(
            f"[session] Fetching {endpoint.path} "
            f"(continuation={'yes' if continuation else 'no'})"
        )
        document = await self.transport.fetch(endpoint, dict(params or {}), continuation)
        return ResponsePage.parse(
            document,
            self.builder,
            token_paths=endpoint.token_paths,
            endpoint=endpoint.name,
        )

    def cursor(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
        token: str | None = None,
        *,
        name: str | None = None,
    ) -> ContinuationCursor:
        """Open a fresh cursor; with no token the first advance fetches the first page."""
        return ContinuationCursor(
            self._page_fetcher(endpoint, params), token, name=name or endpoint.name
        )

    def exhausted_cursor(
        self,
        page: ResponsePage,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
        *,
        name: str | None = None,
    ) -> ContinuationCursor:
        """Cursor for a collection on ``page`` that has no continuation."""
        return ContinuationCursor.exhausted(
            self._page_fetcher(endpoint, params), page, name=name or endpoint.name
        )

    def cursor_from(
        self,
        page: ResponsePage,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
        *,
        name: str | None = None,
    ) -> ContinuationCursor:
        """Open a cursor positioned after an already fetched page."""
        return ContinuationCursor.from_page(
            page, self._page_fetcher(endpoint, params), name=name or endpoint.name
        )

    def _page_fetcher(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None,
    ) -> PageFetcher:
        frozen_params = dict(params or {})

        async def fetch_page(continuation: str | None) -> ResponsePage:
            return await self.fetch(endpoint, frozen_params, continuation)

        return fetch_page

    async def stats(self, url: str, params: Mapping[str, Any] | None = None) -> httpx.Response:
        """
        Send a stats ping through the transport.

        Raises:
            TubeGraphError: If the transport cannot send stats pings
            TransportError: From the transport, unchanged
        """
        if not isinstance(self.transport, StatsTransport):
            raise TubeGraphError(
                f"{type(self.transport).__name__} does not support stats requests"
            )
        return await self.transport.stats(url, dict(params or {}))

    # ==================== Aggregates ====================

    async def get_track_info(self, video_id: str, playlist_id: str | None = None) -> TrackInfo:
        """
        Fetch the player and watch-next pages of a track concurrently.

        Raises:
            ServiceError: If the track is unavailable
        """
        next_params: dict[str, Any] = {"videoId": video_id}
        if playlist_id:
            next_params["playlistId"] = playlist_id

        player_page, next_page = await asyncio.gather(
            self.fetch(PLAYER, {"videoId": video_id}),
            self.fetch(NEXT, next_params),
        )
        return TrackInfo(self, player_page, next_page)

    async def get_kids_channel(self, channel_id: str) -> KidsChannel:
        page = await self.fetch(BROWSE, {"browseId": channel_id, **KIDS_CLIENT_PARAMS})
        return KidsChannel(self, page)

    # ==================== Lifecycle ====================

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<Session transport={type(self.transport).__name__}>"
