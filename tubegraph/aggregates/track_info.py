"""
Track info aggregate.

Combines the player page (streaming data, microformat, playability) and
the optional watch-next page (tabs, queue) of one music track.

Tabs are resolved lazily: a tab either carries its content inline or an
endpoint that must be followed. The "Up next" queue may be a placeholder
for an automix playlist; get_up_next() substitutes the automix queue
through a FallbackChain when the primary panel has no playlist.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from tubegraph.continuation.fallback import PRIMARY, FallbackChain, FallbackOutcome, FallbackStep
from tubegraph.errors import (
    MalformedDocumentError,
    NoMatchingFormatError,
    ServiceError,
    TubeGraphError,
)
from tubegraph.formats.download import DownloadOptions, MediaDownloader
from tubegraph.formats.manifest import FormatFilter, ManifestOptions, UrlTransformer, emit_dash_manifest
from tubegraph.formats.selector import FormatConstraints, choose_format
from tubegraph.formats.variant import ResourceVariant, StreamingData
from tubegraph.parser.endpoint import NavigationEndpoint
from tubegraph.parser.node import Node, NodeSequence
from tubegraph.parser.nodes.music import (
    AutomixPreviewVideo,
    MusicDescriptionShelf,
    MusicQueue,
    PlaylistPanel,
    Tab,
    WatchNextTabbedResults,
)
from tubegraph.parser.nodes.player import (
    Endscreen,
    MicroformatData,
    PlayerLiveStoryboardSpec,
    PlayerOverlay,
    PlayerStoryboardSpec,
)
from tubegraph.parser.nodes.sections import Message, SectionList
from tubegraph.transport.endpoints import NEXT

if TYPE_CHECKING:
    import httpx

    from tubegraph.continuation.cursor import ContinuationCursor
    from tubegraph.page import ResponsePage
    from tubegraph.session import Session

logger = logging.getLogger(__name__)

UP_NEXT_TAB = "Up next"
RELATED_PAGE_TYPE = "MUSIC_PAGE_TYPE_TRACK_RELATED"
LYRICS_PAGE_TYPE = "MUSIC_PAGE_TYPE_TRACK_LYRICS"
MUSIC_CLIENT_PARAMS: Mapping[str, Any] = {"client": "YTMUSIC"}
WATCH_HISTORY_PARAMS: Mapping[str, Any] = {"fmt": 251, "rtn": 0, "rt": 0}

TabContent = Node | NodeSequence


@dataclass(frozen=True, slots=True)
class BasicInfo:
    """Video details merged with microformat metadata."""

    id: str | None
    title: str | None = None
    author: str | None = None
    channel_id: str | None = None
    duration: int | None = None
    view_count: int | None = None
    keywords: tuple[str, ...] = ()
    thumbnail_url: str | None = None
    is_live_content: bool = False
    description: str | None = None
    is_unlisted: bool = False
    is_family_safe: bool = True
    url_canonical: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_parts(cls, details: Mapping[str, Any], microformat: MicroformatData) -> BasicInfo:
        thumbnails = (details.get("thumbnail") or {}).get("thumbnails") or []
        length = details.get("lengthSeconds")
        views = details.get("viewCount")
        return cls(
            id=details.get("videoId"),
            title=details.get("title") or microformat.title,
            author=details.get("author"),
            channel_id=details.get("channelId"),
            duration=int(length) if length is not None else None,
            view_count=int(views) if views is not None else None,
            keywords=tuple(details.get("keywords") or ()),
            thumbnail_url=thumbnails[-1].get("url") if thumbnails else microformat.thumbnail_url,
            is_live_content=bool(details.get("isLiveContent", False)),
            description=microformat.description,
            is_unlisted=microformat.is_unlisted,
            is_family_safe=microformat.is_family_safe,
            url_canonical=microformat.url_canonical,
            tags=microformat.tags,
        )


@dataclass(frozen=True, slots=True)
class PlaybackTracking:
    """Stats URLs handed out by the player page."""

    videostats_playback_url: str
    videostats_watchtime_url: str | None = None

    @classmethod
    def from_raw(cls, data: Mapping[str, Any] | None) -> PlaybackTracking | None:
        if not data:
            return None
        playback = (data.get("videostatsPlaybackUrl") or {}).get("baseUrl")
        if not playback:
            return None
        watchtime = (data.get("videostatsWatchtimeUrl") or {}).get("baseUrl")
        return cls(videostats_playback_url=playback, videostats_watchtime_url=watchtime)


class TrackInfo:
    """
    Everything known about one track.

    Example:
        info = await session.get_track_info(video_id)
        variant = info.choose_format({"mediaKind": "audio"})
        queue = await info.get_up_next()
        lyrics = await info.get_lyrics()
    """

    def __init__(
        self,
        session: Session,
        player: ResponsePage,
        next_page: ResponsePage | None = None,
    ):
        """
        Build track info from fetched pages.

        Raises:
            ServiceError: If the player page reports the track as unavailable
            MalformedDocumentError: If the microformat is missing or of another variant
        """
        self.session = session
        self.player_page = player
        self.next_page = next_page

        playability = player.raw.get("playabilityStatus") or {}
        if playability.get("status") == "ERROR":
            raise ServiceError(
                "This video is unavailable",
                status="ERROR",
                reason=playability.get("reason"),
                info=playability,
            )
        self.playability_status: Mapping[str, Any] = MappingProxyType(dict(playability))

        microformat = player.section("microformat")
        if not isinstance(microformat, Node) or not microformat.is_a(MicroformatData):
            raise MalformedDocumentError(
                "Invalid microformat",
                tag=microformat.variant if isinstance(microformat, Node) else None,
                info=player.raw.get("microformat"),
            )
        assert isinstance(microformat, MicroformatData)
        self.microformat = microformat

        self.basic_info = BasicInfo.from_parts(player.raw.get("videoDetails") or {}, microformat)

        streaming = player.raw.get("streamingData")
        self.streaming_data: StreamingData | None = (
            StreamingData.from_raw(streaming) if streaming else None
        )

        storyboards = player.section("storyboards")
        self.storyboards: PlayerStoryboardSpec | PlayerLiveStoryboardSpec | None = (
            storyboards.as_type(PlayerStoryboardSpec, PlayerLiveStoryboardSpec)
            if isinstance(storyboards, Node)
            else None
        )
        endscreen = player.section("endscreen")
        self.endscreen: Endscreen | None = (
            endscreen.as_type(Endscreen) if isinstance(endscreen, Node) else None
        )
        self._playback_tracking = PlaybackTracking.from_raw(player.raw.get("playbackTracking"))

        self.tabs: NodeSequence | None = None
        self.current_video_endpoint: NavigationEndpoint | None = None
        self.player_overlays: PlayerOverlay | None = None

        if next_page is not None:
            tabbed_results = next_page.memo.first_of(WatchNextTabbedResults)
            if tabbed_results is not None:
                self.tabs = tabbed_results.tabs.as_type(Tab)
            self.current_video_endpoint = NavigationEndpoint.from_raw(
                next_page.raw.get("currentVideoEndpoint")
            )
            overlays = next_page.section("playerOverlays")
            if isinstance(overlays, Node):
                self.player_overlays = overlays.as_type(PlayerOverlay)

    @property
    def cpn(self) -> str:
        return self.session.cpn

    @property
    def available_tabs(self) -> list[str]:
        return [tab.title for tab in self.tabs] if self.tabs else []

    # ==================== Formats ====================

    def _require_streaming_data(self) -> StreamingData:
        if self.streaming_data is None:
            raise NoMatchingFormatError("Streaming data not available")
        return self.streaming_data

    def choose_format(
        self,
        constraints: FormatConstraints | Mapping[str, Any] | None = None,
    ) -> ResourceVariant:
        """
        Select the variant that best matches the constraints.

        Raises:
            NoMatchingFormatError: If nothing matches (or there is no streaming data)
        """
        if constraints is not None and not isinstance(constraints, FormatConstraints):
            constraints = FormatConstraints.model_validate(constraints)
        return choose_format(self._require_streaming_data().variants, constraints)

    def to_dash(
        self,
        url_transformer: UrlTransformer | None = None,
        format_filter: FormatFilter | None = None,
        *,
        decipher: Callable[[str], str] | None = None,
    ) -> str:
        """Generate a DASH manifest from the adaptive formats."""
        streaming = self._require_streaming_data()
        options = ManifestOptions(
            url_transformer=url_transformer,
            format_filter=format_filter,
            decipher=decipher,
            cpn=self.cpn,
            duration_ms=self.basic_info.duration * 1000 if self.basic_info.duration else None,
        )
        return emit_dash_manifest(streaming.adaptive_formats, options)

    async def download(
        self,
        constraints: FormatConstraints | Mapping[str, Any] | None = None,
        options: DownloadOptions | None = None,
        *,
        downloader: MediaDownloader | None = None,
    ) -> AsyncIterator[bytes]:
        """
        Stream the bytes of the chosen variant.

        Raises:
            ServiceError: If the track is not playable
            NoMatchingFormatError: If no variant matches
        """
        status = self.playability_status.get("status")
        if status not in (None, "OK"):
            raise ServiceError(
                "Track is not playable",
                status=status,
                reason=self.playability_status.get("reason"),
                info=dict(self.playability_status),
            )

        variant = self.choose_format(constraints)
        logger.info(f"[track_info] Downloading {self.basic_info.id} itag={variant.itag}")

        if downloader is not None:
            async for chunk in downloader.stream(variant, options):
                yield chunk
            return

        async with MediaDownloader() as owned:
            async for chunk in owned.stream(variant, options):
                yield chunk

    # ==================== History ====================

    async def add_to_watch_history(self) -> httpx.Response:
        """
        Record the track in the account's watch history.

        Sends the player page's playback stats ping against the music host.

        Raises:
            TubeGraphError: If the player page carried no playback tracking
            TransportError: If the ping fails
        """
        if self._playback_tracking is None:
            raise TubeGraphError("Playback tracking not available", info=self.basic_info.id)

        url = self._playback_tracking.videostats_playback_url.replace(
            "https://s.", "https://music."
        )
        logger.info(f"[track_info] Adding {self.basic_info.id} to watch history")
        return await self.session.stats(url, {"cpn": self.cpn, **WATCH_HISTORY_PARAMS})

    # ==================== Tabs ====================

    async def get_tab(self, title_or_page_type: str) -> TabContent:
        """
        Resolve the contents of a tab by title or music page type.

        Falls back to the first tab when nothing matches.

        Raises:
            TubeGraphError: If the page has no tabs
            MalformedDocumentError: If the followed tab page is empty
        """
        if not self.tabs:
            raise TubeGraphError("Could not find any tab")

        target = (
            self.tabs.get(title=title_or_page_type)
            or self.tabs.match_condition(
                lambda tab: tab.endpoint.page_type == title_or_page_type
            )
            or self.tabs.first()
        )
        if target is None:
            raise TubeGraphError(
                f'Tab "{title_or_page_type}" not found',
                info={"available_tabs": self.available_tabs},
            )
        assert isinstance(target, Tab)

        if target.content is not None:
            return target.content

        logger.debug(f"[track_info] Following tab '{target.title}'")
        page = await target.endpoint.call(self.session, **MUSIC_CLIENT_PARAMS)

        contents = page.contents
        if isinstance(contents, NodeSequence):
            contents = contents.first()
        if contents is None:
            raise MalformedDocumentError("Page contents was empty", info=page.raw)
        if contents.is_a(Message):
            return contents
        return contents.as_type(SectionList).contents

    async def get_up_next(self, automix: bool = True) -> PlaylistPanel:
        """
        Retrieve the "Up next" queue.

        Raises:
            TubeGraphError: If the queue is empty or the automix queue cannot be found
        """
        outcome = await self.resolve_up_next(automix=automix)
        if outcome.value is None:
            raise TubeGraphError("Automix queue not available", info=self.basic_info.id)
        return outcome.value

    async def resolve_up_next(self, automix: bool = True) -> FallbackOutcome[PlaylistPanel]:
        """
        Resolve the queue and report where it came from.

        The outcome's cursor continues whichever collection produced the panel.
        """
        music_queue = await self.get_tab(UP_NEXT_TAB)
        if not isinstance(music_queue, MusicQueue) or music_queue.content is None:
            raise TubeGraphError(
                "Music queue was empty, the video id is probably invalid",
                info=music_queue,
            )

        panel = music_queue.content.as_type(PlaylistPanel)
        cursor = (
            self.session.cursor_from(self.next_page, NEXT, {"videoId": self.basic_info.id})
            if self.next_page is not None
            else None
        )
        if not automix:
            return FallbackOutcome(value=panel, source=PRIMARY, cursor=cursor)

        chain: FallbackChain[PlaylistPanel] = FallbackChain(
            [
                FallbackStep(
                    name="automix",
                    open_cursor=self._open_automix_cursor,
                    extract=lambda page: page.memo.first_of(PlaylistPanel),
                )
            ],
            is_usable=lambda candidate: candidate.playlist_id is not None,
        )
        return await chain.resolve(panel, cursor=cursor)

    def _open_automix_cursor(self, panel: PlaylistPanel | None) -> ContinuationCursor | None:
        if panel is None:
            return None
        preview = panel.contents.first_of(AutomixPreviewVideo)
        if preview is None or preview.playlist_video is None:
            logger.info("[track_info] Automix item not found")
            return None

        playlist_video = preview.playlist_video
        params = {**playlist_video.payload, "videoId": self.basic_info.id, **MUSIC_CLIENT_PARAMS}
        return self.session.cursor(playlist_video.endpoint or NEXT, params, name="automix")

    async def get_related(self) -> TabContent:
        """Related content (carousel and description shelves)."""
        return await self.get_tab(RELATED_PAGE_TYPE)

    async def get_lyrics(self) -> MusicDescriptionShelf | None:
        tab = await self.get_tab(LYRICS_PAGE_TYPE)
        if isinstance(tab, NodeSequence):
            return tab.first_of(MusicDescriptionShelf)
        return tab if isinstance(tab, MusicDescriptionShelf) else None

    def __repr__(self) -> str:
        return f"<TrackInfo id={self.basic_info.id} tabs={self.available_tabs}>"
