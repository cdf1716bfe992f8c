"""
Music nodes: shelves, queues, watch-next tabs and playlist panels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from tubegraph.continuation.token import NEXT_CONTINUATION, extract_token

from ..endpoint import NavigationEndpoint
from ..node import Node, NodeSequence, RawNode
from ..registry import register_node
from ..text import Text
from .buttons import Button

if TYPE_CHECKING:
    from ..builder import GraphBuilder

_PANEL_CONTINUATIONS = (
    ("continuations", 0, "nextRadioContinuationData", "continuation"),
    NEXT_CONTINUATION,
)


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MusicResponsiveListItem(Node):
    type: ClassVar[str] = "MusicResponsiveListItem"

    id: str | None = None
    title: Text = field(default_factory=Text)
    subtitle: Text = field(default_factory=Text)
    item_type: str | None = None
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        endpoint = NavigationEndpoint.from_raw(data.get("navigationEndpoint"))
        video_id = (data.get("playlistItemData") or {}).get("videoId") or data.get("videoId")
        browse_id = endpoint.payload.get("browseId") if endpoint.key == "browseEndpoint" else None
        return {
            "id": video_id or browse_id,
            "title": Text.from_raw(data.get("title")),
            "subtitle": Text.from_raw(data.get("subtitle")),
            "item_type": "song" if video_id else ("browse" if browse_id else None),
            "endpoint": endpoint,
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MusicShelf(Node):
    type: ClassVar[str] = "MusicShelf"

    title: Text
    contents: NodeSequence = field(default_factory=NodeSequence)
    endpoint: NavigationEndpoint | None = None
    continuation: str | None = None
    bottom_text: Text | None = None
    bottom_button: Button | None = None
    subheaders: NodeSequence | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        values: dict[str, Any] = {
            "title": Text.from_raw(data.get("title")),
            "contents": builder.build_sequence(data.get("contents"), MusicResponsiveListItem),
        }
        if data.get("bottomEndpoint"):
            values["endpoint"] = NavigationEndpoint.from_raw(data["bottomEndpoint"])
        if data.get("continuations"):
            values["continuation"] = extract_token(
                data,
                (
                    NEXT_CONTINUATION,
                    ("continuations", 0, "reloadContinuationData", "continuation"),
                ),
            )
        if data.get("bottomText"):
            values["bottom_text"] = Text.from_raw(data["bottomText"])
        if data.get("bottomButton"):
            values["bottom_button"] = builder.build(data["bottomButton"], Button)
        if data.get("subheaders"):
            values["subheaders"] = builder.build_sequence(data["subheaders"])
        return values


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MusicCarouselShelf(Node):
    type: ClassVar[str] = "MusicCarouselShelf"

    header: Node | None = None
    contents: NodeSequence = field(default_factory=NodeSequence)
    num_items_per_column: int | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        per_column = data.get("numItemsPerColumn")
        return {
            "header": builder.build_optional(data.get("header")),
            "contents": builder.build_sequence(data.get("contents")),
            "num_items_per_column": int(per_column) if per_column is not None else None,
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MusicDescriptionShelf(Node):
    """Lyrics and long-form descriptions."""

    type: ClassVar[str] = "MusicDescriptionShelf"

    description: Text = field(default_factory=Text)
    footer: Text | None = None
    max_collapsed_lines: int | None = None
    max_expanded_lines: int | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "description": Text.from_raw(data.get("description")),
            "footer": Text.from_raw(data["footer"]) if data.get("footer") else None,
            "max_collapsed_lines": data.get("maxCollapsedLines"),
            "max_expanded_lines": data.get("maxExpandedLines"),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PlaylistPanelVideo(Node):
    type: ClassVar[str] = "PlaylistPanelVideo"

    video_id: str
    title: Text = field(default_factory=Text)
    author: str | None = None
    duration: Text = field(default_factory=Text)
    selected: bool = False
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        byline = Text.from_raw(data.get("longBylineText") or data.get("shortBylineText"))
        return {
            "video_id": data["videoId"],
            "title": Text.from_raw(data.get("title")),
            "author": byline.runs[0].text if byline.runs else None,
            "duration": Text.from_raw(data.get("lengthText")),
            "selected": bool(data.get("selected", False)),
            "endpoint": NavigationEndpoint.from_raw(data.get("navigationEndpoint")),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class AutomixPreviewVideo(Node):
    """Placeholder for an automix queue that has not been fetched yet."""

    type: ClassVar[str] = "AutomixPreviewVideo"

    playlist_video: NavigationEndpoint | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        endpoint = (data.get("content") or {}).get("navigationEndpoint")
        return {
            "playlist_video": NavigationEndpoint.from_raw(endpoint) if endpoint else None,
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PlaylistPanel(Node):
    type: ClassVar[str] = "PlaylistPanel"

    title: str | None = None
    title_text: Text = field(default_factory=Text)
    contents: NodeSequence = field(default_factory=NodeSequence)
    playlist_id: str | None = None
    is_infinite: bool = False
    is_editable: bool = False
    num_items_to_show: int | None = None
    continuation: str | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "title": data.get("title"),
            "title_text": Text.from_raw(data.get("titleText")),
            "contents": builder.build_sequence(data.get("contents")),
            "playlist_id": data.get("playlistId"),
            "is_infinite": bool(data.get("isInfinite", False)),
            "is_editable": bool(data.get("isEditable", False)),
            "num_items_to_show": data.get("numItemsToShow"),
            "continuation": extract_token(data, _PANEL_CONTINUATIONS),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MusicQueue(Node):
    type: ClassVar[str] = "MusicQueue"

    content: Node | None = None
    header: Node | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "content": builder.build_optional(data.get("content")),
            "header": builder.build_optional(data.get("header")),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Tab(Node):
    type: ClassVar[str] = "Tab"

    title: str = "N/A"
    selected: bool = False
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)
    content: Node | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "title": data.get("title") or "N/A",
            "selected": bool(data.get("selected", False)),
            "endpoint": NavigationEndpoint.from_raw(data.get("endpoint")),
            "content": builder.build_optional(data.get("content")),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class WatchNextTabbedResults(Node):
    type: ClassVar[str] = "WatchNextTabbedResults"

    tabs: NodeSequence = field(default_factory=NodeSequence)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {"tabs": builder.build_sequence(data.get("tabs"), Tab)}


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class SingleColumnMusicWatchNextResults(Node):
    type: ClassVar[str] = "SingleColumnMusicWatchNextResults"

    contents: Node | NodeSequence | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {"contents": builder.build_any(data.get("contents"))}
