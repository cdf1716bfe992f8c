"""Player page nodes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from ..endpoint import NavigationEndpoint
from ..node import Node, NodeSequence, RawNode
from ..registry import register_node
from ..text import Text

if TYPE_CHECKING:
    from ..builder import GraphBuilder


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class MicroformatData(Node):
    type: ClassVar[str] = "MicroformatData"

    url_canonical: str | None = None
    title: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    tags: tuple[str, ...] = ()
    is_unlisted: bool = False
    is_family_safe: bool = True
    category: str | None = None
    publish_date: str | None = None
    upload_date: str | None = None
    available_countries: tuple[str, ...] = ()

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        thumbnails = (data.get("thumbnail") or {}).get("thumbnails") or []
        return {
            "url_canonical": data.get("urlCanonical"),
            "title": data.get("title"),
            "description": data.get("description"),
            "thumbnail_url": thumbnails[-1].get("url") if thumbnails else None,
            "tags": tuple(data.get("tags") or ()),
            "is_unlisted": bool(data.get("unlisted", False)),
            "is_family_safe": bool(data.get("familySafe", True)),
            "category": data.get("category"),
            "publish_date": data.get("publishDate"),
            "upload_date": data.get("uploadDate"),
            "available_countries": tuple(data.get("availableCountries") or ()),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PlayerOverlay(Node):
    type: ClassVar[str] = "PlayerOverlay"

    end_screen: Node | None = None
    autoplay: Node | None = None
    share_button: Node | None = None
    video_details: Text | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        details = data.get("videoDetails")
        return {
            "end_screen": builder.build_optional(data.get("endScreen")),
            "autoplay": builder.build_optional(data.get("autoplay")),
            "share_button": builder.build_optional(data.get("shareButton")),
            "video_details": Text.from_raw(details.get("title")) if details else None,
        }


# =============================================================================
# Storyboards
# =============================================================================


@dataclass(frozen=True, slots=True)
class StoryboardLevel:
    """One resolution level of a storyboard: a grid of thumbnails per sheet."""

    template_url: str
    thumbnail_width: int
    thumbnail_height: int
    thumbnail_count: int
    columns: int
    rows: int
    interval: int
    storyboard_count: int

    def sheet_url(self, index: int) -> str:
        """URL of the ``index``-th sheet of this level."""
        return self.template_url.replace("$M", str(index))


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PlayerStoryboardSpec(Node):
    """
    Storyboard of an on-demand video.

    The spec is ``base_url|level|level|...`` where every level is
    ``width#height#count#columns#rows#interval#name#sigh``. ``$L`` and
    ``$N`` in the base URL stand for the level index and name.
    """

    type: ClassVar[str] = "PlayerStoryboardSpec"

    spec: str
    boards: tuple[StoryboardLevel, ...] = ()

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        spec = data["spec"]
        base_url, *levels = spec.split("|")
        separator = "&" if "?" in base_url else "?"

        boards = []
        for level, part in enumerate(levels):
            width, height, count, columns, rows, interval, name, sigh = part.split("#")
            per_sheet = int(columns) * int(rows)
            boards.append(
                StoryboardLevel(
                    template_url=(
                        base_url.replace("$L", str(level)).replace("$N", name)
                        + f"{separator}sigh={sigh}"
                    ),
                    thumbnail_width=int(width),
                    thumbnail_height=int(height),
                    thumbnail_count=int(count),
                    columns=int(columns),
                    rows=int(rows),
                    interval=int(interval),
                    storyboard_count=math.ceil(int(count) / per_sheet) if per_sheet else 0,
                )
            )
        return {"spec": spec, "boards": tuple(boards)}


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PlayerLiveStoryboardSpec(Node):
    """Storyboard of a live stream: ``template_url#width#height#columns#rows``."""

    type: ClassVar[str] = "PlayerLiveStoryboardSpec"

    spec: str
    board: StoryboardLevel

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        spec = data["spec"]
        template_url, width, height, columns, rows = spec.split("#")
        return {
            "spec": spec,
            "board": StoryboardLevel(
                template_url=template_url,
                thumbnail_width=int(width),
                thumbnail_height=int(height),
                thumbnail_count=0,
                columns=int(columns),
                rows=int(rows),
                interval=0,
                storyboard_count=0,
            ),
        }


# =============================================================================
# Endscreen
# =============================================================================


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class EndscreenElement(Node):
    type: ClassVar[str] = "EndscreenElement"

    style: str | None = None
    title: Text | None = None
    endpoint: NavigationEndpoint | None = None
    image_url: str | None = None
    start_ms: int = 0
    end_ms: int = 0

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        thumbnails = (data.get("image") or {}).get("thumbnails") or []
        return {
            "style": data.get("style"),
            "title": Text.from_raw(data["title"]) if data.get("title") else None,
            "endpoint": NavigationEndpoint.from_raw(data.get("endpoint")),
            "image_url": thumbnails[-1].get("url") if thumbnails else None,
            "start_ms": int(data.get("startMs") or 0),
            "end_ms": int(data.get("endMs") or 0),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Endscreen(Node):
    type: ClassVar[str] = "Endscreen"

    elements: NodeSequence = field(default_factory=NodeSequence)
    start_ms: int = 0

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "elements": builder.build_sequence(data.get("elements")),
            "start_ms": int(data.get("startMs") or 0),
        }
