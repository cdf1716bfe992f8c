"""
Section and header nodes.

Sections are the containers pages are made of: item sections, section
lists, tabbed headers and the continuation variants that replace them
on follow-up pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from tubegraph.continuation.token import extract_shelf_continuation

from ..endpoint import NavigationEndpoint
from ..node import Node, NodeSequence, RawNode
from ..registry import register_node
from ..text import Text

if TYPE_CHECKING:
    from ..builder import GraphBuilder


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class ItemSection(Node):
    type: ClassVar[str] = "ItemSection"

    header: Node | None = None
    contents: NodeSequence = field(default_factory=NodeSequence)
    target_id: str | None = None
    continuation: str | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "header": builder.build_optional(data.get("header")),
            "contents": builder.build_sequence(data.get("contents")),
            "target_id": data.get("targetId") or data.get("sectionIdentifier"),
            "continuation": extract_shelf_continuation(data),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class ItemSectionContinuation(Node):
    """Follow-up page of an ItemSection."""

    type: ClassVar[str] = "ItemSectionContinuation"

    contents: NodeSequence = field(default_factory=NodeSequence)
    continuation: str | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "contents": builder.build_sequence(data.get("contents")),
            "continuation": extract_shelf_continuation(data),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class ItemSectionTab(Node):
    type: ClassVar[str] = "ItemSectionTab"

    title: Text
    selected: bool = False
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "title": Text.from_raw(data.get("title")),
            "selected": bool(data.get("selected", False)),
            "endpoint": NavigationEndpoint.from_raw(data.get("endpoint")),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class ItemSectionTabbedHeader(Node):
    type: ClassVar[str] = "ItemSectionTabbedHeader"

    title: Text
    tabs: NodeSequence = field(default_factory=NodeSequence)
    end_items: NodeSequence | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "title": Text.from_raw(data.get("title")),
            "tabs": builder.build_sequence(data.get("tabs"), ItemSectionTab),
            # Absent and empty are different: end_items stays None when the key is missing
            "end_items": builder.build_sequence(data["endItems"]) if "endItems" in data else None,
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class SectionList(Node):
    type: ClassVar[str] = "SectionList"

    header: Node | None = None
    contents: NodeSequence = field(default_factory=NodeSequence)
    target_id: str | None = None
    continuation: str | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "header": builder.build_optional(data.get("header")),
            "contents": builder.build_sequence(data.get("contents")),
            "target_id": data.get("targetId"),
            "continuation": extract_shelf_continuation(data),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class SearchSuggestionsSection(Node):
    type: ClassVar[str] = "SearchSuggestionsSection"

    contents: NodeSequence = field(default_factory=NodeSequence)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {"contents": builder.build_sequence(data.get("contents"))}


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Message(Node):
    type: ClassVar[str] = "Message"

    text: Text = field(default_factory=Text)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {"text": Text.from_raw(data.get("text"))}


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class C4TabbedHeader(Node):
    """Channel header."""

    type: ClassVar[str] = "C4TabbedHeader"

    author_id: str | None = None
    author_name: str | None = None
    subscribers: Text = field(default_factory=Text)
    videos_count: Text = field(default_factory=Text)
    avatar_url: str | None = None
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        thumbnails = (data.get("avatar") or {}).get("thumbnails") or []
        return {
            "author_id": data.get("channelId"),
            "author_name": data.get("title"),
            "subscribers": Text.from_raw(data.get("subscriberCountText")),
            "videos_count": Text.from_raw(data.get("videosCountText")),
            "avatar_url": thumbnails[-1]["url"] if thumbnails else None,
            "endpoint": NavigationEndpoint.from_raw(data.get("navigationEndpoint")),
        }
