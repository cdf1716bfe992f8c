"""Analytics cards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from ..endpoint import NavigationEndpoint
from ..node import Node, RawNode
from ..registry import register_node

if TYPE_CHECKING:
    from ..builder import GraphBuilder


@dataclass(frozen=True, slots=True)
class ShortsCarouselEntry:
    description: str
    thumbnail_url: str
    endpoint: NavigationEndpoint


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class AnalyticsShortsCarouselCard(Node):
    type: ClassVar[str] = "AnalyticsShortsCarouselCard"

    title: str
    shorts: tuple[ShortsCarouselEntry, ...] = ()

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        return {
            "title": data["title"],
            "shorts": tuple(
                ShortsCarouselEntry(
                    description=short["shortsDescription"],
                    thumbnail_url=short["thumbnailUrl"],
                    endpoint=NavigationEndpoint.from_raw(short.get("videoEndpoint")),
                )
                for short in data["shortsCarouselData"]["shorts"]
            ),
        }
