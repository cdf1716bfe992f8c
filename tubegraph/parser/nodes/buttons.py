"""Button nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from ..endpoint import NavigationEndpoint
from ..node import Node, RawNode
from ..registry import register_node
from ..text import Text

if TYPE_CHECKING:
    from ..builder import GraphBuilder


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Button(Node):
    type: ClassVar[str] = "Button"

    text: Text = field(default_factory=Text)
    label: str | None = None
    tooltip: str | None = None
    icon_type: str | None = None
    style: str | None = None
    is_disabled: bool = False
    endpoint: NavigationEndpoint = field(default_factory=NavigationEndpoint)

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        accessibility = data.get("accessibilityData") or data.get("accessibility") or {}
        return {
            "text": Text.from_raw(data.get("text")),
            "label": accessibility.get("label"),
            "tooltip": data.get("tooltip"),
            "icon_type": (data.get("icon") or {}).get("iconType"),
            "style": data.get("style"),
            "is_disabled": bool(data.get("isDisabled", False)),
            "endpoint": NavigationEndpoint.from_raw(
                data.get("navigationEndpoint") or data.get("command") or data.get("serviceEndpoint")
            ),
        }


@register_node
@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class CallToActionButton(Node):
    type: ClassVar[str] = "CallToActionButton"

    label: Text
    icon_type: str
    style: str | None = None

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        # The icon is required: a call-to-action without one is malformed
        return {
            "label": Text.from_raw(data.get("label")),
            "icon_type": data["icon"]["iconType"],
            "style": data.get("style"),
        }
