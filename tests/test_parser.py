"""
Tests for the tubegraph parser: registry, builder, nodes and sequences.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass, field
from typing import Any, ClassVar

import pytest

from tubegraph.errors import MalformedDocumentError, RegistryError, VariantMismatchError
from tubegraph.parser import (
    GraphBuilder,
    NavigationEndpoint,
    Node,
    NodeSequence,
    PassthroughNode,
    Text,
    TypeRegistry,
    get_default_registry,
)
from tubegraph.parser.nodes import (
    AnalyticsShortsCarouselCard,
    Button,
    CallToActionButton,
    Endscreen,
    EndscreenElement,
    ItemSectionTabbedHeader,
    MusicResponsiveListItem,
    MusicShelf,
    PlayerLiveStoryboardSpec,
    PlayerStoryboardSpec,
    SearchSuggestionsSection,
    SingleColumnMusicWatchNextResults,
)
from tubegraph.page import ResponsePage
from tubegraph.transport.endpoints import BROWSE, NEXT


# =============================================================================
# Test schemas
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Item(Node):
    type: ClassVar[str] = "Item"

    id: str

    @classmethod
    def parse_fields(cls, data, builder):
        return {"id": data["id"]}


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Shelf(Node):
    type: ClassVar[str] = "Shelf"

    items: NodeSequence = field(default_factory=NodeSequence)
    continuation: str | None = None

    @classmethod
    def parse_fields(cls, data, builder):
        return {
            "items": builder.build_sequence(data.get("items")),
            "continuation": data.get("continuation"),
        }


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class Grid(Node):
    type: ClassVar[str] = "Grid"

    items: NodeSequence = field(default_factory=NodeSequence)

    @classmethod
    def parse_fields(cls, data, builder):
        return {"items": builder.build_sequence(data.get("items"), Item)}


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class CompactChannel(Node):
    type: ClassVar[str] = "Channel"

    @classmethod
    def parse_fields(cls, data, builder):
        return {}


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class TabbedChannel(CompactChannel):
    tabs: NodeSequence = field(default_factory=NodeSequence)

    @classmethod
    def parse_fields(cls, data, builder):
        return {"tabs": builder.build_sequence(data["tabs"])}


@pytest.fixture
def registry():
    return TypeRegistry([Item, Shelf, Grid])


@pytest.fixture
def local_builder(registry):
    return GraphBuilder(registry)


def shape_of(node: Node) -> Any:
    """(variant, [child shapes]) for comparing tree shapes."""
    return (node.variant, [shape_of(child) for child in node.children()])


def raw_shape_of(raw: dict) -> Any:
    children = []
    for value in raw.values():
        if isinstance(value, dict) and "type" in value:
            children.append(raw_shape_of(value))
        elif isinstance(value, list):
            children.extend(raw_shape_of(v) for v in value if isinstance(v, dict) and "type" in v)
    return (raw["type"], children)


# =============================================================================
# TypeRegistry Tests
# =============================================================================


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_register_and_resolve(self, registry):
        assert registry.resolve("Item") is Item
        assert registry.resolve("Shelf") is Shelf
        assert "Item" in registry
        assert len(registry) == 3

    def test_unknown_tag_resolves_to_none(self, registry):
        assert registry.resolve("FutureWidget") is None
        assert "FutureWidget" not in registry

    def test_duplicate_registration_fails(self, registry):
        with pytest.raises(RegistryError):
            registry.register(Item)

    def test_explicit_tag(self):
        registry = TypeRegistry()
        registry.register(Item, tag="LegacyItem")

        assert registry.resolve("LegacyItem") is Item
        assert registry.resolve("Item") is None

    def test_shaped_entries_disambiguate_shared_tag(self):
        registry = TypeRegistry()
        registry.register(TabbedChannel, shape={"tabs"})
        registry.register(CompactChannel)

        assert registry.resolve("Channel", {"tabs": []}) is TabbedChannel
        assert registry.resolve("Channel", {"title": "x"}) is CompactChannel
        assert registry.resolve("Channel") is CompactChannel

    def test_duplicate_shape_fails(self):
        registry = TypeRegistry()
        registry.register(TabbedChannel, shape={"tabs"})
        with pytest.raises(RegistryError):
            registry.register(TabbedChannel, shape={"tabs"})

    def test_unregister(self, registry):
        assert registry.unregister("Item") is True
        assert registry.unregister("Item") is False
        assert registry.resolve("Item") is None

    def test_rejects_base_and_passthrough(self):
        registry = TypeRegistry()
        with pytest.raises(RegistryError):
            registry.register(Node)
        with pytest.raises(RegistryError):
            registry.register(PassthroughNode)

    def test_rejects_schema_without_parser(self):
        @dataclass(frozen=True, kw_only=True, slots=True, eq=False)
        class NoParser(Node):
            type: ClassVar[str] = "NoParser"

        with pytest.raises(RegistryError):
            TypeRegistry().register(NoParser)

    def test_rejects_non_node(self):
        with pytest.raises(RegistryError):
            TypeRegistry().register(dict)  # type: ignore[arg-type]

    def test_copy_is_independent(self, registry):
        clone = registry.copy()
        clone.unregister("Item")

        assert "Item" in registry
        assert "Item" not in clone

    def test_default_registry_has_catalogue(self):
        registry = get_default_registry()
        for tag in ("MusicShelf", "ItemSection", "PlaylistPanel", "MicroformatData", "Tab"):
            assert tag in registry


# =============================================================================
# GraphBuilder Tests
# =============================================================================


class TestGraphBuilder:
    """Tests for GraphBuilder."""

    def test_shelf_scenario(self, local_builder):
        raw = {"type": "Shelf", "items": [{"type": "Item", "id": "a"}], "continuation": "TOK1"}

        shelf = local_builder.build(raw)

        assert isinstance(shelf, Shelf)
        assert shelf.variant == "Shelf"
        assert len(shelf.items) == 1
        assert shelf.items[0].variant == "Item"
        assert shelf.items[0].id == "a"
        assert shelf.continuation == "TOK1"
        assert ResponsePage.parse(raw, local_builder).continuation == "TOK1"

    def test_shape_mirrors_raw_tree(self, local_builder):
        raw = {
            "type": "Shelf",
            "items": [
                {"type": "Item", "id": "a"},
                {"type": "Shelf", "items": [{"type": "Item", "id": "b"}, {"type": "Item", "id": "c"}]},
                {"type": "Item", "id": "d"},
            ],
        }

        assert shape_of(local_builder.build(raw)) == raw_shape_of(raw)

    def test_raw_input_is_not_mutated(self, local_builder):
        raw = {"type": "Shelf", "items": [{"type": "Item", "id": "a"}]}
        snapshot = {"type": "Shelf", "items": [{"type": "Item", "id": "a"}]}

        local_builder.build(raw)

        assert raw == snapshot

    def test_missing_discriminator_is_malformed(self, local_builder):
        with pytest.raises(MalformedDocumentError):
            local_builder.build({"id": "a"})

    def test_non_mapping_is_malformed(self, local_builder):
        with pytest.raises(MalformedDocumentError):
            local_builder.build(["not", "a", "node"])

    def test_missing_required_field_is_malformed(self, local_builder):
        with pytest.raises(MalformedDocumentError) as exc_info:
            local_builder.build({"type": "Item"})

        assert exc_info.value.tag == "Item"

    def test_sequence_must_be_a_list(self, local_builder):
        with pytest.raises(MalformedDocumentError):
            local_builder.build_sequence({"type": "Item", "id": "a"})

    def test_none_sequence_is_empty(self, local_builder):
        assert len(local_builder.build_sequence(None)) == 0

    def test_sequence_hint_accepts_matching_elements(self, local_builder):
        grid = local_builder.build(
            {"type": "Grid", "items": [{"type": "Item", "id": "a"}, {"type": "Item", "id": "b"}]}
        )
        assert grid.items.variants == ["Item", "Item"]

    def test_sequence_hint_mismatch_raises(self, local_builder):
        with pytest.raises(VariantMismatchError) as exc_info:
            local_builder.build(
                {"type": "Grid", "items": [{"type": "Item", "id": "a"}, {"type": "Shelf"}]}
            )

        assert exc_info.value.actual == "Shelf"
        assert exc_info.value.expected == ("Item",)

    def test_unknown_element_under_hint_is_surfaced(self, local_builder):
        with pytest.raises(VariantMismatchError):
            local_builder.build_sequence([{"type": "FutureWidget"}], Item)

    def test_build_hint_accepts_tag_strings(self, local_builder):
        node = local_builder.build({"type": "Item", "id": "a"}, ("Shelf", "Item"))
        assert node.is_a("Item")

    def test_build_any(self, local_builder):
        assert local_builder.build_any(None) is None
        assert isinstance(local_builder.build_any([{"type": "Item", "id": "a"}]), NodeSequence)
        assert isinstance(local_builder.build_any({"type": "Item", "id": "a"}), Item)

    def test_build_optional(self, local_builder):
        assert local_builder.build_optional(None) is None
        assert local_builder.build_optional({"type": "Item", "id": "a"}).id == "a"

    def test_custom_discriminator(self, registry):
        builder = GraphBuilder(registry, discriminator="kind")

        node = builder.build({"kind": "Item", "id": "a"})

        assert isinstance(node, Item)
        assert builder.is_compound({"kind": "Item"})
        assert not builder.is_compound({"type": "Item"})

    def test_origin_is_stamped_on_every_node(self, local_builder):
        scoped = local_builder.with_origin("page-1")
        shelf = scoped.build({"type": "Shelf", "items": [{"type": "Item", "id": "a"}]})

        assert shelf.origin == "page-1"
        assert shelf.items[0].origin == "page-1"
        assert local_builder.origin is None

    def test_nodes_are_frozen(self, local_builder):
        item = local_builder.build({"type": "Item", "id": "a"})
        with pytest.raises(FrozenInstanceError):
            item.id = "b"  # type: ignore[misc]


# =============================================================================
# PassthroughNode Tests
# =============================================================================


class TestPassthroughNode:
    """Tests for unknown-discriminator fallback."""

    def test_unknown_tag_builds_passthrough(self, local_builder):
        node = local_builder.build({"type": "FutureWidget", "fooBar": 1, "label": "x"})

        assert isinstance(node, PassthroughNode)
        assert node.variant == "FutureWidget"
        assert node.is_a("FutureWidget")

    def test_preserves_field_access(self, local_builder):
        node = local_builder.build({"type": "FutureWidget", "fooBar": 1, "label": "x"})

        assert node["fooBar"] == 1
        assert node.foo_bar == 1
        assert node.get("foo_bar") == 1
        assert node.label == "x"
        assert "foo_bar" in node
        assert "missing" not in node
        assert node.get("missing", "default") == "default"
        assert sorted(node.keys()) == ["fooBar", "label"]

    def test_item_access_reaches_fields_shadowed_by_members(self, local_builder):
        node = local_builder.build(
            {"type": "FutureWidget", "tag": "x", "raw": "r", "keys": ["k"], "origin": "o"}
        )

        assert node.tag == "FutureWidget"
        assert node["tag"] == node.get("tag") == "x"
        assert node["raw"] == "r"
        assert node["keys"] == ["k"]
        assert node.get("origin") == "o"

    def test_missing_field_raises(self, local_builder):
        node = local_builder.build({"type": "FutureWidget"})

        with pytest.raises(AttributeError):
            _ = node.nothing_here
        with pytest.raises(KeyError):
            _ = node["nothing_here"]

    def test_raw_view_is_read_only(self, local_builder):
        node = local_builder.build({"type": "FutureWidget", "a": 1})
        with pytest.raises(TypeError):
            node.raw["a"] = 2  # type: ignore[index]

    def test_nested_known_nodes_are_built(self, local_builder):
        node = local_builder.build(
            {
                "type": "FutureWidget",
                "wrapper": {"inner": [{"type": "Item", "id": "x"}]},
                "header": {"type": "Item", "id": "y"},
            }
        )

        assert [child.id for child in node.children()] == ["x", "y"]

    def test_equality_is_identity(self, local_builder):
        raw = {"type": "FutureWidget", "a": 1}
        assert local_builder.build(raw) != local_builder.build(raw)


# =============================================================================
# NodeSequence Tests
# =============================================================================


class TestNodeSequence:
    """Tests for NodeSequence lookups."""

    @pytest.fixture
    def sequence(self, local_builder):
        return local_builder.build_sequence(
            [
                {"type": "Item", "id": "a"},
                {"type": "Shelf"},
                {"type": "Item", "id": "b"},
                {"type": "FutureWidget", "id": "c"},
            ]
        )

    def test_preserves_order(self, sequence):
        assert sequence.variants == ["Item", "Shelf", "Item", "FutureWidget"]
        assert [n.variant for n in sequence] == sequence.variants

    def test_get_by_field(self, sequence):
        assert sequence.get(id="b") is sequence[2]
        assert sequence.get(id="c") is sequence[3]
        assert sequence.get(id="zzz") is None

    def test_first_of(self, sequence):
        assert sequence.first_of(Item) is sequence[0]
        assert sequence.first_of("Item", predicate=lambda n: n.id == "b") is sequence[2]
        assert sequence.first_of("Missing") is None

    def test_of_type(self, sequence):
        assert [n.id for n in sequence.of_type(Item)] == ["a", "b"]

    def test_as_type_raises_on_mismatch(self, sequence):
        with pytest.raises(VariantMismatchError):
            sequence.as_type(Item)
        assert sequence.of_type(Item).as_type(Item)

    def test_filter_and_match_condition(self, sequence):
        assert len(sequence.filter(lambda n: n.is_a(Item))) == 2
        assert sequence.match_condition(lambda n: n.is_a(Shelf)) is sequence[1]

    def test_slicing_returns_sequence(self, sequence):
        head = sequence[:2]
        assert isinstance(head, NodeSequence)
        assert head.variants == ["Item", "Shelf"]

    def test_empty(self):
        empty = NodeSequence()
        assert not empty
        assert empty.first() is None
        assert empty.first_of(Item) is None

    def test_node_as_type(self, sequence):
        assert sequence[0].as_type(Item) is sequence[0]
        with pytest.raises(VariantMismatchError) as exc_info:
            sequence[1].as_type(Item, "Grid")
        assert "expected Item | Grid" in str(exc_info.value)


# =============================================================================
# Value Object Tests
# =============================================================================


class TestText:
    """Tests for Text parsing."""

    def test_runs(self):
        text = Text.from_raw({"runs": [{"text": "Hello "}, {"text": "world", "bold": True}]})
        assert str(text) == "Hello world"
        assert text.runs[1].bold is True

    def test_simple_text(self):
        assert str(Text.from_raw({"simpleText": "Hi"})) == "Hi"

    def test_empty(self):
        assert Text.from_raw(None).is_empty
        assert Text.from_raw({}).is_empty


class TestNavigationEndpoint:
    """Tests for NavigationEndpoint."""

    def test_skips_metadata_keys(self):
        endpoint = NavigationEndpoint.from_raw(
            {
                "clickTrackingParams": "abc",
                "commandMetadata": {"webCommandMetadata": {"apiUrl": "/youtubei/v1/browse"}},
                "browseEndpoint": {"browseId": "UC1"},
            }
        )

        assert endpoint.key == "browseEndpoint"
        assert endpoint.payload["browseId"] == "UC1"
        assert endpoint.api_url == "/youtubei/v1/browse"
        assert endpoint.endpoint is BROWSE

    def test_page_type(self):
        endpoint = NavigationEndpoint.from_raw(
            {
                "browseEndpoint": {
                    "browseId": "MPLY1",
                    "browseEndpointContextSupportedConfigs": {
                        "browseEndpointContextMusicConfig": {
                            "pageType": "MUSIC_PAGE_TYPE_TRACK_LYRICS"
                        }
                    },
                }
            }
        )
        assert endpoint.page_type == "MUSIC_PAGE_TYPE_TRACK_LYRICS"

    def test_watch_endpoint_maps_to_next(self):
        endpoint = NavigationEndpoint.from_raw({"watchEndpoint": {"videoId": "v"}})
        assert endpoint.endpoint is NEXT

    def test_empty(self):
        assert NavigationEndpoint.from_raw(None).is_empty


# =============================================================================
# Catalogue Tests
# =============================================================================


class TestCatalogue:
    """Tests for the built-in node catalogue."""

    def test_music_shelf(self, builder):
        shelf = builder.build(
            {
                "type": "MusicShelf",
                "title": {"runs": [{"text": "Songs"}]},
                "contents": [
                    {
                        "type": "MusicResponsiveListItem",
                        "playlistItemData": {"videoId": "v1"},
                        "title": {"simpleText": "One"},
                    }
                ],
                "continuations": [{"nextContinuationData": {"continuation": "SHELF_TOK"}}],
                "bottomEndpoint": {"searchEndpoint": {"query": "q"}},
                "bottomButton": {"type": "Button", "text": {"simpleText": "More"}},
            }
        )

        assert isinstance(shelf, MusicShelf)
        assert str(shelf.title) == "Songs"
        assert shelf.contents.first_of(MusicResponsiveListItem).id == "v1"
        assert shelf.continuation == "SHELF_TOK"
        assert shelf.endpoint.key == "searchEndpoint"
        assert isinstance(shelf.bottom_button, Button)
        assert str(shelf.bottom_button.text) == "More"

    def test_player_storyboard_spec(self, builder):
        spec = (
            "https://i.example/sb/v1/storyboard3_L$L/$N.jpg?sqp=abc"
            "|48#27#100#10#10#0#default#rs$A"
            "|80#45#100#10#10#2000#M$M#rs$B"
        )

        storyboard = builder.build({"type": "PlayerStoryboardSpec", "spec": spec})

        assert isinstance(storyboard, PlayerStoryboardSpec)
        assert len(storyboard.boards) == 2
        first, second = storyboard.boards
        assert first.template_url == "https://i.example/sb/v1/storyboard3_L0/default.jpg?sqp=abc&sigh=rs$A"
        assert first.storyboard_count == 1
        assert (first.thumbnail_width, first.thumbnail_height) == (48, 27)
        assert second.interval == 2000
        assert second.sheet_url(3) == "https://i.example/sb/v1/storyboard3_L1/M3.jpg?sqp=abc&sigh=rs$B"

    def test_live_storyboard_spec(self, builder):
        storyboard = builder.build(
            {"type": "PlayerLiveStoryboardSpec", "spec": "https://i.example/sb/live/$N.jpg#106#60#3#3"}
        )

        assert isinstance(storyboard, PlayerLiveStoryboardSpec)
        assert storyboard.board.columns == 3
        assert storyboard.board.thumbnail_width == 106

    def test_endscreen(self, builder):
        endscreen = builder.build(
            {
                "type": "Endscreen",
                "startMs": "90000",
                "elements": [
                    {
                        "type": "EndscreenElement",
                        "style": "PLAYLIST",
                        "title": {"simpleText": "More"},
                        "endpoint": {"watchEndpoint": {"videoId": "v2"}},
                        "startMs": "90000",
                        "endMs": "100000",
                    }
                ],
            }
        )

        assert isinstance(endscreen, Endscreen)
        assert endscreen.start_ms == 90000
        element = endscreen.elements.first_of(EndscreenElement)
        assert str(element.title) == "More"
        assert element.endpoint.key == "watchEndpoint"
        assert element.end_ms == 100000

    def test_music_shelf_rejects_foreign_contents(self, builder):
        with pytest.raises(VariantMismatchError):
            builder.build(
                {"type": "MusicShelf", "title": "x", "contents": [{"type": "Message"}]}
            )

    def test_call_to_action_requires_icon(self, builder):
        button = builder.build(
            {"type": "CallToActionButton", "label": "Go", "icon": {"iconType": "PLAY"}}
        )
        assert isinstance(button, CallToActionButton)
        assert button.icon_type == "PLAY"

        with pytest.raises(MalformedDocumentError):
            builder.build({"type": "CallToActionButton", "label": "Go"})

    def test_item_section_tabbed_header_end_items(self, builder):
        without = builder.build({"type": "ItemSectionTabbedHeader", "title": "T"})
        with_items = builder.build(
            {"type": "ItemSectionTabbedHeader", "title": "T", "endItems": []}
        )

        assert isinstance(without, ItemSectionTabbedHeader)
        assert without.end_items is None
        assert with_items.end_items is not None
        assert len(with_items.end_items) == 0

    def test_search_suggestions_section(self, builder):
        section = builder.build(
            {"type": "SearchSuggestionsSection", "contents": [{"type": "SearchSuggestion"}]}
        )
        assert isinstance(section, SearchSuggestionsSection)
        assert section.contents.variants == ["SearchSuggestion"]

    def test_single_column_watch_next_accepts_node_or_list(self, builder):
        single = builder.build(
            {"type": "SingleColumnMusicWatchNextResults", "contents": {"type": "Foo"}}
        )
        many = builder.build(
            {"type": "SingleColumnMusicWatchNextResults", "contents": [{"type": "Foo"}]}
        )

        assert isinstance(single, SingleColumnMusicWatchNextResults)
        assert isinstance(single.contents, Node)
        assert isinstance(many.contents, NodeSequence)

    def test_analytics_shorts_carousel(self, builder):
        card = builder.build(
            {
                "type": "AnalyticsShortsCarouselCard",
                "title": "Top shorts",
                "shortsCarouselData": {
                    "shorts": [
                        {
                            "shortsDescription": "A short",
                            "thumbnailUrl": "https://img.example/1.jpg",
                            "videoEndpoint": {"reelWatchEndpoint": {"videoId": "s1"}},
                        }
                    ]
                },
            }
        )

        assert isinstance(card, AnalyticsShortsCarouselCard)
        assert card.shorts[0].description == "A short"
        assert card.shorts[0].endpoint.key == "reelWatchEndpoint"
