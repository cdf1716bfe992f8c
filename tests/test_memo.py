"""
Tests for TypeIndex and ResponsePage.
"""

import weakref

import pytest

from tubegraph.errors import MalformedDocumentError
from tubegraph.page import ROOT_SECTION, ResponsePage
from tubegraph.parser import Node, NodeSequence, TypeIndex, walk
from tubegraph.parser.nodes import (
    ItemSection,
    Message,
    MusicResponsiveListItem,
    MusicShelf,
    SectionList,
)


def _song(video_id):
    return {
        "type": "MusicResponsiveListItem",
        "playlistItemData": {"videoId": video_id},
        "title": {"simpleText": video_id},
    }


def _shelf(*video_ids, continuation=None):
    shelf = {"type": "MusicShelf", "title": "Songs", "contents": [_song(v) for v in video_ids]}
    if continuation:
        shelf["continuations"] = [{"nextContinuationData": {"continuation": continuation}}]
    return shelf


@pytest.fixture
def section_list_document():
    return {
        "contents": {
            "type": "SectionList",
            "contents": [
                _shelf("a", "b"),
                {"type": "ItemSection", "contents": [_shelf("c"), {"type": "Message"}]},
                _shelf("d"),
            ],
        },
        "header": {"type": "FutureHeader", "title": "Header"},
        "trackingParams": "xyz",
    }


def _manual_walk(node, out):
    out.append(node)
    for child in node.children():
        _manual_walk(child, out)
    return out


# =============================================================================
# TypeIndex Tests
# =============================================================================


class TestTypeIndex:
    """Tests for the memoized type index."""

    def test_matches_manual_preorder_walk(self, builder, section_list_document):
        root = builder.build(section_list_document["contents"])
        memo = TypeIndex.for_subtree(root)

        expected = [n for n in _manual_walk(root, []) if isinstance(n, MusicResponsiveListItem)]

        assert list(memo.all_of(MusicResponsiveListItem)) == expected
        assert [n.id for n in memo.all_of(MusicResponsiveListItem)] == ["a", "b", "c", "d"]

    def test_walk_is_preorder(self, builder, section_list_document):
        root = builder.build(section_list_document["contents"])

        assert list(walk(root)) == _manual_walk(root, [])

    def test_query_by_tag_and_by_schema(self, builder, section_list_document):
        memo = TypeIndex.for_subtree(builder.build(section_list_document["contents"]))

        by_tag = memo.all_of("MusicShelf")
        by_schema = memo.all_of(MusicShelf)

        assert list(by_tag) == list(by_schema)
        assert len(by_tag) == 3

    def test_base_schema_query_covers_every_node(self, builder, section_list_document):
        root = builder.build(section_list_document["contents"])
        memo = TypeIndex.for_subtree(root)

        assert len(memo.all_of(Node)) == len(memo)
        assert memo.all_of(Node)[0] is root

    def test_results_are_memoized(self, builder, section_list_document):
        root = builder.build(section_list_document["contents"])

        first = TypeIndex.for_subtree(root).all_of(MusicShelf)
        second = TypeIndex.for_subtree(root).all_of(MusicShelf)

        assert TypeIndex.for_subtree(root) is TypeIndex.for_subtree(root)
        assert first is second

    def test_walk_is_deferred_until_first_query(self, builder, section_list_document):
        memo = TypeIndex.for_subtree(builder.build(section_list_document["contents"]))

        assert not memo.is_built
        memo.has(Message)
        assert memo.is_built

    def test_absent_variant_is_empty_sequence(self, builder, section_list_document):
        memo = TypeIndex.for_subtree(builder.build(section_list_document["contents"]))

        result = memo.all_of("PlaylistPanel")

        assert isinstance(result, NodeSequence)
        assert len(result) == 0
        assert memo.first_of("PlaylistPanel") is None
        assert "PlaylistPanel" not in memo

    def test_first_of_with_predicate(self, builder, section_list_document):
        memo = TypeIndex.for_subtree(builder.build(section_list_document["contents"]))

        song = memo.first_of(MusicResponsiveListItem, lambda n: n.id == "c")

        assert song is not None
        assert song.id == "c"

    def test_subtree_index_is_scoped(self, builder, section_list_document):
        root = builder.build(section_list_document["contents"])
        section = TypeIndex.for_subtree(root).first_of(ItemSection)

        inner = TypeIndex.for_subtree(section)

        assert [n.id for n in inner.all_of(MusicResponsiveListItem)] == ["c"]
        assert inner.variants() == ["ItemSection", "MusicShelf", "MusicResponsiveListItem", "Message"]

    def test_index_over_sequence(self, builder):
        sequence = builder.build_sequence([_shelf("a"), _shelf("b")])
        memo = TypeIndex.for_subtree(sequence)

        assert len(memo.all_of(MusicShelf)) == 2
        assert TypeIndex.for_subtree(sequence) is memo

    def test_index_does_not_keep_sequence_root_alive(self, builder):
        sequence = builder.build_sequence([_shelf("a"), _shelf("b")])
        memo = TypeIndex.for_subtree(sequence)
        shelves = memo.all_of(MusicShelf)
        root_ref = weakref.ref(sequence)

        del sequence

        assert root_ref() is None
        assert len(shelves) == 2
        with pytest.raises(ReferenceError):
            _ = memo.root

    def test_root_is_reachable_while_alive(self, builder):
        root = builder.build(_shelf("a"))

        assert TypeIndex.for_subtree(root).root is root


# =============================================================================
# ResponsePage Tests
# =============================================================================


class TestResponsePage:
    """Tests for ResponsePage parsing."""

    def test_envelope_sections(self, section_list_document):
        page = ResponsePage.parse(section_list_document)

        assert isinstance(page.contents, SectionList)
        assert page.header.variant == "FutureHeader"
        assert set(page.sections) == {"contents", "header"}
        assert page.raw["trackingParams"] == "xyz"

    def test_root_document(self):
        page = ResponsePage.parse(_shelf("a", continuation="TOK1"))

        assert ROOT_SECTION in page.sections
        assert isinstance(page.contents, MusicShelf)
        assert page.continuation == "TOK1"

    def test_memo_spans_every_section(self, section_list_document):
        page = ResponsePage.parse(section_list_document)

        assert len(page.memo.all_of(MusicShelf)) == 3
        assert page.memo.first_of("FutureHeader") is page.header
        assert page.memo is page.memo

    def test_nodes_carry_page_origin(self, section_list_document):
        page = ResponsePage.parse(section_list_document)

        assert all(node.origin == page.page_id for node in page.memo.all_of(Node))

    def test_pages_have_distinct_ids(self, section_list_document):
        first = ResponsePage.parse(section_list_document)
        second = ResponsePage.parse(section_list_document)

        assert first.page_id != second.page_id

    def test_node_list_section(self):
        page = ResponsePage.parse({"items": [_song("a"), _song("b")], "count": [1, 2]})

        assert isinstance(page.section("items"), NodeSequence)
        assert page.section("count") is None

    def test_no_continuation(self, section_list_document):
        page = ResponsePage.parse(section_list_document)

        assert page.continuation is None
        assert not page.has_continuation

    def test_custom_token_paths(self):
        page = ResponsePage.parse(
            {"meta": {"next": "CUSTOM"}},
            token_paths=(("meta", "next"),),
        )

        assert page.continuation == "CUSTOM"
        assert page.is_empty

    def test_append_continuation_action(self):
        document = {
            "onResponseReceivedActions": [
                {
                    "appendContinuationItemsAction": {
                        "continuationItems": [
                            _song("a"),
                            {
                                "continuationEndpoint": {
                                    "continuationCommand": {"token": "APPEND"}
                                }
                            },
                        ]
                    }
                }
            ]
        }

        assert ResponsePage.parse(document).continuation == "APPEND"

    def test_raw_view_is_read_only(self, section_list_document):
        page = ResponsePage.parse(section_list_document)

        with pytest.raises(TypeError):
            page.raw["trackingParams"] = "changed"  # type: ignore[index]

    def test_non_mapping_document_is_malformed(self):
        with pytest.raises(MalformedDocumentError):
            ResponsePage.parse(["not", "a", "document"])  # type: ignore[arg-type]

    def test_malformed_node_propagates(self):
        with pytest.raises(MalformedDocumentError):
            ResponsePage.parse({"contents": {"type": "CallToActionButton", "label": "x"}})
