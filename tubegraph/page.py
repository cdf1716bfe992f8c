"""
Response pages.

A ResponsePage wraps one fetched document: the typed graph built from it,
the memoized TypeIndex over that graph, and the continuation token found
at the endpoint's token paths.

Document shapes:
    - Root document: the document itself carries a discriminator and is
      built as a single node (``page.contents``).
    - Envelope document: each top-level value that is a compound node (or
      a list of them) becomes a named section (``contents``, ``header``,
      ``continuationContents``, ...). Other values stay in ``page.raw``.

Every advance of a cursor produces a brand-new page; pages are never
mutated after construction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from tubegraph.continuation.token import DEFAULT_TOKEN_PATHS, TokenPath, extract_token
from tubegraph.errors import MalformedDocumentError
from tubegraph.parser.builder import GraphBuilder
from tubegraph.parser.memo import TypeIndex
from tubegraph.parser.node import Node, NodeSequence

logger = logging.getLogger(__name__)

ROOT_SECTION = "root"


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class ResponsePage:
    """
    One fetched document and its typed graph.

    Example:
        page = ResponsePage.parse(document)
        shelf = page.memo.first_of(MusicShelf)
        if page.has_continuation:
            next_page = await session.fetch(BROWSE, continuation=page.continuation)
    """

    __slots__ = ("_id", "_raw", "_sections", "_graph", "_continuation", "_endpoint", "_fetched_at")

    def __init__(
        self,
        *,
        raw: Mapping[str, Any],
        sections: Mapping[str, Node | NodeSequence],
        continuation: str | None = None,
        page_id: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        self._id = page_id or uuid4().hex
        self._raw = MappingProxyType(dict(raw))
        self._sections = MappingProxyType(dict(sections))
        self._graph = NodeSequence(_flatten(self._sections.values()))
        self._continuation = continuation
        self._endpoint = endpoint
        self._fetched_at = _utc_now()

    @classmethod
    def parse(
        cls,
        document: Mapping[str, Any],
        builder: GraphBuilder | None = None,
        *,
        token_paths: Sequence[TokenPath] = DEFAULT_TOKEN_PATHS,
        endpoint: str | None = None,
    ) -> ResponsePage:
        """
        Build a page from a raw document.

        Args:
            document: Raw document returned by the transport
            builder: Graph builder (default registry if None)
            token_paths: Where this endpoint keeps its continuation token
            endpoint: Endpoint name, for diagnostics

        Raises:
            MalformedDocumentError: If the document is not a mapping or a node is malformed
        """
        if not isinstance(document, Mapping):
            raise MalformedDocumentError(
                f"Expected a document object, got {type(document).__name__}", info=document
            )

        page_id = uuid4().hex
        scoped = (builder or GraphBuilder()).with_origin(page_id)

        sections: dict[str, Node | NodeSequence] = {}
        if scoped.is_compound(document):
            sections[ROOT_SECTION] = scoped.build(document)
        else:
            for key, value in document.items():
                if scoped.is_compound(value):
                    sections[key] = scoped.build(value)
                elif _is_node_list(scoped, value):
                    sections[key] = scoped.build_sequence(value)

        continuation = extract_token(document, token_paths)
        logger.debug(
            f"[page] Parsed {endpoint or 'document'}: sections={list(sections)} "
            f"continuation={'yes' if continuation else 'no'}"
        )
        return cls(
            raw=document,
            sections=sections,
            continuation=continuation,
            page_id=page_id,
            endpoint=endpoint,
        )

    # ==================== Identity ====================

    @property
    def page_id(self) -> str:
        """Id stamped as ``origin`` on every node of this page."""
        return self._id

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    @property
    def fetched_at(self) -> datetime:
        return self._fetched_at

    @property
    def raw(self) -> Mapping[str, Any]:
        """Read-only view of the raw document."""
        return self._raw

    # ==================== Graph ====================

    @property
    def sections(self) -> Mapping[str, Node | NodeSequence]:
        return self._sections

    def section(self, name: str) -> Node | NodeSequence | None:
        return self._sections.get(name)

    @property
    def contents(self) -> Node | NodeSequence | None:
        if "contents" in self._sections:
            return self._sections["contents"]
        return self._sections.get(ROOT_SECTION)

    @property
    def header(self) -> Node | NodeSequence | None:
        return self._sections.get("header")

    @property
    def continuation_contents(self) -> Node | NodeSequence | None:
        return self._sections.get("continuationContents")

    @property
    def graph(self) -> NodeSequence:
        """Top-level nodes of every section, in document order."""
        return self._graph

    @property
    def memo(self) -> TypeIndex:
        """Memoized type index over the whole page."""
        return TypeIndex.for_subtree(self._graph)

    @property
    def is_empty(self) -> bool:
        return not self._graph

    # ==================== Continuation ====================

    @property
    def continuation(self) -> str | None:
        return self._continuation

    @property
    def has_continuation(self) -> bool:
        return self._continuation is not None

    def __repr__(self) -> str:
        return (
            f"<ResponsePage id={self._id[:8]} sections={list(self._sections)} "
            f"continuation={'yes' if self._continuation else 'no'}>"
        )


def _is_node_list(builder: GraphBuilder, value: Any) -> bool:
    if not isinstance(value, Sequence) or isinstance(value, str | bytes) or not value:
        return False
    return all(builder.is_compound(item) for item in value)


def _flatten(values: Any) -> list[Node]:
    nodes: list[Node] = []
    for value in values:
        if isinstance(value, Node):
            nodes.append(value)
        else:
            nodes.extend(value)
    return nodes
