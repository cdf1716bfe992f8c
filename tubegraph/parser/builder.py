"""
Graph Builder for the tubegraph parser.

Turns a raw JSON-like tree into a typed node graph in one recursive pass:
read the discriminator, resolve the schema, let the schema project its
fields (recursing back into the builder for nested nodes and sequences).

Failure Modes:
    - Raw compound node without a discriminator -> MalformedDocumentError
    - Required field missing inside a projection -> MalformedDocumentError
    - Element not matching a sequence hint       -> VariantMismatchError
    - Unknown discriminator                      -> PassthroughNode (not an error)

The raw input is never mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar, overload

from tubegraph.errors import MalformedDocumentError, TubeGraphError

from .node import Node, NodeSequence, PassthroughNode, VariantRef
from .registry import TypeRegistry, get_default_registry

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Node)

DEFAULT_DISCRIMINATOR = "type"

Hint = VariantRef | tuple[VariantRef, ...]


def _hint_refs(hint: Hint | None) -> tuple[VariantRef, ...]:
    if hint is None:
        return ()
    if isinstance(hint, tuple):
        return hint
    return (hint,)


class GraphBuilder:
    """
    Builds typed nodes from raw documents.

    A builder only references its registry; binding it to a page with
    with_origin() returns a new builder that stamps that page's id on
    every node it produces.

    Example:
        builder = GraphBuilder()
        shelf = builder.build({"type": "MusicShelf", "title": "Songs", "contents": []})
        items = builder.build_sequence(raw_items, hint=MusicResponsiveListItem)
    """

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        *,
        discriminator: str = DEFAULT_DISCRIMINATOR,
        origin: str | None = None,
    ) -> None:
        self._registry = registry if registry is not None else get_default_registry()
        self._discriminator = discriminator
        self._origin = origin

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def discriminator(self) -> str:
        return self._discriminator

    @property
    def origin(self) -> str | None:
        return self._origin

    def with_origin(self, origin: str | None) -> GraphBuilder:
        """Return a builder that tags produced nodes with the given page id."""
        return GraphBuilder(self._registry, discriminator=self._discriminator, origin=origin)

    # ==================== Inspection ====================

    def tag_of(self, raw: Any) -> str | None:
        """Return the discriminator of a raw node, or None."""
        if isinstance(raw, Mapping):
            tag = raw.get(self._discriminator)
            if isinstance(tag, str) and tag:
                return tag
        return None

    def is_compound(self, raw: Any) -> bool:
        """Check whether a raw value is a compound node (carries a discriminator)."""
        return self.tag_of(raw) is not None

    # ==================== Building ====================

    @overload
    def build(self, raw: Any, hint: type[N]) -> N: ...

    @overload
    def build(self, raw: Any, hint: Hint | None = None) -> Node: ...

    def build(self, raw: Any, hint: Hint | None = None) -> Node:
        """
        Build one node from a raw compound node.

        Args:
            raw: Raw mapping carrying a discriminator
            hint: Optional variant(s) the node must belong to

        Returns:
            The typed node, or a PassthroughNode for unknown tags

        Raises:
            MalformedDocumentError: If raw is not a compound node or a required field is absent
            VariantMismatchError: If the node does not match the hint
        """
        if not isinstance(raw, Mapping):
            raise MalformedDocumentError(
                f"Expected a compound node, got {type(raw).__name__}", info=raw
            )

        tag = self.tag_of(raw)
        if tag is None:
            raise MalformedDocumentError(
                f"Compound node is missing its '{self._discriminator}' discriminator",
                info=dict(raw),
            )

        schema = self._registry.resolve(tag, raw)
        if schema is None:
            node: Node = self._passthrough(tag, raw)
        else:
            node = self._instantiate(schema, tag, raw)

        refs = _hint_refs(hint)
        if refs:
            node.as_type(*refs)
        return node

    @overload
    def build_optional(self, raw: Any, hint: type[N]) -> N | None: ...

    @overload
    def build_optional(self, raw: Any, hint: Hint | None = None) -> Node | None: ...

    def build_optional(self, raw: Any, hint: Hint | None = None) -> Node | None:
        """Build a node, or return None when raw is absent."""
        if raw is None:
            return None
        return self.build(raw, hint)

    def build_sequence(self, raw_nodes: Any, hint: Hint | None = None) -> NodeSequence:
        """
        Build an ordered sequence of nodes.

        Args:
            raw_nodes: Raw list of compound nodes (None yields an empty sequence)
            hint: Optional variant(s) every element must belong to

        Raises:
            MalformedDocumentError: If raw_nodes is not a list or an element is malformed
            VariantMismatchError: If an element does not match the hint
        """
        if raw_nodes is None:
            return NodeSequence()
        if not isinstance(raw_nodes, Sequence) or isinstance(raw_nodes, str | bytes):
            raise MalformedDocumentError(
                f"Expected a list of nodes, got {type(raw_nodes).__name__}", info=raw_nodes
            )
        return NodeSequence(self.build(item, hint) for item in raw_nodes)

    def build_any(self, raw: Any) -> Node | NodeSequence | None:
        """Build whatever raw holds: a node, a sequence, or nothing."""
        if raw is None:
            return None
        if isinstance(raw, Sequence) and not isinstance(raw, str | bytes):
            return self.build_sequence(raw)
        return self.build(raw)

    # ==================== Internals ====================

    def _instantiate(self, schema: type[Node], tag: str, raw: Mapping[str, Any]) -> Node:
        try:
            values = schema.parse_fields(raw, self)
            return schema(origin=self._origin, **values)
        except TubeGraphError:
            raise
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise MalformedDocumentError(
                f"Missing or invalid field while parsing {schema.__name__}: {e!r}",
                tag=tag,
                info=dict(raw),
            ) from e

    def _passthrough(self, tag: str, raw: Mapping[str, Any]) -> PassthroughNode:
        logger.debug(f"[graph_builder] Unknown variant '{tag}', building passthrough node")
        fields = {k: v for k, v in raw.items() if k != self._discriminator}
        return PassthroughNode(
            origin=self._origin,
            tag=tag,
            raw=MappingProxyType(fields),
            nested=NodeSequence(self._collect_nested(fields)),
        )

    def _collect_nested(self, value: Any) -> Iterator[Node]:
        """Build compound values found anywhere inside a schema-less value."""
        if isinstance(value, Mapping):
            if self.is_compound(value):
                yield self.build(value)
                return
            for item in value.values():
                yield from self._collect_nested(item)
        elif isinstance(value, Sequence) and not isinstance(value, str | bytes):
            for item in value:
                yield from self._collect_nested(item)
