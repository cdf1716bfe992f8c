"""
Type Index (memo) for constructed node graphs.

Answers "all nodes of variant V anywhere under this subtree" without a
fresh traversal per query. The first query walks the subtree once,
pre-order and left to right (document order), bucketing every node by its
tag and by its schema class. Later queries are dictionary lookups that
return the very same NodeSequence objects.

The index can never go stale: nodes are frozen after construction.

The handle is cached on the subtree root itself and refers back to the
root weakly, so an index lives exactly as long as the graph it describes.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Iterator
from typing import TypeVar, overload

from .node import EMPTY_SEQUENCE, Node, NodeSequence, VariantRef

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Node)

Subtree = Node | NodeSequence


def walk(root: Subtree) -> Iterator[Node]:
    """
    Pre-order, left-to-right traversal of a subtree.

    Iterative so that deeply nested documents cannot exhaust the stack.
    """
    stack: list[Node] = list(reversed(root.items)) if isinstance(root, NodeSequence) else [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))


class TypeIndex:
    """
    Memoized variant index over one subtree.

    Example:
        memo = TypeIndex.for_subtree(page_root)
        shelves = memo.all_of(MusicShelf)        # walks once
        again = memo.all_of(MusicShelf)          # same object, no walk
        panel = memo.first_of("PlaylistPanel")
    """

    __slots__ = ("_root", "_by_tag", "_by_schema", "_size")

    def __init__(self, root: Subtree) -> None:
        self._root = weakref.ref(root)
        self._by_tag: dict[str, NodeSequence] | None = None
        self._by_schema: dict[type[Node], NodeSequence] | None = None
        self._size = 0

    @classmethod
    def for_subtree(cls, root: Subtree) -> TypeIndex:
        """
        Get the index handle for a subtree, creating it on first request.

        The walk itself is deferred to the first query.
        """
        handle = root._index
        if handle is None:
            handle = cls(root)
            _attach(root, handle)
        return handle

    @property
    def root(self) -> Subtree:
        root = self._root()
        if root is None:
            raise ReferenceError("Indexed subtree no longer exists")
        return root

    @property
    def is_built(self) -> bool:
        return self._by_tag is not None

    # ==================== Queries ====================

    @overload
    def all_of(self, variant: type[N]) -> NodeSequence: ...

    @overload
    def all_of(self, variant: str) -> NodeSequence: ...

    def all_of(self, variant: VariantRef) -> NodeSequence:
        """
        All nodes of a variant in document order.

        Returns the same sequence object on every call; an empty sequence
        when the variant never occurs.
        """
        by_tag, by_schema = self._ensure_built()
        if isinstance(variant, str):
            return by_tag.get(variant, EMPTY_SEQUENCE)
        return by_schema.get(variant, EMPTY_SEQUENCE)

    @overload
    def first_of(
        self, variant: type[N], predicate: Callable[[N], bool] | None = None
    ) -> N | None: ...

    @overload
    def first_of(
        self, variant: str, predicate: Callable[[Node], bool] | None = None
    ) -> Node | None: ...

    def first_of(self, variant, predicate=None):
        """First node of a variant (optionally matching a predicate), or None."""
        nodes = self.all_of(variant)
        if predicate is None:
            return nodes.first()
        return nodes.match_condition(predicate)

    def has(self, variant: VariantRef) -> bool:
        return bool(self.all_of(variant))

    def variants(self) -> list[str]:
        """Tags present in the subtree, in order of first occurrence."""
        by_tag, _ = self._ensure_built()
        return list(by_tag)

    def __len__(self) -> int:
        self._ensure_built()
        return self._size

    def __contains__(self, variant: VariantRef) -> bool:
        return self.has(variant)

    def __repr__(self) -> str:
        state = f"nodes={self._size}" if self.is_built else "unbuilt"
        return f"<TypeIndex {state}>"

    # ==================== Internals ====================

    def _ensure_built(self) -> tuple[dict[str, NodeSequence], dict[type[Node], NodeSequence]]:
        if self._by_tag is None or self._by_schema is None:
            tags: dict[str, list[Node]] = {}
            schemas: dict[type[Node], list[Node]] = {}
            count = 0
            for node in walk(self.root):
                tags.setdefault(node.variant, []).append(node)
                for schema in type(node).__mro__:
                    if schema is object:
                        break
                    schemas.setdefault(schema, []).append(node)
                count += 1
            self._by_tag = {tag: NodeSequence(nodes) for tag, nodes in tags.items()}
            self._by_schema = {schema: NodeSequence(nodes) for schema, nodes in schemas.items()}
            self._size = count
            logger.debug(
                f"[type_index] Indexed {count} nodes across {len(self._by_tag)} variants"
            )
        return self._by_tag, self._by_schema


def _attach(root: Subtree, handle: TypeIndex) -> None:
    # Nodes are frozen; the memo slot is the one attribute written after init
    if isinstance(root, Node):
        object.__setattr__(root, "_index", handle)
    else:
        root._index = handle
