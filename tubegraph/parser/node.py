"""
Typed node primitives for the tubegraph parser.

Nodes are immutable containers produced from one raw sub-document. They
form a strict tree: a node is owned by the field or sequence that holds it.
The only upward association is the ``origin`` token, the id of the page
whose builder produced the node. It is diagnostic context and is never
followed during traversal.

Design Principles:
- Frozen, slotted dataclasses, like pipeline frames
- Identity equality (two structurally equal nodes are still distinct nodes)
- A schema is a Node subclass plus its ``parse_fields`` projection
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, overload

from tubegraph.errors import VariantMismatchError

if TYPE_CHECKING:
    from .builder import GraphBuilder

N = TypeVar("N", bound="Node")

# A variant can be named by its schema class or by its raw tag
VariantRef = type["Node"] | str

RawNode = Mapping[str, Any]


def variant_name(ref: VariantRef) -> str:
    """Return the tag a variant reference stands for."""
    if isinstance(ref, str):
        return ref
    return ref.type


def _matches(node: Node, refs: tuple[VariantRef, ...]) -> bool:
    for ref in refs:
        if isinstance(ref, str):
            if node.variant == ref:
                return True
        elif isinstance(node, ref):
            return True
    return False


@dataclass(frozen=True, kw_only=True, slots=True, eq=False, weakref_slot=True)
class Node:
    """
    Base class for every typed node.

    Subclasses set the class-level ``type`` tag and implement
    ``parse_fields`` to project a raw document onto their fields.
    """

    type: ClassVar[str] = "Node"

    origin: str | None = field(default=None, repr=False, compare=False)
    # Memoized TypeIndex handle, attached on first query (see memo.py)
    _index: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def variant(self) -> str:
        """Tag identifying the schema that produced this node."""
        return self.type

    @classmethod
    def parse_fields(cls, data: RawNode, builder: GraphBuilder) -> dict[str, Any]:
        """
        Project a raw document onto this schema's fields.

        Args:
            data: Raw compound node (discriminator already resolved)
            builder: Builder used for nested nodes and sequences

        Returns:
            Keyword arguments for the schema constructor (``origin`` excluded)
        """
        raise NotImplementedError(f"{cls.__name__} does not define parse_fields()")

    def is_a(self, *variants: VariantRef) -> bool:
        """Check whether this node is one of the given variants."""
        return _matches(self, variants)

    @overload
    def as_type(self, variant: type[N], /) -> N: ...

    @overload
    def as_type(self, *variants: VariantRef) -> Node: ...

    def as_type(self, *variants: VariantRef) -> Node:
        """
        Assert this node is one of the given variants.

        Raises:
            VariantMismatchError: If it is not
        """
        if not _matches(self, variants):
            raise VariantMismatchError(
                self.variant, [variant_name(v) for v in variants], info=self
            )
        return self

    def children(self) -> Iterator[Node]:
        """Yield direct child nodes in field declaration order."""
        for f in fields(self):
            if f.name == "origin" or f.name.startswith("_"):
                continue
            yield from _iter_nodes(getattr(self, f.name))

    def __repr__(self) -> str:
        return f"{self.variant}()"


def _iter_nodes(value: Any) -> Iterator[Node]:
    if isinstance(value, Node):
        yield value
    elif isinstance(value, NodeSequence):
        yield from value
    elif isinstance(value, tuple):
        for item in value:
            yield from _iter_nodes(item)


_CAMEL_BOUNDARY = re.compile(r"_([a-z])")


def _to_camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class PassthroughNode(Node):
    """
    Schema-less node for discriminators the registry does not know.

    The source service evolves independently of this library, so unknown
    tags degrade to a node that keeps its raw fields readable. Nested
    values that carry a discriminator are still built, so type queries
    reach known nodes wrapped inside unknown ones.

    ``get()`` and ``node[key]`` always read the raw field. Attribute access
    is a shorthand that only reaches raw fields whose names do not collide
    with node members (``tag``, ``raw``, ``nested``, ``variant``, ``origin``,
    ``get``, ``keys``...): ``node.tag`` is the discriminator even when the
    raw document has a ``tag`` field of its own.
    """

    type: ClassVar[str] = "Passthrough"

    tag: str
    raw: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), repr=False)
    nested: NodeSequence = field(default_factory=lambda: NodeSequence(), repr=False)

    @property
    def variant(self) -> str:
        return self.tag

    def children(self) -> Iterator[Node]:
        yield from self.nested

    def get(self, key: str, default: Any = None) -> Any:
        """Read a raw field, accepting snake_case or raw (camelCase) names."""
        if key in self.raw:
            return self.raw[key]
        return self.raw.get(_to_camel(key), default)

    def has(self, key: str) -> bool:
        return key in self.raw or _to_camel(key) in self.raw

    def keys(self) -> list[str]:
        return list(self.raw.keys())

    def __getitem__(self, key: str) -> Any:
        if not self.has(key):
            raise KeyError(key)
        return self.get(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        raw = object.__getattribute__(self, "raw")
        if name in raw:
            return raw[name]
        camel = _to_camel(name)
        if camel in raw:
            return raw[camel]
        raise AttributeError(f"{self.tag} has no field '{name}'")

    def __repr__(self) -> str:
        return f"{self.tag}(passthrough, keys={self.keys()})"


class NodeSequence:
    """
    Ordered, immutable collection of nodes.

    Order is on-page display order and is preserved by every operation.
    """

    __slots__ = ("_items", "_index", "__weakref__")

    def __init__(self, items: Iterable[Node] = ()):
        self._items: tuple[Node, ...] = tuple(items)
        self._index: Any = None

    # ==================== Collection protocol ====================

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> Node: ...

    @overload
    def __getitem__(self, index: slice) -> NodeSequence: ...

    def __getitem__(self, index: int | slice) -> Node | NodeSequence:
        if isinstance(index, slice):
            return NodeSequence(self._items[index])
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"NodeSequence({list(self._items)!r})"

    @property
    def items(self) -> tuple[Node, ...]:
        return self._items

    @property
    def variants(self) -> list[str]:
        """Variant tags of the elements, in order."""
        return [node.variant for node in self._items]

    # ==================== Lookup ====================

    def first(self) -> Node | None:
        return self._items[0] if self._items else None

    def get(self, **conditions: Any) -> Node | None:
        """
        Return the first node whose fields equal all given values.

        Example:
            tabs.get(title="Up next")
        """
        for node in self._items:
            if all(_field_equals(node, key, value) for key, value in conditions.items()):
                return node
        return None

    def match_condition(self, predicate: Callable[[Node], bool]) -> Node | None:
        """Return the first node satisfying the predicate."""
        for node in self._items:
            if predicate(node):
                return node
        return None

    def filter(self, predicate: Callable[[Node], bool]) -> NodeSequence:
        return NodeSequence(node for node in self._items if predicate(node))

    @overload
    def first_of(
        self, variant: type[N], /, *, predicate: Callable[[N], bool] | None = None
    ) -> N | None: ...

    @overload
    def first_of(
        self, *variants: VariantRef, predicate: Callable[[Node], bool] | None = None
    ) -> Node | None: ...

    def first_of(self, *variants, predicate=None):
        """Return the first node of one of the variants, optionally filtered."""
        for node in self._items:
            if _matches(node, variants) and (predicate is None or predicate(node)):
                return node
        return None

    def of_type(self, *variants: VariantRef) -> NodeSequence:
        """Return only the nodes of the given variants."""
        return NodeSequence(node for node in self._items if _matches(node, variants))

    def as_type(self, *variants: VariantRef) -> NodeSequence:
        """
        Assert every element is one of the given variants.

        Raises:
            VariantMismatchError: On the first element that is not
        """
        for node in self._items:
            node.as_type(*variants)
        return self

    def map(self, fn: Callable[[Node], Any]) -> list[Any]:
        return [fn(node) for node in self._items]


EMPTY_SEQUENCE = NodeSequence()


def _field_equals(node: Node, key: str, value: Any) -> bool:
    if isinstance(node, PassthroughNode):
        return node.has(key) and node.get(key) == value
    current = getattr(node, key, _MISSING)
    if current is _MISSING:
        return False
    # Text values compare by their rendered string
    if hasattr(current, "text") and isinstance(value, str):
        return str(current) == value
    return current == value


_MISSING = object()
