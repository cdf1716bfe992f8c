"""
Type Registry for the tubegraph parser.

Maps a discriminator tag to the node schema that parses it.

Design Principle:
    Schemas are registered once at import time and the registry is
    read-only afterwards. Resolution is a dictionary lookup.

Ambiguous tags:
    Some tags are reused by the service for differently shaped documents.
    A schema may be registered with a ``shape``: the set of raw keys whose
    presence identifies it. Shaped entries are tried first (most keys
    first), then the plain entry for the tag.

Usage:
    registry = TypeRegistry()
    registry.register(MusicShelf)

    schema = registry.resolve("MusicShelf")        # MusicShelf
    schema = registry.resolve("FutureWidget")      # None -> passthrough

    # Process-wide default registry
    @register_node
    @dataclass(frozen=True, kw_only=True, slots=True, eq=False)
    class Message(Node):
        type: ClassVar[str] = "Message"
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from tubegraph.errors import RegistryError

from .node import Node, PassthroughNode

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=type[Node])


class TypeRegistry:
    """
    Registry of node schemas keyed by discriminator tag.

    Example:
        registry = TypeRegistry()
        registry.register(Shelf)
        registry.register(ChannelV2, tag="Channel", shape={"tabs"})
        registry.register(Channel)

        registry.resolve("Channel", {"tabs": []})   # ChannelV2
        registry.resolve("Channel", {})             # Channel
    """

    def __init__(self, schemas: Iterable[type[Node]] = ()) -> None:
        self._plain: dict[str, type[Node]] = {}
        self._shaped: dict[str, list[tuple[frozenset[str], type[Node]]]] = {}
        for schema in schemas:
            self.register(schema)

    def register(
        self,
        schema: type[Node],
        *,
        tag: str | None = None,
        shape: Iterable[str] | None = None,
    ) -> None:
        """
        Register a schema.

        Args:
            schema: Node subclass implementing parse_fields()
            tag: Discriminator value (defaults to schema.type)
            shape: Raw keys that identify this schema among others sharing the tag

        Raises:
            RegistryError: If the schema is invalid or the slot is taken
        """
        self._validate_schema(schema)
        tag = tag or schema.type

        if shape:
            key = frozenset(shape)
            entries = self._shaped.setdefault(tag, [])
            if any(existing == key for existing, _ in entries):
                raise RegistryError(f"Schema for '{tag}' with shape {sorted(key)} already registered")
            entries.append((key, schema))
            # Most specific shapes first
            entries.sort(key=lambda entry: (-len(entry[0]), sorted(entry[0])))
        else:
            if tag in self._plain:
                raise RegistryError(
                    f"Schema for '{tag}' already registered ({self._plain[tag].__name__})"
                )
            self._plain[tag] = schema

        logger.debug(f"[type_registry] Registered {schema.__name__} for '{tag}'")

    def unregister(self, tag: str) -> bool:
        """
        Remove every schema registered for a tag.

        Returns:
            True if anything was removed
        """
        removed = self._plain.pop(tag, None) is not None
        removed = self._shaped.pop(tag, None) is not None or removed
        return removed

    def resolve(self, tag: str, data: Mapping[str, Any] | None = None) -> type[Node] | None:
        """
        Resolve a tag to its schema.

        Args:
            tag: Discriminator value
            data: Raw node, used only to disambiguate shaped entries

        Returns:
            The schema, or None when the tag is unknown
        """
        shaped = self._shaped.get(tag)
        if shaped and data is not None:
            for keys, schema in shaped:
                if keys.issubset(data.keys()):
                    return schema
        return self._plain.get(tag)

    def tags(self) -> list[str]:
        return sorted(set(self._plain) | set(self._shaped))

    def copy(self) -> TypeRegistry:
        """Return an independent registry with the same entries."""
        clone = TypeRegistry()
        clone._plain = dict(self._plain)
        clone._shaped = {tag: list(entries) for tag, entries in self._shaped.items()}
        return clone

    def _validate_schema(self, schema: type[Node]) -> None:
        if not isinstance(schema, type) or not issubclass(schema, Node):
            raise RegistryError(f"Schema must be a Node subclass: {schema!r}")
        if schema is Node or issubclass(schema, PassthroughNode):
            raise RegistryError(f"{schema.__name__} cannot be registered")
        if "parse_fields" not in vars(schema) and not _inherits_parser(schema):
            raise RegistryError(f"{schema.__name__} must implement parse_fields()")
        if not schema.type or schema.type == Node.type:
            raise RegistryError(f"{schema.__name__} must declare a 'type' tag")

    def __len__(self) -> int:
        return len(self.tags())

    def __contains__(self, tag: str) -> bool:
        return tag in self._plain or tag in self._shaped

    def __repr__(self) -> str:
        return f"<TypeRegistry tags={len(self)}>"


def _inherits_parser(schema: type[Node]) -> bool:
    for base in schema.__mro__[1:]:
        if base is Node:
            return False
        if "parse_fields" in vars(base):
            return True
    return False


# =============================================================================
# Default registry
# =============================================================================

_default_registry = TypeRegistry()


def get_default_registry() -> TypeRegistry:
    """
    Get the process-wide registry populated by @register_node.

    Importing ``tubegraph.parser.nodes`` registers the built-in catalogue.
    """
    return _default_registry


def register_node(schema: S) -> S:
    """Class decorator registering a schema in the default registry."""
    _default_registry.register(schema)
    return schema
