"""
tubegraph parser

Turns raw documents into typed, immutable node graphs:

- TypeRegistry: discriminator tag -> node schema
- GraphBuilder: recursive raw tree -> Node / NodeSequence
- TypeIndex: memoized "all nodes of variant V under this subtree"

Importing this package also registers the built-in node catalogue.
"""

from .builder import DEFAULT_DISCRIMINATOR, GraphBuilder
from .endpoint import NavigationEndpoint
from .memo import TypeIndex, walk
from .node import EMPTY_SEQUENCE, Node, NodeSequence, PassthroughNode, RawNode, VariantRef
from .registry import TypeRegistry, get_default_registry, register_node
from .text import Text, TextRun

from . import nodes  # noqa: E402,F401  (registers the catalogue)

__all__ = [
    # Nodes
    "Node",
    "NodeSequence",
    "PassthroughNode",
    "EMPTY_SEQUENCE",
    "RawNode",
    "VariantRef",
    # Values
    "Text",
    "TextRun",
    "NavigationEndpoint",
    # Registry
    "TypeRegistry",
    "get_default_registry",
    "register_node",
    # Building
    "GraphBuilder",
    "DEFAULT_DISCRIMINATOR",
    # Index
    "TypeIndex",
    "walk",
    "nodes",
]
