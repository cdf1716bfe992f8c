"""
tubegraph - typed graphs, continuations and formats for a video/music service API.

tubegraph turns the service's polymorphic JSON documents into immutable,
typed node graphs and builds the higher-level workflows on top of them:

- **Graph construction**: discriminator-tag dispatch through a TypeRegistry,
  with a passthrough fallback for tags nobody registered
- **Type index**: memoized "every node of variant V under this subtree" queries
- **Continuations**: an explicit FRESH / FETCHED / EXHAUSTED cursor, plus
  owner-side fallback chains across alternate collections
- **Formats**: deterministic variant selection, DASH manifests and ranged downloads
- **Aggregates**: TrackInfo and KidsChannel views over fetched pages

Quick Start:
    >>> from tubegraph import ClientSettings, Session
    >>>
    >>> async with Session.from_settings(ClientSettings.from_env()) as session:
    ...     info = await session.get_track_info("dQw4w9WgXcQ")
    ...     audio = info.choose_format({"mediaKind": "audio"})
    ...     queue = await info.get_up_next()
"""

__version__ = "0.1.0"

from tubegraph.aggregates import BasicInfo, Feed, KidsChannel, TrackInfo
from tubegraph.config import ClientSettings
from tubegraph.continuation import ContinuationCursor, CursorState, FallbackChain, FallbackStep
from tubegraph.errors import (
    ConcurrentAdvanceError,
    EndOfSequenceError,
    LocatorError,
    MalformedDocumentError,
    NoMatchingFormatError,
    RegistryError,
    ServiceError,
    TransportError,
    TubeGraphError,
    VariantMismatchError,
)
from tubegraph.formats import (
    FormatConstraints,
    ManifestEmitter,
    ManifestOptions,
    MediaDownloader,
    MediaKind,
    ResourceVariant,
    StreamingData,
    choose_format,
)
from tubegraph.page import ResponsePage
from tubegraph.parser import (
    GraphBuilder,
    Node,
    NodeSequence,
    PassthroughNode,
    TypeIndex,
    TypeRegistry,
    register_node,
)
from tubegraph.session import Session
from tubegraph.transport import HttpTransport, Transport, TransportConfig

__all__ = [
    # Version info
    "__version__",
    # Graph
    "Node",
    "NodeSequence",
    "PassthroughNode",
    "TypeRegistry",
    "GraphBuilder",
    "TypeIndex",
    "register_node",
    "ResponsePage",
    # Continuations
    "ContinuationCursor",
    "CursorState",
    "FallbackChain",
    "FallbackStep",
    # Formats
    "ResourceVariant",
    "StreamingData",
    "MediaKind",
    "FormatConstraints",
    "choose_format",
    "ManifestEmitter",
    "ManifestOptions",
    "MediaDownloader",
    # Transport and session
    "Transport",
    "HttpTransport",
    "TransportConfig",
    "ClientSettings",
    "Session",
    # Aggregates
    "Feed",
    "KidsChannel",
    "TrackInfo",
    "BasicInfo",
    # Errors
    "TubeGraphError",
    "MalformedDocumentError",
    "VariantMismatchError",
    "RegistryError",
    "EndOfSequenceError",
    "ConcurrentAdvanceError",
    "NoMatchingFormatError",
    "LocatorError",
    "TransportError",
    "ServiceError",
]
