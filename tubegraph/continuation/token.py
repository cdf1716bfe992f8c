"""
Continuation token extraction.

A continuation token is an opaque string stored at an endpoint-specific
location inside a page's raw document. Locations are expressed as
token paths: tuples of mapping keys and sequence indices (negative
indices count from the end). Absence at every known path means the
result set is final.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

TokenPath = tuple[str | int, ...]

# Shelf-style continuations (MusicShelf, ItemSection, PlaylistPanel)
NEXT_CONTINUATION: TokenPath = ("continuations", 0, "nextContinuationData", "continuation")
RELOAD_CONTINUATION: TokenPath = ("continuations", 0, "reloadContinuationData", "continuation")

DEFAULT_TOKEN_PATHS: tuple[TokenPath, ...] = (
    ("continuation",),
    ("continuationContents", "continuation"),
    ("continuationContents", *NEXT_CONTINUATION),
    ("contents", "continuation"),
    ("contents", *NEXT_CONTINUATION),
    NEXT_CONTINUATION,
    RELOAD_CONTINUATION,
    (
        "onResponseReceivedActions",
        0,
        "appendContinuationItemsAction",
        "continuationItems",
        -1,
        "continuationEndpoint",
        "continuationCommand",
        "token",
    ),
)


def resolve_path(document: Any, path: TokenPath) -> Any:
    """
    Follow a path through nested mappings and sequences.

    Returns:
        The value at the path, or None if any step is missing
    """
    current = document
    for step in path:
        if isinstance(step, int):
            if isinstance(current, Sequence) and not isinstance(current, str | bytes):
                if -len(current) <= step < len(current):
                    current = current[step]
                    continue
            return None
        if isinstance(current, Mapping) and step in current:
            current = current[step]
            continue
        return None
    return current


def extract_token(
    document: Any,
    paths: Sequence[TokenPath] = DEFAULT_TOKEN_PATHS,
) -> str | None:
    """
    Extract the continuation token from a raw document.

    Args:
        document: Raw page document
        paths: Candidate locations, tried in order

    Returns:
        The first non-empty string found, or None if the result set is final
    """
    for path in paths:
        value = resolve_path(document, path)
        if isinstance(value, str) and value:
            return value
    return None


def extract_shelf_continuation(data: Mapping[str, Any]) -> str | None:
    """Read the next/reload continuation a shelf-like node carries."""
    return extract_token(data, (NEXT_CONTINUATION, RELOAD_CONTINUATION))
