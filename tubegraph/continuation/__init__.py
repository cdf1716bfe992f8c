"""
tubegraph continuation

Resuming multi-page result sets:

- token: where continuation tokens live in raw documents
- cursor: the FRESH -> FETCHED -> EXHAUSTED pager
- fallback: owner-side substitution of alternate collections
"""

from .cursor import ContinuationCursor, CursorState, PageFetcher
from .fallback import PRIMARY, FallbackChain, FallbackOutcome, FallbackStep
from .token import (
    DEFAULT_TOKEN_PATHS,
    NEXT_CONTINUATION,
    RELOAD_CONTINUATION,
    TokenPath,
    extract_shelf_continuation,
    extract_token,
    resolve_path,
)

__all__ = [
    # Cursor
    "ContinuationCursor",
    "CursorState",
    "PageFetcher",
    # Fallback
    "FallbackChain",
    "FallbackOutcome",
    "FallbackStep",
    "PRIMARY",
    # Tokens
    "TokenPath",
    "DEFAULT_TOKEN_PATHS",
    "NEXT_CONTINUATION",
    "RELOAD_CONTINUATION",
    "extract_token",
    "extract_shelf_continuation",
    "resolve_path",
]
