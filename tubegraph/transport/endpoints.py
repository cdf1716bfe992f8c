"""
Endpoint descriptors.

An Endpoint names a remote operation and knows where its pages keep their
continuation token. Request bodies are built by the Transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tubegraph.continuation.token import DEFAULT_TOKEN_PATHS, TokenPath


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A remote operation and the token paths of its responses."""

    path: str
    token_paths: tuple[TokenPath, ...] = DEFAULT_TOKEN_PATHS
    default_params: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def name(self) -> str:
        return self.path.strip("/")

    def with_params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        """Merge call params over the endpoint defaults."""
        return {**self.default_params, **(params or {})}


BROWSE = Endpoint("/browse")
RADIO_CONTINUATION: TokenPath = ("continuations", 0, "nextRadioContinuationData", "continuation")

# Watch-next pages keep the queue token on the PlaylistPanel inside the first tab
NEXT = Endpoint(
    "/next",
    token_paths=(
        ("contents", "contents", "tabs", 0, "content", "content", *RADIO_CONTINUATION),
        ("continuationContents", *RADIO_CONTINUATION),
        *DEFAULT_TOKEN_PATHS,
    ),
)
PLAYER = Endpoint("/player", token_paths=())
SEARCH = Endpoint("/search")
GET_SEARCH_SUGGESTIONS = Endpoint("/music/get_search_suggestions", token_paths=())

# Raw endpoint key (as found in a navigationEndpoint) -> Endpoint
ENDPOINTS_BY_KEY: dict[str, Endpoint] = {
    "browseEndpoint": BROWSE,
    "watchEndpoint": NEXT,
    "watchPlaylistEndpoint": NEXT,
    "searchEndpoint": SEARCH,
    "continuationCommand": BROWSE,
}


def endpoint_for_key(key: str) -> Endpoint | None:
    """Look up the Endpoint for a raw navigation endpoint key."""
    return ENDPOINTS_BY_KEY.get(key)
