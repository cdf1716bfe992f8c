"""
Transport Protocol for tubegraph.

The core never talks to the network itself. It consumes a Transport that
turns (endpoint, params, continuation token) into a raw document, and
relies on it to tell two failure kinds apart:

- TransportError: the call itself failed; the caller may retry
- ServiceError: the call succeeded but the document encodes an error
  status (e.g. the resource is unavailable); never retryable

``raise_for_service_error`` holds the document-level checks so every
Transport implementation reports service errors the same way.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tubegraph.errors import ServiceError

if TYPE_CHECKING:
    import httpx

    from .endpoints import Endpoint


@runtime_checkable
class Transport(Protocol):
    """
    Fetches raw documents for endpoints.

    Example implementations:
    - HttpTransport (httpx, the real service)
    - test doubles returning canned documents

    Example usage:
        transport = HttpTransport(TransportConfig(base_url="https://..."))
        document = await transport.fetch(BROWSE, {"browseId": "UC..."})
    """

    async def fetch(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any],
        continuation: str | None = None,
    ) -> dict[str, Any]:
        """
        Fetch one raw document.

        Args:
            endpoint: Remote operation to call
            params: Request parameters
            continuation: Continuation token of the page to fetch

        Returns:
            The raw document

        Raises:
            TransportError: Network failure, timeout or HTTP error status
            ServiceError: The document encodes an error status
        """
        ...


@runtime_checkable
class StatsTransport(Protocol):
    """
    A transport that can also send playback stats pings.

    Stats pings are plain GETs to absolute URLs handed out by the player
    page (e.g. playbackTracking.videostatsPlaybackUrl).
    """

    async def stats(self, url: str, params: Mapping[str, Any]) -> httpx.Response:
        """
        Send one stats ping.

        Raises:
            TransportError: Network failure or HTTP error status
        """
        ...


def raise_for_service_error(document: Mapping[str, Any]) -> None:
    """
    Raise ServiceError if a document encodes an error status.

    Recognized forms:
        {"error": {"code": 404, "status": "NOT_FOUND", "message": "..."}}
        {"playabilityStatus": {"status": "ERROR", "reason": "..."}}
    """
    error = document.get("error")
    if isinstance(error, Mapping):
        raise ServiceError(
            error.get("message") or "Service reported an error",
            status=str(error.get("status") or error.get("code") or "ERROR"),
            info=dict(error),
        )

    playability = document.get("playabilityStatus")
    if isinstance(playability, Mapping) and playability.get("status") == "ERROR":
        reason = playability.get("reason")
        raise ServiceError(
            "Resource is not playable",
            status="ERROR",
            reason=reason,
            info=dict(playability),
        )
