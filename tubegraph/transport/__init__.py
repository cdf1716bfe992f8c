"""
tubegraph transport

How raw documents are fetched:

- endpoints: remote operations and their continuation token paths
- protocol: the Transport interface and service-error detection
- http: httpx implementation with retry and backoff
"""

from .endpoints import (
    BROWSE,
    ENDPOINTS_BY_KEY,
    GET_SEARCH_SUGGESTIONS,
    NEXT,
    PLAYER,
    SEARCH,
    Endpoint,
    endpoint_for_key,
)
from .http import HttpTransport, TransportConfig
from .protocol import StatsTransport, Transport, raise_for_service_error

__all__ = [
    # Protocol
    "Transport",
    "StatsTransport",
    "raise_for_service_error",
    # HTTP
    "HttpTransport",
    "TransportConfig",
    # Endpoints
    "Endpoint",
    "BROWSE",
    "NEXT",
    "PLAYER",
    "SEARCH",
    "GET_SEARCH_SUGGESTIONS",
    "ENDPOINTS_BY_KEY",
    "endpoint_for_key",
]
