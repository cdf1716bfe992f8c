"""
Navigation endpoints.

A navigation endpoint is the recipe a node carries for "what happens when
this is clicked": which remote operation to call and with which payload.
Like Text it is a value, not an indexed node.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from tubegraph.errors import TubeGraphError
from tubegraph.transport.endpoints import Endpoint, endpoint_for_key

if TYPE_CHECKING:
    from tubegraph.page import ResponsePage
    from tubegraph.session import Session

logger = logging.getLogger(__name__)

# Keys that sit beside the endpoint payload but are not the endpoint itself
_METADATA_KEYS = frozenset({"clickTrackingParams", "commandMetadata", "loggingUrls"})


@dataclass(frozen=True, slots=True)
class NavigationEndpoint:
    """A callable reference to another page."""

    key: str | None = None
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    api_url: str | None = None

    @classmethod
    def from_raw(cls, data: Mapping[str, Any] | None) -> NavigationEndpoint:
        if not data:
            return cls()
        key = next((k for k in data if k not in _METADATA_KEYS), None)
        payload = data.get(key) if key else None
        api_url = (
            data.get("commandMetadata", {}).get("webCommandMetadata", {}).get("apiUrl")
        )
        return cls(
            key=key,
            payload=MappingProxyType(dict(payload)) if isinstance(payload, Mapping) else MappingProxyType({}),
            api_url=api_url,
        )

    @property
    def endpoint(self) -> Endpoint | None:
        return endpoint_for_key(self.key) if self.key else None

    @property
    def page_type(self) -> str | None:
        """Music page type of a browse endpoint, if declared."""
        configs = self.payload.get("browseEndpointContextSupportedConfigs") or {}
        music = configs.get("browseEndpointContextMusicConfig") or {}
        return music.get("pageType")

    @property
    def is_empty(self) -> bool:
        return self.key is None

    async def call(self, session: Session, **params: Any) -> ResponsePage:
        """
        Fetch the page this endpoint points at.

        Args:
            session: Session used to fetch and build the page
            **params: Extra request params, merged over the payload

        Raises:
            TubeGraphError: If the endpoint kind cannot be called
        """
        endpoint = self.endpoint
        if endpoint is None:
            raise TubeGraphError(f"Endpoint '{self.key}' cannot be called", info=self)

        if self.key == "continuationCommand":
            logger.debug(f"[endpoint] Following continuation command via {endpoint.path}")
            return await session.fetch(endpoint, params, continuation=self.payload.get("token"))

        logger.debug(f"[endpoint] Calling {self.key} via {endpoint.path}")
        return await session.fetch(endpoint, {**self.payload, **params})
