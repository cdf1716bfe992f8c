"""
Feed: a fetched page plus the means to keep paginating it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tubegraph.errors import EndOfSequenceError
from tubegraph.parser.memo import TypeIndex
from tubegraph.parser.node import Node, NodeSequence
from tubegraph.transport.endpoints import BROWSE, Endpoint

if TYPE_CHECKING:
    from tubegraph.continuation.cursor import ContinuationCursor
    from tubegraph.page import ResponsePage
    from tubegraph.session import Session

logger = logging.getLogger(__name__)


class Feed:
    """
    Base aggregate over one ResponsePage.

    Subclasses pick the nodes they care about out of ``memo`` and decide
    which token continues them; by default that is the page token.
    """

    def __init__(
        self,
        session: Session,
        page: ResponsePage,
        *,
        endpoint: Endpoint = BROWSE,
        params: Mapping[str, Any] | None = None,
    ):
        self.session = session
        self.page = page
        self.endpoint = endpoint
        self.params = dict(params or {})
        self.contents: Node | NodeSequence | None = page.contents

    @property
    def memo(self) -> TypeIndex:
        return self.page.memo

    @property
    def continuation(self) -> str | None:
        """Token that continues this feed."""
        return self.page.continuation

    @property
    def has_continuation(self) -> bool:
        return self.continuation is not None

    def cursor(self) -> ContinuationCursor:
        """Cursor positioned after this feed's page."""
        return self.session.cursor_from(self.page, self.endpoint, self.params)

    async def get_continuation_page(self) -> ResponsePage:
        """
        Fetch the page that continues this feed.

        Raises:
            EndOfSequenceError: If there is nothing to continue
        """
        token = self.continuation
        if token is None:
            raise EndOfSequenceError(f"[{type(self).__name__}] No continuation available")
        logger.debug(f"[feed] Continuing {type(self).__name__} via {self.endpoint.path}")
        return await self.session.fetch(self.endpoint, self.params, continuation=token)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} page={self.page.page_id[:8]} continuation={self.has_continuation}>"
