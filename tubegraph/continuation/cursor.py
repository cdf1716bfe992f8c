"""
Continuation cursor.

Stateful wrapper over a page fetcher and the last continuation token.

State machine:
    FRESH      holds an initial token (or none, meaning "fetch the first page")
    FETCHED    holds the last page and the token extracted from it
    EXHAUSTED  the last page carried no token; advance() raises EndOfSequenceError

Transitions only happen inside advance(), and only after the fetch has
completed. A failed or cancelled fetch leaves the cursor exactly as it was,
so the same advance can be retried.

The cursor knows nothing about fallbacks: one token in, one page and token
out. Owners apply fallback policies (see fallback.py) when a page turns
out to be empty.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

from tubegraph.errors import ConcurrentAdvanceError, EndOfSequenceError

if TYPE_CHECKING:
    from tubegraph.page import ResponsePage

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str | None], Awaitable["ResponsePage"]]


class CursorState(str, Enum):
    """Lifecycle state of a ContinuationCursor."""

    FRESH = "fresh"
    FETCHED = "fetched"
    EXHAUSTED = "exhausted"


class ContinuationCursor:
    """
    Sequential pager over a continuation-token result set.

    Example:
        cursor = session.cursor(BROWSE, token=channel.contents.continuation)
        while cursor.has_more():
            page = await cursor.advance()
            ...

        # Or
        async for page in cursor.pages():
            ...
    """

    def __init__(
        self,
        fetch: PageFetcher,
        token: str | None = None,
        *,
        name: str = "cursor",
    ) -> None:
        """
        Initialize a fresh cursor.

        Args:
            fetch: Coroutine function fetching the page for a token
            token: Initial token (None fetches the first page)
            name: Label used in log messages
        """
        self._fetch = fetch
        self._token = token
        self._name = name
        self._state = CursorState.FRESH
        self._page: ResponsePage | None = None
        self._pages_fetched = 0
        self._in_flight = False

    @classmethod
    def from_page(
        cls,
        page: ResponsePage,
        fetch: PageFetcher,
        *,
        name: str = "cursor",
    ) -> ContinuationCursor:
        """
        Create a cursor positioned after an already fetched page.

        The cursor starts FETCHED, or EXHAUSTED if the page has no token.
        """
        cursor = cls(fetch, name=name)
        cursor._commit(page)
        return cursor

    @classmethod
    def exhausted(
        cls,
        fetch: PageFetcher,
        page: ResponsePage | None = None,
        *,
        name: str = "cursor",
    ) -> ContinuationCursor:
        """Create a cursor with nothing left to fetch (its collection carried no token)."""
        cursor = cls(fetch, name=name)
        cursor._page = page
        cursor._pages_fetched = 1 if page is not None else 0
        cursor._state = CursorState.EXHAUSTED
        return cursor

    # ==================== State ====================

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def token(self) -> str | None:
        """Token the next advance() will send."""
        return self._token

    @property
    def page(self) -> ResponsePage | None:
        """Last page produced by this cursor."""
        return self._page

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    @property
    def is_advancing(self) -> bool:
        return self._in_flight

    def has_more(self) -> bool:
        """Whether another advance() can produce a page."""
        return self._state is not CursorState.EXHAUSTED

    # ==================== Advancing ====================

    async def advance(self) -> ResponsePage:
        """
        Fetch the next page.

        Returns:
            The new page

        Raises:
            EndOfSequenceError: If the cursor is exhausted
            ConcurrentAdvanceError: If another advance() has not resolved yet
            TransportError / ServiceError: Passed through from the fetcher unchanged
        """
        if self._state is CursorState.EXHAUSTED:
            raise EndOfSequenceError(
                f"[{self._name}] No more pages to fetch",
                pages_fetched=self._pages_fetched,
            )
        if self._in_flight:
            raise ConcurrentAdvanceError(
                f"[{self._name}] advance() called while a previous advance is in flight"
            )

        logger.debug(
            f"[{self._name}] Advancing from {self._state.value} "
            f"(token={'yes' if self._token else 'no'})"
        )

        self._in_flight = True
        try:
            page = await self._fetch(self._token)
        finally:
            self._in_flight = False

        self._commit(page)
        return page

    async def pages(self) -> AsyncIterator[ResponsePage]:
        """Advance until exhausted, yielding every page."""
        while self.has_more():
            yield await self.advance()

    def _commit(self, page: ResponsePage) -> None:
        sent = self._token
        self._page = page
        self._pages_fetched += 1
        self._token = page.continuation

        if self._token is not None and self._token == sent:
            # A page handing back the token it was fetched with would loop forever
            logger.warning(f"[{self._name}] Continuation token repeated; treating as final page")
            self._token = None

        self._state = CursorState.FETCHED if self._token else CursorState.EXHAUSTED
        logger.debug(
            f"[{self._name}] Page {self._pages_fetched} committed, state={self._state.value}"
        )

    def __repr__(self) -> str:
        return (
            f"<ContinuationCursor name={self._name} state={self._state.value} "
            f"pages={self._pages_fetched}>"
        )
