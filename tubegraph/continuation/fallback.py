"""
Fallback chains across differently shaped collections.

When a primary collection yields nothing usable, an owner may substitute
an alternate linked collection (e.g. the automix queue behind an empty
"Up next" panel) and resume pagination from there.

This is a policy applied by the cursor's owner, not by the cursor: each
step opens a new cursor seeded from the alternate collection, advances it
once, and extracts the value it is looking for from the resulting page.

Usage:
    chain = FallbackChain(
        [
            FallbackStep(
                name="automix",
                open_cursor=lambda panel: session.cursor(automix_endpoint, params),
                extract=lambda page: page.memo.first_of(PlaylistPanel),
            ),
        ],
        is_usable=lambda panel: panel.playlist_id is not None,
    )
    outcome = await chain.resolve(panel)
    if outcome.exhausted:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from tubegraph.page import ResponsePage

    from .cursor import ContinuationCursor

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRIMARY = "primary"


@dataclass(frozen=True)
class FallbackStep(Generic[T]):
    """
    One alternate collection to try.

    Attributes:
        name: Label reported in the outcome and logs
        open_cursor: Builds a cursor seeded from the alternate collection,
            given the rejected value (None to skip this step)
        extract: Pulls the wanted value out of the alternate's first page
        accept: Whether an extracted value is usable (any non-None value if None)
    """

    name: str
    open_cursor: Callable[[T | None], ContinuationCursor | None]
    extract: Callable[[ResponsePage], T | None]
    accept: Callable[[T], bool] | None = None

    def accepts(self, value: T | None) -> bool:
        if value is None:
            return False
        return self.accept is None or self.accept(value)


@dataclass(frozen=True)
class FallbackOutcome(Generic[T]):
    """
    Result of resolving a fallback chain.

    ``cursor`` is positioned after the page the value came from, so the
    caller can keep paginating the collection that produced it.
    """

    value: T | None
    source: str | None = None
    cursor: ContinuationCursor | None = None

    @property
    def exhausted(self) -> bool:
        """True when neither the primary nor any alternate was usable."""
        return self.value is None

    @property
    def used_fallback(self) -> bool:
        return self.source not in (None, PRIMARY)


class FallbackChain(Generic[T]):
    """Ordered fallback policy over alternate collections."""

    def __init__(
        self,
        steps: Sequence[FallbackStep[T]],
        *,
        is_usable: Callable[[T], bool] | None = None,
    ) -> None:
        """
        Args:
            steps: Alternates, tried in order
            is_usable: Test applied to the primary value only; each step
                judges its own values through FallbackStep.accept
        """
        self._steps = tuple(steps)
        self._is_usable = is_usable or (lambda value: True)

    @property
    def steps(self) -> tuple[FallbackStep[T], ...]:
        return self._steps

    def usable(self, value: T | None) -> bool:
        return value is not None and self._is_usable(value)

    async def resolve(
        self,
        primary: T | None,
        *,
        cursor: ContinuationCursor | None = None,
    ) -> FallbackOutcome[T]:
        """
        Return the primary value if usable, else the first usable alternate.

        Args:
            primary: Value produced by the primary collection (None if empty)
            cursor: Cursor of the primary collection, returned untouched if it wins

        Returns:
            FallbackOutcome; ``exhausted`` when nothing was usable

        Raises:
            Whatever the alternate fetches raise (transport/service errors are not swallowed)
        """
        if self.usable(primary):
            return FallbackOutcome(value=primary, source=PRIMARY, cursor=cursor)

        for step in self._steps:
            alternate = step.open_cursor(primary)
            if alternate is None or not alternate.has_more():
                logger.debug(f"[fallback] Step '{step.name}' has no collection to open, skipping")
                continue

            logger.info(f"[fallback] Primary collection unusable, trying '{step.name}'")
            page = await alternate.advance()
            value = step.extract(page)
            if step.accepts(value):
                return FallbackOutcome(value=value, source=step.name, cursor=alternate)

            logger.debug(f"[fallback] Step '{step.name}' produced nothing usable")

        logger.info("[fallback] All fallback steps exhausted")
        return FallbackOutcome(value=None)
