"""Kids channel aggregate."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tubegraph.errors import EndOfSequenceError
from tubegraph.parser.node import Node
from tubegraph.parser.nodes.sections import C4TabbedHeader, ItemSection, ItemSectionContinuation
from tubegraph.transport.endpoints import BROWSE

from .feed import Feed

if TYPE_CHECKING:
    from tubegraph.continuation.cursor import ContinuationCursor
    from tubegraph.page import ResponsePage
    from tubegraph.session import Session

KIDS_CLIENT_PARAMS: Mapping[str, Any] = {"client": "YTKIDS"}


class KidsChannel(Feed):
    """
    A channel page of the kids client.

    The first page carries an ItemSection; every continuation page carries
    an ItemSectionContinuation instead. Both keep their own token.
    """

    def __init__(
        self,
        session: Session,
        page: ResponsePage,
        *,
        params: Mapping[str, Any] | None = None,
    ):
        super().__init__(session, page, endpoint=BROWSE, params=params or KIDS_CLIENT_PARAMS)

        header = page.header
        self.header: C4TabbedHeader | None = (
            header.as_type(C4TabbedHeader) if isinstance(header, Node) else None
        )

        contents = self.memo.first_of(ItemSection)
        if contents is None and isinstance(page.continuation_contents, Node):
            contents = page.continuation_contents.as_type(ItemSectionContinuation)
        self.contents: ItemSection | ItemSectionContinuation | None = contents

    @property
    def continuation(self) -> str | None:
        return self.contents.continuation if self.contents else None

    def cursor(self) -> ContinuationCursor:
        """
        Cursor over the continuation pages, seeded with the section token.

        Without a section token the cursor starts EXHAUSTED; a tokenless
        browse request would not continue this channel.
        """
        if self.continuation is None:
            return self.session.exhausted_cursor(
                self.page, self.endpoint, self.params, name="kids_channel"
            )
        return self.session.cursor(
            self.endpoint, self.params, token=self.continuation, name="kids_channel"
        )

    async def get_continuation(self) -> KidsChannel:
        """
        Fetch the next batch of videos.

        Raises:
            EndOfSequenceError: If the channel has no more videos
        """
        if not self.has_continuation:
            raise EndOfSequenceError("[KidsChannel] No more videos to fetch")
        page = await self.get_continuation_page()
        return KidsChannel(self.session, page, params=self.params)
