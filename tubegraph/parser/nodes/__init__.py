"""
Built-in node catalogue.

Importing this package registers every schema below in the default
registry. Each schema is a plain field projection of one discriminator.
"""

from .analytics import AnalyticsShortsCarouselCard, ShortsCarouselEntry
from .buttons import Button, CallToActionButton
from .music import (
    AutomixPreviewVideo,
    MusicCarouselShelf,
    MusicDescriptionShelf,
    MusicQueue,
    MusicResponsiveListItem,
    MusicShelf,
    PlaylistPanel,
    PlaylistPanelVideo,
    SingleColumnMusicWatchNextResults,
    Tab,
    WatchNextTabbedResults,
)
from .player import (
    Endscreen,
    EndscreenElement,
    MicroformatData,
    PlayerLiveStoryboardSpec,
    PlayerOverlay,
    PlayerStoryboardSpec,
    StoryboardLevel,
)
from .sections import (
    C4TabbedHeader,
    ItemSection,
    ItemSectionContinuation,
    ItemSectionTab,
    ItemSectionTabbedHeader,
    Message,
    SearchSuggestionsSection,
    SectionList,
)

__all__ = [
    # Analytics
    "AnalyticsShortsCarouselCard",
    "ShortsCarouselEntry",
    # Buttons
    "Button",
    "CallToActionButton",
    # Music
    "AutomixPreviewVideo",
    "MusicCarouselShelf",
    "MusicDescriptionShelf",
    "MusicQueue",
    "MusicResponsiveListItem",
    "MusicShelf",
    "PlaylistPanel",
    "PlaylistPanelVideo",
    "SingleColumnMusicWatchNextResults",
    "Tab",
    "WatchNextTabbedResults",
    # Player
    "Endscreen",
    "EndscreenElement",
    "MicroformatData",
    "PlayerLiveStoryboardSpec",
    "PlayerOverlay",
    "PlayerStoryboardSpec",
    "StoryboardLevel",
    # Sections
    "C4TabbedHeader",
    "ItemSection",
    "ItemSectionContinuation",
    "ItemSectionTab",
    "ItemSectionTabbedHeader",
    "Message",
    "SearchSuggestionsSection",
    "SectionList",
]
