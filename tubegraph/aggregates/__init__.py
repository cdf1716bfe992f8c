"""
tubegraph aggregates

High-level views assembled from one or more pages:

- Feed: a page and its continuation
- KidsChannel: channel page of the kids client
- TrackInfo: player + watch-next pages of a music track
"""

from .feed import Feed
from .kids_channel import KidsChannel
from .track_info import BasicInfo, TrackInfo

__all__ = [
    "Feed",
    "KidsChannel",
    "TrackInfo",
    "BasicInfo",
]
