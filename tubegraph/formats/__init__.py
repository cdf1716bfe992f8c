"""
tubegraph formats

Resource variants and what can be done with them:

- variant: pydantic schemas for streaming data
- selector: deterministic format choice under constraints
- manifest: DASH MPD emission
- download: ranged byte streaming over httpx
"""

from .download import DEFAULT_CHUNK_SIZE, DownloadOptions, MediaDownloader
from .manifest import ManifestEmitter, ManifestOptions, emit_dash_manifest
from .selector import (
    QUALITY_BEST,
    QUALITY_EFFICIENT,
    FormatConstraints,
    choose_format,
    filter_formats,
    rank_formats,
    satisfies,
)
from .variant import (
    AUDIO_QUALITY_RANKS,
    AudioTrack,
    ByteRange,
    MediaKind,
    ResourceVariant,
    StreamingData,
)

__all__ = [
    # Variants
    "AudioTrack",
    "ByteRange",
    "MediaKind",
    "ResourceVariant",
    "StreamingData",
    "AUDIO_QUALITY_RANKS",
    # Selection
    "FormatConstraints",
    "choose_format",
    "filter_formats",
    "rank_formats",
    "satisfies",
    "QUALITY_BEST",
    "QUALITY_EFFICIENT",
    # Manifest
    "ManifestEmitter",
    "ManifestOptions",
    "emit_dash_manifest",
    # Download
    "DownloadOptions",
    "MediaDownloader",
    "DEFAULT_CHUNK_SIZE",
]
