"""
Pydantic schemas for encoded resource variants.

A resource (one video or track) is offered as several encoded variants,
each with its own codec, container, bitrate and quality. Variants are
parsed once from the streaming data of a player page and never change
afterwards, so the models are frozen.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tubegraph.errors import LocatorError

# =============================================================================
# Enums
# =============================================================================


class MediaKind(str, Enum):
    """What a variant carries."""

    AUDIO = "audio"
    VIDEO = "video"
    COMBINED = "combined"

    @classmethod
    def from_string(cls, value: str) -> MediaKind:
        """Convert string to kind, accepting the 'video+audio' spelling."""
        value = value.lower().strip()
        if value in ("video+audio", "audio+video", "both", "muxed"):
            return cls.COMBINED
        return cls(value)


# Ordinal of each audio quality tier, higher is better
AUDIO_QUALITY_RANKS: dict[str, int] = {
    "AUDIO_QUALITY_ULTRALOW": 1,
    "AUDIO_QUALITY_LOW": 2,
    "AUDIO_QUALITY_MEDIUM": 3,
    "AUDIO_QUALITY_HIGH": 4,
}

# Friendly codec names -> codec string prefixes used in mime types
CODEC_ALIASES: dict[str, tuple[str, ...]] = {
    "av1": ("av01", "av1"),
    "h264": ("avc1",),
    "avc": ("avc1",),
    "vp9": ("vp09", "vp9"),
    "aac": ("mp4a",),
    "opus": ("opus",),
}

_MIME_PATTERN = re.compile(r'^(?P<type>[\w-]+)/(?P<subtype>[\w.+-]+)(?:;\s*codecs="(?P<codecs>[^"]*)")?')


# =============================================================================
# Nested schemas
# =============================================================================


class ByteRange(BaseModel):
    """Inclusive byte range inside a variant's file."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class AudioTrack(BaseModel):
    """Audio track descriptor for multi-language resources."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    display_name: str | None = Field(None, alias="displayName")
    audio_is_default: bool = Field(False, alias="audioIsDefault")

    @property
    def language(self) -> str:
        # Track ids look like "en.4" or "de-DE.3"
        return self.id.split(".", 1)[0]


# =============================================================================
# Variant
# =============================================================================


class ResourceVariant(BaseModel):
    """One encoded rendition of a playable resource."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    itag: int
    mime_type: str = Field(..., alias="mimeType")
    bitrate: int = Field(0, ge=0)
    average_bitrate: int | None = Field(None, alias="averageBitrate")
    width: int | None = None
    height: int | None = None
    fps: int | None = None
    quality: str | None = None
    quality_label: str | None = Field(None, alias="qualityLabel")
    audio_quality: str | None = Field(None, alias="audioQuality")
    audio_sample_rate: int | None = Field(None, alias="audioSampleRate")
    audio_channels: int | None = Field(None, alias="audioChannels")
    content_length: int | None = Field(None, alias="contentLength")
    approx_duration_ms: int | None = Field(None, alias="approxDurationMs")
    last_modified: str | None = Field(None, alias="lastModified")
    init_range: ByteRange | None = Field(None, alias="initRange")
    index_range: ByteRange | None = Field(None, alias="indexRange")
    url: str | None = None
    signature_cipher: str | None = Field(None, alias="signatureCipher")
    audio_track: AudioTrack | None = Field(None, alias="audioTrack")

    @field_validator("mime_type")
    @classmethod
    def _validate_mime(cls, value: str) -> str:
        if not _MIME_PATTERN.match(value):
            raise ValueError(f"Unrecognized mime type: {value!r}")
        return value

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> ResourceVariant:
        """Parse a raw streaming-data entry (``cipher`` is accepted for ``signatureCipher``)."""
        if "signatureCipher" not in data and "cipher" in data:
            data = {**data, "signatureCipher": data["cipher"]}
        return cls.model_validate(data)

    # ==================== Derived attributes ====================

    @property
    def mime_base(self) -> str:
        """Mime type without parameters, e.g. 'video/webm'."""
        match = _MIME_PATTERN.match(self.mime_type)
        assert match is not None
        return f"{match['type']}/{match['subtype']}"

    @property
    def container(self) -> str:
        """Container identifier, e.g. 'mp4' or 'webm'."""
        return self.mime_base.split("/", 1)[1]

    @property
    def codecs(self) -> tuple[str, ...]:
        match = _MIME_PATTERN.match(self.mime_type)
        raw = match["codecs"] if match else None
        if not raw:
            return ()
        return tuple(codec.strip() for codec in raw.split(",") if codec.strip())

    @property
    def codec(self) -> str | None:
        """Primary codec identifier."""
        codecs = self.codecs
        return codecs[0] if codecs else None

    @property
    def media_kind(self) -> MediaKind:
        if self.mime_base.startswith("audio/"):
            return MediaKind.AUDIO
        if len(self.codecs) > 1 or self.audio_quality is not None:
            return MediaKind.COMBINED
        return MediaKind.VIDEO

    @property
    def has_audio(self) -> bool:
        return self.media_kind in (MediaKind.AUDIO, MediaKind.COMBINED)

    @property
    def has_video(self) -> bool:
        return self.media_kind in (MediaKind.VIDEO, MediaKind.COMBINED)

    @property
    def language(self) -> str | None:
        return self.audio_track.language if self.audio_track else None

    @property
    def is_original_audio(self) -> bool:
        """True unless this is a non-default dubbed track."""
        return self.audio_track is None or self.audio_track.audio_is_default

    @property
    def quality_rank(self) -> int:
        """
        Numeric quality tier used for ranking.

        Vertical resolution for anything with video, audio tier otherwise.
        """
        if self.has_video:
            return self.height or _label_height(self.quality_label) or 0
        return AUDIO_QUALITY_RANKS.get(self.audio_quality or "", 0)

    @property
    def is_adaptive(self) -> bool:
        """Whether the variant can be described by a segment-base manifest."""
        return self.init_range is not None and self.index_range is not None

    def matches_codec(self, codec: str) -> bool:
        """Prefix match against any of this variant's codecs, honouring aliases."""
        wanted = CODEC_ALIASES.get(codec.lower(), (codec.lower(),))
        return any(c.lower().startswith(prefix) for c in self.codecs for prefix in wanted)

    # ==================== Locator ====================

    def resolve_url(self, decipher: Callable[[str], str] | None = None) -> str:
        """
        Return the playable URL.

        Args:
            decipher: Hook turning a signature cipher into a URL (external collaborator)

        Raises:
            LocatorError: If the variant only has a cipher and no hook was given
        """
        if self.url:
            return self.url
        if self.signature_cipher:
            if decipher is None:
                raise LocatorError(
                    f"Format {self.itag} requires deciphering but no decipher hook was given",
                    info=self.itag,
                )
            return decipher(self.signature_cipher)
        raise LocatorError(f"Format {self.itag} has no locator", info=self.itag)


def _label_height(label: str | None) -> int | None:
    if not label:
        return None
    match = re.match(r"^(\d+)p", label)
    return int(match.group(1)) if match else None


# =============================================================================
# Streaming data
# =============================================================================


class StreamingData(BaseModel):
    """Variant lists of one resource, as found on a player page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    expires_in_seconds: int | None = Field(None, alias="expiresInSeconds")
    formats: tuple[ResourceVariant, ...] = ()
    adaptive_formats: tuple[ResourceVariant, ...] = Field((), alias="adaptiveFormats")
    dash_manifest_url: str | None = Field(None, alias="dashManifestUrl")
    hls_manifest_url: str | None = Field(None, alias="hlsManifestUrl")

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> StreamingData:
        return cls(
            expires_in_seconds=data.get("expiresInSeconds"),
            formats=tuple(ResourceVariant.from_raw(f) for f in data.get("formats") or ()),
            adaptive_formats=tuple(
                ResourceVariant.from_raw(f) for f in data.get("adaptiveFormats") or ()
            ),
            dash_manifest_url=data.get("dashManifestUrl"),
            hls_manifest_url=data.get("hlsManifestUrl"),
        )

    @property
    def variants(self) -> tuple[ResourceVariant, ...]:
        """Muxed formats followed by adaptive formats."""
        return self.formats + self.adaptive_formats
