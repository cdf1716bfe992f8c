"""
DASH manifest emission.

Describes a resource's adaptive variants as a static MPEG-DASH MPD that
standard players can consume.

Only adaptive variants carrying both an init range and an index range can
be described (SegmentBase addressing); muxed variants and variants without
ranges are skipped.

Output is deterministic for a given variant list and options:
    - Adaptation sets: audio before video, then by mime type, then language
    - Representations: bitrate descending, then itag ascending
    - Attributes are written in a fixed order
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import httpx

from tubegraph.errors import NoMatchingFormatError

from .variant import MediaKind, ResourceVariant

logger = logging.getLogger(__name__)

MPD_NAMESPACE = "urn:mpeg:dash:schema:mpd:2011"
MPD_PROFILE = "urn:mpeg:dash:profile:isoff-main:2011"
ROLE_SCHEME = "urn:mpeg:dash:role:2011"
AUDIO_CHANNEL_SCHEME = "urn:mpeg:dash:23003:3:audio_channel_configuration:2011"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

UrlTransformer = Callable[[str], str]
FormatFilter = Callable[[ResourceVariant], bool]


@dataclass(frozen=True, slots=True)
class ManifestOptions:
    """
    Options for manifest emission.

    Attributes:
        url_transformer: Applied to every resolved URL before emission
        format_filter: Return True to leave a variant out of the manifest
        decipher: Hook resolving cipher-only variants (see ResourceVariant.resolve_url)
        cpn: Client playback nonce appended to every URL
        duration_ms: Presentation duration; derived from the variants if None
        min_buffer_time: ISO 8601 duration for minBufferTime
    """

    url_transformer: UrlTransformer | None = None
    format_filter: FormatFilter | None = None
    decipher: Callable[[str], str] | None = None
    cpn: str | None = None
    duration_ms: int | None = None
    min_buffer_time: str = "PT1.500S"


def _format_duration(ms: int) -> str:
    return f"PT{ms / 1000:.3f}S"


def _group_key(variant: ResourceVariant) -> tuple[int, str, str]:
    kind_order = 0 if variant.media_kind is MediaKind.AUDIO else 1
    return (kind_order, variant.mime_base, variant.language or "")


def _representation_key(variant: ResourceVariant) -> tuple[int, int]:
    return (-variant.bitrate, variant.itag)


class ManifestEmitter:
    """
    Emits DASH MPD documents.

    Example:
        emitter = ManifestEmitter()
        mpd = emitter.emit(
            streaming_data.adaptive_formats,
            ManifestOptions(url_transformer=sign_url),
        )
    """

    def select(
        self,
        variants: Sequence[ResourceVariant],
        options: ManifestOptions,
    ) -> list[ResourceVariant]:
        """Variants that will appear in the manifest, unordered."""
        selected = []
        for variant in variants:
            if variant.media_kind is MediaKind.COMBINED or not variant.is_adaptive:
                continue
            if options.format_filter is not None and options.format_filter(variant):
                continue
            selected.append(variant)
        return selected

    def emit(
        self,
        variants: Sequence[ResourceVariant],
        options: ManifestOptions | None = None,
    ) -> str:
        """
        Build the manifest text.

        Raises:
            NoMatchingFormatError: If no variant can be described
            LocatorError: If a selected variant has no resolvable URL
        """
        options = options or ManifestOptions()
        selected = self.select(variants, options)
        if not selected:
            raise NoMatchingFormatError(
                "No adaptive formats can be described in a manifest",
                candidates=variants,
            )

        duration_ms = options.duration_ms
        if duration_ms is None:
            duration_ms = max((v.approx_duration_ms or 0) for v in selected)

        root = ET.Element(
            "MPD",
            {
                "xmlns": MPD_NAMESPACE,
                "minBufferTime": options.min_buffer_time,
                "profiles": MPD_PROFILE,
                "type": "static",
                "mediaPresentationDuration": _format_duration(duration_ms),
            },
        )
        period = ET.SubElement(root, "Period")

        groups: dict[tuple[int, str, str], list[ResourceVariant]] = {}
        for variant in selected:
            groups.setdefault(_group_key(variant), []).append(variant)

        for set_id, key in enumerate(sorted(groups)):
            members = sorted(groups[key], key=_representation_key)
            self._adaptation_set(period, set_id, members, options)

        ET.indent(root, space="  ")
        text = XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"

        logger.debug(
            f"[manifest] Emitted {len(groups)} adaptation sets, "
            f"{len(selected)}/{len(variants)} representations"
        )
        return text

    # ==================== Elements ====================

    def _adaptation_set(
        self,
        period: ET.Element,
        set_id: int,
        members: list[ResourceVariant],
        options: ManifestOptions,
    ) -> None:
        first = members[0]
        attrs = {
            "id": str(set_id),
            "mimeType": first.mime_base,
            "startWithSAP": "1",
            "subsegmentAlignment": "true",
        }
        if first.media_kind is MediaKind.AUDIO and first.language:
            attrs["lang"] = first.language
        adaptation = ET.SubElement(period, "AdaptationSet", attrs)

        if first.media_kind is MediaKind.AUDIO:
            role = "main" if first.is_original_audio else "dub"
            ET.SubElement(adaptation, "Role", {"schemeIdUri": ROLE_SCHEME, "value": role})

        for variant in members:
            self._representation(adaptation, variant, options)

    def _representation(
        self,
        adaptation: ET.Element,
        variant: ResourceVariant,
        options: ManifestOptions,
    ) -> None:
        attrs = {
            "id": str(variant.itag),
            "codecs": ", ".join(variant.codecs),
            "bandwidth": str(variant.bitrate),
        }
        if variant.media_kind is MediaKind.AUDIO:
            if variant.audio_sample_rate:
                attrs["audioSamplingRate"] = str(variant.audio_sample_rate)
        else:
            if variant.width:
                attrs["width"] = str(variant.width)
            if variant.height:
                attrs["height"] = str(variant.height)
            if variant.fps:
                attrs["frameRate"] = str(variant.fps)
            attrs["maxPlayoutRate"] = "1"
        representation = ET.SubElement(adaptation, "Representation", attrs)

        if variant.media_kind is MediaKind.AUDIO:
            ET.SubElement(
                representation,
                "AudioChannelConfiguration",
                {"schemeIdUri": AUDIO_CHANNEL_SCHEME, "value": str(variant.audio_channels or 2)},
            )

        base_url = ET.SubElement(representation, "BaseURL")
        base_url.text = self._url_for(variant, options)

        # is_adaptive guarantees both ranges
        assert variant.index_range is not None and variant.init_range is not None
        segment_base = ET.SubElement(
            representation, "SegmentBase", {"indexRange": str(variant.index_range)}
        )
        ET.SubElement(segment_base, "Initialization", {"range": str(variant.init_range)})

    def _url_for(self, variant: ResourceVariant, options: ManifestOptions) -> str:
        url = variant.resolve_url(options.decipher)
        if options.url_transformer is not None:
            url = options.url_transformer(url)
        if options.cpn:
            url = str(httpx.URL(url).copy_merge_params({"cpn": options.cpn}))
        return url


def emit_dash_manifest(
    variants: Sequence[ResourceVariant],
    options: ManifestOptions | None = None,
) -> str:
    """Emit a manifest with a default emitter."""
    return ManifestEmitter().emit(variants, options)
