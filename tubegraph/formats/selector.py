"""
Format selection.

Picks one ResourceVariant out of a resource's variant list.

Algorithm:
    1. Filter: keep variants satisfying every hard constraint
       (media kind, bitrate bounds, codec prefix, container, language).
    2. Rank survivors by:
         - distance of their quality tier from the quality target
         - not exceeding the target (on equal distance, the lower tier wins)
         - bitrate, descending (ascending for ``bestefficiency``)
         - container identifier, lexical
         - primary codec identifier, lexical
         - itag, ascending
    3. Return the first; fail with NoMatchingFormatError if nothing survived.

The ranking key is total, so the choice never depends on input order.

Usage:
    constraints = FormatConstraints(media_kind="video", max_bitrate=1_000_000)
    variant = choose_format(streaming_data.variants, constraints)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tubegraph.errors import NoMatchingFormatError

from .variant import MediaKind, ResourceVariant

logger = logging.getLogger(__name__)

QUALITY_BEST = "best"
QUALITY_EFFICIENT = "bestefficiency"

_LABEL_PATTERN = re.compile(r"^(\d+)p(\d+)?$")


# =============================================================================
# Constraints
# =============================================================================


class FormatConstraints(BaseModel):
    """Caller-supplied selection constraints."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    media_kind: MediaKind = Field(MediaKind.COMBINED, alias="mediaKind")
    max_bitrate: int | None = Field(None, ge=0, alias="maxBitrate")
    min_bitrate: int | None = Field(None, ge=0, alias="minBitrate")
    codec: str | None = None
    container: str | None = None
    quality: str = QUALITY_BEST
    language: str | None = None

    @field_validator("media_kind", mode="before")
    @classmethod
    def _parse_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return MediaKind.from_string(value)
        return value

    @field_validator("container", "codec", "language")
    @classmethod
    def _normalize_any(cls, value: str | None) -> str | None:
        if value is None or value.lower() == "any":
            return None
        return value

    @field_validator("quality")
    @classmethod
    def _validate_quality(cls, value: str) -> str:
        if value in (QUALITY_BEST, QUALITY_EFFICIENT) or _LABEL_PATTERN.match(value):
            return value
        raise ValueError(
            f"Invalid quality {value!r}: expected 'best', 'bestefficiency' or a label like '720p'"
        )

    @model_validator(mode="after")
    def _check_bounds(self) -> FormatConstraints:
        if (
            self.min_bitrate is not None
            and self.max_bitrate is not None
            and self.min_bitrate > self.max_bitrate
        ):
            raise ValueError("min_bitrate cannot be greater than max_bitrate")
        return self

    @property
    def target_height(self) -> int | None:
        """Height named by a label quality target, None for best/bestefficiency."""
        match = _LABEL_PATTERN.match(self.quality)
        return int(match.group(1)) if match else None


# =============================================================================
# Filtering
# =============================================================================


def satisfies(variant: ResourceVariant, constraints: FormatConstraints) -> bool:
    """Check every hard constraint against one variant."""
    if variant.media_kind is not constraints.media_kind:
        return False
    if constraints.max_bitrate is not None and variant.bitrate > constraints.max_bitrate:
        return False
    if constraints.min_bitrate is not None and variant.bitrate < constraints.min_bitrate:
        return False
    if constraints.codec is not None and not variant.matches_codec(constraints.codec):
        return False
    if constraints.container is not None and variant.container != constraints.container.lower():
        return False
    if constraints.language is not None and variant.has_audio:
        if constraints.language == "original":
            if not variant.is_original_audio:
                return False
        elif variant.language is not None and variant.language != constraints.language:
            return False
    return True


def filter_formats(
    variants: Sequence[ResourceVariant],
    constraints: FormatConstraints,
) -> list[ResourceVariant]:
    """Return the variants satisfying all hard constraints, in input order."""
    return [v for v in variants if satisfies(v, constraints)]


# =============================================================================
# Ranking
# =============================================================================


def _target_rank(survivors: Sequence[ResourceVariant], constraints: FormatConstraints) -> int:
    ranks = [v.quality_rank for v in survivors]
    if constraints.quality == QUALITY_EFFICIENT:
        return min(ranks)
    # Audio tiers have no labels, so a label target behaves like "best" for audio only
    target = constraints.target_height
    if target is not None and constraints.media_kind is not MediaKind.AUDIO:
        return target
    return max(ranks)


def rank_key(
    variant: ResourceVariant,
    target: int,
    *,
    efficient: bool = False,
) -> tuple[Any, ...]:
    """Total ordering key; smaller is better."""
    rank = variant.quality_rank
    return (
        abs(rank - target),
        rank > target,
        variant.bitrate if efficient else -variant.bitrate,
        variant.container,
        variant.codec or "",
        variant.itag,
    )


def rank_formats(
    survivors: Sequence[ResourceVariant],
    constraints: FormatConstraints,
) -> list[ResourceVariant]:
    """Order survivors best first."""
    if not survivors:
        return []
    target = _target_rank(survivors, constraints)
    efficient = constraints.quality == QUALITY_EFFICIENT
    return sorted(survivors, key=lambda v: rank_key(v, target, efficient=efficient))


# =============================================================================
# Selection
# =============================================================================


def choose_format(
    variants: Sequence[ResourceVariant],
    constraints: FormatConstraints | None = None,
) -> ResourceVariant:
    """
    Choose the single best variant for the constraints.

    Args:
        variants: Every variant of one resource
        constraints: Selection constraints (defaults: combined, best quality)

    Returns:
        The chosen variant

    Raises:
        NoMatchingFormatError: If no variant satisfies the hard constraints;
            ``candidates`` lists every variant that was considered
    """
    constraints = constraints or FormatConstraints()
    survivors = filter_formats(variants, constraints)

    if not survivors:
        logger.debug(
            f"[formats] No match among {len(variants)} variants for "
            f"{constraints.model_dump(exclude_none=True)}"
        )
        raise NoMatchingFormatError(
            "No matching formats found",
            candidates=variants,
            constraints=constraints,
        )

    chosen = rank_formats(survivors, constraints)[0]
    logger.debug(
        f"[formats] Chose itag={chosen.itag} ({chosen.mime_type}, {chosen.bitrate}bps) "
        f"from {len(survivors)}/{len(variants)} survivors"
    )
    return chosen
