"""Common presets and helpers shared across the toolkit."""

from .presets import (
    AspectRatioPreset,
    OutputQuality,
    BASE_WIDTH,
    PREVIEW_WIDTH,
    parse_aspect_ratio,
    parse_quality,
)

__all__ = [
    "AspectRatioPreset",
    "OutputQuality",
    "BASE_WIDTH",
    "PREVIEW_WIDTH",
    "parse_aspect_ratio",
    "parse_quality",
]
