"""Named presets for composite aspect ratios and output resolution.

All renders are expressed relative to a fixed reference width
(``BASE_WIDTH``). A quality tier names a target pixel width and maps to a
render scale of ``width / BASE_WIDTH``; previews use ``PREVIEW_WIDTH``.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Union

# Reference width every render scale is relative to
BASE_WIDTH = 1200

# Gallery thumbnail width
PREVIEW_WIDTH = 400

# Encoder settings
PREVIEW_JPEG_QUALITY = 85
EXPORT_JPEG_QUALITY = 92
PACKAGE_JPEG_QUALITY = 95

# Session policy
DEFAULT_JOB_COUNT = 20
DEFAULT_POOL_CEILING = 20
MIN_IMAGES_TO_GENERATE = 3


class AspectRatioPreset(str, Enum):
    """Named composite aspect ratios."""
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    STORY = "9:16"
    CINEMA = "16:9"
    FB_ADS = "1200x628"
    FB_STORY = "900x1600"

    @property
    def ratio(self) -> float:
        return _ratio_from_text(self.value)


class OutputQuality(int, Enum):
    """Export tiers; values are target pixel widths."""
    K1 = 1080
    K2 = 2160
    K4 = 3840

    @property
    def scale(self) -> float:
        """Render scale relative to BASE_WIDTH."""
        return self.value / BASE_WIDTH

    @property
    def label(self) -> str:
        return {1080: "1k", 2160: "2k", 3840: "4k"}[self.value]


_RATIO_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[:x/]\s*(\d+(?:\.\d+)?)\s*$", re.IGNORECASE)


def _ratio_from_text(text: str) -> float:
    m = _RATIO_RE.match(text)
    if not m:
        raise ValueError(f"Not a ratio: {text!r}")
    w, h = float(m.group(1)), float(m.group(2))
    if w <= 0 or h <= 0:
        raise ValueError(f"Ratio terms must be positive: {text!r}")
    return w / h


def parse_aspect_ratio(value: Union[str, float, AspectRatioPreset]) -> float:
    """
    Resolve an aspect ratio from a preset, a ratio string or a number.

    Accepts preset values ("16:9", "1200x628"), preset names ("cinema"),
    arbitrary "W:H" / "WxH" / "W/H" strings, and plain positive numbers.

    Raises:
        ValueError: If the value cannot be parsed or is not a positive
            finite number

    Example:
        >>> parse_aspect_ratio("3:4")
        0.75
        >>> parse_aspect_ratio("fb_ads")
        1.910828025477707
    """
    if isinstance(value, AspectRatioPreset):
        return value.ratio
    if isinstance(value, (int, float)):
        ratio = float(value)
    else:
        text = value.strip()
        by_name = AspectRatioPreset.__members__.get(text.upper())
        if by_name is not None:
            return by_name.ratio
        try:
            ratio = float(text)
        except ValueError:
            ratio = _ratio_from_text(text)
    if not math.isfinite(ratio) or ratio <= 0:
        raise ValueError(f"Aspect ratio must be a positive finite number: {value!r}")
    return ratio


def parse_quality(value: Union[str, int, OutputQuality]) -> OutputQuality:
    """
    Resolve a quality tier from its label ("1k"), name ("K2") or width (3840).

    Raises:
        ValueError: If the value names no tier
    """
    if isinstance(value, OutputQuality):
        return value
    if isinstance(value, int):
        return OutputQuality(value)
    text = value.strip()
    for tier in OutputQuality:
        if text.lower() == tier.label or text.upper() == tier.name or text == str(tier.value):
            return tier
    raise ValueError(f"Unknown output quality: {value!r}")
