"""
Module: geometry

Purpose:
    Provides the Point and Rect dataclasses shared by every layer of the
    composition engine. Points are normalized focal coordinates; Rects are
    either normalized slot geometry or absolute crop regions in source
    pixel space, depending on where they are used.

Key Classes:
    - Point: Normalized (x, y) coordinate within an image
    - Rect: Axis-aligned rectangle (x, y, w, h)

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.templates.Slot
    - core.models.images.SourceImage
    - core.models.jobs.SlotAssignment
    - composer.images.cropper
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class Point:
    """
    Normalized coordinate within an image.

    Values are expected in 0..1 but are not clamped: the cropper saturates
    out-of-range focal points to the nearest valid crop instead.

    Attributes:
        x: Horizontal position (0 = left edge, 1 = right edge)
        y: Vertical position (0 = top edge, 1 = bottom edge)

    Example:
        >>> Point.center()
        Point(x=0.5, y=0.5)
    """

    x: float
    y: float

    @classmethod
    def center(cls) -> Point:
        """The image center, used when no focal point is known."""
        return cls(0.5, 0.5)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> Point:
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Axis-aligned rectangle.

    Used for normalized slot geometry (0..1 of the surface) and for crop
    regions in source pixel space. Coordinates are floats in both cases;
    crop regions are not snapped to whole pixels.

    Attributes:
        x: Left edge
        y: Top edge
        w: Width (must be > 0)
        h: Height (must be > 0)

    Invariants:
        - w > 0
        - h > 0

    Example:
        >>> r = Rect(10, 20, 300, 150)
        >>> r.aspect_ratio
        2.0
        >>> r.to_box()
        (10, 20, 310, 170)
    """

    x: float
    y: float
    w: float
    h: float

    def __post_init__(self) -> None:
        """Validate dimensions on construction."""
        if not self.w > 0:
            raise ValueError(f"w must be > 0: {self.w}")
        if not self.h > 0:
            raise ValueError(f"h must be > 0: {self.h}")

    @property
    def right(self) -> float:
        """X coordinate of the right edge (x + w)."""
        return self.x + self.w

    @property
    def bottom(self) -> float:
        """Y coordinate of the bottom edge (y + h)."""
        return self.y + self.h

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.w / self.h

    def scaled(self, sx: float, sy: float) -> Rect:
        """Return this rect with x/w multiplied by sx and y/h by sy."""
        return Rect(self.x * sx, self.y * sy, self.w * sx, self.h * sy)

    def to_box(self) -> Tuple[float, float, float, float]:
        """Pillow box tuple (left, upper, right, lower)."""
        return (self.x, self.y, self.right, self.bottom)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @classmethod
    def from_dict(cls, data: dict) -> Rect:
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            w=float(data["w"]),
            h=float(data["h"]),
        )
