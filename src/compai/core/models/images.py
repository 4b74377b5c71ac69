"""
Module: images

Purpose:
    Provides the SourceImage dataclass - the metadata the composition
    engine knows about one decoded photograph - and the closed set of
    image categories assigned by vision analysis.

Key Classes:
    - ImageCategory: Closed enum of scene categories
    - SourceImage: Decoded dimensions, focal point and category of an image

Dependencies:
    - dataclasses (std)
    - .geometry.Point

Used By:
    - composer.images.cropper: compute_crop()
    - composer.images.provider: decode_image()
    - composer.selection.generator
    - composer.session.ImageSession
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .geometry import Point

if TYPE_CHECKING:
    from compai.composer.images.analysis import AnalysisResult


class ImageCategory(str, Enum):
    """Scene category of a source image."""
    HOUSE = "house"              # Exterior facade, whole building
    LIVING_ROOM = "living_room"  # Sofa, TV area
    KITCHEN = "kitchen"          # Cooking area, dining
    BEDROOM = "bedroom"
    BATHROOM = "bathroom"
    ALLEY = "alley"              # Street outside, car access
    ROOFTOP = "rooftop"          # Terrace, balcony, view from the top
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceImage:
    """
    Metadata for one decoded source photograph (immutable).

    Pixels are not held here: decoded images live in the session's image
    table and are looked up by ``id`` at render time.

    Attributes:
        id: Unique identifier, stable for the session
        width: Decoded pixel width
        height: Decoded pixel height
        focal_point: Normalized point to keep centered when cropping
        category: Scene category (from analysis, else OTHER)
        description: Optional human-readable description
        source_path: Original file, if the image was decoded from disk

    Invariants:
        - width > 0
        - height > 0

    Example:
        >>> img = SourceImage("a", width=4000, height=3000)
        >>> img.aspect_ratio
        1.3333333333333333
    """

    id: str
    width: int
    height: int
    focal_point: Point = field(default_factory=Point.center)
    category: ImageCategory = ImageCategory.OTHER
    description: Optional[str] = None
    source_path: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate dimensions on construction."""
        if not self.id:
            raise ValueError("id must be non-empty")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"image dimensions must be positive: {self.width}x{self.height}"
            )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def with_analysis(self, analysis: AnalysisResult) -> SourceImage:
        """Return a copy carrying the focal point, category and description of an analysis."""
        return replace(
            self,
            focal_point=analysis.focal_point,
            category=analysis.category,
            description=analysis.description,
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "width": self.width,
            "height": self.height,
            "focal_point": self.focal_point.to_dict(),
            "category": self.category.value,
        }
        if self.description is not None:
            d["description"] = self.description
        if self.source_path is not None:
            d["source_path"] = str(self.source_path)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> SourceImage:
        source_path = data.get("source_path")
        return cls(
            id=data["id"],
            width=int(data["width"]),
            height=int(data["height"]),
            focal_point=Point.from_dict(data.get("focal_point", {"x": 0.5, "y": 0.5})),
            category=ImageCategory(data.get("category", "other")),
            description=data.get("description"),
            source_path=Path(source_path) if source_path else None,
        )
