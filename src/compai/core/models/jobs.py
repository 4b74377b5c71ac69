"""
Module: jobs

Purpose:
    Provides SlotAssignment and CompositionJob - one fully resolved
    slot -> image + crop assignment, ready to render. Jobs carry no pixel
    data, only image ids resolved against a decoded-image table at render
    time.

Key Classes:
    - SlotAssignment: One slot filled by one image crop
    - CompositionJob: All assignments for one composite

Dependencies:
    - dataclasses (std)
    - .geometry.Rect

Used By:
    - composer.selection.generator: Produces jobs
    - composer.output.renderer: Consumes jobs
    - composer.output.zip_writer: Package export
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .geometry import Rect


@dataclass(frozen=True, slots=True)
class SlotAssignment:
    """
    One slot filled by one image.

    Attributes:
        slot_id: Template slot being filled
        image_id: SourceImage id drawn into the slot
        crop: Source region in the image's pixel space
    """

    slot_id: str
    image_id: str
    crop: Rect

    def to_dict(self) -> dict:
        return {
            "slot_id": self.slot_id,
            "image_id": self.image_id,
            "crop": self.crop.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SlotAssignment:
        return cls(
            slot_id=data["slot_id"],
            image_id=data["image_id"],
            crop=Rect.from_dict(data["crop"]),
        )


@dataclass(frozen=True)
class CompositionJob:
    """
    A complete composite description (immutable).

    Slots without a candidate image are omitted from ``assignments`` and
    render as background.

    Attributes:
        id: Unique job identifier
        template_id: Template the assignments refer to
        aspect_ratio: Target width/height of the whole composite
        assignments: Tuple of SlotAssignments

    Invariants:
        - aspect_ratio > 0
        - each image_id appears in at most one assignment
        - each slot_id appears in at most one assignment

    Example:
        >>> job.filled_slot_count
        3
        >>> job.assignment_for("s4") is None
        True
    """

    id: str
    template_id: str
    aspect_ratio: float
    assignments: Tuple[SlotAssignment, ...] = ()

    def __post_init__(self) -> None:
        """Validate uniqueness on construction."""
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0:
            raise ValueError(
                f"aspect_ratio must be a positive finite number: {self.aspect_ratio}"
            )
        image_ids = [a.image_id for a in self.assignments]
        if len(image_ids) != len(set(image_ids)):
            raise ValueError(f"Job {self.id} uses an image more than once: {image_ids}")
        slot_ids = [a.slot_id for a in self.assignments]
        if len(slot_ids) != len(set(slot_ids)):
            raise ValueError(f"Job {self.id} fills a slot more than once: {slot_ids}")

    @property
    def filled_slot_count(self) -> int:
        return len(self.assignments)

    @property
    def image_ids(self) -> Tuple[str, ...]:
        """Image ids in assignment order."""
        return tuple(a.image_id for a in self.assignments)

    def assignment_for(self, slot_id: str) -> Optional[SlotAssignment]:
        """Return the assignment for a slot, or None if it is unfilled."""
        for assignment in self.assignments:
            if assignment.slot_id == slot_id:
                return assignment
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "aspect_ratio": self.aspect_ratio,
            "assignments": [a.to_dict() for a in self.assignments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> CompositionJob:
        return cls(
            id=data["id"],
            template_id=data["template_id"],
            aspect_ratio=float(data["aspect_ratio"]),
            assignments=tuple(
                SlotAssignment.from_dict(a) for a in data.get("assignments", [])
            ),
        )
