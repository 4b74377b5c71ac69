"""
Core Models Package

Immutable, validated data models shared by the composition engine.

All models are frozen dataclasses with ``to_dict()`` / ``from_dict()``.
Jobs reference images by id only, so they are cheap to produce in bulk and
safe to hand to render threads.
"""

from .geometry import Point, Rect
from .images import ImageCategory, SourceImage
from .templates import HeroRule, Slot, Template
from .jobs import CompositionJob, SlotAssignment

__all__ = [
    "Point",
    "Rect",
    "ImageCategory",
    "SourceImage",
    "HeroRule",
    "Slot",
    "Template",
    "CompositionJob",
    "SlotAssignment",
]
