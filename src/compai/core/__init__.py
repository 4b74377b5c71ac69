"""
CompAI Core Package

Shared data models and schema validation for the composition engine.
Models are frozen dataclasses; everything that changes produces a new
instance.
"""

from .models import (
    CompositionJob,
    HeroRule,
    ImageCategory,
    Point,
    Rect,
    Slot,
    SlotAssignment,
    SourceImage,
    Template,
)

__all__ = [
    "CompositionJob",
    "HeroRule",
    "ImageCategory",
    "Point",
    "Rect",
    "Slot",
    "SlotAssignment",
    "SourceImage",
    "Template",
]
