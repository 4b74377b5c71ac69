"""
Module: composer.selection

Purpose:
    Slot assignment for composites: turns a template and an image pool
    into a batch of distinct composition jobs.

Key Functions:
    - generate_variations(): Main entry point
    - count_unfilled(): Empty slots in a job

Key Classes:
    - VariationGenerator: Per-run orchestrator
    - GenerationError: Invalid generator input

Used By:
    - composer.controller: Build pipeline
"""

from .generator import (
    GenerationError,
    VariationGenerator,
    count_unfilled,
    generate_variations,
)

__all__ = [
    "GenerationError",
    "VariationGenerator",
    "count_unfilled",
    "generate_variations",
]
