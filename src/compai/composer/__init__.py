"""
Module: composer

Purpose:
    Composite generation pipeline: templates, image session, variation
    generation, rendering and export.

Key Functions:
    - build_variations(): Main entry point

Key Classes:
    - ComposerConfig: Build configuration
    - BuildResult: Build output
    - BuildError: Build failure
    - ImageSession: Fixed image and variable pool

Used By:
    - cli: Command line interface
"""

from .config import ComposerConfig
from .controller import BuildError, BuildResult, build_variations
from .session import ImageSession, SessionUpdate

__all__ = [
    "ComposerConfig",
    "BuildError",
    "BuildResult",
    "build_variations",
    "ImageSession",
    "SessionUpdate",
]
