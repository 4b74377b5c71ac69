"""
Module: composer.config

Purpose:
    Configuration dataclass for the composite build pipeline. Immutable
    configuration with validation on construction.

Key Classes:
    - ComposerConfig: Main configuration for building composites

Dependencies:
    - dataclasses (std)
    - pathlib (std)
    - compai.common.presets: Defaults and quality tiers

Used By:
    - composer.controller: Main build controller
    - cli: Built from command line arguments
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from compai.common.presets import (
    DEFAULT_JOB_COUNT,
    DEFAULT_POOL_CEILING,
    EXPORT_JPEG_QUALITY,
    OutputQuality,
)


@dataclass(frozen=True)
class ComposerConfig:
    """
    Configuration for building composites (immutable).

    Attributes:
        images: Variable pool files, in upload order
        fixed_image: Optional file pinned to every composite's hero slot
        template_id: Template registry key
        aspect_ratio: Composite width/height
        quality: Export resolution tier
        count: Number of variations to generate
        seed: Random seed for reproducible variations (None = random)
        pool_ceiling: Maximum variable pool size; extra files are dropped
        output_dir: Output directory for generated files
        export_images: Write each composite as a JPEG file
        export_zip: Also write all composites into composites.zip
        export_packages: Also write one package_<job>.zip per composite
        export_previews: Also write gallery-sized previews
        jpeg_quality: JPEG quality for exported composites
        analyze_fixed: Run vision analysis on the fixed image
        vision_model: Ollama vision model (None = $COMPAI_VISION_MODEL)
        ollama_host: Ollama server URL (None = $OLLAMA_HOST or default)
        max_workers: Render threads

    Example:
        >>> config = ComposerConfig(
        ...     images=[Path("a.jpg"), Path("b.jpg"), Path("c.jpg")],
        ...     template_id="hero-left",
        ...     aspect_ratio=16 / 9,
        ... )
    """

    # Required
    images: List[Path]

    # Composition
    fixed_image: Optional[Path] = None
    template_id: str = "grid-2x2"
    aspect_ratio: float = 1.0
    quality: OutputQuality = OutputQuality.K1
    count: int = DEFAULT_JOB_COUNT
    seed: Optional[int] = None
    pool_ceiling: int = DEFAULT_POOL_CEILING

    # Output
    output_dir: Optional[Path] = None
    export_images: bool = True
    export_zip: bool = False
    export_packages: bool = False
    export_previews: bool = False
    jpeg_quality: int = EXPORT_JPEG_QUALITY

    # Vision analysis
    analyze_fixed: bool = True
    vision_model: Optional[str] = None
    ollama_host: Optional[str] = None

    # Rendering
    max_workers: int = 1

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0:
            raise ValueError(
                f"aspect_ratio must be a positive finite number: {self.aspect_ratio}"
            )
        if self.count < 1:
            raise ValueError(f"count must be at least 1: {self.count}")
        if self.pool_ceiling < 1:
            raise ValueError(f"pool_ceiling must be at least 1: {self.pool_ceiling}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 1..100: {self.jpeg_quality}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
        if not self.template_id:
            raise ValueError("template_id must be non-empty")
        if not isinstance(self.quality, OutputQuality):
            raise ValueError(f"quality must be an OutputQuality: {self.quality!r}")

    @property
    def scale(self) -> float:
        """Render scale for exports."""
        return self.quality.scale

    @property
    def total_images(self) -> int:
        """Files supplied, fixed image included."""
        return len(self.images) + (1 if self.fixed_image is not None else 0)
