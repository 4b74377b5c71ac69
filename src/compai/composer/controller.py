"""
Module: composer.controller

Purpose:
    Orchestrate the complete composite building pipeline.
    Decode → Analyze → Generate → Render → Export

Key Functions:
    - build_variations(): Main entry point for building composites

Key Classes:
    - BuildResult: Complete build result
    - BuildError: Exception for build failures

Dependencies:
    - composer.session: Image decoding and analysis
    - composer.selection: Variation generation
    - composer.output: Rendering and ZIP export
    - composer.templates: Template registry

Used By:
    - cli: `compai generate`
"""

from __future__ import annotations

import json
import logging
import random
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from compai.common.presets import PREVIEW_JPEG_QUALITY
from compai.core.models import CompositionJob, Template

from .config import ComposerConfig
from .images.provider import ImageDecodeError
from .output.renderer import encode_image, render_batch, render_preview, surface_size
from .output.zip_writer import write_composites_zip, write_job_package
from .selection import GenerationError, count_unfilled, generate_variations
from .session import ImageSession
from .templates import TemplateNotFoundError, get_template

logger = logging.getLogger(__name__)

METADATA_FILENAME = "build_metadata.json"


class BuildError(Exception):
    """Error during build pipeline."""
    pass


@dataclass(frozen=True)
class BuildResult:
    """
    Complete build result (immutable).

    Attributes:
        output_dir: Timestamped folder holding every output
        template: Template the composites follow
        jobs: Generated jobs, in gallery order
        composites: Exported composite files (empty if not exported)
        composites_zip: All-composites archive (if exported)
        packages: Per-job packages (if exported)
        previews: Gallery-sized previews (if exported)
        metadata: Build metadata dictionary
        warnings: Any warnings during build

    Example:
        >>> result = build_variations(config)
        >>> print(f"Generated {len(result.jobs)} composites in {result.output_dir}")
    """

    output_dir: Path
    template: Template
    jobs: Tuple[CompositionJob, ...]
    composites: Tuple[Path, ...]
    metadata: dict
    warnings: Tuple[str, ...]
    composites_zip: Optional[Path] = None
    packages: Tuple[Path, ...] = ()
    previews: Tuple[Path, ...] = ()


def build_variations(
    config: ComposerConfig,
    *,
    session: Optional[ImageSession] = None,
) -> BuildResult:
    """
    Build composites from start to finish.

    Pipeline:
    1. Resolve the template
    2. Decode the fixed image (and analyze it) and the variable pool
    3. Generate variations
    4. Render each job at the configured quality
    5. Export composites, and optionally previews, a ZIP and packages
    6. Write build_metadata.json

    Args:
        config: Build configuration
        session: Pre-built session (tests inject one with a stub analyzer);
            a new session is created and released if None

    Returns:
        BuildResult with paths and metadata

    Raises:
        BuildError: If any step fails

    Example:
        >>> config = ComposerConfig(
        ...     images=sorted(Path("photos").glob("*.jpg")),
        ...     template_id="hero-left",
        ...     aspect_ratio=16 / 9,
        ...     output_dir=Path("output"),
        ... )
        >>> result = build_variations(config)
    """
    warnings: List[str] = []
    start_time = time.perf_counter()

    # 1. Template
    try:
        template = get_template(config.template_id)
    except TemplateNotFoundError as e:
        raise BuildError(str(e.args[0]) if e.args else str(e)) from e

    logger.info(
        f"Starting build: template={template.id}, count={config.count}, "
        f"aspect={config.aspect_ratio:.3f}, quality={config.quality.label}, "
        f"files={config.total_images}"
    )

    owns_session = session is None
    if session is None:
        session = ImageSession(
            config.pool_ceiling,
            vision_model=config.vision_model,
            ollama_host=config.ollama_host,
        )

    try:
        # 2. Images
        _load_images(session, config, warnings)
        if not session.can_generate:
            raise BuildError(
                f"At least 3 usable images are required, got {len(session.all_images)}"
            )

        # 3. Generate
        rng = random.Random(config.seed)
        try:
            jobs = generate_variations(
                session.fixed_image,
                session.pool,
                template,
                config.aspect_ratio,
                config.count,
                rng=rng,
            )
        except GenerationError as e:
            raise BuildError(f"Failed to generate variations: {e}") from e

        for i, job in enumerate(jobs, start=1):
            unfilled = count_unfilled(job, template)
            if unfilled:
                warnings.append(
                    f"Composite {i} has {unfilled} empty slot(s): not enough images"
                )

        # 4-5. Render and export
        output_dir = _generate_output_dir(config, template)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            exported = _render_and_export(jobs, template, session, config, output_dir)
        except OSError as e:
            raise BuildError(f"Failed to write output to {output_dir}: {e}") from e

        elapsed = time.perf_counter() - start_time
        logger.info(f"Composite generation completed in {elapsed:.2f}s")

        # 6. Metadata
        metadata = _build_metadata(config, template, session, jobs, exported, elapsed)
        try:
            _write_metadata(output_dir, metadata)
        except OSError as e:
            raise BuildError(f"Failed to write build metadata: {e}") from e
        logger.info(f"Wrote build metadata to {output_dir / METADATA_FILENAME}")
    finally:
        if owns_session:
            session.reset()

    return BuildResult(
        output_dir=output_dir,
        template=template,
        jobs=tuple(jobs),
        composites=exported.composites,
        metadata=metadata,
        warnings=tuple(warnings),
        composites_zip=exported.composites_zip,
        packages=exported.packages,
        previews=exported.previews,
    )


def _load_images(session: ImageSession, config: ComposerConfig, warnings: List[str]) -> None:
    """Decode configured files into the session, collecting warnings."""
    if config.fixed_image is not None:
        try:
            fixed = session.set_fixed(config.fixed_image, analyze=config.analyze_fixed)
        except ImageDecodeError as e:
            warnings.append(f"Fixed image skipped: {e}")
            logger.warning(f"Fixed image skipped: {e}")
        else:
            if fixed.description:
                logger.info(f"Fixed image analysis: {fixed.description}")

    update = session.add_variable(config.images)
    for _, message in update.failures:
        warnings.append(f"Image skipped: {message}")
    if update.notice:
        warnings.append(update.notice)

    logger.info(
        f"Loaded {len(session.all_images)} images "
        f"(fixed={'yes' if session.fixed_image else 'no'}, pool={len(session.pool)})"
    )


@dataclass(frozen=True)
class _Exported:
    composites: Tuple[Path, ...] = ()
    composites_zip: Optional[Path] = None
    packages: Tuple[Path, ...] = ()
    previews: Tuple[Path, ...] = ()


def _render_and_export(
    jobs: Sequence[CompositionJob],
    template: Template,
    session: ImageSession,
    config: ComposerConfig,
    output_dir: Path,
) -> _Exported:
    """
    Render jobs in chunks of ``max_workers`` and write every requested output.

    Surfaces are released after each chunk; only encoded JPEG bytes are
    kept for the composites ZIP.
    """
    images = session.images.snapshot()
    sources = session.sources
    composites: List[Path] = []
    packages: List[Path] = []
    previews: List[Path] = []
    encoded: List[bytes] = []

    chunk = max(1, config.max_workers)
    for start in range(0, len(jobs), chunk):
        batch = jobs[start:start + chunk]
        surfaces = render_batch(
            batch, template, images, config.scale, max_workers=config.max_workers
        )
        for offset, (job, surface) in enumerate(zip(batch, surfaces)):
            n = start + offset + 1
            data = encode_image(surface, "JPEG", config.jpeg_quality)
            if config.export_zip:
                encoded.append(data)
            if config.export_images:
                path = output_dir / f"composite_{n}.jpg"
                path.write_bytes(data)
                composites.append(path)
            if config.export_packages:
                package = output_dir / "packages" / f"package_{job.id}.zip"
                packages.append(write_job_package(job, surface, sources, package))
            if config.export_previews:
                preview = output_dir / "previews" / f"preview_{n}.jpg"
                preview.parent.mkdir(parents=True, exist_ok=True)
                preview.write_bytes(
                    encode_image(render_preview(job, template, images), "JPEG", PREVIEW_JPEG_QUALITY)
                )
                previews.append(preview)
            surface.close()
        logger.debug(f"Rendered {min(start + chunk, len(jobs))}/{len(jobs)} composites")

    composites_zip = None
    if config.export_zip:
        composites_zip = write_composites_zip(encoded, output_dir / "composites.zip")
        logger.info(f"Exported composites ZIP: {composites_zip}")

    return _Exported(
        composites=tuple(composites),
        composites_zip=composites_zip,
        packages=tuple(packages),
        previews=tuple(previews),
    )


def _generate_output_dir(config: ComposerConfig, template: Template) -> Path:
    """
    Timestamped subfolder inside the configured (or default) output directory.

    Example:
        >>> _generate_output_dir(config, template)
        Path('output/20260116-103045__hero-left__1200x675__n20__s42')
    """
    base = Path(config.output_dir) if config.output_dir else Path("output")

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    seed_segment = f"s{config.seed}" if config.seed is not None else "random"
    width, height = surface_size(1.0, config.aspect_ratio)
    folder_name = f"{timestamp}__{template.id}__{width}x{height}__n{config.count}__{seed_segment}"
    folder_name = re.sub(r"[^A-Za-z0-9_\-+]", "-", folder_name).strip("-")

    candidate = base / folder_name
    suffix = 1
    while candidate.exists():
        candidate = base / f"{folder_name}({suffix})"
        suffix += 1
    return candidate


def _build_metadata(
    config: ComposerConfig,
    template: Template,
    session: ImageSession,
    jobs: Sequence[CompositionJob],
    exported: _Exported,
    elapsed: float,
) -> dict:
    """
    Build metadata dictionary for a composite run.

    Returns:
        Metadata dictionary ready for JSON serialization
    """
    from compai import __version__

    width, height = surface_size(config.scale, config.aspect_ratio)
    fixed = session.fixed_image

    job_details = []
    for i, job in enumerate(jobs, start=1):
        details = job.to_dict()
        details["index"] = i
        details["unfilled_slots"] = count_unfilled(job, template)
        job_details.append(details)

    manifest = {
        "composites": [p.name for p in exported.composites],
        "packages": [f"packages/{p.name}" for p in exported.packages],
        "previews": [f"previews/{p.name}" for p in exported.previews],
    }
    if exported.composites_zip is not None:
        manifest["composites_zip"] = exported.composites_zip.name

    return {
        "generated_at": datetime.now().isoformat(),
        "compai_version": __version__,
        "template_id": template.id,
        "template_name": template.name,
        "aspect_ratio": config.aspect_ratio,
        "quality": config.quality.label,
        "output_size": [width, height],
        "count": config.count,
        "seed": config.seed,
        "images_supplied": config.total_images,
        "elapsed_seconds": round(elapsed, 3),
        "fixed_image": fixed.to_dict() if fixed else None,
        "pool": [image.to_dict() for image in session.pool],
        "jobs": job_details,
        "manifest": manifest,
    }


def _write_metadata(output_dir: Path, metadata: dict) -> None:
    """Write metadata JSON file to output directory."""
    path = output_dir / METADATA_FILENAME
    path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
