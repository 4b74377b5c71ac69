"""
Module: composer.output.zip_writer

Purpose:
    ZIP export of rendered composites: one archive holding every
    composite of a run, or a per-job package with the composite and the
    original source files it was built from.

Key Functions:
    - write_composites_zip(): All composites of a run
    - write_job_package(): One composite plus its source images

Dependencies:
    - zipfile (std)
    - PIL/Pillow
    - composer.output.renderer: encode_image()

Used By:
    - composer.controller: Build pipeline (optional outputs)
    - cli: Export commands
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Mapping, Sequence, Union

from PIL import Image

from compai.common.presets import EXPORT_JPEG_QUALITY, PACKAGE_JPEG_QUALITY
from compai.core.models import CompositionJob, SourceImage

from .renderer import encode_image

logger = logging.getLogger(__name__)

PACKAGE_RESULT_NAME = "composite_result.jpg"
PACKAGE_SOURCES_DIR = "source_images"


def _ensure_zip_suffix(path: Path) -> Path:
    return path if path.suffix == ".zip" else path.with_suffix(".zip")


def write_composites_zip(
    entries: Sequence[Union[Image.Image, bytes]],
    output_path: Path,
    *,
    quality: int = EXPORT_JPEG_QUALITY,
) -> Path:
    """
    Write rendered composites to a ZIP archive.

    Creates a ZIP file with structure:
        composites.zip
        ├── composite_1.jpg
        ├── composite_2.jpg
        └── ...

    Args:
        entries: Rendered surfaces in gallery order, or their JPEG bytes
        output_path: Path for .zip file (will append .zip if missing)
        quality: JPEG quality

    Returns:
        Path to created ZIP file

    Raises:
        OSError: If output path is not writable
    """
    output_path = _ensure_zip_suffix(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Creating composites ZIP at {output_path} ({len(entries)} images)")

    with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for i, surface in enumerate(entries, start=1):
            data = surface if isinstance(surface, bytes) else encode_image(surface, "JPEG", quality)
            zf.writestr(f"composite_{i}.jpg", data)

    return output_path


def source_arcname(index: int, slot_id: str, image: SourceImage) -> str:
    """
    Archive name for a packaged source file.

    ``index`` is the 0-based assignment position; the file extension comes
    from the original file and defaults to ``jpg``.

    Example:
        >>> source_arcname(0, "hero", SourceImage("a", 10, 10, source_path=Path("x.PNG")))
        'source_images/slot_1_hero.png'
    """
    ext = "jpg"
    if image.source_path is not None and image.source_path.suffix:
        ext = image.source_path.suffix.lstrip(".").lower()
    return f"{PACKAGE_SOURCES_DIR}/slot_{index + 1}_{slot_id}.{ext}"


def write_job_package(
    job: CompositionJob,
    surface: Image.Image,
    sources: Mapping[str, SourceImage],
    output_path: Path,
    *,
    quality: int = PACKAGE_JPEG_QUALITY,
) -> Path:
    """
    Write one composite together with the source files it uses.

    Creates a ZIP file with structure:
        package_<job id>.zip
        ├── composite_result.jpg
        └── source_images/
            ├── slot_1_<slot id>.<ext>
            └── ...

    Sources without an original file on disk, or whose file can no longer
    be read, are left out with a warning.

    Args:
        job: Job the surface was rendered from
        surface: Rendered composite
        sources: SourceImage metadata keyed by id
        output_path: Path for .zip file (will append .zip if missing)
        quality: JPEG quality of the composite

    Returns:
        Path to created ZIP file
    """
    output_path = _ensure_zip_suffix(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Creating package for {job.id} at {output_path}")

    with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(PACKAGE_RESULT_NAME, encode_image(surface, "JPEG", quality))

        for index, assignment in enumerate(job.assignments):
            image = sources.get(assignment.image_id)
            if image is None or image.source_path is None:
                logger.warning(
                    f"No original file for image {assignment.image_id} "
                    f"(slot {assignment.slot_id}); not packaged"
                )
                continue
            try:
                zf.write(image.source_path, source_arcname(index, assignment.slot_id, image))
            except OSError as e:
                logger.warning(f"Failed to package {image.source_path}: {e}")

    return output_path
