"""
Module: composer.output.renderer

Purpose:
    Layered raster compositor. Draws a composition job into a Pillow
    surface at a requested scale: slots in ascending stack order, each
    filled with its resampled crop region and clipped to a rounded
    rectangle.

    Preview and export render the same job; only the scale differs.

Key Functions:
    - render_job(): Main rendering function
    - render_preview(): Gallery-sized render
    - render_batch(): Many jobs, optionally on a thread pool
    - encode_image(): Surface -> encoded bytes
    - surface_size(): Pixel size for a scale and aspect ratio

Dependencies:
    - PIL: Surface, masks, resampling, encoding
    - composer.images.cropper: crop_image()

Used By:
    - composer.controller: Build pipeline
    - composer.output.zip_writer: Package export
"""

from __future__ import annotations

import io
import math
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Mapping, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from compai.common.presets import (
    BASE_WIDTH,
    EXPORT_JPEG_QUALITY,
    PREVIEW_WIDTH,
)
from compai.core.models import CompositionJob, Slot, Template

from ..images.cropper import crop_image

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255)
PREVIEW_SCALE = PREVIEW_WIDTH / BASE_WIDTH


def surface_size(scale: float, aspect_ratio: float) -> Tuple[int, int]:
    """
    Output pixel size for a render.

    Raises:
        ValueError: If scale or aspect_ratio is not positive
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive: {scale}")
    if not math.isfinite(aspect_ratio) or aspect_ratio <= 0:
        raise ValueError(f"aspect_ratio must be a positive finite number: {aspect_ratio}")
    width = max(1, round(BASE_WIDTH * scale))
    height = max(1, round(width / aspect_ratio))
    return width, height


def _slot_box(slot: Slot, width: int, height: int) -> Tuple[int, int, int, int]:
    """Slot rect in surface pixels, rounded to pixel edges."""
    left, top, right, bottom = slot.rect.scaled(width, height).to_box()
    return round(left), round(top), round(right), round(bottom)


def _rounded_mask(size: Tuple[int, int], radius: float) -> Optional[Image.Image]:
    """L mask with a rounded-rectangle opening, or None for a plain paste."""
    w, h = size
    radius = min(radius, w / 2, h / 2)
    if radius < 0.5:
        return None
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    if not hasattr(draw, "rounded_rectangle"):
        return None
    draw.rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, fill=255)
    return mask


def render_job(
    job: CompositionJob,
    template: Template,
    images: Mapping[str, Image.Image],
    scale: float,
) -> Image.Image:
    """
    Render a job to a new RGB surface.

    Slots with no assignment, or whose image is missing from ``images``,
    are skipped and show the white background. Rendering is deterministic:
    identical inputs produce pixel-identical surfaces.

    Args:
        job: Assignments to draw
        template: Template the job was generated for
        images: Decoded images keyed by SourceImage id (read only)
        scale: Multiple of BASE_WIDTH for the output width

    Returns:
        RGB image of size surface_size(scale, job.aspect_ratio)

    Raises:
        ValueError: If scale is not positive

    Example:
        >>> surface = render_job(job, template, table, OutputQuality.K2.scale)
        >>> surface.size
        (2160, 2160)
    """
    width, height = surface_size(scale, job.aspect_ratio)
    surface = Image.new("RGB", (width, height), BACKGROUND)

    for slot in template.slots_by_stack_order():
        assignment = job.assignment_for(slot.id)
        if assignment is None:
            continue
        source = images.get(assignment.image_id)
        if source is None:
            logger.debug(f"Job {job.id}: image {assignment.image_id} not loaded, skipping slot {slot.id}")
            continue

        left, top, right, bottom = _slot_box(slot, width, height)
        size = (right - left, bottom - top)
        if size[0] <= 0 or size[1] <= 0:
            logger.debug(f"Job {job.id}: slot {slot.id} collapses at {width}x{height}")
            continue

        tile = crop_image(source, assignment.crop, size)
        if tile.mode != "RGB":
            tile = tile.convert("RGB")
        mask = _rounded_mask(size, slot.corner_radius * width)
        surface.paste(tile, (left, top), mask)

    return surface


def render_preview(
    job: CompositionJob,
    template: Template,
    images: Mapping[str, Image.Image],
) -> Image.Image:
    """Render at gallery size (PREVIEW_WIDTH pixels wide)."""
    return render_job(job, template, images, PREVIEW_SCALE)


def render_batch(
    jobs: Sequence[CompositionJob],
    template: Template,
    images: Mapping[str, Image.Image],
    scale: float,
    *,
    max_workers: int = 1,
) -> List[Image.Image]:
    """
    Render many jobs; results are returned in job order.

    ``images`` must not change while the batch runs.

    Args:
        max_workers: Thread count; 1 renders sequentially
    """
    if max_workers <= 1 or len(jobs) <= 1:
        return [render_job(job, template, images, scale) for job in jobs]

    logger.debug(f"Rendering {len(jobs)} jobs on {max_workers} threads")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda job: render_job(job, template, images, scale), jobs))


def encode_image(
    surface: Image.Image,
    fmt: str = "JPEG",
    quality: int = EXPORT_JPEG_QUALITY,
) -> bytes:
    """
    Encode a surface to bytes.

    Args:
        surface: Image to encode
        fmt: Pillow format name ("JPEG", "PNG", "WEBP")
        quality: 1-100 for lossy formats, ignored otherwise
    """
    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    buf = io.BytesIO()
    if fmt == "JPEG":
        if surface.mode != "RGB":
            surface = surface.convert("RGB")
        surface.save(buf, format=fmt, quality=quality)
    elif fmt == "WEBP":
        surface.save(buf, format=fmt, quality=quality)
    else:
        surface.save(buf, format=fmt)
    return buf.getvalue()
