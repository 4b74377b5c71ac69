"""
Module: composer.images.cropper

Purpose:
    Focal-point-aware smart cropping. Computes the largest source region
    with a target aspect ratio that keeps the image's focal point as
    centered as the image edges allow, and extracts such regions from
    decoded images.

Key Functions:
    - compute_crop(): Crop rectangle in source pixel space (pure)
    - crop_image(): Extract and resample a crop region from a PIL image

Dependencies:
    - PIL: Image resampling
    - compai.core.models: Rect, SourceImage

Used By:
    - composer.selection.generator: Crop per slot assignment
    - composer.output.renderer: Draws crop regions into slots
"""

from __future__ import annotations

import math
from typing import Tuple

from PIL import Image

from compai.core.models import Rect, SourceImage

# Resampling filter used for every crop-to-slot scale
RESAMPLE = Image.Resampling.LANCZOS


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def compute_crop(image: SourceImage, target_aspect_ratio: float) -> Rect:
    """
    Compute the crop region of an image for a target aspect ratio.

    The crop always spans one full image dimension. When the image is
    relatively wider than the target, the crop takes the full height and
    slides horizontally to center on ``focal_point.x``; otherwise it takes
    the full width and slides vertically to center on ``focal_point.y``.
    The offset is clamped so the crop never leaves the image, which makes
    out-of-range focal points saturate to the nearest edge.

    Args:
        image: Source image metadata (dimensions and focal point)
        target_aspect_ratio: Desired crop width/height

    Returns:
        Rect in the image's pixel space with w/h == target_aspect_ratio

    Raises:
        ValueError: If target_aspect_ratio is not a positive finite number

    Example:
        >>> img = SourceImage("a", width=2000, height=1000)
        >>> compute_crop(img, 1.0)
        Rect(x=500.0, y=0, w=1000.0, h=1000)
    """
    if not math.isfinite(target_aspect_ratio) or target_aspect_ratio <= 0:
        raise ValueError(
            f"target_aspect_ratio must be a positive finite number: {target_aspect_ratio}"
        )

    width = image.width
    height = image.height
    focal = image.focal_point

    if image.aspect_ratio > target_aspect_ratio:
        # Wider than target: trim the sides
        crop_h = height
        crop_w = crop_h * target_aspect_ratio
        crop_x = _clamp(focal.x * width - crop_w / 2, 0, width - crop_w)
        crop_y = 0
    else:
        # Taller than (or same shape as) target: trim top/bottom
        crop_w = width
        crop_h = crop_w / target_aspect_ratio
        crop_y = _clamp(focal.y * height - crop_h / 2, 0, height - crop_h)
        crop_x = 0

    return Rect(crop_x, crop_y, crop_w, crop_h)


def crop_image(
    image: Image.Image,
    crop: Rect,
    size: Tuple[int, int],
) -> Image.Image:
    """
    Extract a crop region from a decoded image, resampled to a size.

    The region is passed to Pillow as a float box, so sub-pixel crop
    offsets are honored rather than rounded.

    Args:
        image: Decoded source image
        crop: Region in the image's pixel space
        size: Output (width, height) in pixels

    Returns:
        New image of exactly ``size``

    Raises:
        ValueError: If size has a non-positive dimension
    """
    w, h = size
    if w <= 0 or h <= 0:
        raise ValueError(f"size must be positive: {size}")
    # Float error can push the far edge a hair past the image; Pillow rejects that
    left, upper, right, lower = crop.to_box()
    box = (
        max(0.0, left),
        max(0.0, upper),
        min(float(image.width), right),
        min(float(image.height), lower),
    )
    return image.resize((w, h), resample=RESAMPLE, box=box)
