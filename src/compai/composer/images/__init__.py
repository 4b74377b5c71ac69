"""
Module: composer.images

Purpose:
    Image access for the composition engine: decoding user files, the
    decoded-image table, focal-point-aware cropping and vision analysis.

Key Classes:
    - ImageTable: Decoded images keyed by id
    - ImageDecodeError: Decode failure
    - AnalysisResult: Vision analysis outcome

Key Functions:
    - decode_image(): Decode a path/bytes/stream
    - compute_crop(): Smart crop rectangle for a target ratio
    - crop_image(): Extract a crop region at a given size
    - analyze_image(): Vision analysis with fallback

Dependencies:
    - PIL: Decoding and resampling
    - ollama: Vision model client

Used By:
    - composer.selection: Crop per assignment
    - composer.output: Rendering
    - composer.session: Pool management
"""

from .provider import ImageTable, ImageDecodeError, decode_image, new_image_id
from .cropper import compute_crop, crop_image
from .analysis import AnalysisResult, analyze_image

__all__ = [
    "ImageTable",
    "ImageDecodeError",
    "decode_image",
    "new_image_id",
    "compute_crop",
    "crop_image",
    "AnalysisResult",
    "analyze_image",
]
