"""
Module: composer.output

Purpose:
    Raster rendering and export of composition jobs.

Key Functions:
    - render_job(): Render one job to a Pillow surface
    - render_preview(): Gallery-sized render
    - render_batch(): Render many jobs
    - encode_image(): Encode a surface
    - write_composites_zip(): Archive of all composites
    - write_job_package(): Composite plus source files

Dependencies:
    - PIL: Rendering and encoding
    - zipfile (std)

Used By:
    - composer.controller: Pipeline orchestration
"""

from .renderer import (
    encode_image,
    render_batch,
    render_job,
    render_preview,
    surface_size,
)
from .zip_writer import write_composites_zip, write_job_package

__all__ = [
    "encode_image",
    "render_batch",
    "render_job",
    "render_preview",
    "surface_size",
    "write_composites_zip",
    "write_job_package",
]
