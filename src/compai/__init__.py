"""Top-level package for the CompAI compositor.

Provides subpackages:
- compai.core – immutable models and schema validation
- compai.common – presets for aspect ratios and output quality
- compai.composer – templates, cropping, variation generation, rendering
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("compai")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0"

__all__: list[str] = ["__version__"]
