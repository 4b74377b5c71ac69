"""
Module: composer.images.provider

Purpose:
    Image decoding and the decoded-image table. Turns user-supplied files
    (paths, bytes or binary streams) into a SourceImage plus a renderable
    PIL image, and owns those PIL images until they are removed.

Key Functions:
    - decode_image(): Decode one source into (SourceImage, PIL.Image)
    - new_image_id(): Unique session-stable id

Key Classes:
    - ImageDecodeError: Source could not be decoded
    - ImageTable: Mapping of image id -> decoded PIL image

Dependencies:
    - PIL: Decoding, EXIF orientation

Used By:
    - composer.session: Pool management
    - composer.output.renderer: Read-only lookup during a render batch
"""

from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Mapping, Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from compai.core.models import SourceImage

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, BinaryIO]


class ImageDecodeError(Exception):
    """Image source could not be read or decoded."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


def new_image_id(prefix: str = "img") -> str:
    """Return a fresh unique image id like ``img-3f2a9c1d04be``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _describe(source: ImageSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    return getattr(source, "name", "<stream>")


def decode_image(
    source: ImageSource,
    image_id: Optional[str] = None,
) -> Tuple[SourceImage, Image.Image]:
    """
    Decode an image source.

    EXIF orientation is applied so the reported dimensions match what is
    drawn. Multi-frame files decode as their first frame. The result is
    fully loaded and converted to RGB, so the source file handle is not
    kept open.

    Args:
        source: File path, raw bytes or a binary file object
        image_id: Id to assign (a fresh one is generated if None)

    Returns:
        Tuple of (SourceImage metadata, decoded RGB PIL image)

    Raises:
        ImageDecodeError: If the source is unreadable or not an image

    Example:
        >>> meta, img = decode_image(Path("photos/kitchen.jpg"))
        >>> meta.width == img.width
        True
    """
    label = _describe(source)
    source_path = Path(source) if isinstance(source, (str, Path)) else None

    try:
        if isinstance(source, bytes):
            opened = Image.open(io.BytesIO(source))
        else:
            opened = Image.open(source)
        with opened:
            oriented = ImageOps.exif_transpose(opened)
            decoded = oriented.convert("RGB")
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Cannot decode image {label}: {e}", source=label) from e

    meta = SourceImage(
        id=image_id or new_image_id(),
        width=decoded.width,
        height=decoded.height,
        source_path=source_path,
    )
    logger.debug(f"Decoded {label} as {meta.id} ({meta.width}x{meta.height})")
    return meta, decoded


class ImageTable(Mapping[str, Image.Image]):
    """
    Decoded images keyed by SourceImage id.

    The renderer only reads from the table; it is built once per active
    image set and treated as immutable for the duration of a render batch.
    Removing an entry closes its PIL image.

    Example:
        >>> with ImageTable() as table:
        ...     table.add("a", img)
        ...     surface = render_job(job, template, table, 1.0)
    """

    def __init__(self) -> None:
        self._images: Dict[str, Image.Image] = {}

    def __getitem__(self, image_id: str) -> Image.Image:
        return self._images[image_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def add(self, image_id: str, image: Image.Image) -> None:
        """Register a decoded image, closing any image it replaces."""
        previous = self._images.get(image_id)
        if previous is not None and previous is not image:
            previous.close()
        self._images[image_id] = image

    def remove(self, image_id: str) -> bool:
        """Drop and close an image. Returns False if the id was unknown."""
        image = self._images.pop(image_id, None)
        if image is None:
            return False
        image.close()
        return True

    def snapshot(self) -> Mapping[str, Image.Image]:
        """Shallow copy for handing to render threads."""
        return dict(self._images)

    def close(self) -> None:
        """Close every image and empty the table."""
        for image in self._images.values():
            image.close()
        self._images.clear()

    def __enter__(self) -> "ImageTable":
        """Context manager entry."""
        return self

    def __exit__(self, *args) -> None:
        """Context manager exit - close resources."""
        self.close()
