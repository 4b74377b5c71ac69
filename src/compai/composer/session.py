"""
Module: composer.session

Purpose:
    Image session: the set of images a user is composing with. Holds one
    optional fixed image (vision-analyzed on upload) and a bounded pool of
    variable images, and owns the decoded-image table the renderer reads.

    Decode failures never abort an upload; they are collected and
    returned to the caller together with any pool-ceiling truncation.

Key Classes:
    - ImageSession: Fixed image, variable pool, decoded table
    - SessionUpdate: Outcome of adding images

Dependencies:
    - composer.images: decode_image(), analyze_image(), ImageTable

Used By:
    - composer.controller: Build pipeline
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from compai.common.presets import DEFAULT_POOL_CEILING, MIN_IMAGES_TO_GENERATE
from compai.core.models import SourceImage

from .images.analysis import AnalysisResult, analyze_image
from .images.provider import ImageDecodeError, ImageSource, ImageTable, decode_image

logger = logging.getLogger(__name__)

Analyzer = Callable[[bytes], AnalysisResult]


@dataclass(frozen=True)
class SessionUpdate:
    """
    Outcome of adding images to the pool.

    Attributes:
        added: Images accepted, in upload order
        failures: (source label, error message) for images that failed to decode
        dropped: Number of decoded images discarded by the pool ceiling
        notice: User-facing truncation message, or None
    """

    added: Tuple[SourceImage, ...] = ()
    failures: Tuple[Tuple[str, str], ...] = ()
    dropped: int = 0
    notice: Optional[str] = None


def _read_bytes(source: ImageSource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    return source.read()


class ImageSession:
    """
    Images a composite run draws from.

    Example:
        >>> with ImageSession(analyzer=lambda data: AnalysisResult.fallback()) as session:
        ...     session.set_fixed(Path("house.jpg"))
        ...     update = session.add_variable([Path("k.jpg"), Path("b.jpg")])
        ...     session.can_generate
        True
    """

    def __init__(
        self,
        pool_ceiling: int = DEFAULT_POOL_CEILING,
        *,
        analyzer: Optional[Analyzer] = None,
        vision_model: Optional[str] = None,
        ollama_host: Optional[str] = None,
    ) -> None:
        """
        Args:
            pool_ceiling: Maximum number of variable images
            analyzer: Callable used to analyze the fixed image; defaults to
                the Ollama vision adapter with ``vision_model``/``ollama_host``
        """
        if pool_ceiling < 1:
            raise ValueError(f"pool_ceiling must be at least 1: {pool_ceiling}")
        self.pool_ceiling = pool_ceiling
        def _ollama_analyzer(data: bytes) -> AnalysisResult:
            return analyze_image(data, model=vision_model, host=ollama_host)

        self._analyzer = analyzer or _ollama_analyzer
        self._fixed: Optional[SourceImage] = None
        self._pool: List[SourceImage] = []
        self._table = ImageTable()

    # ------------------------------------------------------------------
    # Fixed image
    # ------------------------------------------------------------------

    def set_fixed(self, source: ImageSource, *, analyze: bool = True) -> SourceImage:
        """
        Decode (and optionally analyze) the fixed image, replacing any current one.

        Raises:
            ImageDecodeError: If the source cannot be decoded
        """
        try:
            data = _read_bytes(source)
        except OSError as e:
            raise ImageDecodeError(f"Cannot read image {source}: {e}", source=str(source)) from e

        meta, decoded = decode_image(io.BytesIO(data))
        if isinstance(source, (str, Path)):
            meta = replace(meta, source_path=Path(source))

        if analyze:
            meta = meta.with_analysis(self._analyzer(data))

        self.clear_fixed()
        self._fixed = meta
        self._table.add(meta.id, decoded)
        logger.info(
            f"Fixed image set: {meta.id} ({meta.width}x{meta.height}, category={meta.category})"
        )
        return meta

    def clear_fixed(self) -> None:
        if self._fixed is not None:
            self._table.remove(self._fixed.id)
            self._fixed = None

    # ------------------------------------------------------------------
    # Variable pool
    # ------------------------------------------------------------------

    def add_variable(self, sources: Iterable[ImageSource]) -> SessionUpdate:
        """
        Decode images into the variable pool.

        Images beyond the pool ceiling are discarded, keeping the earliest
        ones. Decode failures are reported, not raised.
        """
        added: List[SourceImage] = []
        failures: List[Tuple[str, str]] = []
        dropped = 0

        for source in sources:
            if len(self._pool) >= self.pool_ceiling:
                dropped += 1
                continue
            try:
                meta, decoded = decode_image(source)
            except ImageDecodeError as e:
                logger.warning(str(e))
                failures.append((e.source, str(e)))
                continue
            self._pool.append(meta)
            self._table.add(meta.id, decoded)
            added.append(meta)

        notice = None
        if dropped:
            notice = (
                f"Pool is limited to {self.pool_ceiling} images; "
                f"{dropped} image(s) were not added"
            )
            logger.warning(notice)

        logger.info(f"Added {len(added)} image(s) to pool ({len(self._pool)}/{self.pool_ceiling})")
        return SessionUpdate(
            added=tuple(added),
            failures=tuple(failures),
            dropped=dropped,
            notice=notice,
        )

    def remove(self, image_id: str) -> bool:
        """Remove an image (fixed or variable) by id. Returns False if unknown."""
        if self._fixed is not None and self._fixed.id == image_id:
            self.clear_fixed()
            return True
        for i, image in enumerate(self._pool):
            if image.id == image_id:
                del self._pool[i]
                self._table.remove(image_id)
                return True
        return False

    def clear_variable(self) -> None:
        for image in self._pool:
            self._table.remove(image.id)
        self._pool.clear()

    def reset(self) -> None:
        """Drop every image and release decoded pixels."""
        self._fixed = None
        self._pool.clear()
        self._table.close()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def fixed_image(self) -> Optional[SourceImage]:
        return self._fixed

    @property
    def pool(self) -> Tuple[SourceImage, ...]:
        return tuple(self._pool)

    @property
    def all_images(self) -> Tuple[SourceImage, ...]:
        """Fixed image first, then the pool in upload order."""
        if self._fixed is None:
            return tuple(self._pool)
        return (self._fixed, *self._pool)

    @property
    def can_generate(self) -> bool:
        return len(self.all_images) >= MIN_IMAGES_TO_GENERATE

    @property
    def images(self) -> ImageTable:
        """Decoded-image table (read only for renderers)."""
        return self._table

    @property
    def sources(self) -> Dict[str, SourceImage]:
        """SourceImage metadata keyed by id."""
        return {image.id: image for image in self.all_images}

    def __enter__(self) -> "ImageSession":
        return self

    def __exit__(self, *args) -> None:
        self.reset()
