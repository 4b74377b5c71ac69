"""
Module: composer.selection.generator

Purpose:
    Variation generator. Produces a batch of independent composition jobs
    for one template, each using every image at most once, so that the
    same image pool yields many distinct composites.

Key Functions:
    - generate_variations(): Main entry point
    - count_unfilled(): Slots a job leaves empty

Key Classes:
    - VariationGenerator: Per-run orchestrator holding the random source
    - GenerationError: Invalid generator input

Algorithm (per job i, independently):
    1. Copy the pool
    2. Resolve the hero slot (rule slot, else first declared slot)
    3. Hero gets the fixed image, or the i-th (cyclic) pool image of the
       preferred category, or the i-th (cyclic) pool image
    4. Shuffle what is left once and fill remaining slots in declaration
       order; slots left over when the pool runs dry stay empty
    5. Crop every assignment against its slot's on-canvas aspect ratio

Dependencies:
    - compai.core.models: Template, SourceImage, CompositionJob
    - composer.images.cropper: compute_crop()

Used By:
    - composer.controller: Build pipeline
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from compai.common.presets import DEFAULT_JOB_COUNT
from compai.core.models import (
    CompositionJob,
    Slot,
    SlotAssignment,
    SourceImage,
    Template,
)

from ..images.cropper import compute_crop

logger = logging.getLogger(__name__)


class GenerationError(ValueError):
    """Invalid input to the variation generator."""
    pass


def generate_variations(
    fixed_image: Optional[SourceImage],
    pool: Sequence[SourceImage],
    template: Template,
    aspect_ratio: float,
    count: int = DEFAULT_JOB_COUNT,
    *,
    rng: Optional[random.Random] = None,
) -> List[CompositionJob]:
    """
    Generate ``count`` composition jobs for a template.

    Args:
        fixed_image: Image pinned to the hero slot of every job, or None
        pool: Variable images, in upload order
        template: Layout to fill
        aspect_ratio: Width/height of the composite
        count: Number of jobs to produce
        rng: Random source for the per-job shuffle (seed it for
            reproducible output)

    Returns:
        List of exactly ``count`` jobs

    Raises:
        GenerationError: If template is None, aspect_ratio is not a positive
            finite number, or count < 1

    Example:
        >>> jobs = generate_variations(None, pool, get_template("grid-2x2"), 1.0, 5,
        ...                            rng=random.Random(7))
        >>> len(jobs)
        5
    """
    generator = VariationGenerator(
        template=template,
        aspect_ratio=aspect_ratio,
        rng=rng,
    )
    return generator.run(fixed_image, pool, count)


def count_unfilled(job: CompositionJob, template: Template) -> int:
    """Number of template slots the job leaves empty."""
    return max(0, template.slot_count - job.filled_slot_count)


@dataclass
class VariationGenerator:
    """
    Variation generation orchestrator.

    Attributes:
        template: Layout to fill
        aspect_ratio: Width/height of the composite
        rng: Random source; a fresh unseeded Random if None
    """

    template: Template
    aspect_ratio: float
    rng: Optional[random.Random] = None

    # Internal state
    _rng: random.Random = field(init=False)
    _run_id: str = field(init=False)

    def __post_init__(self) -> None:
        """Validate input and initialize internal state."""
        if self.template is None:
            raise GenerationError("template is required")
        if (
            self.aspect_ratio is None
            or not math.isfinite(self.aspect_ratio)
            or self.aspect_ratio <= 0
        ):
            raise GenerationError(
                f"aspect_ratio must be a positive finite number: {self.aspect_ratio}"
            )
        self._rng = self.rng if self.rng is not None else random.Random()
        self._run_id = uuid.uuid4().hex[:8]

    def run(
        self,
        fixed_image: Optional[SourceImage],
        pool: Sequence[SourceImage],
        count: int = DEFAULT_JOB_COUNT,
    ) -> List[CompositionJob]:
        """
        Produce ``count`` jobs.

        Raises:
            GenerationError: If count < 1
        """
        if count < 1:
            raise GenerationError(f"count must be at least 1: {count}")

        base_pool = self._prepare_pool(fixed_image, pool)
        logger.info(
            f"Generating {count} variations of {self.template.id!r} "
            f"(fixed={'yes' if fixed_image else 'no'}, pool={len(base_pool)}, "
            f"aspect={self.aspect_ratio:.3f})"
        )

        jobs = [self._build_job(i, fixed_image, base_pool) for i in range(count)]

        partial = sum(1 for job in jobs if count_unfilled(job, self.template))
        if partial:
            logger.debug(f"{partial}/{count} jobs leave slots empty")
        return jobs

    def _prepare_pool(
        self,
        fixed_image: Optional[SourceImage],
        pool: Sequence[SourceImage],
    ) -> List[SourceImage]:
        """Drop repeated ids and the fixed image from the pool, keeping order."""
        seen = {fixed_image.id} if fixed_image is not None else set()
        prepared = []
        for image in pool:
            if image.id in seen:
                logger.debug(f"Ignoring repeated pool image {image.id}")
                continue
            seen.add(image.id)
            prepared.append(image)
        return prepared

    def _build_job(
        self,
        index: int,
        fixed_image: Optional[SourceImage],
        base_pool: List[SourceImage],
    ) -> CompositionJob:
        working = list(base_pool)
        assignments: List[SlotAssignment] = []

        hero_slot = self._hero_slot()
        if hero_slot is not None:
            hero = fixed_image
            if hero is None:
                hero = self._pick_hero(index, working)
                if hero is not None:
                    working.remove(hero)
            if hero is not None:
                assignments.append(self._assign(hero_slot, hero))

        assigned = {a.slot_id for a in assignments}
        remaining = [s for s in self.template.slots if s.id not in assigned]

        self._rng.shuffle(working)
        for slot in remaining:
            if not working:
                logger.debug(f"Job {index}: no image left for slot {slot.id}")
                continue
            assignments.append(self._assign(slot, working.pop(0)))

        return CompositionJob(
            id=f"job-{self._run_id}-{index}",
            template_id=self.template.id,
            aspect_ratio=self.aspect_ratio,
            assignments=tuple(assignments),
        )

    def _hero_slot(self) -> Optional[Slot]:
        slot_id = self.template.hero_slot_id
        if slot_id is None:
            return None
        return self.template.get_slot(slot_id)

    def _pick_hero(self, index: int, working: List[SourceImage]) -> Optional[SourceImage]:
        """Cyclic pick: preferred category first, then the whole pool."""
        if not working:
            return None
        category = self.template.preferred_category
        if category is not None:
            candidates = [img for img in working if img.category == category]
            if candidates:
                return candidates[index % len(candidates)]
        return working[index % len(working)]

    def _assign(self, slot: Slot, image: SourceImage) -> SlotAssignment:
        crop = compute_crop(image, slot.effective_aspect_ratio(self.aspect_ratio))
        return SlotAssignment(slot_id=slot.id, image_id=image.id, crop=crop)
