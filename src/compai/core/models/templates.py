"""
Module: templates

Purpose:
    Provides the Slot, HeroRule and Template dataclasses - the static,
    declarative description of a composite layout. Slot geometry is in
    normalized (0..1) surface coordinates so a template works for any
    output aspect ratio.

Key Classes:
    - Slot: One rectangular region with corner rounding and stacking order
    - HeroRule: Which slot is the hero and which category it prefers
    - Template: Named, ordered set of slots with an optional hero rule

Dependencies:
    - dataclasses (std)
    - .geometry.Rect
    - .images.ImageCategory

Used By:
    - composer.templates.registry: Loads templates from JSON
    - composer.selection.generator: Slot assignment
    - composer.output.renderer: Draw order and clipping
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .geometry import Rect
from .images import ImageCategory


@dataclass(frozen=True, slots=True)
class Slot:
    """
    One rectangular region of a template.

    Attributes:
        id: Identifier, unique within its template
        rect: Normalized geometry (fractions of surface width/height)
        corner_radius: Rounding radius as a fraction of surface width
        stack_order: Draw order; higher values paint over lower ones

    Example:
        >>> slot = Slot("hero", Rect(0.0, 0.0, 0.65, 1.0))
        >>> slot.effective_aspect_ratio(16 / 9)
        1.1555555555555557
    """

    id: str
    rect: Rect
    corner_radius: float = 0.0
    stack_order: int = 1

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("slot id must be non-empty")
        if not 0.0 <= self.corner_radius <= 1.0:
            raise ValueError(
                f"corner_radius must be within 0..1: {self.corner_radius}"
            )

    def effective_aspect_ratio(self, canvas_aspect_ratio: float) -> float:
        """
        Physical aspect ratio of this slot on a surface of the given ratio.

        Normalized width and height are fractions of different surface
        dimensions, so the slot's real shape depends on the canvas shape.

        Args:
            canvas_aspect_ratio: Width/height of the whole composite

        Returns:
            (rect.w / rect.h) * canvas_aspect_ratio
        """
        return (self.rect.w / self.rect.h) * canvas_aspect_ratio

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            **self.rect.to_dict(),
            "radius": self.corner_radius,
            "z_index": self.stack_order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Slot:
        return cls(
            id=data["id"],
            rect=Rect.from_dict(data),
            corner_radius=float(data.get("radius", 0.0)),
            stack_order=int(data.get("z_index", 1)),
        )


@dataclass(frozen=True, slots=True)
class HeroRule:
    """
    Hero placement rule for a template.

    Attributes:
        slot_id: Slot that receives the most prominent image
        preferred_category: Category to pick from the pool when no fixed
            image is supplied
    """

    slot_id: str
    preferred_category: ImageCategory

    def to_dict(self) -> dict:
        return {
            "slot_id": self.slot_id,
            "preferred_category": self.preferred_category.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> HeroRule:
        return cls(
            slot_id=data["slot_id"],
            preferred_category=ImageCategory(data["preferred_category"]),
        )


@dataclass(frozen=True)
class Template:
    """
    Immutable composite layout.

    Declaration order of ``slots`` carries no meaning beyond being the
    default hero choice and the fill order of the generator; draw order is
    governed by ``Slot.stack_order``.

    Attributes:
        id: Registry key
        name: Display name
        description: One-line description for listings
        slots: Tuple of slots in declaration order
        hero_rule: Optional hero placement rule

    Invariants:
        - slot ids are unique
        - hero_rule.slot_id is not validated against slots; an unknown
          hero slot simply yields no hero assignment

    Example:
        >>> t = Template("solo", "Solo", "One image", (Slot("s1", Rect(0, 0, 1, 1)),))
        >>> t.hero_slot_id
        's1'
    """

    id: str
    name: str
    description: str
    slots: Tuple[Slot, ...]
    hero_rule: Optional[HeroRule] = None

    def __post_init__(self) -> None:
        """Validate slot id uniqueness on construction."""
        if not self.id:
            raise ValueError("template id must be non-empty")
        seen = set()
        for slot in self.slots:
            if slot.id in seen:
                raise ValueError(f"Duplicate slot id {slot.id!r} in template {self.id!r}")
            seen.add(slot.id)

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    @property
    def hero_slot_id(self) -> Optional[str]:
        """Rule slot id if a rule exists, else the first declared slot id."""
        if self.hero_rule is not None:
            return self.hero_rule.slot_id
        if self.slots:
            return self.slots[0].id
        return None

    @property
    def preferred_category(self) -> Optional[ImageCategory]:
        return self.hero_rule.preferred_category if self.hero_rule else None

    def get_slot(self, slot_id: str) -> Optional[Slot]:
        """Find a slot by id, or None."""
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def slots_by_stack_order(self) -> Tuple[Slot, ...]:
        """Slots sorted ascending by stack_order (stable for ties)."""
        return tuple(sorted(self.slots, key=lambda s: s.stack_order))

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "slots": [s.to_dict() for s in self.slots],
        }
        if self.hero_rule is not None:
            d["hero"] = self.hero_rule.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Template:
        hero = data.get("hero")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            slots=tuple(Slot.from_dict(s) for s in data.get("slots", [])),
            hero_rule=HeroRule.from_dict(hero) if hero else None,
        )
