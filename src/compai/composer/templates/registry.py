"""
Module: composer.templates.registry

Purpose:
    Immutable template registry. The bundled catalogue (templates.json) is
    validated against its JSON schema and loaded once per process; callers
    look templates up by id and never mutate them.

Key Functions:
    - load_templates(): Parse and validate a catalogue file
    - get_registry(): Cached registry of the bundled catalogue
    - get_template(): Lookup by id

Key Classes:
    - TemplateRegistry: Read-only mapping of id -> Template
    - TemplateNotFoundError: Unknown template id
    - TemplateLoadError: Catalogue unreadable or invalid

Dependencies:
    - json (std)
    - compai.core.schemas: JSON schema validation (jsonschema)

Used By:
    - composer.controller: Resolves the configured template
    - cli: Template listing
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from compai.core.models import Template
from compai.core.schemas import ValidationError, validate_templates

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATES_PATH = Path(__file__).resolve().parent / "templates.json"


class TemplateLoadError(RuntimeError):
    """Raised when a template catalogue cannot be read or is invalid."""


class TemplateNotFoundError(KeyError):
    """Raised when a template id is not registered."""


class TemplateRegistry(Mapping[str, Template]):
    """
    Read-only mapping of template id to Template.

    Iteration follows catalogue order, which is also the listing order
    shown to users. The first template is the default selection.

    Example:
        >>> registry = get_registry()
        >>> registry["grid-2x2"].name
        'Classic Grid'
    """

    def __init__(self, templates: Tuple[Template, ...]) -> None:
        by_id = {}
        for template in templates:
            if template.id in by_id:
                raise TemplateLoadError(f"Duplicate template id: {template.id!r}")
            by_id[template.id] = template
        self._templates = MappingProxyType(by_id)
        self._order = tuple(t.id for t in templates)

    def __getitem__(self, template_id: str) -> Template:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(
                f"Unknown template {template_id!r}. Available: {', '.join(self._order)}"
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    @property
    def default(self) -> Optional[Template]:
        """First template in catalogue order."""
        if not self._order:
            return None
        return self._templates[self._order[0]]


def load_templates(path: Path) -> TemplateRegistry:
    """
    Load and validate a template catalogue.

    Args:
        path: JSON catalogue following templates.schema.json

    Returns:
        TemplateRegistry in catalogue order

    Raises:
        TemplateLoadError: If the file is missing, not JSON, or invalid
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise TemplateLoadError(f"Cannot read template catalogue {path}: {e}") from e

    try:
        validate_templates(data)
    except ValidationError as e:
        where = f" at {e.path}" if e.path else ""
        raise TemplateLoadError(f"Invalid template catalogue {path}{where}: {e}") from e

    templates = tuple(Template.from_dict(t) for t in data["templates"])
    for template in templates:
        rule = template.hero_rule
        if rule is not None and template.get_slot(rule.slot_id) is None:
            logger.warning(
                f"Template {template.id!r} names hero slot {rule.slot_id!r} "
                "which it does not declare; no hero will be assigned"
            )

    logger.debug(f"Loaded {len(templates)} templates from {path}")
    return TemplateRegistry(templates)


@lru_cache(maxsize=1)
def get_registry() -> TemplateRegistry:
    """Registry of the bundled catalogue, loaded on first use."""
    return load_templates(BUNDLED_TEMPLATES_PATH)


def get_template(template_id: str) -> Template:
    """
    Look up a bundled template by id.

    Raises:
        TemplateNotFoundError: If no template has this id
    """
    return get_registry()[template_id]
