"""
Schema Validation Utilities

Validates JSON data against the bundled schemas.

- ``templates.schema.json``: the authored template catalogue
- ``analysis.schema.json``: the reply expected from the vision model

Both validators fail fast with a ValidationError carrying the JSON path of
the first violation. Template catalogues also get semantic checks the
schema cannot express (unique template and slot ids).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


# Schema version constants
TEMPLATES_SCHEMA_VERSION = 1


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _validate(data: Any, schema_name: str) -> None:
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValidationError(
            f"Schema validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
        ) from e


def validate_templates(data: dict[str, Any]) -> None:
    """
    Validate a template catalogue.

    Args:
        data: Parsed templates.json content

    Raises:
        ValidationError: If the catalogue is malformed, has the wrong
            schema version, or repeats a template or slot id
    """
    _validate(data, "templates")

    version = data.get("schema_version")
    if version != TEMPLATES_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported templates schema version: {version} (expected {TEMPLATES_SCHEMA_VERSION})",
            path="schema_version",
        )

    template_ids: set[str] = set()
    for i, template in enumerate(data["templates"]):
        tid = template["id"]
        if tid in template_ids:
            raise ValidationError(
                f"Duplicate template id: {tid!r}",
                path=f"templates.{i}.id",
            )
        template_ids.add(tid)

        slot_ids: set[str] = set()
        for j, slot in enumerate(template["slots"]):
            if slot["id"] in slot_ids:
                raise ValidationError(
                    f"Duplicate slot id {slot['id']!r} in template {tid!r}",
                    path=f"templates.{i}.slots.{j}.id",
                )
            slot_ids.add(slot["id"])


def validate_analysis(data: Any) -> None:
    """
    Validate a vision analysis reply.

    Raises:
        ValidationError: If the reply lacks a focal point, category or
            description, or names an unknown category
    """
    _validate(data, "analysis")
