"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_templates,
    validate_analysis,
    ValidationError,
    TEMPLATES_SCHEMA_VERSION,
)

__all__ = [
    "validate_templates",
    "validate_analysis",
    "ValidationError",
    "TEMPLATES_SCHEMA_VERSION",
]
