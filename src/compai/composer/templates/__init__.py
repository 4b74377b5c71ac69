"""
Module: composer.templates

Purpose:
    Bundled layout catalogue and the immutable registry that serves it.

Key Functions:
    - get_registry(): All bundled templates, in catalogue order
    - get_template(): Lookup by id
    - load_templates(): Load a custom catalogue file

Key Classes:
    - TemplateRegistry
    - TemplateNotFoundError
    - TemplateLoadError
"""

from .registry import (
    TemplateRegistry,
    TemplateNotFoundError,
    TemplateLoadError,
    get_registry,
    get_template,
    load_templates,
)

__all__ = [
    "TemplateRegistry",
    "TemplateNotFoundError",
    "TemplateLoadError",
    "get_registry",
    "get_template",
    "load_templates",
]
