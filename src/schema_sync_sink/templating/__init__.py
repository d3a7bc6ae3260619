"""Template exports."""

from .template import InvalidTemplateError, Template, TemplateResolutionError, tokenize

__all__ = [
    "InvalidTemplateError",
    "Template",
    "TemplateResolutionError",
    "tokenize",
]
