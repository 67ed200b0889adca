"""Exceptions raised by the generator pipeline."""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for generator failures."""


class ResolveError(GeneratorError):
    """A package could not be listed or one of its modules could not be parsed."""


class EmitError(GeneratorError):
    """The generated module could not be written."""


class InvalidIdentifierError(GeneratorError, ValueError):
    """A type name cannot be turned into repository identifiers."""


class TemplateError(GeneratorError):
    """A template record does not match its declared parameters."""
