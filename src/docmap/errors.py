"""Error taxonomy for docmap.

All errors are programming or configuration errors, never transient
conditions. Nothing in docmap retries. Absence that is a valid outcome
(unregistered type on an optional lookup, literal template, unset
identifier) is ``None``, never an exception.
"""

from __future__ import annotations

from typing import Any


class DocmapError(Exception):
    """Base class for every error raised by docmap."""


class ExpressionEvaluationError(DocmapError):
    """A template is malformed or its evaluation failed."""

    def __init__(self, message: str, *, template: str | None = None) -> None:
        super().__init__(message)
        self.template = template


class UnknownEntityError(DocmapError):
    """The metadata registry holds no descriptor for a type."""

    def __init__(self, entity_type: type[Any]) -> None:
        super().__init__(f"No persistent entity information found for the class {entity_type!r}")
        self.entity_type = entity_type


class MissingIdentifierPropertyError(DocmapError):
    """Identifier retrieval was requested for a type without an identifier property."""

    def __init__(self, entity_type: type[Any]) -> None:
        super().__init__(f"Unable to retrieve expected identifier property of {entity_type!r}")
        self.entity_type = entity_type


class MappingError(DocmapError):
    """An entity type cannot be mapped (e.g. two identifier properties)."""


class ConfigError(DocmapError):
    """``docmap.toml`` cannot be parsed."""
