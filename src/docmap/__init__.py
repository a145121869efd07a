"""docmap — bind entity classes to document URIs and collections."""

from docmap.addressing import DocumentAddressing, OperationOptions
from docmap.errors import (
    DocmapError,
    ExpressionEvaluationError,
    MappingError,
    MissingIdentifierPropertyError,
    UnknownEntityError,
)
from docmap.expression import ResolutionContext, expand, resolve, resolve_for_type
from docmap.mapping import (
    EntityRegistry,
    Id,
    document,
    get_identifier_property,
    get_persistent_entity,
    retrieve_identifier_value,
)

__version__ = "0.1.0"

__all__ = [
    "DocmapError",
    "DocumentAddressing",
    "EntityRegistry",
    "ExpressionEvaluationError",
    "Id",
    "MappingError",
    "MissingIdentifierPropertyError",
    "OperationOptions",
    "ResolutionContext",
    "UnknownEntityError",
    "__version__",
    "document",
    "expand",
    "get_identifier_property",
    "get_persistent_entity",
    "resolve",
    "resolve_for_type",
    "retrieve_identifier_value",
]
