"""Entity metadata: descriptors, registry and identifier lookup."""

from docmap.mapping.contracts import MetadataRegistry, PropertyAccessor
from docmap.mapping.lookup import (
    get_identifier_property,
    get_persistent_entity,
    retrieve_identifier_value,
)
from docmap.mapping.model import (
    AttributePropertyAccessor,
    DocumentMapping,
    PersistentEntity,
    PersistentProperty,
)
from docmap.mapping.registry import EntityRegistry, Id, build_persistent_entity, document

__all__ = [
    "AttributePropertyAccessor",
    "DocumentMapping",
    "EntityRegistry",
    "Id",
    "MetadataRegistry",
    "PersistentEntity",
    "PersistentProperty",
    "PropertyAccessor",
    "build_persistent_entity",
    "document",
    "get_identifier_property",
    "get_persistent_entity",
    "retrieve_identifier_value",
]
