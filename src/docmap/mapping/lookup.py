"""Metadata-driven identifier and descriptor lookup.

Stateless helpers over any :class:`MetadataRegistry`. Optional lookups
return ``None``; lookups whose callers need a guaranteed descriptor
raise instead of handing back a silent ``None``.
"""

from __future__ import annotations

import logging
from typing import Any

from docmap.errors import MissingIdentifierPropertyError, UnknownEntityError
from docmap.mapping.contracts import MetadataRegistry, PersistentEntity, PersistentProperty

logger = logging.getLogger(__name__)


def get_identifier_property(
    entity_type: type[Any], registry: MetadataRegistry
) -> PersistentProperty | None:
    """Identifier property of *entity_type*, or None if unregistered or undeclared."""
    entity = registry.get_persistent_entity(entity_type)
    return None if entity is None else entity.id_property


def get_persistent_entity(entity_type: type[Any], registry: MetadataRegistry) -> PersistentEntity:
    """Descriptor of *entity_type*.

    Raises:
        UnknownEntityError: The registry has no descriptor for the type.
    """
    entity = registry.get_persistent_entity(entity_type)
    if entity is None:
        logger.debug("No persistent entity registered for %r", entity_type)
        raise UnknownEntityError(entity_type)
    return entity


def retrieve_identifier_value(instance: Any, registry: MetadataRegistry) -> Any:
    """Read the identifier of *instance* through its entity's property accessor.

    Returns the raw value, which may be None when the identifier is unset.

    Raises:
        MissingIdentifierPropertyError: The runtime type declares no identifier.
        UnknownEntityError: The runtime type is not registered.
    """
    entity_type = type(instance)
    id_property = get_identifier_property(entity_type, registry)
    if id_property is None:
        logger.debug("No identifier property for %r", entity_type)
        raise MissingIdentifierPropertyError(entity_type)

    entity = get_persistent_entity(entity_type, registry)
    return entity.get_property_accessor(instance).get_property(id_property)
