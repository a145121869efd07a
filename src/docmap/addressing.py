"""Document addressing — URIs and collections of mapped entities.

Combines the metadata lookup with the template resolver: the entity's
descriptor supplies the templates, the lookup supplies the identifier
(lazily, only for templates that reference ``id``), and the resolver
materializes the final string.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from docmap.expression import ExpressionEngine, ResolutionContext, resolve
from docmap.mapping.lookup import get_persistent_entity, retrieve_identifier_value

if TYPE_CHECKING:
    from docmap.config.settings import DocmapSettings
    from docmap.mapping.contracts import MetadataRegistry

logger = logging.getLogger(__name__)

DEFAULT_URI_TEMPLATE = "/#{entityClass.simpleName}/#{id}.xml"


class OperationOptions(BaseModel):
    """Store-wide defaults applied when an entity declares nothing.

    Attributes:
        default_uri: URI template for entities without their own.
        default_collection: Collection template for entities without their own.
        id_in_property_fragment: Default identifier placement.
    """

    model_config = {"frozen": True}

    default_uri: str = DEFAULT_URI_TEMPLATE
    default_collection: str | None = None
    id_in_property_fragment: bool = False

    @classmethod
    def from_settings(cls, settings: DocmapSettings) -> OperationOptions:
        return cls(
            default_uri=settings.mapping.default_uri,
            default_collection=settings.mapping.default_collection,
            id_in_property_fragment=settings.mapping.id_in_property_fragment,
        )


class DocumentAddressing:
    """Resolve where mapped entities live in the document store.

    Usage::

        addressing = DocumentAddressing(registry)
        addressing.uri_for(user)          # "/User/42.xml"
        addressing.collection_for(user)   # "users"
    """

    def __init__(
        self,
        registry: MetadataRegistry,
        options: OperationOptions | None = None,
        *,
        engine: ExpressionEngine | None = None,
    ) -> None:
        self._registry = registry
        self._options = options or OperationOptions()
        self._engine = engine

    @property
    def options(self) -> OperationOptions:
        return self._options

    def uri_for(self, entity: Any) -> str | None:
        """Document URI of *entity*.

        Raises:
            UnknownEntityError: The entity type is not registered.
            MissingIdentifierPropertyError: The template needs ``id`` and
                the type declares none.
            ExpressionEvaluationError: The template cannot be evaluated.
        """
        descriptor = get_persistent_entity(type(entity), self._registry)
        template = _attribute(descriptor, "uri") or self._options.default_uri
        context = ResolutionContext(
            entity_class=type(entity),
            entity=entity,
            id_supplier=lambda: retrieve_identifier_value(entity, self._registry),
        )
        uri = resolve(template, context, engine=self._engine)
        logger.debug("Resolved uri %r for %s", uri, type(entity).__name__)
        return uri

    def collection_for(self, entity: Any) -> str | None:
        """Default collection of *entity*, or None when none is configured."""
        descriptor = get_persistent_entity(type(entity), self._registry)
        template = _attribute(descriptor, "default_collection") or self._options.default_collection
        context = ResolutionContext(
            entity_class=type(entity),
            entity=entity,
            id_supplier=lambda: retrieve_identifier_value(entity, self._registry),
        )
        return resolve(template, context, engine=self._engine)

    def collection_for_type(self, entity_type: type[Any]) -> str | None:
        """Default collection of *entity_type*; only ``entityClass`` is in scope."""
        descriptor = get_persistent_entity(entity_type, self._registry)
        template = _attribute(descriptor, "default_collection") or self._options.default_collection
        return resolve(template, ResolutionContext(entity_class=entity_type), engine=self._engine)

    def id_in_property_fragment(self, entity_type: type[Any]) -> bool:
        descriptor = get_persistent_entity(entity_type, self._registry)
        if getattr(descriptor, "id_in_property_fragment", False) is True:
            return True
        return self._options.id_in_property_fragment


def _attribute(descriptor: Any, name: str) -> str | None:
    # Registries other than EntityRegistry may hand back descriptors without addressing data.
    value = getattr(descriptor, name, None)
    return value if isinstance(value, str) else None
