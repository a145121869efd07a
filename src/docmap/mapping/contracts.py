"""Narrow collaborator interfaces consumed by the metadata lookup.

Any registry, descriptor or accessor satisfying these protocols works
with :mod:`docmap.mapping.lookup`; :class:`~docmap.mapping.registry.EntityRegistry`
is the bundled implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PersistentProperty(Protocol):
    """Metadata for one persistent property."""

    @property
    def name(self) -> str: ...


@runtime_checkable
class PropertyAccessor(Protocol):
    """Reads property values from the instance it is bound to."""

    def get_property(self, prop: PersistentProperty) -> Any: ...


@runtime_checkable
class PersistentEntity(Protocol):
    """Per-type metadata: identifier property and accessor factory."""

    @property
    def id_property(self) -> PersistentProperty | None: ...

    def get_property_accessor(self, instance: Any) -> PropertyAccessor: ...


@runtime_checkable
class MetadataRegistry(Protocol):
    """Maps entity types to their :class:`PersistentEntity`."""

    def get_persistent_entity(self, entity_type: type[Any]) -> PersistentEntity | None: ...
