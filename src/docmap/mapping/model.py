"""Concrete persistent entity and property descriptors.

INVARIANT: A property refers back to its declaring entity through a weak
reference. The entity owns its properties, never the reverse.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any

from docmap.errors import MappingError


@dataclass(frozen=True, slots=True)
class DocumentMapping:
    """Addressing templates attached to an entity type.

    Attributes:
        uri: Document URI template, ``None`` to use the configured default.
        collection: Default collection template, if any.
        id_in_property_fragment: Store the identifier inside a property
            fragment rather than the document itself.
    """

    uri: str | None = None
    collection: str | None = None
    id_in_property_fragment: bool = False


class PersistentProperty:
    """Metadata for one persistent property of an entity type."""

    __slots__ = ("_name", "_annotation", "_is_id", "_owner")

    def __init__(
        self,
        name: str,
        owner: PersistentEntity,
        *,
        annotation: Any = Any,
        is_id: bool = False,
    ) -> None:
        self._name = name
        self._annotation = annotation
        self._is_id = is_id
        self._owner = weakref.ref(owner)

    @property
    def name(self) -> str:
        return self._name

    @property
    def annotation(self) -> Any:
        return self._annotation

    @property
    def is_id(self) -> bool:
        return self._is_id

    @property
    def owner(self) -> PersistentEntity | None:
        """Declaring entity, or None once it has been garbage collected."""
        return self._owner()

    def __repr__(self) -> str:
        owner = self.owner
        owner_name = owner.type.__name__ if owner is not None else "?"
        return f"PersistentProperty({owner_name}.{self._name}, is_id={self._is_id})"


class AttributePropertyAccessor:
    """Reads and writes properties of one instance.

    Mapping instances are accessed by key, everything else by attribute.
    An unset property reads as ``None``.
    """

    __slots__ = ("_instance",)

    def __init__(self, instance: Any) -> None:
        self._instance = instance

    @property
    def instance(self) -> Any:
        return self._instance

    def get_property(self, prop: PersistentProperty) -> Any:
        if isinstance(self._instance, Mapping):
            return self._instance.get(prop.name)
        return getattr(self._instance, prop.name, None)

    def set_property(self, prop: PersistentProperty, value: Any) -> None:
        if isinstance(self._instance, MutableMapping):
            self._instance[prop.name] = value
        else:
            setattr(self._instance, prop.name, value)


class PersistentEntity:
    """Metadata describing how one type maps to the document store."""

    def __init__(self, entity_type: type[Any], mapping: DocumentMapping | None = None) -> None:
        self._type = entity_type
        self._mapping = mapping or DocumentMapping()
        self._properties: dict[str, PersistentProperty] = {}
        self._id_property: PersistentProperty | None = None

    @property
    def type(self) -> type[Any]:
        return self._type

    @property
    def name(self) -> str:
        return self._type.__name__

    @property
    def mapping(self) -> DocumentMapping:
        return self._mapping

    @property
    def uri(self) -> str | None:
        return self._mapping.uri

    @property
    def default_collection(self) -> str | None:
        return self._mapping.collection

    @property
    def id_in_property_fragment(self) -> bool:
        return self._mapping.id_in_property_fragment

    @property
    def id_property(self) -> PersistentProperty | None:
        return self._id_property

    @property
    def properties(self) -> tuple[PersistentProperty, ...]:
        return tuple(self._properties.values())

    def get_property(self, name: str) -> PersistentProperty | None:
        return self._properties.get(name)

    def add_property(self, name: str, *, annotation: Any = Any, is_id: bool = False) -> PersistentProperty:
        """Declare a property. Only used while the entity is being built."""
        if name in self._properties:
            msg = f"Duplicate property {name!r} on {self._type!r}"
            raise MappingError(msg)
        if is_id and self._id_property is not None:
            msg = (
                f"{self._type!r} declares two identifier properties: "
                f"{self._id_property.name!r} and {name!r}"
            )
            raise MappingError(msg)
        prop = PersistentProperty(name, self, annotation=annotation, is_id=is_id)
        self._properties[name] = prop
        if is_id:
            self._id_property = prop
        return prop

    def get_property_accessor(self, instance: Any) -> AttributePropertyAccessor:
        if not isinstance(instance, self._type):
            msg = f"Cannot access {type(instance)!r} through the descriptor of {self._type!r}"
            raise MappingError(msg)
        return AttributePropertyAccessor(instance)

    def __iter__(self) -> Iterator[PersistentProperty]:
        return iter(self._properties.values())

    def __repr__(self) -> str:
        id_name = self._id_property.name if self._id_property is not None else None
        return f"PersistentEntity({self._type.__qualname__}, id={id_name!r})"
