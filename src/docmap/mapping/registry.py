"""In-memory metadata registry built by introspecting entity classes.

Supported entity shapes:

* pydantic models — fields from ``model_fields``
* dataclasses — fields from :func:`dataclasses.fields`
* plain classes — annotated class attributes (``ClassVar`` excluded)

Identifier detection, first match wins:

1. fields marked explicitly — ``Annotated[T, Id]``, pydantic
   ``json_schema_extra={"id": True}`` or dataclass ``metadata={"id": True}``
2. a field named ``id``
3. a field named ``_id``

More than one explicit marker is a :class:`MappingError`.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import typing
from collections.abc import Callable, Iterator
from typing import Any, ClassVar, TypeVar, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from docmap.errors import MappingError
from docmap.mapping.model import DocumentMapping, PersistentEntity

logger = logging.getLogger(__name__)

DOCUMENT_ATTR = "__docmap_document__"
ID_FIELD_NAMES = ("id", "_id")

T = TypeVar("T")


class _IdMarker:
    """Marks the identifier field: ``Annotated[str, Id]``."""

    _instance: ClassVar[_IdMarker | None] = None

    def __new__(cls) -> _IdMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Id"


Id = _IdMarker()


def document(
    uri: str | None = None,
    *,
    collection: str | None = None,
    id_in_property_fragment: bool = False,
) -> Callable[[type[T]], type[T]]:
    """Class decorator recording how a type is addressed in the document store.

    Usage::

        @document(uri="/users/#{id}.xml", collection="users")
        @dataclass
        class User:
            id: str
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(
            cls,
            DOCUMENT_ATTR,
            DocumentMapping(
                uri=uri,
                collection=collection,
                id_in_property_fragment=id_in_property_fragment,
            ),
        )
        return cls

    return decorator


def document_mapping_of(entity_type: type[Any]) -> DocumentMapping | None:
    """The :func:`document` mapping declared on *entity_type* (or a base), if any."""
    mapping = getattr(entity_type, DOCUMENT_ATTR, None)
    return mapping if isinstance(mapping, DocumentMapping) else None


# --- Field introspection ---


def _has_id_marker(annotation: Any) -> bool:
    if get_origin(annotation) is typing.Annotated:
        return any(isinstance(extra, _IdMarker) for extra in get_args(annotation)[1:])
    return False


def _type_hints(entity_type: type[Any]) -> dict[str, Any]:
    try:
        return get_type_hints(entity_type, include_extras=True)
    except (NameError, TypeError):
        logger.debug("Unresolvable annotations on %r, using raw ones", entity_type, exc_info=True)
        hints: dict[str, Any] = {}
        for klass in reversed(entity_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _pydantic_fields(entity_type: type[BaseModel]) -> list[tuple[str, Any, bool]]:
    fields: list[tuple[str, Any, bool]] = []
    for name, info in entity_type.model_fields.items():
        extra = info.json_schema_extra
        marked = any(isinstance(m, _IdMarker) for m in info.metadata) or (
            isinstance(extra, dict) and extra.get("id") is True
        )
        fields.append((name, info.annotation, marked))
    return fields


def _dataclass_fields(entity_type: type[Any]) -> list[tuple[str, Any, bool]]:
    hints = _type_hints(entity_type)
    fields: list[tuple[str, Any, bool]] = []
    for field in dataclasses.fields(entity_type):
        annotation = hints.get(field.name, field.type)
        marked = _has_id_marker(annotation) or field.metadata.get("id") is True
        fields.append((field.name, annotation, marked))
    return fields


def _annotated_fields(entity_type: type[Any]) -> list[tuple[str, Any, bool]]:
    fields: list[tuple[str, Any, bool]] = []
    for name, annotation in _type_hints(entity_type).items():
        if annotation is ClassVar or get_origin(annotation) is ClassVar:
            continue
        if isinstance(annotation, str) and annotation.startswith(("ClassVar", "typing.ClassVar")):
            continue
        fields.append((name, annotation, _has_id_marker(annotation)))
    return fields


def _introspect(entity_type: type[Any]) -> list[tuple[str, Any, bool]]:
    if isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
        return _pydantic_fields(entity_type)
    if dataclasses.is_dataclass(entity_type):
        return _dataclass_fields(entity_type)
    return _annotated_fields(entity_type)


def build_persistent_entity(
    entity_type: type[Any], mapping: DocumentMapping | None = None
) -> PersistentEntity:
    """Introspect *entity_type* into a :class:`PersistentEntity`.

    Raises:
        MappingError: *entity_type* is not a class or declares two identifiers.
    """
    if not isinstance(entity_type, type):
        msg = f"Expected a class, got {entity_type!r}"
        raise MappingError(msg)

    fields = _introspect(entity_type)
    marked = [name for name, _, is_marked in fields if is_marked]
    if len(marked) > 1:
        msg = f"{entity_type!r} declares several identifier properties: {', '.join(marked)}"
        raise MappingError(msg)

    id_name: str | None = marked[0] if marked else None
    if id_name is None:
        names = {name for name, _, _ in fields}
        id_name = next((candidate for candidate in ID_FIELD_NAMES if candidate in names), None)

    entity = PersistentEntity(entity_type, mapping or document_mapping_of(entity_type))
    for name, annotation, _ in fields:
        entity.add_property(name, annotation=annotation, is_id=name == id_name)
    return entity


class EntityRegistry:
    """Thread-safe registry of :class:`PersistentEntity` descriptors.

    Satisfies :class:`~docmap.mapping.contracts.MetadataRegistry`. With
    ``auto_register`` enabled, a lookup of an unknown type that carries a
    :func:`document` mapping registers it on the fly; any other unknown
    type stays unknown.
    """

    def __init__(self, *, auto_register: bool = True) -> None:
        self._auto_register = auto_register
        self._entities: dict[type[Any], PersistentEntity] = {}
        self._lock = threading.RLock()

    @property
    def auto_register(self) -> bool:
        return self._auto_register

    def register(
        self,
        entity_type: type[Any],
        *,
        uri: str | None = None,
        default_collection: str | None = None,
        id_in_property_fragment: bool | None = None,
    ) -> PersistentEntity:
        """Register *entity_type*, returning its descriptor.

        Keyword overrides take precedence over a :func:`document` mapping.
        Registering an already known type without overrides returns the
        existing descriptor.
        """
        overrides = uri is not None or default_collection is not None or id_in_property_fragment is not None
        with self._lock:
            existing = self._entities.get(entity_type)
            if existing is not None and not overrides:
                return existing

            declared = document_mapping_of(entity_type) or DocumentMapping()
            mapping = DocumentMapping(
                uri=uri if uri is not None else declared.uri,
                collection=default_collection if default_collection is not None else declared.collection,
                id_in_property_fragment=(
                    id_in_property_fragment
                    if id_in_property_fragment is not None
                    else declared.id_in_property_fragment
                ),
            )
            entity = build_persistent_entity(entity_type, mapping)
            self._entities[entity_type] = entity
            logger.debug("Registered persistent entity: %r", entity)
            return entity

    def get_persistent_entity(self, entity_type: type[Any]) -> PersistentEntity | None:
        with self._lock:
            entity = self._entities.get(entity_type)
            if entity is None and self._auto_register and document_mapping_of(entity_type) is not None:
                entity = self.register(entity_type)
            return entity

    def unregister(self, entity_type: type[Any]) -> None:
        with self._lock:
            self._entities.pop(entity_type, None)

    def __contains__(self, entity_type: object) -> bool:
        with self._lock:
            return entity_type in self._entities

    def __iter__(self) -> Iterator[type[Any]]:
        with self._lock:
            return iter(list(self._entities))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)
