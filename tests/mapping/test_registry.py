"""Tests for EntityRegistry introspection and document mappings."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Annotated, ClassVar

import pytest

from docmap.errors import MappingError
from docmap.mapping import (
    DocumentMapping,
    EntityRegistry,
    Id,
    MetadataRegistry,
    build_persistent_entity,
    document,
)
from tests.entities import Book, Customer, Invoice, Note, Order, Product, User


class TestIdentifierDetection:
    @pytest.mark.parametrize(
        ("entity_type", "expected"),
        [
            (User, "id"),
            (Order, "order_number"),
            (Invoice, "reference"),
            (Product, "sku"),
            (Customer, "code"),
            (Book, "id"),
        ],
    )
    def test_detects(self, entity_type: type, expected: str) -> None:
        entity = build_persistent_entity(entity_type)
        assert entity.id_property is not None
        assert entity.id_property.name == expected
        assert entity.id_property.is_id is True

    def test_none_when_undeclared(self) -> None:
        assert build_persistent_entity(Note).id_property is None

    def test_underscore_id_fallback(self) -> None:
        class Legacy:
            _id: str
            title: str

        entity = build_persistent_entity(Legacy)
        assert entity.id_property is not None
        assert entity.id_property.name == "_id"

    def test_marker_beats_id_name(self) -> None:
        @dataclass
        class Keyed:
            id: int
            key: Annotated[str, Id]

        entity = build_persistent_entity(Keyed)
        assert entity.id_property is not None
        assert entity.id_property.name == "key"
        assert entity.get_property("id") is not None
        assert entity.get_property("id").is_id is False  # type: ignore[union-attr]

    def test_two_markers_rejected(self) -> None:
        @dataclass
        class Ambiguous:
            a: Annotated[str, Id]
            b: str = field(default="", metadata={"id": True})

        with pytest.raises(MappingError, match="several identifier"):
            build_persistent_entity(Ambiguous)

    def test_classvars_skipped(self) -> None:
        class WithClassVar:
            kind: ClassVar[str] = "x"
            id: int

        entity = build_persistent_entity(WithClassVar)
        assert [prop.name for prop in entity.properties] == ["id"]

    def test_rejects_non_class(self) -> None:
        with pytest.raises(MappingError):
            build_persistent_entity("User")  # type: ignore[arg-type]


class TestDescriptors:
    def test_properties_in_declaration_order(self) -> None:
        entity = build_persistent_entity(Product)
        assert [prop.name for prop in entity] == ["sku", "label"]

    def test_property_back_reference(self) -> None:
        entity = build_persistent_entity(User)
        prop = entity.get_property("name")
        assert prop is not None
        assert prop.owner is entity

    def test_accessor_reads_and_writes(self) -> None:
        entity = build_persistent_entity(User)
        user = User(id="1", name="ada")
        accessor = entity.get_property_accessor(user)
        name = entity.get_property("name")
        assert name is not None
        assert accessor.get_property(name) == "ada"
        accessor.set_property(name, "grace")
        assert user.name == "grace"

    def test_accessor_rejects_foreign_instance(self) -> None:
        entity = build_persistent_entity(User)
        with pytest.raises(MappingError):
            entity.get_property_accessor(Note(text="x"))

    def test_pydantic_accessor(self) -> None:
        entity = build_persistent_entity(Product)
        product = Product(sku="SKU-1")
        assert entity.get_property_accessor(product).get_property(entity.id_property) == "SKU-1"  # type: ignore[arg-type]


class TestDocumentDecorator:
    def test_records_mapping(self) -> None:
        entity = build_persistent_entity(User)
        assert entity.uri == "/users/#{id}.xml"
        assert entity.default_collection == "users"
        assert entity.id_in_property_fragment is False

    def test_inherited_by_subclass(self) -> None:
        @dataclass
        class Admin(User):
            level: int = 0

        entity = build_persistent_entity(Admin)
        assert entity.mapping == DocumentMapping(uri="/users/#{id}.xml", collection="users")

    def test_undecorated_has_empty_mapping(self) -> None:
        assert build_persistent_entity(Note).mapping == DocumentMapping()


class TestEntityRegistry:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(EntityRegistry(), MetadataRegistry)

    def test_register_is_idempotent(self) -> None:
        registry = EntityRegistry()
        assert registry.register(Order) is registry.register(Order)
        assert len(registry) == 1

    def test_register_overrides(self) -> None:
        registry = EntityRegistry()
        entity = registry.register(User, default_collection="people", id_in_property_fragment=True)
        assert entity.uri == "/users/#{id}.xml"
        assert entity.default_collection == "people"
        assert entity.id_in_property_fragment is True
        assert registry.get_persistent_entity(User) is entity

    def test_unknown_undecorated_type(self) -> None:
        assert EntityRegistry().get_persistent_entity(Note) is None

    def test_auto_registers_decorated_type(self) -> None:
        registry = EntityRegistry()
        entity = registry.get_persistent_entity(User)
        assert entity is not None
        assert User in registry

    def test_auto_register_disabled(self) -> None:
        registry = EntityRegistry(auto_register=False)
        assert registry.get_persistent_entity(User) is None
        assert User not in registry

    def test_iter_and_unregister(self) -> None:
        registry = EntityRegistry()
        registry.register(Order)
        registry.register(Book)
        assert set(registry) == {Order, Book}
        registry.unregister(Order)
        assert list(registry) == [Book]

    def test_concurrent_auto_registration(self) -> None:
        @document(uri="/t/#{id}")
        @dataclass
        class Threaded:
            id: int

        registry = EntityRegistry()
        seen: list[object] = []

        def worker() -> None:
            seen.append(registry.get_persistent_entity(Threaded))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(entity) for entity in seen}) == 1
