"""Shared pytest fixtures for docmap tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from click.testing import CliRunner

from docmap.expression import JinjaExpressionEngine, set_default_engine
from docmap.mapping import EntityRegistry
from tests.entities import Book, Invoice, Note, Order, User


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def engine() -> JinjaExpressionEngine:
    """A fresh Jinja engine with its own cache."""
    return JinjaExpressionEngine()


@pytest.fixture(autouse=True)
def _reset_default_engine() -> Generator[None]:
    """Keep the process-wide engine from leaking between tests."""
    set_default_engine(None)
    yield
    set_default_engine(None)


@pytest.fixture
def registry() -> EntityRegistry:
    """Registry with the sample dataclass and plain entities registered."""
    reg = EntityRegistry()
    for entity_type in (User, Order, Invoice, Note, Book):
        reg.register(entity_type)
    return reg


class CountingSupplier:
    """Identifier supplier recording how often it was called."""

    def __init__(self, value: Any) -> None:
        self.value = value
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        return self.value


@pytest.fixture
def counting_supplier() -> Callable[[Any], CountingSupplier]:
    """Factory for :class:`CountingSupplier`."""
    return CountingSupplier
