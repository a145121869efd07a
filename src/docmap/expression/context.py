"""Resolution context handed to template evaluation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Names a template can reference.
ENTITY_CLASS = "entityClass"
ENTITY = "entity"
IDENTIFIER = "id"


class Deferred:
    """Memoized zero-argument supplier, called at most once."""

    __slots__ = ("_supplier", "_value", "_resolved")

    def __init__(self, supplier: Callable[[], Any] | None) -> None:
        self._supplier = supplier
        self._value: Any = None
        self._resolved = False

    @property
    def resolved(self) -> bool:
        return self._resolved

    def get(self) -> Any:
        if not self._resolved:
            supplier, self._supplier = self._supplier, None
            self._value = supplier() if supplier is not None else None
            self._resolved = True
        return self._value


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """Immutable ``(entity_class, entity, id_supplier)`` triple.

    Every field is optional. The identifier supplier is only called when
    a template actually references ``id``, and then only once per
    resolution.
    """

    entity_class: type[Any] | None = None
    entity: Any = None
    id_supplier: Callable[[], Any] | None = None

    def namespace(self) -> dict[str, Any]:
        """Variables visible to a template for one evaluation."""
        return {
            ENTITY_CLASS: self.entity_class,
            ENTITY: self.entity,
            IDENTIFIER: Deferred(self.id_supplier),
        }
