"""MappingService — preview template resolution and describe entity mappings."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from docmap.addressing import DocumentAddressing, OperationOptions
from docmap.config.settings import DocmapSettings
from docmap.errors import (
    DocmapError,
    ExpressionEvaluationError,
    MappingError,
    MissingIdentifierPropertyError,
    UnknownEntityError,
)
from docmap.expression import JinjaExpressionEngine, ResolutionContext, resolve
from docmap.mapping.registry import EntityRegistry
from docmap.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

_ERROR_CODES: dict[type[DocmapError], str] = {
    ExpressionEvaluationError: "EXPRESSION_ERROR",
    UnknownEntityError: "UNKNOWN_ENTITY",
    MissingIdentifierPropertyError: "MISSING_ID_PROPERTY",
    MappingError: "MAPPING_ERROR",
}


def import_class(path: str) -> type[Any]:
    """Import ``package.module:ClassName`` (or ``package.module.ClassName``).

    Raises:
        MappingError: The path cannot be imported or is not a class.
    """
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        msg = f"Expected 'module:Class', got {path!r}"
        raise MappingError(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import module {module_name!r}: {exc}"
        raise MappingError(msg) from exc

    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part, None)
        if target is None:
            msg = f"Module {module_name!r} has no attribute {attr!r}"
            raise MappingError(msg)
    if not isinstance(target, type):
        msg = f"{path!r} is not a class"
        raise MappingError(msg)
    return target


def _failure(op: str, exc: DocmapError) -> ServiceResult:
    code = next(
        (code for kind, code in _ERROR_CODES.items() if isinstance(exc, kind)),
        "DOCMAP_ERROR",
    )
    return ServiceResult(ok=False, op=op, error=ServiceError(code=code, message=str(exc)))


class MappingService:
    """Operations behind the ``docmap`` CLI."""

    def __init__(self, settings: DocmapSettings) -> None:
        self._settings = settings
        self._engine = JinjaExpressionEngine(cache_size=settings.expression.cache_size)
        self._registry = EntityRegistry(auto_register=settings.mapping.auto_register)
        self._addressing = DocumentAddressing(
            self._registry,
            OperationOptions.from_settings(settings),
            engine=self._engine,
        )

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    def resolve_template(
        self,
        template: str,
        *,
        entity_class: str | None = None,
        identifier: str | None = None,
    ) -> ServiceResult:
        """Resolve *template* with an optional class path and identifier in scope."""
        op = "resolve"
        try:
            cls = import_class(entity_class) if entity_class else None
            context = ResolutionContext(
                entity_class=cls,
                id_supplier=(lambda: identifier) if identifier is not None else None,
            )
            compiled = self._engine.parse(template)
            resolved = resolve(template, context, engine=self._engine)
        except DocmapError as exc:
            logger.debug("resolve failed for %r", template, exc_info=True)
            return _failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"template": template, "literal": compiled.literal, "resolved": resolved},
        )

    def describe_entity(self, class_path: str) -> ServiceResult:
        """Register the class at *class_path* and report its mapping."""
        op = "describe"
        warnings: list[str] = []
        try:
            cls = import_class(class_path)
            entity = self._registry.register(cls)
            collection = self._addressing.collection_for_type(cls)
        except DocmapError as exc:
            logger.debug("describe failed for %s", class_path, exc_info=True)
            return _failure(op, exc)

        id_property = entity.id_property
        if id_property is None:
            warnings.append(f"{entity.name} declares no identifier property")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "entity": f"{cls.__module__}.{cls.__qualname__}",
                "id_property": id_property.name if id_property is not None else None,
                "properties": [prop.name for prop in entity.properties],
                "uri": entity.uri or self._addressing.options.default_uri,
                "collection": collection,
                "id_in_property_fragment": self._addressing.id_in_property_fragment(cls),
            },
            warnings=warnings,
        )
