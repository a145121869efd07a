"""Resolve document URI and collection templates.

A template is classified once by the active :class:`ExpressionEngine`.
Literal templates short-circuit and come back unchanged without touching
the context; dynamic ones are evaluated against a
:class:`ResolutionContext` exposing ``entityClass``, ``entity`` and
``id``.

Usage::

    resolve("/docs/#{id}.xml", ResolutionContext(id_supplier=lambda: 42))
    # -> "/docs/42.xml"
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from docmap.errors import ExpressionEvaluationError
from docmap.expression.context import ResolutionContext
from docmap.expression.engine import ExpressionEngine, get_default_engine

logger = logging.getLogger(__name__)


def resolve(
    template: str | None,
    context: ResolutionContext | None,
    *,
    engine: ExpressionEngine | None = None,
) -> str | None:
    """Expand *template* against *context*.

    ``None`` and blank templates are returned as-is. An absent value
    inside a dynamic template renders as the empty string.

    Raises:
        ExpressionEvaluationError: The template is malformed, its
            evaluation failed, or a dynamic template got no context.
    """
    if template is None or not template.strip():
        return template

    active = engine if engine is not None else get_default_engine()
    compiled = active.parse(template)
    if compiled.literal:
        return template

    if context is None:
        msg = f"Dynamic template {template!r} requires a resolution context"
        raise ExpressionEvaluationError(msg, template=template)
    return active.evaluate(compiled, context)


def resolve_for_type(
    template: str | None,
    entity_class: type[Any] | None,
    *,
    engine: ExpressionEngine | None = None,
) -> str | None:
    """Expand *template* with only the entity class in scope."""
    return resolve(template, ResolutionContext(entity_class=entity_class), engine=engine)


def expand(
    template: str | None,
    entity_class: type[Any] | None = None,
    entity: Any = None,
    id_supplier: Callable[[], Any] | None = None,
    *,
    engine: ExpressionEngine | None = None,
) -> str | None:
    """Keyword form of :func:`resolve` that builds the context itself."""
    context = ResolutionContext(entity_class=entity_class, entity=entity, id_supplier=id_supplier)
    return resolve(template, context, engine=engine)
