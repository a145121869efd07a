"""Template-expression resolution for document URIs and collections."""

from docmap.expression.context import ResolutionContext
from docmap.expression.engine import (
    CompiledExpression,
    ExpressionEngine,
    JinjaExpressionEngine,
    get_default_engine,
    set_default_engine,
)
from docmap.expression.resolver import expand, resolve, resolve_for_type

__all__ = [
    "CompiledExpression",
    "ExpressionEngine",
    "JinjaExpressionEngine",
    "ResolutionContext",
    "expand",
    "get_default_engine",
    "resolve",
    "resolve_for_type",
    "set_default_engine",
]
