"""Pluggable expression engines.

The resolver only talks to :class:`ExpressionEngine`. The default
implementation is Jinja2 configured with document-template markers:

* ``#{ expr }`` — expression, rendered to text
* ``#{% stmt %}`` — statement (``if``, ``for``, ...)
* ``#{# comment #}`` — comment

Parsed templates are memoized per distinct source string.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from jinja2 import Environment, Template, TemplateError
from jinja2.runtime import Context

from docmap.errors import ExpressionEvaluationError
from docmap.expression.context import Deferred, ResolutionContext

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 256


@dataclass(frozen=True, slots=True)
class CompiledExpression:
    """A template classified and prepared by an engine.

    Attributes:
        source: The original template string.
        literal: True when the template contains no dynamic segment.
        compiled: Engine-specific compiled form, ``None`` for literals.
    """

    source: str
    literal: bool
    compiled: Any = None


class ExpressionEngine(Protocol):
    """Parse-once, evaluate-many template technology."""

    def parse(self, template: str) -> CompiledExpression: ...

    def evaluate(self, compiled: CompiledExpression, context: ResolutionContext) -> str: ...


# --- Jinja2 implementation ---

_TYPE_ATTRIBUTES: dict[str, Callable[[type[Any]], str]] = {
    "simpleName": lambda cls: cls.__name__,
    "name": lambda cls: f"{cls.__module__}.{cls.__qualname__}",
}


class _SupplierFailure(Exception):
    """Carries an identifier-supplier error past the evaluation error handling."""

    def __init__(self, error: Exception) -> None:
        super().__init__(error)
        self.error = error


class _LazyContext(Context):
    """Jinja context that unwraps :class:`Deferred` values on lookup."""

    def resolve_or_missing(self, key: str) -> Any:
        value = super().resolve_or_missing(key)
        if isinstance(value, Deferred):
            try:
                return value.get()
            except Exception as exc:
                raise _SupplierFailure(exc) from exc
        return value


class _DocumentEnvironment(Environment):
    """Jinja environment exposing ``simpleName`` and ``name`` on classes."""

    context_class = _LazyContext

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, type) and attribute in _TYPE_ATTRIBUTES and not hasattr(obj, attribute):
            return _TYPE_ATTRIBUTES[attribute](obj)
        return super().getattr(obj, attribute)


def _render_none_as_empty(value: Any) -> Any:
    return "" if value is None else value


def _create_environment() -> Environment:
    return _DocumentEnvironment(
        variable_start_string="#{",
        variable_end_string="}",
        block_start_string="#{%",
        block_end_string="%}",
        comment_start_string="#{#",
        comment_end_string="#}",
        autoescape=False,
        keep_trailing_newline=True,
        finalize=_render_none_as_empty,
    )


def _is_literal(env: Environment, source: str) -> bool:
    """True when *source* lexes to plain text only.

    Decided on token types, never on token values: the lexer normalizes
    line endings in text, and a literal must come back byte-for-byte.
    """
    return all(token == "data" for _, token, _ in env.lex(source))


class JinjaExpressionEngine:
    """Jinja2-backed :class:`ExpressionEngine` with a bounded LRU cache.

    Cache population is serialized, so each distinct template is
    compiled once even under concurrent use. ``cache_size=0`` disables
    caching.
    """

    def __init__(self, *, cache_size: int = DEFAULT_CACHE_SIZE) -> None:
        self._env = _create_environment()
        self._cache_size = cache_size
        self._cache: OrderedDict[str, CompiledExpression] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def cache_size(self) -> int:
        return self._cache_size

    def cache_info(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._cache), "max_size": self._cache_size}

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def parse(self, template: str) -> CompiledExpression:
        if self._cache_size <= 0:
            return self._compile(template)
        with self._lock:
            compiled = self._cache.get(template)
            if compiled is not None:
                self._cache.move_to_end(template)
                return compiled
            compiled = self._compile(template)
            self._cache[template] = compiled
            if len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
            return compiled

    def evaluate(self, compiled: CompiledExpression, context: ResolutionContext) -> str:
        if compiled.literal:
            return compiled.source
        template: Template = compiled.compiled
        try:
            return template.render(context.namespace())
        except _SupplierFailure as failure:
            raise failure.error from failure.error.__cause__
        except (TemplateError, TypeError, ValueError, ArithmeticError, LookupError) as exc:
            logger.debug("Template evaluation failed for %r", compiled.source, exc_info=True)
            msg = f"Failed to evaluate template {compiled.source!r}: {exc}"
            raise ExpressionEvaluationError(msg, template=compiled.source) from exc

    def _compile(self, source: str) -> CompiledExpression:
        try:
            if _is_literal(self._env, source):
                return CompiledExpression(source=source, literal=True)
            tree = self._env.parse(source)
            template = self._env.from_string(tree)
        except TemplateError as exc:
            logger.debug("Template parsing failed for %r", source, exc_info=True)
            msg = f"Malformed template {source!r}: {exc}"
            raise ExpressionEvaluationError(msg, template=source) from exc
        logger.debug("Compiled dynamic template %r", source)
        return CompiledExpression(source=source, literal=False, compiled=template)


# --- Process-wide default ---

_default_engine: ExpressionEngine | None = None
_default_lock = threading.Lock()


def get_default_engine() -> ExpressionEngine:
    """Return the process-wide engine, creating a Jinja engine on first use."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = JinjaExpressionEngine()
        return _default_engine


def set_default_engine(engine: ExpressionEngine | None) -> None:
    """Replace the process-wide engine. ``None`` resets to a fresh Jinja engine on next use."""
    global _default_engine
    with _default_lock:
        _default_engine = engine
