"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from docmap.config.logging import configure_logging
from docmap.errors import UnknownEntityError
from docmap.expression import JinjaExpressionEngine
from docmap.mapping import EntityRegistry, get_persistent_entity


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("docmap")
    pkg_level = pkg.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.setLevel(pkg_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("docmap").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("docmap").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("docmap.test")
        log.warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "docmap.test"
        assert "timestamp" in parsed

    def test_library_debug_records_are_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        with pytest.raises(UnknownEntityError):
            get_persistent_entity(int, EntityRegistry())
        lines = [json.loads(line) for line in capfd.readouterr().err.splitlines() if line]
        lookup = [line for line in lines if line["logger"] == "docmap.mapping.lookup"]
        assert len(lookup) == 1
        assert lookup[0]["event"] == "No persistent entity registered for <class 'int'>"
        assert lookup[0]["level"] == "debug"
        assert "timestamp" in lookup[0]

    def test_template_compilation_is_logged(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        JinjaExpressionEngine().parse("/users/#{id}.xml")
        lines = [json.loads(line) for line in capfd.readouterr().err.splitlines() if line]
        assert lines == [
            {
                "event": "Compiled dynamic template '/users/#{id}.xml'",
                "level": "debug",
                "logger": "docmap.expression.engine",
                "timestamp": lines[0]["timestamp"],
            }
        ]

    def test_literal_templates_are_not_logged(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        JinjaExpressionEngine().parse("/users/static.xml")
        assert capfd.readouterr().err == ""

    def test_library_debug_hidden_when_not_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        with pytest.raises(UnknownEntityError):
            get_persistent_entity(int, EntityRegistry())
        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=False, log_json=False)
        configure_logging(verbose=False, log_json=False)
        assert len(logging.getLogger().handlers) == 1
