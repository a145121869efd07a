"""Human/JSON rendering of ServiceResult for the CLI."""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docmap.services.result import ServiceResult


def _format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def _format_data_human(data: dict[str, Any]) -> str:
    """Format result data as indented key-value pairs."""
    width = max((len(key) for key in data), default=0)
    return "\n".join(f"  {key.ljust(width)}  {_format_value(value)}" for key, value in data.items())


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if result.ok:
        parts = [f"OK: {result.op}"]
        if result.data:
            parts.append(_format_data_human(result.data))
        return "\n".join(parts)
    if result.error is None:
        return f"ERROR: {result.op}: unknown error"
    return f"ERROR: {result.op}: [{result.error.code}] {result.error.message}"
