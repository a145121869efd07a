"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, docmap.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from docmap.addressing import DEFAULT_URI_TEMPLATE

# --- docmap.toml sections ---


class ExpressionConfig(BaseModel):
    """[expression] section."""

    model_config = {"frozen": True}

    cache_size: int = Field(default=256, ge=0)


class MappingConfig(BaseModel):
    """[mapping] section."""

    model_config = {"frozen": True}

    default_uri: str = DEFAULT_URI_TEMPLATE
    default_collection: str | None = None
    id_in_property_fragment: bool = False
    auto_register: bool = True

