"""Configuration: TOML discovery, pydantic settings and logging."""
