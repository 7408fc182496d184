"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, rentctl.toml only contains
overrides. The one value with no default is ``[auth] admin_identity``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the project root.
    path: Path = Path(".rentctl/agreements.db")
    timeout: float = 30.0


class AuthConfig(BaseModel):
    """[auth] section."""

    model_config = {"frozen": True}

    admin_identity: str | None = None
    bootstrap_token: str | None = None
    tokens: dict[str, str] = Field(default_factory=dict)


class DisplayConfig(BaseModel):
    """[display] section."""

    model_config = {"frozen": True}

    district: str = "Waterloo School District"
