"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``RENTCTL_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``rentctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Settings are read once at startup and frozen.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from rentctl.config.models import AuthConfig, DisplayConfig, StoreConfig


class ConfigError(Exception):
    """Required configuration is missing or unreadable."""


CONFIG_FILENAME = "rentctl.toml"
CONFIG_ENV_VAR = "RENTCTL_CONFIG"


def locate_config(explicit: str | Path | None = None, start: Path | None = None) -> Path | None:
    """Return the ``rentctl.toml`` to load, or None to run on defaults.

    ``--config`` (*explicit*) wins, then ``RENTCTL_CONFIG``, then the
    nearest ``rentctl.toml`` at or above *start* (default: CWD), the way
    git finds ``.git/``.

    Raises:
        ConfigError: ``--config`` or ``RENTCTL_CONFIG`` names a missing file.
    """
    pointers = ((explicit, "--config"), (os.environ.get(CONFIG_ENV_VAR), CONFIG_ENV_VAR))
    for pointer, source in pointers:
        if not pointer:
            continue
        path = Path(pointer).expanduser()
        if not path.is_file():
            raise ConfigError(f"{source} points at {path}, which is not a file")
        return path

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``rentctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class RentSettings(BaseSettings):
    """Unified settings for rentctl.

    Attributes:
        root: Project directory (parent of ``rentctl.toml``, or CWD).
        config_path: The TOML file in use, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "RENTCTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    token: str | None = None

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> RentSettings:
        """Construct settings from a CLI invocation.

        Locates ``rentctl.toml`` with :func:`locate_config`, resolves *root*
        from the config file's parent directory, and merges CLI flags as
        highest-priority overrides.
        """
        toml_path = locate_config(config_path, root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None

    @property
    def db_path(self) -> Path:
        """Absolute database path."""
        path = self.store.path
        return path if path.is_absolute() else self.root / path

    @property
    def bootstrap_token(self) -> str | None:
        """``--token`` flag, falling back to ``[auth] bootstrap_token``."""
        return self.token or self.auth.bootstrap_token

    def require_admin_identity(self) -> str:
        """Return the configured administrator identity.

        Raises:
            ConfigError: ``[auth] admin_identity`` is unset or blank.
        """
        value = (self.auth.admin_identity or "").strip()
        if not value:
            msg = (
                "Missing required configuration: [auth] admin_identity "
                "(or RENTCTL_AUTH__ADMIN_IDENTITY)"
            )
            raise ConfigError(msg)
        return value
