"""CubeSettings — unified configuration from CLI flags, env vars and TOML.

Priority, highest first:
1. CLI flags (passed as init kwargs)
2. ``CUBECTL_*`` environment variables (``__`` separates nested keys)
3. ``cubectl.toml`` discovered by walking up from the working directory
4. Code-baked defaults in :mod:`cubectl.config.models`
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cubectl.config.discovery import find_config
from cubectl.config.models import (
    ApplicationConfig,
    ConsolidationConfig,
    PluginsConfig,
    ProgressConfig,
    TranslateConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``cubectl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# The TOML path has to reach settings_customise_sources, which is a classmethod.
_tls = threading.local()


class CubeSettings(BaseSettings):
    """Frozen settings object stored on the CLI context.

    Attributes:
        root: Project directory (parent of ``cubectl.toml``, or CWD).
        config_path: The TOML file actually used, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CUBECTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_progress: bool = False

    # --- TOML sections ---
    application: ApplicationConfig = Field(default_factory=ApplicationConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    consolidation: ConsolidationConfig = Field(default_factory=ConsolidationConfig)
    translate: TranslateConfig = Field(default_factory=TranslateConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    _toml_path: ClassVar[Path | None] = None

    @property
    def database_path(self) -> Path:
        """Absolute sandbox database path."""
        path = Path(self.application.database).expanduser()
        return path if path.is_absolute() else self.root / path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
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
    ) -> CubeSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist is an error; without
        one, ``cubectl.toml`` is discovered from *root* (or the CWD).
        """
        toml_path: Path | None = None
        if config_path:
            toml_path = Path(config_path)
            if not toml_path.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
        else:
            toml_path = find_config(root)

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
