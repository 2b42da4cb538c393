"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``cubectl.toml`` only carries
overrides.  An empty (or absent) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from cubectl.domain.types import ConsolidationType


class ApplicationConfig(BaseModel):
    """[application] section."""

    model_config = {"frozen": True}

    name: str = "sandbox"
    database: str = ".cubectl/cubectl.db"  # relative to the project root
    backend: str = "sandbox"


class ProgressConfig(BaseModel):
    """[progress] section."""

    model_config = {"frozen": True}

    stall_warning_seconds: float = Field(default=30.0, ge=0.0)
    max_povs: int = Field(default=0, ge=0)  # 0 = no limit


class ConsolidationConfig(BaseModel):
    """[consolidation] section."""

    model_config = {"frozen": True}

    default_type: str = "impacted"

    @field_validator("default_type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        return ConsolidationType.from_option(value).option_name


class TranslateConfig(BaseModel):
    """[translate] section."""

    model_config = {"frozen": True}

    apply_rates: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
