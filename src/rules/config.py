from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contract.models import CustomRule

CONFIG_FILENAME = "archgraph.toml"

UnclassifiedBehavior = Literal["allow", "deny", "ignore"]
TrendWindow = Literal["1mo", "3mo", "6mo", "12mo"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class LayerDef(_StrictModel):
    """Definition of a single architectural layer."""

    name: str = Field(description="Layer name (e.g., 'presentation', 'domain')")
    globs: list[str] = Field(
        description="Glob patterns for files belonging to this layer"
    )


class LayerRule(_StrictModel):
    """Allowed dependencies from one layer to others."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_layer: str = Field(alias="from", description="Source layer name")
    to: list[str] = Field(
        default_factory=list,
        description="List of layer names this layer may depend on",
    )


class LayersConfig(_StrictModel):
    """Configuration for architectural layer classification and rules."""

    layer: list[LayerDef] = Field(
        default_factory=list,
        description="Layer definitions (first match wins)",
    )
    rules: list[LayerRule] = Field(
        default_factory=list,
        description="Allowed dependency rules between layers",
    )
    unclassified: UnclassifiedBehavior = Field(
        default="allow",
        description="Behavior for files not matching any layer glob",
    )


class DriftConfig(_StrictModel):
    """Configuration for drift trend reporting."""

    window: TrendWindow = Field(
        default="3mo",
        description="Time window for trend analysis",
    )


class EngineConfig(_StrictModel):
    """Configuration for archgraph-core rule checks and drift analysis."""

    custom_rules: list[CustomRule] = Field(
        default_factory=list,
        description="User-defined regex rules checked against added lines",
    )
    layers: LayersConfig = Field(
        default_factory=LayersConfig,
        description="Architectural layer classification and rules",
    )
    drift: DriftConfig = Field(
        default_factory=DriftConfig,
        description="Drift trend settings",
    )

    @field_validator("custom_rules")
    @classmethod
    def validate_unique_rule_names(cls, v: list[CustomRule]) -> list[CustomRule]:
        """Custom rule names identify violations, so they must be unique."""
        seen: set[str] = set()
        for rule in v:
            if rule.name in seen:
                msg = f"Duplicate custom rule name '{rule.name}'"
                raise ValueError(msg)
            seen.add(rule.name)
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> EngineConfig:
    """Load configuration from archgraph.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return EngineConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return EngineConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
