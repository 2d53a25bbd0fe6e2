"""Simulation settings and YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigValidationError(ValueError):
    """Raised when a config file does not validate."""


class GridSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    radius: int = Field(default=10, ge=1)
    hex_size: float = Field(default=35.0, gt=0)
    node_health: float = Field(default=10.0, gt=0)
    terrain_health: float = Field(default=10.0, gt=0)


class HeartSettings(BaseModel):
    """Heart pulse timing and health."""

    model_config = ConfigDict(extra="forbid")

    initial_health: float = Field(default=10.0, gt=0)
    initial_period: float = Field(default=10.0, gt=0)
    # period after each beat is period_base / health
    period_base: float = Field(default=100.0, gt=0)
    heal_interval: float = Field(default=10.0, gt=0)
    heal_amount: float = Field(default=1.0, ge=0)
    # health lost per second per hostile in contact
    contact_damage: float = Field(default=1.0, ge=0)


class WeaponSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lazor_damage: float = 15.0
    shock_damage: float = 5.0
    shock_link_seconds: float = 0.3
    beam_speed: float = 3000.0
    beam_arrival_radius: float = 50.0
    rocket_speed: float = 300.0
    rocket_damage: float = 50.0
    rocket_radius: float = 10.0
    rocket_max_distance: float = 1000.0
    orbital_delay: float = 10.0
    orbital_radius: float = 200.0
    orbital_damage: float = 5.0
    plasma_max_threshold: float = 10.0
    plasma_radius: float = 100.0
    plasma_damage_interval: float = 0.5
    plasma_damage_scale: float = 5.0
    target_radius: float = 7.0


class TargetingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    closest_range: int = Field(default=8, ge=0)
    nearby_default_range: float = Field(default=8.0, ge=0)
    nearby_max_range: float = Field(default=10.0, ge=0)


class SpawnSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    spawn_chance: float = Field(default=0.1, ge=0, le=1)
    spawn_ring: int = Field(default=8, ge=1)
    target_health: float = Field(default=30.0, gt=0)
    target_speed: float = Field(default=10.0, ge=0)


class SimulationSettings(BaseSettings):
    """Top-level settings; values may be overridden by ``CYBERGRID_*`` env vars."""

    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="CYBERGRID_",
        env_nested_delimiter="__",
    )

    seed: int = 0
    grid: GridSettings = Field(default_factory=GridSettings)
    heart: HeartSettings = Field(default_factory=HeartSettings)
    weapons: WeaponSettings = Field(default_factory=WeaponSettings)
    targeting: TargetingSettings = Field(default_factory=TargetingSettings)
    spawn: SpawnSettings = Field(default_factory=SpawnSettings)


def validate_config_dict(raw: object, model: type[BaseModel]) -> BaseModel:
    """Validate a pre-loaded config mapping against a pydantic model."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError("Config file root must be a mapping/object.")

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def load_and_validate_config(
    path: Path, model: type[BaseModel] = SimulationSettings
) -> BaseModel:
    """Load YAML config and validate with the provided pydantic model."""
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return validate_config_dict(raw, model)
