"""Headless scenario execution helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from cybergrid.config import ConfigValidationError, SimulationSettings, load_and_validate_config
from cybergrid.recorder import RUNS_ROOT, SessionRecorder
from cybergrid.registry import NodeRegistry, build_default_registry
from cybergrid.schema import build_simulation, validate_scenario

logger = logging.getLogger(__name__)


def load_scenario_file(path: Path) -> dict[str, Any]:
    """Read a scenario from YAML or JSON (JSON parses as YAML)."""
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError("Scenario file root must be a mapping/object.")
    return raw


def load_settings(config_path: Path | None, seed: int | None = None) -> SimulationSettings:
    settings = (
        load_and_validate_config(config_path, SimulationSettings)
        if config_path
        else SimulationSettings()
    )
    if seed is not None:
        settings = settings.model_copy(update={"seed": seed})
    return settings


def run_scenario(
    scenario_path: Path,
    config_path: Path | None = None,
    *,
    frames: int = 600,
    dt: float = 1.0 / 60.0,
    seed: int | None = None,
    runs_root: Path = RUNS_ROOT,
    registry: NodeRegistry | None = None,
) -> tuple[Path, dict[str, Any]]:
    """Run a scenario for ``frames`` steps, recording into a fresh run folder."""
    registry = registry or build_default_registry()
    settings = load_settings(config_path, seed)
    scenario = validate_scenario(
        load_scenario_file(scenario_path), registry, radius=settings.grid.radius
    )

    recorder = SessionRecorder(runs_root)
    run_dir = recorder.start(
        scenario.name,
        scenario.model_dump(mode="json"),
        settings.model_dump(mode="json"),
    )
    sim, _ = build_simulation(scenario, settings, registry=registry, recorder=recorder)
    logger.info("running scenario '%s' for %d frames into %s", scenario.name, frames, run_dir)
    summary = sim.run(frames, dt)
    recorder.write_summary(summary)
    return run_dir, summary
