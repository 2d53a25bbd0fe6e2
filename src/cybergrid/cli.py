"""CLI entrypoint for cybergrid."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from cybergrid.config import ConfigValidationError
from cybergrid.instrumentation import configure_logging
from cybergrid.registry import NodeRegistry, build_default_registry
from cybergrid.runner import load_scenario_file, run_scenario
from cybergrid.schema import starter_scenario, validate_scenario

app = typer.Typer(help="Hex-grid cyber node simulator command-line interface.")


def _load_registry() -> NodeRegistry:
    return build_default_registry()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")] = False,
) -> None:
    configure_logging(verbose)


@app.command("kinds")
def list_kinds() -> None:
    """List available node kinds."""
    registry = _load_registry()
    for name in registry.list_kinds():
        typer.echo(name)


@app.command("describe")
def describe_kind(kind: str) -> None:
    """Describe a node kind and its ports."""
    registry = _load_registry()
    try:
        descriptor = registry.get(kind)
    except KeyError as exc:
        raise typer.BadParameter(exc.args[0], param_hint="KIND") from exc
    typer.echo(json.dumps(descriptor.describe(), indent=2))


@app.command("validate")
def validate(
    scenario: Annotated[list[Path], typer.Option("--scenario", exists=True, dir_okay=False)],
) -> None:
    """Validate one or more scenario files."""
    registry = _load_registry()
    for scenario_file in scenario:
        try:
            validate_scenario(load_scenario_file(scenario_file), registry)
        except (ValidationError, ConfigValidationError) as exc:
            raise typer.BadParameter(f"{scenario_file}: {exc}", param_hint="--scenario") from exc
        typer.echo(f"valid scenario: {scenario_file}")


@app.command("init")
def init(output: Path = Path("scenarios/starter.json")) -> None:
    """Write a starter scenario."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(starter_scenario(), indent=2), encoding="utf-8")
    typer.echo(f"starter scenario written: {output}")


@app.command("simulate")
def simulate(
    scenario: Annotated[
        Path,
        typer.Option(..., "--scenario", "-s", exists=True, dir_okay=False),
    ],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", exists=True, dir_okay=False),
    ] = None,
    frames: Annotated[int, typer.Option(min=1)] = 600,
    dt: Annotated[float, typer.Option(min=0.0001)] = 1.0 / 60.0,
    seed: Optional[int] = None,
    runs_root: Annotated[Path, typer.Option("--runs-root")] = Path("runs"),
) -> None:
    """Run a scenario headlessly and record the session."""
    try:
        run_dir, summary = run_scenario(
            scenario,
            config,
            frames=frames,
            dt=dt,
            seed=seed,
            runs_root=runs_root,
            registry=_load_registry(),
        )
    except (ValidationError, ConfigValidationError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps(summary, indent=2))
    typer.echo(f"Run completed: {run_dir}")
