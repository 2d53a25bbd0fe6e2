"""Scenario schema: a declarative board description for headless runs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from cybergrid.config import SimulationSettings
from cybergrid.hexgrid import ORIGIN, Direction, Hex
from cybergrid.recorder import SessionRecorder
from cybergrid.registry import NodeRegistry, build_default_registry
from cybergrid.simulation import EventCallback, Simulation
from cybergrid.values import Number, Text, Value

_DIRECTION_NAMES = {d.value for d in Direction}


class CellSpec(BaseModel):
    """A bare board position."""

    model_config = ConfigDict(extra="forbid")

    q: int
    r: int

    @property
    def cell(self) -> Hex:
        return Hex(self.q, self.r)


class NodeSpec(CellSpec):
    """A node placed on the board with its wiring."""

    id: str
    kind: str
    wiring: dict[str, str] = Field(default_factory=dict)
    constant: float | str | None = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("node id cannot be empty")
        return trimmed

    def constant_value(self) -> Value | None:
        if self.constant is None:
            return None
        if isinstance(self.constant, str):
            return Text(self.constant)
        return Number(float(self.constant))


class TargetSpec(CellSpec):
    health: float | None = None
    path: list[tuple[int, int]] = Field(default_factory=list)


class Scenario(BaseModel):
    """Board description composed of nodes, hearts, hostile targets, and terrain."""

    model_config = ConfigDict(extra="forbid")

    name: str = "scenario"
    nodes: list[NodeSpec] = Field(default_factory=list)
    hearts: list[CellSpec] = Field(default_factory=list)
    targets: list[TargetSpec] = Field(default_factory=list)
    terrain: list[CellSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_board(self, info: ValidationInfo) -> "Scenario":
        errors: list[str] = []
        context = info.context or {}
        specs: dict[str, Any] = context.get("node_specs", {})
        radius: int = context.get("radius", 0)

        node_ids = [node.id for node in self.nodes]
        duplicates = sorted({node_id for node_id in node_ids if node_ids.count(node_id) > 1})
        if duplicates:
            errors.append(f"duplicate node ids: {', '.join(duplicates)}")

        occupied: dict[Hex, str] = {}
        placements = [
            *((f"node '{n.id}'", n.cell) for n in self.nodes),
            *((f"heart #{i}", h.cell) for i, h in enumerate(self.hearts)),
            *((f"terrain #{i}", t.cell) for i, t in enumerate(self.terrain)),
        ]
        for label, cell in placements:
            if radius and cell.distance_to(ORIGIN) > radius:
                errors.append(f"{label} at {cell.to_tuple()} is out of bounds (radius {radius})")
            if cell in occupied:
                errors.append(f"{label} at {cell.to_tuple()} overlaps {occupied[cell]}")
            else:
                occupied[cell] = label

        if radius:
            for i, target in enumerate(self.targets):
                if target.cell.distance_to(ORIGIN) > radius:
                    errors.append(f"target #{i} at {target.cell.to_tuple()} is out of bounds")

        for node in self.nodes:
            spec = specs.get(node.kind)
            if specs and spec is None:
                errors.append(f"node '{node.id}' has unknown kind '{node.kind}'")
                continue
            in_ports = spec["inputs"] if spec else {}

            seen_ports: dict[str, str] = {}
            for direction, port in node.wiring.items():
                if direction not in _DIRECTION_NAMES:
                    errors.append(f"node '{node.id}' unknown direction '{direction}'")
                    continue
                if spec and port not in in_ports:
                    errors.append(f"node '{node.id}' unknown input port '{port}' on kind '{node.kind}'")
                    continue
                if port in seen_ports:
                    errors.append(
                        f"node '{node.id}' port '{port}' bound to both "
                        f"'{seen_ports[port]}' and '{direction}'"
                    )
                    continue
                seen_ports[port] = direction

            if node.constant is not None and spec and not spec.get("constant", False):
                errors.append(f"node '{node.id}' kind '{node.kind}' does not take a constant")

        if errors:
            raise ValueError("; ".join(errors))
        return self


def validate_scenario(
    data: dict[str, Any],
    registry: NodeRegistry | None = None,
    *,
    radius: int | None = None,
) -> Scenario:
    """Validate a raw scenario payload against the node catalogue and board size."""
    registry = registry or build_default_registry()
    if radius is None:
        radius = SimulationSettings().grid.radius
    return Scenario.model_validate(
        data, context={"node_specs": registry.specs(), "radius": radius}
    )


def build_simulation(
    scenario: Scenario,
    settings: SimulationSettings | None = None,
    *,
    registry: NodeRegistry | None = None,
    event_cb: EventCallback | None = None,
    recorder: SessionRecorder | None = None,
) -> tuple[Simulation, dict[str, int]]:
    """Materialize a validated scenario; returns the simulation and node id map."""
    sim = Simulation(settings, registry=registry, event_cb=event_cb, recorder=recorder)
    for heart in scenario.hearts:
        sim.place_heart(heart.cell)
    for terrain in scenario.terrain:
        sim.place_terrain(terrain.cell)

    ids: dict[str, int] = {}
    for spec in scenario.nodes:
        node = sim.place_node(spec.cell, spec.kind)
        ids[spec.id] = node.id
        for direction, port in spec.wiring.items():
            sim.bind(node.id, direction, port)
        constant = spec.constant_value()
        if constant is not None:
            sim.set_constant(node.id, constant)

    for target in scenario.targets:
        sim.add_target(target.cell, target.health, [Hex(q, r) for q, r in target.path])
    return sim, ids


def starter_scenario() -> dict[str, Any]:
    """A small working board: a heart, a lazor turret, an orbital chain, and one hostile."""
    return {
        "name": "starter",
        "hearts": [{"q": 0, "r": 0}],
        "nodes": [
            {"id": "closest", "kind": "ClosestEntity", "q": 0, "r": 1},
            {"id": "lazor", "kind": "Lazor", "q": 0, "r": 2, "wiring": {"north": "target"}},
            {
                "id": "position",
                "kind": "EntityPosition",
                "q": -1,
                "r": 1,
                "wiring": {"south_east": "target"},
            },
            {"id": "orbital", "kind": "Orbital", "q": -1, "r": 2, "wiring": {"north": "target"}},
            {"id": "three", "kind": "ConstantNumber", "q": 1, "r": 0, "constant": 3},
            {"id": "debug", "kind": "Debug", "q": 1, "r": 1, "wiring": {"north": "a"}},
        ],
        "targets": [
            {
                "q": 0,
                "r": 6,
                "health": 30,
                "path": [[0, 5], [0, 4], [0, 3], [0, 2], [0, 1], [0, 0]],
            }
        ],
        "terrain": [{"q": 3, "r": -3}],
    }
