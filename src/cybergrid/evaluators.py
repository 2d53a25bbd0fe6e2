"""Per-kind node evaluators and the dispatch table."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce
from typing import Callable

from cybergrid.board import BoardView, NodeInstance, TileKind
from cybergrid.config import SimulationSettings
from cybergrid.effects import (
    Damage,
    DebugLog,
    EffectSink,
    LaserBeam,
    OrbitalStrike,
    PlaceTerrain,
    PlasmaZone,
    RocketLaunch,
    ShockLinks,
)
from cybergrid.errors import (
    NotReady,
    OccupiedDestination,
    OutOfBounds,
    PortError,
    TargetVanished,
    TypeMismatch,
    UnconfiguredPort,
    UnresolvedNeighbor,
)
from cybergrid.hexgrid import hex_round
from cybergrid.registry import VARIADIC_SLOTS, NodeKind
from cybergrid.targets import Target
from cybergrid.values import (
    EMPTY,
    Empty,
    EntityRef,
    Number,
    ValType,
    Value,
    ValueList,
    Vector,
    matches,
)

logger = logging.getLogger(__name__)

STORAGE_SLOTS = ("0", "1", "2", "3")


@dataclass
class EvalContext:
    """Everything an evaluator may touch: its own node, a read-only board, and a sink."""

    node: NodeInstance
    view: BoardView
    sink: EffectSink

    @property
    def settings(self) -> SimulationSettings:
        return self.view.settings


Evaluator = Callable[[EvalContext], Value]


# -- port access -------------------------------------------------------------


def read_port(ctx: EvalContext, name: str, expected: ValType) -> Value:
    """Read the cached result of the neighbour wired to ``name``."""
    if ctx.node.wiring.direction_of(name) is None:
        raise UnconfiguredPort(name)
    upstream = ctx.view.resolve(ctx.node, name)
    if upstream is None:
        raise UnresolvedNeighbor(name)
    if not upstream.state.is_ok:
        raise NotReady(name)
    value = upstream.state.value
    if not matches(value, expected):
        raise TypeMismatch(name, expected.value, value.value_type.value)
    return value


def read_optional(ctx: EvalContext, name: str, expected: ValType) -> Value | None:
    """Like ``read_port`` but None when the port is simply not wired."""
    if ctx.node.wiring.direction_of(name) is None:
        return None
    return read_port(ctx, name, expected)


def read_present(ctx: EvalContext, names: Iterable[str], expected: ValType) -> list[Value]:
    """Values of every slot that resolves; failing slots are skipped."""
    values: list[Value] = []
    for name in names:
        if ctx.node.wiring.direction_of(name) is None:
            continue
        try:
            values.append(read_port(ctx, name, expected))
        except PortError as exc:
            logger.debug("node %d skipping slot %s: %s", ctx.node.id, name, exc)
    return values


def read_finite(ctx: EvalContext, name: str, expected: ValType) -> Value:
    """``read_port`` for values that get rounded to a cell or an index."""
    value = read_port(ctx, name, expected)
    parts = (value.x, value.y) if isinstance(value, Vector) else (value.value,)
    if not all(math.isfinite(p) for p in parts):
        raise TypeMismatch(name, f"finite {expected.value}", f"non-finite {expected.value}")
    return value


def _live_target(ctx: EvalContext, ref: EntityRef) -> Target:
    target = ctx.view.target(ref.id)
    if target is None:
        raise TargetVanished(f"entity {ref.id} no longer exists")
    return target


def _targets_in_range(ctx: EvalContext, hex_range: float) -> list[Target]:
    origin = ctx.node.position
    ox, oy = ctx.view.layout.hex_to_world(origin)
    found = [
        t for t in ctx.view.targets()
        if origin.distance_to(ctx.view.target_cell(t)) <= hex_range
    ]
    found.sort(key=lambda t: (math.hypot(t.position[0] - ox, t.position[1] - oy), t.id))
    return found


# -- sources -----------------------------------------------------------------


def eval_constant_number(ctx: EvalContext) -> Value:
    constant = ctx.node.wiring.constant
    if constant is None:
        raise UnconfiguredPort("constant")
    return constant


def eval_closest_entity(ctx: EvalContext) -> Value:
    found = _targets_in_range(ctx, ctx.settings.targeting.closest_range)
    if not found:
        raise TargetVanished("no entity in range")
    return EntityRef(found[0].id)


def eval_nearby_entities(ctx: EvalContext) -> Value:
    targeting = ctx.settings.targeting
    hex_range = targeting.nearby_default_range
    try:
        requested = read_optional(ctx, "range", ValType.NUMBER)
    except PortError as exc:
        logger.debug("node %d using default range: %s", ctx.node.id, exc)
        requested = None
    if requested is not None:
        hex_range = requested.value
    hex_range = max(0.0, min(hex_range, targeting.nearby_max_range))
    return ValueList(EntityRef(t.id) for t in _targets_in_range(ctx, hex_range))


def eval_entity_position(ctx: EvalContext) -> Value:
    target = _live_target(ctx, read_port(ctx, "target", ValType.ENTITY))
    q, r = ctx.view.layout.world_to_fract_hex(*target.position)
    return Vector(q, r)


def eval_entity_direction(ctx: EvalContext) -> Value:
    target = _live_target(ctx, read_port(ctx, "target", ValType.ENTITY))
    waypoint = target.next_waypoint()
    if waypoint is None:
        return Vector(0.0, 0.0)
    wx, wy = ctx.view.layout.hex_to_world(waypoint)
    px, py = target.position
    return Vector(wx - px, wy - py).normalized()


# -- arithmetic --------------------------------------------------------------


def eval_vector_create(ctx: EvalContext) -> Value:
    x = read_port(ctx, "x", ValType.NUMBER)
    y = read_port(ctx, "y", ValType.NUMBER)
    return Vector(x.value, y.value)


def eval_vector_negate(ctx: EvalContext) -> Value:
    return -read_port(ctx, "vector", ValType.VECTOR)


def eval_vector_length(ctx: EvalContext) -> Value:
    return Number(read_port(ctx, "vector", ValType.VECTOR).length())


def eval_vector_multiply(ctx: EvalContext) -> Value:
    vectors = read_present(ctx, VARIADIC_SLOTS, ValType.VECTOR)
    if not vectors:
        return Vector(0.0, 0.0)
    return reduce(lambda acc, v: acc * v, vectors)


def eval_number_multiply(ctx: EvalContext) -> Value:
    numbers = [n.value for n in read_present(ctx, VARIADIC_SLOTS, ValType.NUMBER)]
    if not numbers:
        return Number(0.0)
    return Number(math.prod(numbers))


def eval_number_subtract(ctx: EvalContext) -> Value:
    numbers = [n.value for n in read_present(ctx, VARIADIC_SLOTS, ValType.NUMBER)]
    if not numbers:
        return Number(0.0)
    return Number(reduce(lambda acc, n: acc - n, numbers))


def eval_list_construct(ctx: EvalContext) -> Value:
    items: list[Value] = []
    for value in read_present(ctx, VARIADIC_SLOTS, ValType.ANY):
        if isinstance(value, ValueList):
            items.extend(value)
        elif not isinstance(value, Empty):
            items.append(value)
    return ValueList(items)


def eval_list_length(ctx: EvalContext) -> Value:
    return Number(float(len(read_port(ctx, "list", ValType.LIST))))


# -- weapons -----------------------------------------------------------------


def eval_lazor(ctx: EvalContext) -> Value:
    target = _live_target(ctx, read_port(ctx, "target", ValType.ENTITY))
    ctx.sink.emit(Damage(target.id, ctx.settings.weapons.lazor_damage))
    ctx.sink.emit(LaserBeam(ctx.node.position, target.id))
    return EMPTY


def eval_rocket_launcher(ctx: EvalContext) -> Value:
    direction = read_port(ctx, "direction", ValType.VECTOR)
    length = direction.length()
    if length == 0.0 or not math.isfinite(length):
        raise TypeMismatch("direction", "non-zero finite Vector", f"Vector of length {length}")
    ctx.sink.emit(RocketLaunch(ctx.node.position, direction.normalized().to_tuple()))
    return EMPTY


def eval_orbital(ctx: EvalContext) -> Value:
    target = read_finite(ctx, "target", ValType.VECTOR)
    cell = hex_round(target.x, target.y)
    ctx.sink.emit(OrbitalStrike(cell, ctx.settings.weapons.orbital_delay))
    return EMPTY


def eval_plasma(ctx: EvalContext) -> Value:
    """Charge once per activation and fire when the charge reaches the threshold."""
    max_threshold = ctx.settings.weapons.plasma_max_threshold
    target = read_finite(ctx, "target", ValType.VECTOR)
    threshold = read_optional(ctx, "threshold", ValType.NUMBER)
    limit = max_threshold if threshold is None else min(threshold.value, max_threshold)

    node = ctx.node
    node.charge += 1
    if node.charge < max(1.0, limit):
        return Number(0.0)

    charge, node.charge = node.charge, 0
    center = ctx.view.layout.hex_to_world(hex_round(target.x, target.y))
    ctx.sink.emit(PlasmaZone(center, charge))
    return Number(float(charge))


def eval_shock(ctx: EvalContext) -> Value:
    entities = read_port(ctx, "targets", ValType.LIST)
    hits: list[int] = []
    for item in entities:
        if not isinstance(item, EntityRef) or ctx.view.target(item.id) is None:
            continue
        ctx.sink.emit(Damage(item.id, ctx.settings.weapons.shock_damage))
        hits.append(item.id)
    if hits:
        ctx.sink.emit(ShockLinks(ctx.node.position, tuple(hits)))
    return Number(float(len(hits)))


def eval_project_tile(ctx: EvalContext) -> Value:
    target = read_finite(ctx, "target", ValType.VECTOR)
    cell = hex_round(target.x, target.y)
    tile = ctx.view.tile(cell)
    if tile is None:
        raise OutOfBounds(f"cell {cell.to_tuple()} is outside the board")
    if tile.kind != TileKind.UNOCCUPIED:
        raise OccupiedDestination(f"cell {cell.to_tuple()} holds {tile.kind.value}")
    ctx.sink.emit(PlaceTerrain(cell, ctx.node.id))
    return EMPTY


# -- utility -----------------------------------------------------------------


def eval_storage(ctx: EvalContext) -> Value:
    selector = None
    if ctx.node.wiring.direction_of("slot") is not None:
        selector = read_finite(ctx, "slot", ValType.NUMBER)
    index = 0 if selector is None else int(round(selector.value)) % len(STORAGE_SLOTS)
    return read_port(ctx, STORAGE_SLOTS[index], ValType.ANY)


def eval_debug(ctx: EvalContext) -> Value:
    values = tuple(v.to_json() for v in read_present(ctx, VARIADIC_SLOTS, ValType.ANY))
    logger.info("debug node %d at %s: %s", ctx.node.id, ctx.node.position.to_tuple(), values)
    ctx.sink.emit(DebugLog(ctx.node.id, values))
    return EMPTY


EVALUATORS: dict[NodeKind, Evaluator] = {
    NodeKind.CONSTANT_NUMBER: eval_constant_number,
    NodeKind.CLOSEST_ENTITY: eval_closest_entity,
    NodeKind.NEARBY_ENTITIES: eval_nearby_entities,
    NodeKind.ENTITY_POSITION: eval_entity_position,
    NodeKind.ENTITY_DIRECTION: eval_entity_direction,
    NodeKind.VECTOR_CREATE: eval_vector_create,
    NodeKind.VECTOR_NEGATE: eval_vector_negate,
    NodeKind.VECTOR_LENGTH: eval_vector_length,
    NodeKind.VECTOR_MULTIPLY: eval_vector_multiply,
    NodeKind.NUMBER_MULTIPLY: eval_number_multiply,
    NodeKind.NUMBER_SUBTRACT: eval_number_subtract,
    NodeKind.LIST_CONSTRUCT: eval_list_construct,
    NodeKind.LIST_LENGTH: eval_list_length,
    NodeKind.LAZOR: eval_lazor,
    NodeKind.ROCKET_LAUNCHER: eval_rocket_launcher,
    NodeKind.ORBITAL: eval_orbital,
    NodeKind.PLASMA: eval_plasma,
    NodeKind.SHOCK: eval_shock,
    NodeKind.PROJECT_TILE: eval_project_tile,
    NodeKind.STORAGE: eval_storage,
    NodeKind.DEBUG: eval_debug,
}
