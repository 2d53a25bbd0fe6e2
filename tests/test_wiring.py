import pytest

from cybergrid.errors import WiringError
from cybergrid.hexgrid import Direction
from cybergrid.registry import NodeKind, build_default_registry
from cybergrid.values import EMPTY, EntityRef, Number, ValType, ValueList, Vector, matches
from cybergrid.wiring import PortCfg


def _ports(kind: NodeKind):
    return build_default_registry().get(kind).input_ports


def test_rebinding_a_port_drops_its_old_direction() -> None:
    a, b = _ports(NodeKind.NUMBER_SUBTRACT)[:2]
    cfg = PortCfg()
    cfg.bind(Direction.NORTH, a)
    cfg.bind(Direction.SOUTH, a)

    assert cfg.inputs == {Direction.SOUTH: a}
    assert cfg.direction_of("a") == Direction.SOUTH

    cfg.bind(Direction.NORTH, b)
    assert cfg.direction_of_port(b) == Direction.NORTH
    assert len(cfg.bound_directions()) == 2


def test_direction_taken_by_another_port_is_rejected() -> None:
    a, b = _ports(NodeKind.NUMBER_SUBTRACT)[:2]
    cfg = PortCfg()
    cfg.bind(Direction.NORTH, a)

    with pytest.raises(WiringError):
        cfg.bind(Direction.NORTH, b)
    assert cfg.inputs == {Direction.NORTH: a}


def test_rebinding_same_port_to_same_direction_is_a_no_op() -> None:
    (target,) = _ports(NodeKind.LAZOR)
    cfg = PortCfg()
    cfg.bind(Direction.NORTH_WEST, target)
    cfg.bind(Direction.NORTH_WEST, target)
    assert cfg.inputs == {Direction.NORTH_WEST: target}
    assert cfg.unbind(Direction.NORTH_WEST) == target
    assert cfg.direction_of("target") is None


def test_same_port_name_on_two_kinds_has_distinct_ids() -> None:
    registry = build_default_registry()
    lazor = registry.get(NodeKind.LAZOR).input_port("target")
    tile = registry.get(NodeKind.PROJECT_TILE).input_port("target")
    assert lazor.id != tile.id

    cfg = PortCfg()
    cfg.bind(Direction.NORTH, lazor)
    assert cfg.direction_of_port(tile) is None


def test_value_type_matching() -> None:
    assert matches(Number(1.0), ValType.NUMBER)
    assert matches(Vector(1.0, 2.0), ValType.ANY)
    assert not matches(EntityRef(3), ValType.VECTOR)
    assert Vector(0.0, 0.0).normalized() == Vector(0.0, 0.0)
    assert Vector(3.0, 4.0).length() == 5.0
    assert ValueList([Number(1.0), EMPTY, EntityRef(2)]).to_json() == [1.0, None, {"entity": 2}]


def test_rejected_bind_keeps_existing_bindings() -> None:
    a, b = _ports(NodeKind.NUMBER_SUBTRACT)[:2]
    cfg = PortCfg()
    cfg.bind(Direction.NORTH, a)
    cfg.bind(Direction.SOUTH, b)

    with pytest.raises(WiringError):
        cfg.bind(Direction.SOUTH, a)
    assert cfg.inputs == {Direction.NORTH: a, Direction.SOUTH: b}
