import pytest

from cybergrid.config import SimulationSettings
from cybergrid.errors import BoardError, TypeMismatch, WiringError
from cybergrid.hexgrid import ORIGIN, Direction, Hex
from cybergrid.registry import NodeKind
from cybergrid.schema import build_simulation, starter_scenario, validate_scenario
from cybergrid.simulation import Simulation
from cybergrid.state import Phase
from cybergrid.values import Number


def _settings(**overrides) -> SimulationSettings:
    return SimulationSettings(spawn={"enabled": False}, **overrides)


def test_starter_board_shoots_hostile_after_first_heartbeat() -> None:
    events: list[dict] = []
    sim, ids = build_simulation(validate_scenario(starter_scenario()), _settings(), event_cb=events.append)
    (target,) = list(sim.board.targets)

    sim.run(19, dt=0.5)
    assert target.health == 30.0
    assert not [e for e in events if e["type"] == "HEARTBEAT"]

    sim.run(3, dt=0.5)

    heartbeats = [e for e in events if e["type"] == "HEARTBEAT"]
    assert len(heartbeats) == 1
    assert heartbeats[0]["frame"] == 20
    assert target.health == 15.0

    done = {e["node"]: e["frame"] for e in events if e["type"] == "NODE_DONE"}
    assert done[ids["closest"]] == 20
    assert done[ids["lazor"]] == 21
    assert done[ids["orbital"]] == 22
    assert sim.board.nodes[ids["three"]].state.value == Number(3.0)

    effects = [e["effect"] for e in events if e["type"] == "EFFECT"]
    assert "Damage" in effects
    assert "OrbitalStrike" in effects
    assert events[-1]["type"] == "FRAME"


def test_placement_is_pruned_on_next_step() -> None:
    sim = Simulation(_settings())
    sim.place_heart(ORIGIN)
    node = sim.place_node(Hex(1, 0), NodeKind.CONSTANT_NUMBER)
    sim.set_constant(node.id, Number(2.0))
    assert node.state.phase == Phase.DISABLED

    sim.step(0.1)

    assert node.state.phase == Phase.IDLE
    assert not sim.board.topology_dirty


def test_mutation_api_rejects_bad_requests() -> None:
    sim = Simulation(_settings())
    sim.place_heart(ORIGIN)
    lazor = sim.place_node(Hex(0, 1), "Lazor")

    with pytest.raises(BoardError):
        sim.place_node(Hex(0, 1), NodeKind.DEBUG)
    with pytest.raises(BoardError):
        sim.place_node(Hex(0, 11), NodeKind.DEBUG)
    with pytest.raises(WiringError):
        sim.bind(lazor.id, Direction.NORTH, "missing")
    with pytest.raises(WiringError):
        sim.bind(lazor.id, "up", "target")
    with pytest.raises(WiringError):
        sim.set_constant(lazor.id, Number(1.0))
    with pytest.raises(BoardError):
        sim.remove_node(999)


def test_stalled_nodes_are_reported_at_next_heartbeat() -> None:
    events: list[dict] = []
    settings = _settings(heart={"initial_period": 1.0, "period_base": 10.0})
    sim = Simulation(settings, event_cb=events.append)
    sim.place_heart(ORIGIN)
    first = sim.place_node(Hex(0, 1), NodeKind.NUMBER_MULTIPLY)
    second = sim.place_node(Hex(0, 2), NodeKind.NUMBER_MULTIPLY)
    sim.bind(first.id, Direction.SOUTH, "a")
    sim.bind(second.id, Direction.NORTH, "a")

    sim.run(25, dt=0.1)

    stalled = [e for e in events if e["type"] == "NODES_STALLED"]
    assert stalled
    assert sorted(stalled[0]["nodes"]) == sorted([first.id, second.id])
    assert first.state.phase == Phase.ACTIVATION_REQUEST


def test_heart_destroyed_by_contact_ends_run() -> None:
    events: list[dict] = []
    sim = Simulation(_settings(), event_cb=events.append)
    heart = sim.place_heart(ORIGIN)
    heart.health = 0.5
    sim.add_target(Hex(0, 1))

    summary = sim.run(10, dt=1.0)

    assert sim.game_over
    assert summary["game_over"]
    assert summary["frames"] == 2
    assert [e["type"] for e in events].count("HEART_DESTROYED") == 1
    assert not sim.board.hearts


def test_removing_heart_disables_everything() -> None:
    sim = Simulation(_settings())
    heart = sim.place_heart(ORIGIN)
    node = sim.place_node(Hex(0, 1), NodeKind.DEBUG)
    sim.step(0.1)
    assert node.state.phase == Phase.IDLE

    sim.board.clear_cell(heart.position)
    sim.step(0.1)

    assert node.state.phase == Phase.DISABLED


def test_projected_tile_becomes_terrain() -> None:
    events: list[dict] = []
    sim = Simulation(_settings(heart={"initial_period": 0.1}), event_cb=events.append)
    sim.place_heart(ORIGIN)
    x = sim.place_node(Hex(0, 1), NodeKind.CONSTANT_NUMBER)
    y = sim.place_node(Hex(0, 3), NodeKind.CONSTANT_NUMBER)
    vector = sim.place_node(Hex(0, 2), NodeKind.VECTOR_CREATE)
    tile = sim.place_node(Hex(1, 2), NodeKind.PROJECT_TILE)
    sim.set_constant(x.id, Number(4.0))
    sim.set_constant(y.id, Number(-2.0))
    sim.bind(vector.id, Direction.NORTH, "x")
    sim.bind(vector.id, Direction.SOUTH, "y")
    sim.bind(tile.id, Direction.NORTH_WEST, "target")

    sim.run(4, dt=0.1)

    placed = [e for e in events if e["type"] == "TERRAIN_PLACED"]
    assert len(placed) == 1
    assert (placed[0]["q"], placed[0]["r"]) == (4, -2)
    assert sim.board.tile(Hex(4, -2)).kind.value == "Terrain"


def test_non_finite_values_fail_nodes_without_aborting_frames() -> None:
    sim = Simulation(_settings(heart={"initial_period": 0.1}))
    sim.place_heart(ORIGIN)
    x = sim.place_node(Hex(0, 1), NodeKind.CONSTANT_NUMBER)
    y = sim.place_node(Hex(0, 3), NodeKind.CONSTANT_NUMBER)
    vector = sim.place_node(Hex(0, 2), NodeKind.VECTOR_CREATE)
    rocket = sim.place_node(Hex(1, 2), NodeKind.ROCKET_LAUNCHER)
    tile = sim.place_node(Hex(-1, 3), NodeKind.PROJECT_TILE)
    orbital = sim.place_node(Hex(-1, 2), NodeKind.ORBITAL)
    storage = sim.place_node(Hex(1, 0), NodeKind.STORAGE)
    sim.set_constant(x.id, Number(float("inf")))
    sim.set_constant(y.id, Number(1.0))
    sim.bind(vector.id, Direction.NORTH, "x")
    sim.bind(vector.id, Direction.SOUTH, "y")
    sim.bind(rocket.id, Direction.NORTH_WEST, "direction")
    sim.bind(tile.id, Direction.NORTH_EAST, "target")
    sim.bind(orbital.id, Direction.SOUTH_EAST, "target")
    sim.bind(storage.id, Direction.SOUTH_WEST, "slot")

    sim.run(4, dt=0.1)

    assert sim.frame == 4
    for node in [rocket, tile, orbital, storage]:
        assert node.state.is_err
        assert isinstance(node.state.error, TypeMismatch)
    assert sim.processor.rockets == []
    assert sim.processor.strikes == []
