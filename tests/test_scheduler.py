from cybergrid.board import Board
from cybergrid.config import SimulationSettings
from cybergrid.effects import EffectSink
from cybergrid.heartbeat import request_activation, stalled_nodes
from cybergrid.hexgrid import ORIGIN, Direction, Hex
from cybergrid.registry import NodeKind, build_default_registry
from cybergrid.scheduler import ActivationScheduler, prune_unreachable
from cybergrid.state import Phase
from cybergrid.values import Number


def _board() -> Board:
    board = Board(build_default_registry(), SimulationSettings())
    board.place_heart(ORIGIN)
    return board


def _constant(board: Board, cell: Hex, value: float):
    node = board.place_node(cell, NodeKind.CONSTANT_NUMBER)
    board.set_constant(node.id, Number(value))
    return node


def test_node_without_inputs_fires_on_first_pass() -> None:
    board = _board()
    node = _constant(board, Hex(0, 1), 5.0)
    prune_unreachable(board)
    request_activation(board)

    fired = ActivationScheduler().run_pass(board, EffectSink())

    assert fired == [node.id]
    assert node.state.is_ok
    assert node.state.value == Number(5.0)


def test_consumer_fires_one_pass_after_producer() -> None:
    board = _board()
    consumer = board.place_node(Hex(0, 2), NodeKind.NUMBER_MULTIPLY)
    producer = _constant(board, Hex(0, 1), 4.0)
    board.bind(consumer.id, Direction.NORTH, "a")
    prune_unreachable(board)
    request_activation(board)
    scheduler = ActivationScheduler()
    sink = EffectSink()

    assert scheduler.run_pass(board, sink) == [producer.id]
    assert producer.state.is_done
    assert consumer.state.phase == Phase.ACTIVATION_REQUEST

    assert scheduler.run_pass(board, sink) == [consumer.id]
    assert consumer.state.value == Number(4.0)

    assert scheduler.run_pass(board, sink) == []


def test_two_cycle_stalls_until_next_heartbeat() -> None:
    board = _board()
    first = board.place_node(Hex(0, 1), NodeKind.NUMBER_MULTIPLY)
    second = board.place_node(Hex(0, 2), NodeKind.NUMBER_MULTIPLY)
    board.bind(first.id, Direction.SOUTH, "a")
    board.bind(second.id, Direction.NORTH, "a")
    prune_unreachable(board)
    request_activation(board)
    scheduler = ActivationScheduler()

    for _ in range(5):
        assert scheduler.run_pass(board, EffectSink()) == []
    assert first.state.phase == Phase.ACTIVATION_REQUEST
    assert second.state.phase == Phase.ACTIVATION_REQUEST
    assert sorted(stalled_nodes(board)) == sorted([first.id, second.id])

    request_activation(board)
    assert scheduler.run_pass(board, EffectSink()) == []
    assert first.state.phase == Phase.ACTIVATION_REQUEST
    assert second.state.phase == Phase.ACTIVATION_REQUEST


def test_unbound_ports_are_not_required() -> None:
    board = _board()
    node = board.place_node(Hex(1, 0), NodeKind.NUMBER_SUBTRACT)
    prune_unreachable(board)
    request_activation(board)

    assert ActivationScheduler().run_pass(board, EffectSink()) == [node.id]
    assert node.state.value == Number(0.0)


def test_evaluator_failure_becomes_done_error() -> None:
    board = _board()
    lazor = board.place_node(Hex(0, 2), NodeKind.LAZOR)
    _constant(board, Hex(0, 1), 1.0)
    board.bind(lazor.id, Direction.NORTH, "target")
    prune_unreachable(board)
    request_activation(board)
    scheduler = ActivationScheduler()

    scheduler.run_pass(board, EffectSink())
    scheduler.run_pass(board, EffectSink())

    assert lazor.state.is_err
    assert "expected Entity" in str(lazor.state.error)


def test_binding_toward_empty_cell_stalls() -> None:
    board = _board()
    lazor = board.place_node(Hex(0, 1), NodeKind.LAZOR)
    board.bind(lazor.id, Direction.SOUTH, "target")
    prune_unreachable(board)
    request_activation(board)

    assert ActivationScheduler().run_pass(board, EffectSink()) == []
    assert lazor.state.phase == Phase.ACTIVATION_REQUEST


def test_placed_node_starts_disabled_until_pruned() -> None:
    board = _board()
    reachable = _constant(board, Hex(0, 1), 1.0)
    island = _constant(board, Hex(4, 0), 1.0)
    assert reachable.state.phase == Phase.DISABLED

    enabled, disabled = prune_unreachable(board)

    assert enabled == [reachable.id]
    assert disabled == []
    assert island.state.phase == Phase.DISABLED
    assert not board.topology_dirty

    request_activation(board)
    assert island.state.phase == Phase.DISABLED
    assert ActivationScheduler().run_pass(board, EffectSink()) == [reachable.id]


def test_reachability_loss_clears_result_and_reconnect_waits_for_heartbeat() -> None:
    board = _board()
    bridge = _constant(board, Hex(0, 1), 1.0)
    leaf = _constant(board, Hex(0, 2), 2.0)
    prune_unreachable(board)
    request_activation(board)
    scheduler = ActivationScheduler()
    scheduler.run_pass(board, EffectSink())
    assert leaf.state.value == Number(2.0)

    board.remove_node(bridge.id)
    prune_unreachable(board)
    assert leaf.state.phase == Phase.DISABLED
    assert leaf.state.value is None

    _constant(board, Hex(0, 1), 1.0)
    prune_unreachable(board)
    assert leaf.state.phase == Phase.IDLE
    scheduler.run_pass(board, EffectSink())
    assert leaf.state.phase == Phase.IDLE

    request_activation(board)
    scheduler.run_pass(board, EffectSink())
    assert leaf.state.value == Number(2.0)


def test_pruning_leaves_in_flight_states_alone() -> None:
    board = _board()
    node = _constant(board, Hex(0, 1), 1.0)
    prune_unreachable(board)
    request_activation(board)

    board.place_node(Hex(-1, 1), NodeKind.DEBUG)
    prune_unreachable(board)

    assert node.state.phase == Phase.ACTIVATION_REQUEST


def test_activation_request_is_idempotent() -> None:
    board = _board()
    _constant(board, Hex(0, 1), 1.0)
    _constant(board, Hex(1, 0), 2.0)
    prune_unreachable(board)

    assert request_activation(board) == 2
    assert request_activation(board) == 2
    assert ActivationScheduler().run_pass(board, EffectSink()) != []
    assert all(n.state.is_done for n in board.nodes.values())
