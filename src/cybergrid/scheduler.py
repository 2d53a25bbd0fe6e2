"""Reachability pruning and the per-frame activation pass."""

from __future__ import annotations

import logging
from collections import deque

from cybergrid.board import Board, NodeInstance
from cybergrid.effects import EffectSink
from cybergrid.errors import PortError
from cybergrid.evaluators import EVALUATORS, EvalContext, Evaluator
from cybergrid.hexgrid import Hex
from cybergrid.registry import NodeKind
from cybergrid.state import NodeState, Phase

logger = logging.getLogger(__name__)


def reachable_cells(board: Board) -> set[Hex]:
    """Cells reached by walking node-to-node from every live heart."""
    seen: set[Hex] = set()
    for heart in board.hearts.values():
        if not heart.alive or heart.position in seen:
            continue
        seen.add(heart.position)
        queue = deque([heart.position])
        while queue:
            cell = queue.popleft()
            for neighbour in cell.all_neighbors():
                if neighbour in seen or board.node_at(neighbour) is None:
                    continue
                seen.add(neighbour)
                queue.append(neighbour)
    return seen


def prune_unreachable(board: Board) -> tuple[list[int], list[int]]:
    """Rebuild participation from scratch; returns (re-enabled ids, disabled ids).

    Reached nodes are only touched when disabled; anything else they hold is
    left for the activation driver to reset.
    """
    reached = reachable_cells(board)
    enabled: list[int] = []
    disabled: list[int] = []
    for node in board.nodes.values():
        if node.position in reached:
            if node.state.phase == Phase.DISABLED:
                node.state = NodeState.idle()
                enabled.append(node.id)
        elif node.state.phase != Phase.DISABLED:
            node.state = NodeState.disabled()
            disabled.append(node.id)
    board.topology_dirty = False
    if enabled or disabled:
        logger.debug("prune: %d enabled, %d disabled", len(enabled), len(disabled))
    return enabled, disabled


class ActivationScheduler:
    """Fires every requested node whose wired neighbours all hold a result."""

    def __init__(self, evaluators: dict[NodeKind, Evaluator] | None = None) -> None:
        self.evaluators = evaluators or EVALUATORS

    @staticmethod
    def is_ready(board: Board, node: NodeInstance) -> bool:
        for direction in node.wiring.bound_directions():
            upstream = board.node_at(node.position + direction)
            if upstream is None or not upstream.state.is_ok:
                return False
        return True

    def run_pass(self, board: Board, sink: EffectSink) -> list[int]:
        """One scheduler pass; returns the ids fired, in dispatch order.

        Readiness is decided for all nodes before any of them runs, so a
        consumer never fires in the same pass as its producer.
        """
        ready = [
            node
            for node in board.nodes.values()
            if node.state.phase == Phase.ACTIVATION_REQUEST and self.is_ready(board, node)
        ]
        view = board.view()
        fired: list[int] = []
        for node in ready:
            node.state = NodeState.triggered()
            ctx = EvalContext(node=node, view=view, sink=sink)
            try:
                value = self.evaluators[node.kind](ctx)
            except PortError as exc:
                logger.debug("node %d (%s) failed: %s", node.id, node.kind.value, exc)
                node.state = NodeState.err(exc)
            else:
                node.state = NodeState.ok(value)
            fired.append(node.id)
        return fired

