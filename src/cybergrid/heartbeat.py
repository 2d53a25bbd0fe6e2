"""Heart pulse timing and the activation driver."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cybergrid.config import HeartSettings
from cybergrid.hexgrid import Hex
from cybergrid.state import NodeState, Phase

if TYPE_CHECKING:
    from cybergrid.board import Board

logger = logging.getLogger(__name__)


@dataclass
class HeartInstance:
    """A pulsing heart; more health means a shorter period."""

    id: int
    position: Hex
    health: float
    period: float
    elapsed: float = 0.0
    beats: int = 0

    @property
    def alive(self) -> bool:
        return self.health > 0

    def advance(self, dt: float, settings: HeartSettings) -> bool:
        """Advance the pulse timer; returns True when the heart fires this frame."""
        if not self.alive:
            return False
        self.elapsed += dt
        if self.elapsed < self.period:
            return False
        self.elapsed -= self.period
        self.beats += 1
        self.period = settings.period_base / self.health
        # a long frame never fires the same heart twice
        self.elapsed = min(self.elapsed, self.period)
        return True


class HeartRegen:
    """Shared regeneration timer adding health to every heart on each interval."""

    def __init__(self, settings: HeartSettings) -> None:
        self.settings = settings
        self.elapsed = 0.0

    def advance(self, dt: float, hearts: list[HeartInstance]) -> bool:
        self.elapsed += dt
        if self.elapsed < self.settings.heal_interval:
            return False
        self.elapsed -= self.settings.heal_interval
        for heart in hearts:
            if heart.alive:
                heart.health += self.settings.heal_amount
        return True


def stalled_nodes(board: Board) -> list[int]:
    """Nodes still waiting on inputs from the previous activation round."""
    return [
        node.id
        for node in board.nodes.values()
        if node.state.phase == Phase.ACTIVATION_REQUEST
    ]


def request_activation(board: Board) -> int:
    """Mark every non-disabled node as requested; returns how many were marked.

    Discards any cached ``Done`` result. Applying it twice has no added effect.
    """
    count = 0
    for node in board.nodes.values():
        if node.state.phase == Phase.DISABLED:
            continue
        node.state = NodeState.requested()
        count += 1
    logger.debug("activation requested for %d nodes", count)
    return count
