"""Hex-grid dataflow simulator for player-built cyber node programs."""

from cybergrid.board import Board, BoardView, NodeInstance
from cybergrid.config import SimulationSettings, load_and_validate_config
from cybergrid.errors import BoardError, PortError, WiringError
from cybergrid.hexgrid import Direction, Hex
from cybergrid.registry import NodeKind, NodeRegistry, build_default_registry
from cybergrid.scheduler import ActivationScheduler, prune_unreachable
from cybergrid.simulation import Simulation
from cybergrid.state import NodeState, Phase
from cybergrid.values import EMPTY, EntityRef, Number, Text, ValueList, Vector

__all__ = [
    "ActivationScheduler",
    "Board",
    "BoardError",
    "BoardView",
    "Direction",
    "EMPTY",
    "EntityRef",
    "Hex",
    "NodeInstance",
    "NodeKind",
    "NodeRegistry",
    "NodeState",
    "Number",
    "Phase",
    "PortError",
    "SimulationSettings",
    "Simulation",
    "Text",
    "ValueList",
    "Vector",
    "WiringError",
    "build_default_registry",
    "load_and_validate_config",
    "prune_unreachable",
]
