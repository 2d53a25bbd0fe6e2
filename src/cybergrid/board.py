"""Board model: tiles, placed nodes, hearts, terrain, and targets."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from cybergrid.config import SimulationSettings
from cybergrid.errors import BoardError, WiringError
from cybergrid.heartbeat import HeartInstance
from cybergrid.hexgrid import Direction, Hex, HexagonalMap, HexLayout, ORIGIN
from cybergrid.registry import NodeKind, NodeKindDescriptor, NodeRegistry
from cybergrid.state import NodeState
from cybergrid.targets import Target, TargetStore
from cybergrid.values import Value
from cybergrid.wiring import PortCfg


class TileKind(str, Enum):
    UNOCCUPIED = "Unoccupied"
    TERRAIN = "Terrain"
    HEART = "Heart"
    NODE = "Node"


@dataclass(frozen=True)
class Tile:
    kind: TileKind = TileKind.UNOCCUPIED
    occupant: int | None = None


UNOCCUPIED = Tile()


@dataclass
class NodeInstance:
    id: int
    position: Hex
    kind: NodeKind
    wiring: PortCfg = field(default_factory=PortCfg)
    state: NodeState = field(default_factory=NodeState.disabled)
    health: float = 10.0
    # plasma charge accumulated across heartbeats
    charge: int = 0


@dataclass
class Terrain:
    id: int
    position: Hex
    health: float


class Board:
    """Mutable world owned by the running simulation step."""

    def __init__(
        self,
        registry: NodeRegistry,
        settings: SimulationSettings | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings if settings is not None else SimulationSettings()
        self.layout = HexLayout(hex_size=self.settings.grid.hex_size)
        self.tiles: HexagonalMap[Tile] = HexagonalMap(
            ORIGIN, self.settings.grid.radius, lambda _: UNOCCUPIED
        )
        self.nodes: dict[int, NodeInstance] = {}
        self.hearts: dict[int, HeartInstance] = {}
        self.terrain: dict[int, Terrain] = {}
        self.targets = TargetStore(self.layout)
        self.topology_dirty = True
        self._ids = itertools.count(1)

    # -- queries -----------------------------------------------------------

    def in_bounds(self, cell: Hex) -> bool:
        return self.tiles.in_bounds(cell)

    def tile(self, cell: Hex) -> Tile | None:
        return self.tiles.get(cell)

    def node_at(self, cell: Hex) -> NodeInstance | None:
        tile = self.tiles.get(cell)
        if tile is None or tile.kind != TileKind.NODE:
            return None
        return self.nodes.get(tile.occupant)

    def node(self, node_id: int) -> NodeInstance:
        try:
            return self.nodes[node_id]
        except KeyError as err:
            raise BoardError(f"unknown node id {node_id}") from err

    def descriptor(self, node: NodeInstance) -> NodeKindDescriptor:
        return self.registry.get(node.kind)

    def view(self) -> BoardView:
        return BoardView(self)

    # -- topology mutations ------------------------------------------------

    def _claim(self, cell: Hex, kind: TileKind) -> int:
        tile = self.tiles.get(cell)
        if tile is None:
            raise BoardError(f"cell {cell.to_tuple()} is out of bounds")
        if tile.kind != TileKind.UNOCCUPIED:
            raise BoardError(f"cell {cell.to_tuple()} is occupied by {tile.kind.value}")
        occupant = next(self._ids)
        self.tiles[cell] = Tile(kind, occupant)
        self.topology_dirty = True
        return occupant

    def place_node(self, cell: Hex, kind: NodeKind | str) -> NodeInstance:
        """Create a node on an empty cell; it stays disabled until the next prune."""
        kind = self.registry.get(kind).kind
        node_id = self._claim(cell, TileKind.NODE)
        node = NodeInstance(
            id=node_id,
            position=cell,
            kind=kind,
            health=self.settings.grid.node_health,
        )
        self.nodes[node_id] = node
        return node

    def place_heart(self, cell: Hex) -> HeartInstance:
        heart_id = self._claim(cell, TileKind.HEART)
        heart = HeartInstance(
            id=heart_id,
            position=cell,
            health=self.settings.heart.initial_health,
            period=self.settings.heart.initial_period,
        )
        self.hearts[heart_id] = heart
        return heart

    def place_terrain(self, cell: Hex, health: float | None = None) -> Terrain:
        terrain_id = self._claim(cell, TileKind.TERRAIN)
        terrain = Terrain(
            id=terrain_id,
            position=cell,
            health=self.settings.grid.terrain_health if health is None else health,
        )
        self.terrain[terrain_id] = terrain
        return terrain

    def clear_cell(self, cell: Hex) -> Tile:
        """Empty a cell, destroying whatever occupies it; returns the old tile."""
        tile = self.tiles.get(cell)
        if tile is None:
            raise BoardError(f"cell {cell.to_tuple()} is out of bounds")
        if tile.kind == TileKind.UNOCCUPIED:
            return tile
        if tile.kind == TileKind.NODE:
            self.nodes.pop(tile.occupant, None)
        elif tile.kind == TileKind.HEART:
            self.hearts.pop(tile.occupant, None)
        elif tile.kind == TileKind.TERRAIN:
            self.terrain.pop(tile.occupant, None)
        self.tiles[cell] = UNOCCUPIED
        self.topology_dirty = True
        return tile

    def remove_node(self, node_id: int) -> NodeInstance:
        node = self.node(node_id)
        self.clear_cell(node.position)
        return node

    def reap_dead(self) -> tuple[list[NodeInstance], list[HeartInstance], list[Terrain]]:
        """Clear every cell whose occupant's health reached zero."""
        nodes = [n for n in self.nodes.values() if n.health <= 0]
        hearts = [h for h in self.hearts.values() if h.health <= 0]
        terrain = [t for t in self.terrain.values() if t.health <= 0]
        for occupant in [*nodes, *hearts, *terrain]:
            self.clear_cell(occupant.position)
        return nodes, hearts, terrain

    # -- wiring ------------------------------------------------------------

    @staticmethod
    def _direction(direction: Direction | str) -> Direction:
        try:
            return Direction(direction)
        except ValueError as err:
            names = ", ".join(d.value for d in Direction)
            raise WiringError(f"unknown direction '{direction}'. Expected one of: {names}") from err

    def bind(self, node_id: int, direction: Direction | str, port_name: str) -> None:
        node = self.node(node_id)
        port = self.descriptor(node).input_port(port_name)
        if port is None:
            raise WiringError(f"node kind '{node.kind.value}' has no input port '{port_name}'")
        node.wiring.bind(self._direction(direction), port)

    def unbind(self, node_id: int, direction: Direction | str) -> None:
        self.node(node_id).wiring.unbind(self._direction(direction))

    def set_constant(self, node_id: int, value: Value | None) -> None:
        node = self.node(node_id)
        if not self.descriptor(node).output_port.is_constant:
            raise WiringError(f"node kind '{node.kind.value}' has no constant output")
        node.wiring.set_constant(value)


class BoardView:
    """Read-only access to the board handed to evaluators."""

    def __init__(self, board: Board) -> None:
        self._board = board

    @property
    def layout(self) -> HexLayout:
        return self._board.layout

    @property
    def settings(self) -> SimulationSettings:
        return self._board.settings

    def tile(self, cell: Hex) -> Tile | None:
        return self._board.tile(cell)

    def resolve(self, node: NodeInstance, port_name: str) -> NodeInstance | None:
        """Node in the cell wired to ``port_name``, or None when unbound or empty."""
        direction = node.wiring.direction_of(port_name)
        if direction is None:
            return None
        return self._board.node_at(node.position + direction)

    def target(self, target_id: int) -> Target | None:
        return self._board.targets.get(target_id)

    def targets(self) -> Iterator[Target]:
        return iter(self._board.targets)

    def target_cell(self, target: Target) -> Hex:
        return self._board.targets.cell_of(target)
