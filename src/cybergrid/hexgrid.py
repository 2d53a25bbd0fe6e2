"""Axial hex coordinates, bounded hexagonal tile maps, and world layout."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

SQRT3 = math.sqrt(3.0)


@dataclass(frozen=True, order=True)
class Hex:
    """Axial hex coordinate (q, r); the implicit cube coordinate is s = -q - r."""

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __add__(self, other: object) -> Hex:
        if isinstance(other, Direction):
            other = other.offset
        if not isinstance(other, Hex):
            return NotImplemented
        return Hex(self.q + other.q, self.r + other.r)

    def __sub__(self, other: Hex) -> Hex:
        return Hex(self.q - other.q, self.r - other.r)

    def __mul__(self, k: int) -> Hex:
        return Hex(self.q * k, self.r * k)

    def length(self) -> int:
        return (abs(self.q) + abs(self.r) + abs(self.s)) // 2

    def distance_to(self, other: Hex) -> int:
        return (self - other).length()

    def neighbor(self, direction: Direction) -> Hex:
        return self + direction.offset

    def all_neighbors(self) -> list[Hex]:
        return [self + d.offset for d in Direction]

    def direction_to(self, other: Hex) -> Direction | None:
        """Direction of an adjacent cell, or None if ``other`` is not a neighbour."""
        delta = other - self
        for direction in Direction:
            if direction.offset == delta:
                return direction
        return None

    def ring(self, radius: int) -> list[Hex]:
        if radius <= 0:
            return [self]
        results: list[Hex] = []
        cell = self + Direction.SOUTH_WEST.offset * radius
        for direction in Direction:
            for _ in range(radius):
                results.append(cell)
                cell = cell + direction.offset
        return results

    def line_to(self, other: Hex) -> list[Hex]:
        """Cells on the straight line from this cell to ``other`` (both ends included)."""
        steps = self.distance_to(other)
        if steps == 0:
            return [self]
        # nudge avoids landing exactly on cell edges
        aq, ar = self.q + 1e-6, self.r + 1e-6
        bq, br = other.q + 1e-6, other.r + 1e-6
        return [
            hex_round(aq + (bq - aq) * i / steps, ar + (br - ar) * i / steps)
            for i in range(steps + 1)
        ]

    def to_tuple(self) -> tuple[int, int]:
        return (self.q, self.r)


ORIGIN = Hex(0, 0)


class Direction(str, Enum):
    """The six edge directions of a hex cell, in clockwise order."""

    NORTH = "north"
    NORTH_EAST = "north_east"
    SOUTH_EAST = "south_east"
    SOUTH = "south"
    SOUTH_WEST = "south_west"
    NORTH_WEST = "north_west"

    @property
    def offset(self) -> Hex:
        return _DIRECTION_OFFSETS[self]

    def opposite(self) -> Direction:
        members = list(Direction)
        return members[(members.index(self) + 3) % 6]


_DIRECTION_OFFSETS: dict[Direction, Hex] = {
    Direction.NORTH: Hex(0, -1),
    Direction.NORTH_EAST: Hex(1, -1),
    Direction.SOUTH_EAST: Hex(1, 0),
    Direction.SOUTH: Hex(0, 1),
    Direction.SOUTH_WEST: Hex(-1, 1),
    Direction.NORTH_WEST: Hex(-1, 0),
}


def hex_round(q: float, r: float) -> Hex:
    """Round a fractional axial coordinate to the containing cell."""
    s = -q - r
    rq, rr, rs = round(q), round(r), round(s)
    dq, dr, ds = abs(rq - q), abs(rr - r), abs(rs - s)
    if dq > dr and dq > ds:
        rq = -rr - rs
    elif dr > ds:
        rr = -rq - rs
    return Hex(int(rq), int(rr))


@dataclass(frozen=True)
class HexLayout:
    """Flat-top layout mapping cells to world-space centres."""

    hex_size: float = 35.0

    def hex_to_world(self, cell: Hex) -> tuple[float, float]:
        return self.fract_hex_to_world(float(cell.q), float(cell.r))

    def fract_hex_to_world(self, q: float, r: float) -> tuple[float, float]:
        x = self.hex_size * 1.5 * q
        y = self.hex_size * SQRT3 * (r + q / 2.0)
        return (x, y)

    def world_to_fract_hex(self, x: float, y: float) -> tuple[float, float]:
        q = (2.0 / 3.0 * x) / self.hex_size
        r = (-1.0 / 3.0 * x + SQRT3 / 3.0 * y) / self.hex_size
        return (q, r)

    def world_to_hex(self, x: float, y: float) -> Hex:
        return hex_round(*self.world_to_fract_hex(x, y))


class HexagonalMap(Generic[T]):
    """Fixed-radius hexagonal storage keyed by cell."""

    def __init__(self, center: Hex, radius: int, factory) -> None:
        self.center = center
        self.radius = radius
        self._cells: dict[Hex, T] = {}
        for dq in range(-radius, radius + 1):
            for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
                cell = Hex(center.q + dq, center.r + dr)
                self._cells[cell] = factory(cell)

    def in_bounds(self, cell: Hex) -> bool:
        return cell.distance_to(self.center) <= self.radius

    def get(self, cell: Hex) -> T | None:
        return self._cells.get(cell)

    def __getitem__(self, cell: Hex) -> T:
        if cell not in self._cells:
            raise KeyError(f"cell {cell.to_tuple()} is out of bounds")
        return self._cells[cell]

    def __setitem__(self, cell: Hex, value: T) -> None:
        if cell not in self._cells:
            raise KeyError(f"cell {cell.to_tuple()} is out of bounds")
        self._cells[cell] = value

    def __contains__(self, cell: object) -> bool:
        return cell in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def items(self) -> Iterator[tuple[Hex, T]]:
        return iter(self._cells.items())
