"""Targetable entities: the hostile side of the board."""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from cybergrid.config import SpawnSettings
from cybergrid.hexgrid import Hex, HexLayout


@dataclass
class Target:
    """A hostile entity with a world position and a waypoint path."""

    id: int
    position: tuple[float, float]
    health: float
    path: list[Hex] = field(default_factory=list)
    waypoint: int = 0
    speed: float = 10.0

    @property
    def alive(self) -> bool:
        return self.health > 0

    def next_waypoint(self) -> Hex | None:
        if not self.path:
            return None
        return self.path[min(self.waypoint, len(self.path) - 1)]


class TargetStore:
    """Holds every live targetable entity, keyed by id."""

    def __init__(self, layout: HexLayout) -> None:
        self.layout = layout
        self._targets: dict[int, Target] = {}
        self._ids = itertools.count(1)

    def add(
        self,
        position: tuple[float, float],
        health: float,
        path: list[Hex] | None = None,
        *,
        speed: float = 10.0,
    ) -> Target:
        target = Target(
            id=next(self._ids),
            position=(float(position[0]), float(position[1])),
            health=float(health),
            path=list(path or []),
            speed=speed,
        )
        self._targets[target.id] = target
        return target

    def add_at(self, cell: Hex, health: float, path: list[Hex] | None = None, **kw) -> Target:
        return self.add(self.layout.hex_to_world(cell), health, path, **kw)

    def get(self, target_id: int) -> Target | None:
        target = self._targets.get(target_id)
        if target is None or not target.alive:
            return None
        return target

    def remove(self, target_id: int) -> Target | None:
        return self._targets.pop(target_id, None)

    def damage(self, target_id: int, amount: float) -> bool:
        target = self.get(target_id)
        if target is None:
            return False
        target.health -= amount
        return True

    def cell_of(self, target: Target) -> Hex:
        return self.layout.world_to_hex(*target.position)

    def within(self, center: tuple[float, float], radius: float) -> list[Target]:
        cx, cy = center
        return [
            t for t in self if math.hypot(t.position[0] - cx, t.position[1] - cy) <= radius
        ]

    def reap(self) -> list[Target]:
        """Drop and return every target whose health reached zero."""
        dead = [t for t in self._targets.values() if not t.alive]
        for target in dead:
            del self._targets[target.id]
        return dead

    def follow_paths(self, dt: float) -> None:
        for target in self:
            _advance_along_path(target, self.layout, dt)

    def __iter__(self) -> Iterator[Target]:
        return iter([t for t in self._targets.values() if t.alive])

    def __len__(self) -> int:
        return sum(1 for _ in self)


def _advance_along_path(target: Target, layout: HexLayout, dt: float) -> None:
    budget = target.speed * dt
    while budget > 0 and target.waypoint < len(target.path):
        wx, wy = layout.hex_to_world(target.path[target.waypoint])
        px, py = target.position
        dist = math.hypot(wx - px, wy - py)
        if dist < 0.1:
            target.waypoint += 1
            continue
        step = min(budget, dist)
        target.position = (px + (wx - px) / dist * step, py + (wy - py) / dist * step)
        budget -= step


class EnemySpawner:
    """Rolls for a new hostile on a ring around a heart after each heartbeat."""

    def __init__(self, settings: SpawnSettings, rng: np.random.Generator) -> None:
        self.settings = settings
        self.rng = rng

    def maybe_spawn(self, store: TargetStore, heart: Hex, in_bounds) -> Target | None:
        if not self.settings.enabled:
            return None
        if self.rng.random() >= self.settings.spawn_chance:
            return None

        ring = [cell for cell in heart.ring(self.settings.spawn_ring) if in_bounds(cell)]
        if not ring:
            return None
        spawn = ring[int(self.rng.integers(len(ring)))]
        return store.add_at(
            spawn,
            self.settings.target_health,
            spawn.line_to(heart),
            speed=self.settings.target_speed,
        )
