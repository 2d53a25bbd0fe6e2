"""Single-threaded frame loop tying board, hearts, scheduler, and effects together."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import numpy as np

from cybergrid.board import Board, NodeInstance, Terrain, TileKind
from cybergrid.config import SimulationSettings
from cybergrid.effects import (
    Damage,
    DebugLog,
    EffectProcessor,
    EffectSink,
    PlaceTerrain,
    effect_payload,
)
from cybergrid.heartbeat import HeartInstance, HeartRegen, request_activation, stalled_nodes
from cybergrid.hexgrid import Direction, Hex
from cybergrid.recorder import SessionRecorder
from cybergrid.registry import NodeKind, NodeRegistry, build_default_registry
from cybergrid.scheduler import ActivationScheduler, prune_unreachable
from cybergrid.targets import EnemySpawner, Target
from cybergrid.values import Value

logger = logging.getLogger(__name__)

EventCallback = Callable[[dict[str, Any]], Any]


class Simulation:
    """Owns the board and advances it one frame at a time."""

    def __init__(
        self,
        settings: SimulationSettings | None = None,
        *,
        registry: NodeRegistry | None = None,
        event_cb: EventCallback | None = None,
        recorder: SessionRecorder | None = None,
    ) -> None:
        self.settings = settings if settings is not None else SimulationSettings()
        self.registry = registry or build_default_registry()
        self.board = Board(self.registry, self.settings)
        self.scheduler = ActivationScheduler()
        self.sink = EffectSink()
        self.processor = EffectProcessor(self.settings.weapons, self.board.layout)
        self.spawner = EnemySpawner(self.settings.spawn, np.random.default_rng(self.settings.seed))
        self.regen = HeartRegen(self.settings.heart)
        self.event_cb = event_cb
        self.recorder = recorder
        self.frame = 0
        self.time = 0.0
        self.game_over = False
        self.fired_total = 0
        self.kills = 0
        self.damage_dealt = 0.0

    # -- mutation API ------------------------------------------------------

    def place_node(self, cell: Hex, kind: NodeKind | str) -> NodeInstance:
        return self.board.place_node(cell, kind)

    def remove_node(self, node_id: int) -> NodeInstance:
        return self.board.remove_node(node_id)

    def bind(self, node_id: int, direction: Direction | str, port_name: str) -> None:
        self.board.bind(node_id, direction, port_name)

    def set_constant(self, node_id: int, value: Value | None) -> None:
        self.board.set_constant(node_id, value)

    def place_heart(self, cell: Hex) -> HeartInstance:
        return self.board.place_heart(cell)

    def place_terrain(self, cell: Hex) -> Terrain:
        return self.board.place_terrain(cell)

    def add_target(
        self,
        cell: Hex,
        health: float | None = None,
        path: list[Hex] | None = None,
    ) -> Target:
        spawn = self.settings.spawn
        return self.board.targets.add_at(
            cell,
            spawn.target_health if health is None else health,
            path,
            speed=spawn.target_speed,
        )

    # -- frame loop --------------------------------------------------------

    def run(self, frames: int, dt: float = 1.0 / 60.0) -> dict[str, Any]:
        for _ in range(frames):
            if self.game_over:
                break
            self.step(dt)
        return self.summary()

    def step(self, dt: float) -> list[int]:
        """Advance one frame; returns the ids of nodes fired this frame."""
        self.frame += 1
        self.time += dt

        self._reap_board()
        if self.board.topology_dirty:
            prune_unreachable(self.board)
        self._beat_hearts(dt)

        fired = self.scheduler.run_pass(self.board, self.sink)
        self.fired_total += len(fired)
        for node_id in fired:
            node = self.board.nodes[node_id]
            self._emit(
                {
                    "type": "NODE_DONE",
                    "node": node_id,
                    "kind": node.kind.value,
                    "state": node.state.to_json(),
                }
            )

        self._apply_effects()
        self.damage_dealt += self.processor.step(dt, self.board.targets)
        self._step_targets(dt)

        status = self.status()
        self._emit({"type": "FRAME", **status})
        if self.recorder:
            self.recorder.record_frame(self.frame, status)
        return fired

    def _reap_board(self) -> None:
        nodes, hearts, terrain = self.board.reap_dead()
        for node in nodes:
            logger.info("node %d (%s) destroyed", node.id, node.kind.value)
        for heart in hearts:
            logger.info("heart %d destroyed at %s", heart.id, heart.position.to_tuple())
            self._emit({"type": "HEART_DESTROYED", "heart": heart.id, "q": heart.position.q, "r": heart.position.r})
        if terrain:
            logger.debug("%d terrain tiles destroyed", len(terrain))
        if hearts and not self.board.hearts:
            self.game_over = True
            logger.info("all hearts destroyed after %d frames", self.frame)

    def _beat_hearts(self, dt: float) -> None:
        beating = [
            heart
            for heart in list(self.board.hearts.values())
            if heart.advance(dt, self.settings.heart)
        ]
        if not beating:
            return

        stalled = stalled_nodes(self.board)
        if stalled:
            logger.debug("nodes still waiting at heartbeat: %s", stalled)
            self._emit({"type": "NODES_STALLED", "nodes": stalled})
        requested = request_activation(self.board)

        for heart in beating:
            self._emit(
                {
                    "type": "HEARTBEAT",
                    "heart": heart.id,
                    "beat": heart.beats,
                    "period": heart.period,
                    "health": heart.health,
                    "requested": requested,
                }
            )
            spawned = self.spawner.maybe_spawn(self.board.targets, heart.position, self.board.in_bounds)
            if spawned:
                logger.debug("target %d spawned at %s", spawned.id, spawned.position)

    def _apply_effects(self) -> None:
        for effect in self.sink.drain():
            self._emit({"type": "EFFECT", **effect_payload(effect)})
            if isinstance(effect, Damage):
                if self.board.targets.damage(effect.target, effect.amount):
                    self.damage_dealt += effect.amount
            elif isinstance(effect, PlaceTerrain):
                self._place_projected_tile(effect)
            elif isinstance(effect, DebugLog):
                continue
            else:
                self.processor.accept(effect)

    def _place_projected_tile(self, effect: PlaceTerrain) -> None:
        tile = self.board.tile(effect.cell)
        # an earlier effect this frame may have claimed the cell
        if tile is None or tile.kind != TileKind.UNOCCUPIED:
            logger.debug("projected tile at %s dropped", effect.cell.to_tuple())
            return
        terrain = self.board.place_terrain(effect.cell)
        self._emit(
            {
                "type": "TERRAIN_PLACED",
                "terrain": terrain.id,
                "source": effect.source,
                "q": effect.cell.q,
                "r": effect.cell.r,
            }
        )

    def _step_targets(self, dt: float) -> None:
        targets = self.board.targets
        targets.follow_paths(dt)

        contact = self.settings.heart.contact_damage * dt
        for heart in self.board.hearts.values():
            touching = sum(
                1 for t in targets if heart.position.distance_to(targets.cell_of(t)) <= 1
            )
            if touching:
                heart.health -= contact * touching
        self.regen.advance(dt, list(self.board.hearts.values()))

        for target in targets.reap():
            self.kills += 1
            self._emit({"type": "TARGET_KILLED", "target": target.id})

    # -- reporting ---------------------------------------------------------

    def _emit(self, payload: dict[str, Any]) -> None:
        payload = {"ts": datetime.now(timezone.utc).isoformat(), "frame": self.frame, **payload}
        if self.recorder:
            self.recorder.record_event(payload)
        if self.event_cb:
            self.event_cb(payload)

    def status(self) -> dict[str, Any]:
        phases: dict[str, int] = {}
        for node in self.board.nodes.values():
            phases[node.state.phase.value] = phases.get(node.state.phase.value, 0) + 1
        return {
            "frame": self.frame,
            "time": round(self.time, 6),
            "nodes": len(self.board.nodes),
            "phases": phases,
            "hearts": {h.id: round(h.health, 3) for h in self.board.hearts.values()},
            "targets": len(self.board.targets),
            "active_effects": self.processor.active_count(),
            "game_over": self.game_over,
        }

    def summary(self) -> dict[str, Any]:
        return {
            "frames": self.frame,
            "time": round(self.time, 6),
            "nodes_fired": self.fired_total,
            "kills": self.kills,
            "damage_dealt": round(self.damage_dealt, 3),
            "hearts_left": len(self.board.hearts),
            "game_over": self.game_over,
        }
