import numpy as np
import pytest

from cybergrid.config import HeartSettings, SpawnSettings
from cybergrid.heartbeat import HeartInstance, HeartRegen
from cybergrid.hexgrid import ORIGIN, Hex, HexLayout
from cybergrid.targets import EnemySpawner, TargetStore


def test_heart_fires_after_period_and_retunes_from_health() -> None:
    settings = HeartSettings()
    heart = HeartInstance(id=1, position=ORIGIN, health=10.0, period=10.0)

    fired = [heart.advance(4.0, settings) for _ in range(3)]

    assert fired == [False, False, True]
    assert heart.beats == 1
    assert heart.elapsed == 2.0
    assert heart.period == 10.0

    heart.health = 20.0
    assert heart.advance(8.0, settings)
    assert heart.period == 5.0


def test_long_frame_fires_once() -> None:
    heart = HeartInstance(id=1, position=ORIGIN, health=50.0, period=1.0)
    assert heart.advance(30.0, HeartSettings())
    assert heart.beats == 1
    assert heart.elapsed <= heart.period


def test_dead_heart_never_fires() -> None:
    heart = HeartInstance(id=1, position=ORIGIN, health=0.0, period=1.0)
    assert not heart.advance(5.0, HeartSettings())


def test_regen_heals_live_hearts_on_interval() -> None:
    regen = HeartRegen(HeartSettings(heal_interval=2.0, heal_amount=1.5))
    hearts = [
        HeartInstance(id=1, position=ORIGIN, health=4.0, period=10.0),
        HeartInstance(id=2, position=Hex(3, 0), health=0.0, period=10.0),
    ]

    assert not regen.advance(1.0, hearts)
    assert regen.advance(1.0, hearts)
    assert hearts[0].health == 5.5
    assert hearts[1].health == 0.0


def test_spawner_places_target_on_ring_with_path_to_heart() -> None:
    store = TargetStore(HexLayout())
    spawner = EnemySpawner(
        SpawnSettings(spawn_chance=1.0, spawn_ring=4, target_health=12.0),
        np.random.default_rng(3),
    )

    target = spawner.maybe_spawn(store, ORIGIN, lambda cell: cell.distance_to(ORIGIN) <= 10)

    assert target is not None
    assert store.cell_of(target).distance_to(ORIGIN) == 4
    assert target.path[-1] == ORIGIN
    assert target.health == 12.0
    assert len(store) == 1


def test_spawner_respects_chance_and_toggle() -> None:
    store = TargetStore(HexLayout())
    never = EnemySpawner(SpawnSettings(spawn_chance=0.0), np.random.default_rng(0))
    off = EnemySpawner(SpawnSettings(enabled=False, spawn_chance=1.0), np.random.default_rng(0))

    assert never.maybe_spawn(store, ORIGIN, lambda cell: True) is None
    assert off.maybe_spawn(store, ORIGIN, lambda cell: True) is None
    assert len(store) == 0


def test_targets_follow_path_and_get_reaped() -> None:
    layout = HexLayout()
    store = TargetStore(layout)
    target = store.add_at(Hex(0, 2), 5.0, [Hex(0, 2), Hex(0, 1), ORIGIN], speed=1000.0)

    store.follow_paths(1.0)

    assert target.position == pytest.approx(layout.hex_to_world(ORIGIN), abs=1e-9)
    assert target.waypoint == 3

    store.damage(target.id, 5.0)
    assert store.get(target.id) is None
    assert [t.id for t in store.reap()] == [target.id]
    assert len(store) == 0
