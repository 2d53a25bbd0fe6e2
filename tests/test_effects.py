import pytest

from cybergrid.config import WeaponSettings
from cybergrid.effects import (
    EffectProcessor,
    EffectSink,
    LaserBeam,
    OrbitalStrike,
    PlasmaZone,
    RocketLaunch,
    ShockLinks,
    effect_payload,
)
from cybergrid.hexgrid import ORIGIN, Hex, HexLayout
from cybergrid.targets import TargetStore


def _setup() -> tuple[EffectProcessor, TargetStore]:
    layout = HexLayout()
    return EffectProcessor(WeaponSettings(), layout), TargetStore(layout)


def test_sink_drains_in_emit_order() -> None:
    sink = EffectSink()
    sink.emit(LaserBeam(ORIGIN, 1))
    sink.emit(OrbitalStrike(Hex(1, 0), 2.0))

    assert len(sink) == 2
    assert [type(e).__name__ for e in sink.drain()] == ["LaserBeam", "OrbitalStrike"]
    assert sink.drain() == []


def test_effect_payload_flattens_cells() -> None:
    assert effect_payload(LaserBeam(Hex(1, 2), 3)) == {
        "effect": "LaserBeam",
        "origin": [1, 2],
        "target": 3,
    }


def test_rocket_travels_and_explodes_on_contact() -> None:
    processor, targets = _setup()
    target = targets.add((30.0, 0.0), 100.0)
    processor.accept(RocketLaunch(ORIGIN, (1.0, 0.0)))

    assert processor.step(0.05, targets) == 0.0
    assert processor.step(0.05, targets) == 50.0
    assert target.health == 50.0
    assert processor.active_count() == 0


def test_rocket_despawns_at_max_distance() -> None:
    processor, targets = _setup()
    processor.accept(RocketLaunch(ORIGIN, (0.0, 1.0)))

    for _ in range(5):
        processor.step(1.0, targets)

    assert processor.rockets == []


def test_orbital_strike_lands_after_delay() -> None:
    processor, targets = _setup()
    inside = targets.add((100.0, 0.0), 20.0)
    outside = targets.add((500.0, 0.0), 20.0)
    processor.accept(OrbitalStrike(ORIGIN, 1.0))

    assert processor.step(0.5, targets) == 0.0
    assert processor.step(0.6, targets) == 5.0
    assert inside.health == 15.0
    assert outside.health == 20.0
    assert processor.strikes == []


def test_plasma_zone_deals_remaining_time_damage() -> None:
    processor, targets = _setup()
    target = targets.add((50.0, 0.0), 100.0)
    processor.accept(PlasmaZone((0.0, 0.0), 4))

    dealt = processor.step(0.5, targets)

    assert dealt == pytest.approx(7.5)
    assert target.health == pytest.approx(92.5)
    assert len(processor.zones) == 1


def test_visual_effects_expire() -> None:
    processor, targets = _setup()
    target = targets.add((1000.0, 0.0), 10.0)
    processor.accept(ShockLinks(ORIGIN, (target.id,)))
    processor.accept(LaserBeam(ORIGIN, target.id))
    assert processor.active_count() == 2

    processor.step(0.2, targets)
    assert processor.active_count() == 2
    processor.step(0.2, targets)
    assert processor.active_count() == 1
    processor.step(0.2, targets)
    assert processor.active_count() == 0
