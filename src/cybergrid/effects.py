"""World side effects requested by evaluators and the processor that plays them out."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Union

from cybergrid.config import WeaponSettings
from cybergrid.hexgrid import Hex, HexLayout
from cybergrid.targets import TargetStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Damage:
    target: int
    amount: float


@dataclass(frozen=True)
class LaserBeam:
    origin: Hex
    target: int


@dataclass(frozen=True)
class RocketLaunch:
    origin: Hex
    direction: tuple[float, float]


@dataclass(frozen=True)
class OrbitalStrike:
    cell: Hex
    delay: float


@dataclass(frozen=True)
class PlasmaZone:
    center: tuple[float, float]
    charge: int


@dataclass(frozen=True)
class ShockLinks:
    origin: Hex
    targets: tuple[int, ...]


@dataclass(frozen=True)
class PlaceTerrain:
    cell: Hex
    source: int


@dataclass(frozen=True)
class DebugLog:
    node: int
    values: tuple[Any, ...]


Effect = Union[Damage, LaserBeam, RocketLaunch, OrbitalStrike, PlasmaZone, ShockLinks, PlaceTerrain, DebugLog]


def effect_payload(effect: Effect) -> dict[str, Any]:
    data = asdict(effect)
    for key, value in data.items():
        if isinstance(value, dict) and set(value) == {"q", "r"}:
            data[key] = [value["q"], value["r"]]
    return {"effect": type(effect).__name__, **data}


class EffectSink:
    """Write-only collector of effect requests for one scheduler pass."""

    def __init__(self) -> None:
        self._effects: list[Effect] = []

    def emit(self, effect: Effect) -> None:
        self._effects.append(effect)

    def drain(self) -> list[Effect]:
        effects, self._effects = self._effects, []
        return effects

    def __len__(self) -> int:
        return len(self._effects)


@dataclass
class _Rocket:
    position: tuple[float, float]
    direction: tuple[float, float]


@dataclass
class _PendingStrike:
    center: tuple[float, float]
    remaining: float


@dataclass
class _Zone:
    center: tuple[float, float]
    remaining: float
    tick_elapsed: float = 0.0


@dataclass
class _Visual:
    kind: str
    remaining: float
    payload: dict[str, Any] = field(default_factory=dict)


class EffectProcessor:
    """Advances timed effects (rockets, strikes, plasma zones) and applies their damage."""

    def __init__(self, settings: WeaponSettings, layout: HexLayout) -> None:
        self.settings = settings
        self.layout = layout
        self.rockets: list[_Rocket] = []
        self.strikes: list[_PendingStrike] = []
        self.zones: list[_Zone] = []
        self.visuals: list[_Visual] = []

    def accept(self, effect: Effect) -> None:
        s = self.settings
        if isinstance(effect, RocketLaunch):
            self.rockets.append(_Rocket(self.layout.hex_to_world(effect.origin), effect.direction))
        elif isinstance(effect, OrbitalStrike):
            self.strikes.append(_PendingStrike(self.layout.hex_to_world(effect.cell), effect.delay))
        elif isinstance(effect, PlasmaZone):
            self.zones.append(_Zone(effect.center, effect.charge / 2.0))
        elif isinstance(effect, ShockLinks):
            self.visuals.append(_Visual("shock", s.shock_link_seconds, {"targets": effect.targets}))
        elif isinstance(effect, LaserBeam):
            self.visuals.append(
                _Visual("beam", 0.0, {"position": self.layout.hex_to_world(effect.origin), "target": effect.target})
            )

    def active_count(self) -> int:
        return len(self.rockets) + len(self.strikes) + len(self.zones) + len(self.visuals)

    def step(self, dt: float, targets: TargetStore) -> float:
        """Advance all effects by ``dt`` seconds; returns total damage dealt."""
        dealt = self._step_rockets(dt, targets)
        dealt += self._step_strikes(dt, targets)
        dealt += self._step_zones(dt, targets)
        self._step_visuals(dt, targets)
        return dealt

    def _hit(self, targets: TargetStore, center: tuple[float, float], radius: float, amount: float) -> float:
        dealt = 0.0
        for target in targets.within(center, radius + self.settings.target_radius):
            targets.damage(target.id, amount)
            dealt += amount
        return dealt

    def _step_rockets(self, dt: float, targets: TargetStore) -> float:
        s = self.settings
        dealt = 0.0
        alive: list[_Rocket] = []
        for rocket in self.rockets:
            hit = self._hit(targets, rocket.position, s.rocket_radius, s.rocket_damage)
            dealt += hit
            if hit or math.hypot(*rocket.position) >= s.rocket_max_distance:
                continue
            dx, dy = rocket.direction
            rocket.position = (
                rocket.position[0] + dx * s.rocket_speed * dt,
                rocket.position[1] + dy * s.rocket_speed * dt,
            )
            alive.append(rocket)
        self.rockets = alive
        return dealt

    def _step_strikes(self, dt: float, targets: TargetStore) -> float:
        s = self.settings
        dealt = 0.0
        pending: list[_PendingStrike] = []
        for strike in self.strikes:
            strike.remaining -= dt
            if strike.remaining > 0:
                pending.append(strike)
                continue
            dealt += self._hit(targets, strike.center, s.orbital_radius, s.orbital_damage)
            logger.info("orbital strike landed at %s", strike.center)
        self.strikes = pending
        return dealt

    def _step_zones(self, dt: float, targets: TargetStore) -> float:
        s = self.settings
        dealt = 0.0
        live: list[_Zone] = []
        for zone in self.zones:
            zone.remaining -= dt
            zone.tick_elapsed += dt
            if zone.tick_elapsed >= s.plasma_damage_interval:
                zone.tick_elapsed -= s.plasma_damage_interval
                amount = max(0.0, zone.remaining) * s.plasma_damage_scale
                dealt += self._hit(targets, zone.center, s.plasma_radius, amount)
            if zone.remaining > 0:
                live.append(zone)
        self.zones = live
        return dealt

    def _step_visuals(self, dt: float, targets: TargetStore) -> None:
        s = self.settings
        live: list[_Visual] = []
        for visual in self.visuals:
            if visual.kind == "beam":
                target = targets.get(visual.payload["target"])
                if target is None:
                    continue
                px, py = visual.payload["position"]
                tx, ty = target.position
                dist = math.hypot(tx - px, ty - py)
                if dist <= s.beam_arrival_radius:
                    continue
                step = min(dist, s.beam_speed * dt)
                visual.payload["position"] = (px + (tx - px) / dist * step, py + (ty - py) / dist * step)
                live.append(visual)
                continue
            visual.remaining -= dt
            if visual.remaining > 0:
                live.append(visual)
        self.visuals = live
