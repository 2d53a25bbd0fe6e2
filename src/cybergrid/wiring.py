"""Per-instance port wiring: neighbour direction to input port."""

from __future__ import annotations

from dataclasses import dataclass, field

from cybergrid.errors import WiringError
from cybergrid.hexgrid import Direction
from cybergrid.registry import PortMeta
from cybergrid.values import Value


@dataclass
class PortCfg:
    """Binds up to six neighbour directions to declared input ports.

    At most one direction maps to any given port id. The embedded ``constant`` is
    only read by kinds whose output port is declared constant.
    """

    inputs: dict[Direction, PortMeta] = field(default_factory=dict)
    constant: Value | None = None

    def bind(self, direction: Direction, port: PortMeta) -> None:
        """Bind ``port`` to ``direction``, displacing its previous direction."""
        direction = Direction(direction)
        current = self.inputs.get(direction)
        if current is not None and current.id != port.id:
            raise WiringError(
                f"direction '{direction.value}' already bound to port '{current.name}'"
            )

        stale = self.direction_of_port(port)
        if stale is not None:
            del self.inputs[stale]
        self.inputs[direction] = port

    def unbind(self, direction: Direction) -> PortMeta | None:
        return self.inputs.pop(Direction(direction), None)

    def direction_of_port(self, port: PortMeta) -> Direction | None:
        for direction, bound in self.inputs.items():
            if bound.id == port.id:
                return direction
        return None

    def direction_of(self, port_name: str) -> Direction | None:
        for direction, bound in self.inputs.items():
            if bound.name == port_name:
                return direction
        return None

    def set_constant(self, value: Value | None) -> None:
        self.constant = value

    def bound_directions(self) -> list[Direction]:
        return list(self.inputs)
