"""Node lifecycle states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from cybergrid.errors import PortError
from cybergrid.values import Value


class Phase(str, Enum):
    IDLE = "Idle"
    ACTIVATION_REQUEST = "ActivationRequest"
    TRIGGERED = "Triggered"
    DONE = "Done"
    DISABLED = "Disabled"


@dataclass(frozen=True)
class NodeState:
    """Lifecycle phase plus the cached result while ``Done``.

    ``Done`` carries either ``value`` (Ok) or ``error`` (Err), never both.
    """

    phase: Phase = Phase.IDLE
    value: Value | None = None
    error: PortError | None = None

    @classmethod
    def idle(cls) -> NodeState:
        return cls(Phase.IDLE)

    @classmethod
    def requested(cls) -> NodeState:
        return cls(Phase.ACTIVATION_REQUEST)

    @classmethod
    def triggered(cls) -> NodeState:
        return cls(Phase.TRIGGERED)

    @classmethod
    def disabled(cls) -> NodeState:
        return cls(Phase.DISABLED)

    @classmethod
    def ok(cls, value: Value) -> NodeState:
        return cls(Phase.DONE, value=value)

    @classmethod
    def err(cls, error: PortError) -> NodeState:
        return cls(Phase.DONE, error=error)

    @property
    def is_done(self) -> bool:
        return self.phase == Phase.DONE

    @property
    def is_ok(self) -> bool:
        return self.phase == Phase.DONE and self.error is None and self.value is not None

    @property
    def is_err(self) -> bool:
        return self.phase == Phase.DONE and self.error is not None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"phase": self.phase.value}
        if self.is_ok:
            payload["value"] = self.value.to_json()
        elif self.is_err:
            payload["error"] = str(self.error)
        return payload
