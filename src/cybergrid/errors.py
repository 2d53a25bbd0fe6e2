"""Error taxonomy for node evaluation and board mutation."""

from __future__ import annotations


class PortError(Exception):
    """A node could not produce a value; recorded as ``Done(Err)`` on that node."""


class UnconfiguredPort(PortError):
    """A required input port has no direction binding."""

    def __init__(self, port: str) -> None:
        super().__init__(f"port '{port}' not configured")
        self.port = port


class UnresolvedNeighbor(PortError):
    """The bound direction does not point at a node."""

    def __init__(self, port: str, detail: str = "no node in bound direction") -> None:
        super().__init__(f"port '{port}': {detail}")
        self.port = port


class NotReady(UnresolvedNeighbor):
    """The neighbour node exists but holds no successful result."""

    def __init__(self, port: str) -> None:
        super().__init__(port, "upstream node has no successful result")


class TypeMismatch(PortError):
    def __init__(self, port: str, expected: str, got: str) -> None:
        super().__init__(f"port '{port}' expected {expected}, got {got}")
        self.port = port
        self.expected = expected
        self.got = got


class TargetVanished(PortError):
    """A referenced entity no longer exists."""


class OccupiedDestination(PortError):
    pass


class OutOfBounds(PortError):
    pass


class WiringError(ValueError):
    """Raised when a port configuration request is invalid."""


class BoardError(ValueError):
    """Raised when a board mutation is invalid."""
