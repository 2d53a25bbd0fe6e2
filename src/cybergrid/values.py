"""Runtime values flowing between node ports."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ValType(str, Enum):
    """Declared payload type of a port."""

    EMPTY = "Empty"
    ANY = "Any"
    ENTITY = "Entity"
    VECTOR = "Vector"
    NUMBER = "Number"
    TEXT = "Text"
    LIST = "List"


@dataclass(frozen=True)
class Empty:
    @property
    def value_type(self) -> ValType:
        return ValType.EMPTY

    def to_json(self) -> Any:
        return None


@dataclass(frozen=True)
class EntityRef:
    id: int

    @property
    def value_type(self) -> ValType:
        return ValType.ENTITY

    def to_json(self) -> Any:
        return {"entity": self.id}


@dataclass(frozen=True)
class Vector:
    x: float
    y: float

    @property
    def value_type(self) -> ValType:
        return ValType.VECTOR

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vector:
        """Unit vector in the same direction, or the zero vector."""
        length = self.length()
        if length == 0.0 or not math.isfinite(length):
            return Vector(0.0, 0.0)
        return Vector(self.x / length, self.y / length)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    def __mul__(self, other: Vector) -> Vector:
        return Vector(self.x * other.x, self.y * other.y)

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_json(self) -> Any:
        return [self.x, self.y]


@dataclass(frozen=True)
class Number:
    value: float

    @property
    def value_type(self) -> ValType:
        return ValType.NUMBER

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Text:
    text: str

    @property
    def value_type(self) -> ValType:
        return ValType.TEXT

    def to_json(self) -> Any:
        return self.text


@dataclass(frozen=True, init=False)
class ValueList:
    items: tuple[Value, ...] = ()

    def __init__(self, items=()) -> None:
        object.__setattr__(self, "items", tuple(items))

    @property
    def value_type(self) -> ValType:
        return ValType.LIST

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def to_json(self) -> Any:
        return [item.to_json() for item in self.items]


Value = Union[Empty, EntityRef, Vector, Number, Text, ValueList]

EMPTY = Empty()


def matches(value: Value, expected: ValType) -> bool:
    """Whether ``value`` may be read from a port declared as ``expected``."""
    return expected == ValType.ANY or value.value_type == expected
