"""Node kind catalogue: port metadata and kind descriptors."""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from cybergrid.values import ValType


class NodeKind(str, Enum):
    """Tag selecting the evaluator of a node kind."""

    CONSTANT_NUMBER = "ConstantNumber"
    CLOSEST_ENTITY = "ClosestEntity"
    NEARBY_ENTITIES = "NearbyEntities"
    ENTITY_POSITION = "EntityPosition"
    ENTITY_DIRECTION = "EntityDirection"
    VECTOR_CREATE = "VectorCreate"
    VECTOR_NEGATE = "VectorNegate"
    VECTOR_LENGTH = "VectorLength"
    VECTOR_MULTIPLY = "VectorMultiply"
    NUMBER_MULTIPLY = "NumberMultiply"
    NUMBER_SUBTRACT = "NumberSubtract"
    LIST_CONSTRUCT = "ListConstruct"
    LIST_LENGTH = "ListLength"
    LAZOR = "Lazor"
    ROCKET_LAUNCHER = "RocketLauncher"
    ORBITAL = "Orbital"
    PLASMA = "Plasma"
    SHOCK = "Shock"
    PROJECT_TILE = "ProjectTile"
    STORAGE = "Storage"
    DEBUG = "Debug"


class PortMeta(BaseModel):
    """Static description of one port. Identity is ``id``, not ``name``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    name: str
    description: str
    value_type: ValType
    is_constant: bool = False


class NodeKindDescriptor(BaseModel):
    """Static template shared by all instances of a node kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: NodeKind
    display_name: str
    description: str
    input_ports: tuple[PortMeta, ...] = ()
    output_port: PortMeta

    def input_port(self, name: str) -> PortMeta | None:
        for port in self.input_ports:
            if port.name == name:
                return port
        return None

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.display_name,
            "description": self.description,
            "inputs": [
                {
                    "name": p.name,
                    "type": p.value_type.value,
                    "description": p.description,
                }
                for p in self.input_ports
            ],
            "output": {
                "name": self.output_port.name,
                "type": self.output_port.value_type.value,
                "constant": self.output_port.is_constant,
            },
        }


VARIADIC_SLOTS = ("a", "b", "c", "d", "e")
_ORDINALS = ("first", "second", "third", "fourth", "fifth")


class NodeRegistry:
    """Registry of node kinds; hands out unique port ids."""

    def __init__(self) -> None:
        self._kinds: dict[NodeKind, NodeKindDescriptor] = {}
        self._ids = itertools.count(1)

    def port(
        self,
        name: str,
        description: str,
        value_type: ValType,
        *,
        is_constant: bool = False,
    ) -> PortMeta:
        return PortMeta(
            id=next(self._ids),
            name=name,
            description=description,
            value_type=value_type,
            is_constant=is_constant,
        )

    def register(
        self,
        kind: NodeKind,
        display_name: str,
        description: str,
        inputs: Iterable[PortMeta],
        output: PortMeta,
    ) -> NodeKindDescriptor:
        descriptor = NodeKindDescriptor(
            kind=kind,
            display_name=display_name,
            description=description,
            input_ports=tuple(inputs),
            output_port=output,
        )
        self._kinds[kind] = descriptor
        return descriptor

    def get(self, kind: NodeKind | str) -> NodeKindDescriptor:
        try:
            key = NodeKind(kind)
        except ValueError:
            key = None
        if key is None or key not in self._kinds:
            available = ", ".join(self.list_kinds())
            raise KeyError(f"Unknown node kind '{kind}'. Available: {available}")
        return self._kinds[key]

    def list_kinds(self) -> list[str]:
        return sorted(kind.value for kind in self._kinds)

    def specs(self) -> dict[str, dict[str, Any]]:
        """Port contracts keyed by kind name, used by scenario validation."""
        return {
            kind.value: {
                "inputs": {p.name: p.value_type for p in desc.input_ports},
                "output": desc.output_port.value_type,
                "constant": desc.output_port.is_constant,
            }
            for kind, desc in self._kinds.items()
        }

    def _variadic(self, noun: str, value_type: ValType) -> list[PortMeta]:
        return [
            self.port(slot, f"{ordinal} {noun}", value_type)
            for slot, ordinal in zip(VARIADIC_SLOTS, _ORDINALS)
        ]


def build_default_registry() -> NodeRegistry:
    """Registry holding the built-in node catalogue."""
    reg = NodeRegistry()
    nothing = reg.port("nothing", "nothing", ValType.EMPTY)

    reg.register(
        NodeKind.LAZOR,
        "lazor",
        "shoots lazor beam at target",
        [reg.port("target", "the target entity to shoot", ValType.ENTITY)],
        nothing,
    )
    reg.register(
        NodeKind.ROCKET_LAUNCHER,
        "rocket launcher",
        "shoots rockets in the target direction",
        [reg.port("direction", "the direction to shoot in", ValType.VECTOR)],
        nothing,
    )
    reg.register(
        NodeKind.ORBITAL,
        "orbital strike",
        "request an orbital strike at a position that will arrive in the future",
        [reg.port("target", "the target position", ValType.VECTOR)],
        nothing,
    )
    reg.register(
        NodeKind.PLASMA,
        "plasma cannon",
        "shoot a plasma to the target position. the size of the plasma depends on "
        "how many ticks the plasma cannon has been charged",
        [
            reg.port("target", "the target position", ValType.VECTOR),
            reg.port(
                "threshold",
                "the amount of ticks to collect before firing. default is max: 10",
                ValType.NUMBER,
            ),
        ],
        reg.port("fired", "power of the shot or 0 if it didnt fire this tick", ValType.NUMBER),
    )
    reg.register(
        NodeKind.SHOCK,
        "tesla coil",
        "shoot lightning at all targets",
        [reg.port("targets", "list of target entities", ValType.LIST)],
        reg.port("shot", "number of targets shot", ValType.NUMBER),
    )
    reg.register(
        NodeKind.PROJECT_TILE,
        "project tile",
        "project an illusory tile at the target position",
        [reg.port("target", "target position", ValType.VECTOR)],
        nothing,
    )
    reg.register(
        NodeKind.DEBUG,
        "debug",
        "log all inputs to the console",
        reg._variadic("item", ValType.ANY),
        nothing,
    )
    reg.register(
        NodeKind.LIST_CONSTRUCT,
        "list: construct",
        "construct list out of all inputs, input lists will be flattened",
        reg._variadic("item", ValType.ANY),
        reg.port("list", "1 dimensional list of all inputs", ValType.LIST),
    )
    reg.register(
        NodeKind.CLOSEST_ENTITY,
        "entity: closest",
        "returns the closest nearby entity",
        [],
        reg.port("closest", "the closest nearby entity", ValType.ENTITY),
    )
    reg.register(
        NodeKind.CONSTANT_NUMBER,
        "number: constant",
        "returns a constant number set in the port config",
        [],
        reg.port("constant", "the constant value", ValType.NUMBER, is_constant=True),
    )
    reg.register(
        NodeKind.VECTOR_MULTIPLY,
        "vector: multiply",
        "multiplies an arbitrary amount of vectors",
        reg._variadic("vector", ValType.VECTOR),
        reg.port("vector", "a vector like: (ax * bx * cx ..., ay * by...)", ValType.VECTOR),
    )
    reg.register(
        NodeKind.NUMBER_MULTIPLY,
        "number: multiply",
        "multiplies an arbitrary amount of numbers together",
        reg._variadic("number", ValType.NUMBER),
        reg.port("product", "a * b * c * d * e", ValType.NUMBER),
    )
    reg.register(
        NodeKind.NUMBER_SUBTRACT,
        "number: subtract",
        "subtracts an arbitrary amount of numbers in order of the input ports",
        reg._variadic("number", ValType.NUMBER),
        reg.port("difference", "a - b - c - d - e", ValType.NUMBER),
    )
    reg.register(
        NodeKind.STORAGE,
        "store",
        "outputs the data slot selected by `slot`",
        [
            *(reg.port(str(i), f"data slot {i}", ValType.ANY) for i in range(4)),
            reg.port("slot", "determines the slot to output. default is 0", ValType.NUMBER),
        ],
        reg.port("data", "the stored data from the slot `slot`", ValType.ANY),
    )
    reg.register(
        NodeKind.VECTOR_CREATE,
        "vector: create",
        "constructs a vector from 2 numbers",
        [
            reg.port("x", "first number", ValType.NUMBER),
            reg.port("y", "second number", ValType.NUMBER),
        ],
        reg.port("vector", "the constructed vector", ValType.VECTOR),
    )
    reg.register(
        NodeKind.VECTOR_NEGATE,
        "vector: negate",
        "negates a vector",
        [reg.port("vector", "the vector to negate", ValType.VECTOR)],
        reg.port("vector", "the negated vector", ValType.VECTOR),
    )
    reg.register(
        NodeKind.LIST_LENGTH,
        "list: len",
        "returns the length of a list",
        [reg.port("list", "list input", ValType.LIST)],
        reg.port("length", "the number of elements in the list", ValType.NUMBER),
    )
    reg.register(
        NodeKind.VECTOR_LENGTH,
        "vector: length",
        "computes the length / magnitude of a vector",
        [reg.port("vector", "the vector to compute", ValType.VECTOR)],
        reg.port("length", "the length of the vector", ValType.NUMBER),
    )
    reg.register(
        NodeKind.NEARBY_ENTITIES,
        "entity: nearby",
        "returns all nearby entities as a list of Entity",
        [reg.port("range", "limit to the range. default is max: 10.", ValType.NUMBER)],
        reg.port("entities", "the nearby entities", ValType.LIST),
    )
    reg.register(
        NodeKind.ENTITY_DIRECTION,
        "entity: direction",
        "returns the direction the target entity is moving towards",
        [reg.port("target", "target entity", ValType.ENTITY)],
        reg.port("direction", "direction of the target", ValType.VECTOR),
    )
    reg.register(
        NodeKind.ENTITY_POSITION,
        "entity: position",
        "returns the target entities current position",
        [reg.port("target", "target entity", ValType.ENTITY)],
        reg.port("position", "position of target entity", ValType.VECTOR),
    )
    return reg
