"""Data models for generated function metadata."""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum

from function_metadata_generator.declarations.models import (
    ArrayValue,
    EnumValue,
    Primitive,
)

# Namespace for content-derived function ids
FUNCTION_ID_NAMESPACE = uuid.UUID("6f1b8a52-3c1e-5d4f-9b7a-2e8c0d4a6b15")

PropertyValue = Primitive | EnumValue | ArrayValue


class Direction(Enum):
    """Which way data flows through a binding."""

    IN = "In"
    OUT = "Out"


class DataType(Enum):
    """Payload hint that lets the host skip reflection when marshalling."""

    STRING = "String"
    BINARY = "Binary"


@dataclass(frozen=True)
class BindingDescriptor:
    """One binding of a function.

    Attributes:
        name: Parameter/member name, or ``$return``
        type: Binding type (``QueueTrigger``, ``Blob``, ``http``, ...)
        direction: In or Out
        data_type: Payload hint, if the bound type allows one
        extra_properties: Annotation arguments in constructor order, then
            named arguments in the order supplied
    """

    name: str
    type: str
    direction: Direction
    data_type: DataType | None = None
    extra_properties: tuple[tuple[str, PropertyValue], ...] = field(default=())


@dataclass(frozen=True)
class FunctionMetadata:
    """Everything the host needs to index and invoke one function."""

    function_id: str
    language: str
    name: str
    entry_point: str
    raw_bindings: tuple[str, ...]
    script_file: str

    @staticmethod
    def stable_id(name: str, entry_point: str) -> str:
        """Content-derived id; identical for identical (name, entry point)."""
        return str(uuid.uuid5(FUNCTION_ID_NAMESPACE, f"{name}\n{entry_point}"))

    @property
    def bindings(self) -> list[dict]:
        """Decoded binding objects, in order."""
        return [json.loads(raw) for raw in self.raw_bindings]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.function_id,
            "language": self.language,
            "name": self.name,
            "entryPoint": self.entry_point,
            "rawBindings": list(self.raw_bindings),
            "scriptFile": self.script_file,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FunctionMetadata":
        return cls(
            function_id=data["id"],
            language=data["language"],
            name=data["name"],
            entry_point=data["entryPoint"],
            raw_bindings=tuple(data["rawBindings"]),
            script_file=data["scriptFile"],
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
