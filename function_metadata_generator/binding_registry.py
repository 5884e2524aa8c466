"""Capability table of annotations that describe bindings.

An annotation is a binding annotation only if its name is registered here.
Each entry states whether the binding is a trigger, an input or an output,
which constructor shapes its positional arguments may take, and how the
payload data type is inferred from the bound symbol's type.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from function_metadata_generator.declarations.models import (
    Annotation,
    ArrayValue,
    EnumValue,
    TypedValue,
)
from function_metadata_generator.errors import MalformedAnnotationError
from function_metadata_generator.models import DataType, Direction

logger = logging.getLogger(__name__)

ENTRY_POINT_ANNOTATION = "Function"
HTTP_RESPONSE_TYPE = "HttpResponseData"
HTTP_BINDING_TYPE = "http"
RETURN_BINDING_NAME = "$return"

VOID_TYPES = frozenset({"None", "NoneType"})
STRING_TYPES = frozenset({"str"})
BINARY_TYPES = frozenset({"bytes", "bytearray", "memoryview"})


class BindingKind(Enum):
    TRIGGER = "trigger"
    INPUT = "input"
    OUTPUT = "output"


def infer_data_type(type_name: str) -> DataType | None:
    """Infer the payload hint from the textual type of the bound symbol."""
    if type_name in STRING_TYPES:
        return DataType.STRING
    if type_name in BINARY_TYPES:
        return DataType.BINARY
    return None


def binding_type_name(annotation_name: str) -> str:
    """Binding type for an annotation: ``QueueOutput`` -> ``Queue``."""
    name = annotation_name.removesuffix("Attribute")
    for suffix in ("Input", "Output"):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


@dataclass(frozen=True)
class ConstructorParameter:
    """A constructor parameter; ``accepts`` restricts the value variant."""

    name: str
    accepts: tuple[type, ...] | None = None

    def accepts_value(self, value: TypedValue) -> bool:
        return self.accepts is None or isinstance(value, self.accepts)


@dataclass(frozen=True)
class ConstructorShape:
    """One constructor overload of a binding annotation."""

    parameters: tuple[ConstructorParameter, ...] = ()
    variadic: str | None = None

    def bind(
        self, positional: tuple[TypedValue, ...]
    ) -> list[tuple[str, TypedValue]] | None:
        """Bind positional arguments to parameter names, or None if they don't fit."""
        fixed = len(self.parameters)
        if len(positional) < fixed:
            return None
        if len(positional) > fixed and self.variadic is None:
            return None

        bound = []
        for parameter, value in zip(self.parameters, positional):
            if not parameter.accepts_value(value):
                return None
            bound.append((parameter.name, value))

        rest = positional[fixed:]
        if rest:
            if len(rest) == 1 and isinstance(rest[0], ArrayValue):
                bound.append((self.variadic, rest[0]))
            else:
                bound.append((self.variadic, ArrayValue(tuple(rest))))
        return bound


def shape(*parameters: str | ConstructorParameter, variadic: str | None = None):
    """Shorthand for building a ConstructorShape."""
    return ConstructorShape(
        parameters=tuple(
            p if isinstance(p, ConstructorParameter) else ConstructorParameter(p)
            for p in parameters
        ),
        variadic=variadic,
    )


@dataclass(frozen=True)
class BindingCapability:
    """What a binding annotation represents."""

    annotation_name: str
    kind: BindingKind
    shapes: tuple[ConstructorShape, ...] = (ConstructorShape(),)
    binding_type: str = ""
    http_trigger: bool = False
    payload_hint: Callable[[str], DataType | None] = field(
        default=infer_data_type, compare=False
    )

    def __post_init__(self):
        if not self.binding_type:
            object.__setattr__(
                self, "binding_type", binding_type_name(self.annotation_name)
            )

    @property
    def direction(self) -> Direction:
        return Direction.OUT if self.kind is BindingKind.OUTPUT else Direction.IN

    def bind_arguments(self, annotation: Annotation) -> list[tuple[str, TypedValue]]:
        """Name every argument of the annotation.

        Positional arguments take the parameter names of the first matching
        constructor shape; named arguments follow in the order supplied.

        Raises:
            MalformedAnnotationError: If no constructor shape fits
        """
        for candidate in self.shapes:
            bound = candidate.bind(annotation.positional_args)
            if bound is not None:
                break
        else:
            raise MalformedAnnotationError(
                f"No constructor of '{annotation.name}' accepts "
                f"{len(annotation.positional_args)} positional argument(s)"
            )

        properties = dict(bound)
        for key, value in annotation.named_args:
            properties[key] = value
        return list(properties.items())


AUTH_LEVEL = ConstructorParameter("authLevel", accepts=(EnumValue,))

DEFAULT_CAPABILITIES = (
    # HTTP
    BindingCapability(
        "HttpTrigger",
        BindingKind.TRIGGER,
        shapes=(shape(AUTH_LEVEL, variadic="methods"), shape(variadic="methods")),
        http_trigger=True,
    ),
    # Timer
    BindingCapability(
        "TimerTrigger", BindingKind.TRIGGER, shapes=(shape("schedule"),)
    ),
    # Storage queues
    BindingCapability(
        "QueueTrigger", BindingKind.TRIGGER, shapes=(shape("queueName"),)
    ),
    BindingCapability("QueueOutput", BindingKind.OUTPUT, shapes=(shape("queueName"),)),
    # Storage blobs
    BindingCapability("BlobTrigger", BindingKind.TRIGGER, shapes=(shape("blobPath"),)),
    BindingCapability("BlobInput", BindingKind.INPUT, shapes=(shape("blobPath"),)),
    BindingCapability("BlobOutput", BindingKind.OUTPUT, shapes=(shape("blobPath"),)),
    # Storage tables
    BindingCapability(
        "TableInput",
        BindingKind.INPUT,
        shapes=(
            shape("tableName"),
            shape("tableName", "partitionKey"),
            shape("tableName", "partitionKey", "rowKey"),
        ),
    ),
    BindingCapability(
        "TableOutput",
        BindingKind.OUTPUT,
        shapes=(
            shape("tableName"),
            shape("tableName", "partitionKey"),
            shape("tableName", "partitionKey", "rowKey"),
        ),
    ),
    # Service Bus
    BindingCapability(
        "ServiceBusTrigger",
        BindingKind.TRIGGER,
        shapes=(shape("queueName"), shape("topicName", "subscriptionName")),
    ),
    BindingCapability(
        "ServiceBusOutput", BindingKind.OUTPUT, shapes=(shape("queueOrTopicName"),)
    ),
    # Event Hubs
    BindingCapability(
        "EventHubTrigger", BindingKind.TRIGGER, shapes=(shape("eventHubName"),)
    ),
    BindingCapability(
        "EventHubOutput", BindingKind.OUTPUT, shapes=(shape("eventHubName"),)
    ),
    # Event Grid
    BindingCapability("EventGridTrigger", BindingKind.TRIGGER),
    BindingCapability("EventGridOutput", BindingKind.OUTPUT),
    # Cosmos DB
    BindingCapability(
        "CosmosDBTrigger",
        BindingKind.TRIGGER,
        shapes=(shape("databaseName", "containerName"),),
    ),
    BindingCapability(
        "CosmosDBInput",
        BindingKind.INPUT,
        shapes=(shape("databaseName", "containerName"),),
    ),
    BindingCapability(
        "CosmosDBOutput",
        BindingKind.OUTPUT,
        shapes=(shape("databaseName", "containerName"),),
    ),
)


class BindingRegistry:
    """Maps annotation names to binding capabilities."""

    def __init__(self, capabilities: Iterable[BindingCapability] = ()):
        self._capabilities: dict[str, BindingCapability] = {}
        for capability in capabilities:
            self.register(capability)

    def register(self, capability: BindingCapability) -> None:
        """Add or replace the capability for an annotation name."""
        self._capabilities[capability.annotation_name] = capability
        logger.debug(
            f"Registered binding annotation {capability.annotation_name} "
            f"({capability.kind.value}, type {capability.binding_type})"
        )

    def lookup(self, annotation_name: str) -> BindingCapability | None:
        """Capability for an annotation name; ``Attribute`` suffix optional."""
        capability = self._capabilities.get(annotation_name)
        if capability is None:
            capability = self._capabilities.get(
                annotation_name.removesuffix("Attribute")
            )
        return capability

    def __contains__(self, annotation_name: str) -> bool:
        return self.lookup(annotation_name) is not None

    def __len__(self) -> int:
        return len(self._capabilities)


def default_registry() -> BindingRegistry:
    """A fresh registry holding the built-in binding annotations."""
    return BindingRegistry(DEFAULT_CAPABILITIES)
