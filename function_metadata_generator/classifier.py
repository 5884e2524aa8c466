"""Classify the annotations of a candidate function into bindings."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from function_metadata_generator.binding_registry import (
    HTTP_BINDING_TYPE,
    HTTP_RESPONSE_TYPE,
    RETURN_BINDING_NAME,
    VOID_TYPES,
    BindingCapability,
    BindingKind,
    BindingRegistry,
    default_registry,
)
from function_metadata_generator.declarations.models import (
    Annotation,
    FunctionDeclaration,
)
from function_metadata_generator.errors import MalformedAnnotationError
from function_metadata_generator.models import DataType, Direction

logger = logging.getLogger(__name__)


class OwnerKind(Enum):
    METHOD = "method"
    PARAMETER = "parameter"
    MEMBER = "member"
    SYNTHESIZED = "synthesized"


@dataclass(frozen=True)
class ClassifiedBinding:
    """A binding found on a function, before its arguments are rendered.

    ``annotation`` and ``capability`` are None for HTTP response bindings,
    which are implied by types rather than declared.
    """

    name: str
    owner_kind: OwnerKind
    binding_type: str
    direction: Direction
    annotation: Annotation | None = None
    capability: BindingCapability | None = None
    data_type: DataType | None = None

    @property
    def is_http_response(self) -> bool:
        return (
            self.binding_type == HTTP_BINDING_TYPE and self.direction is Direction.OUT
        )


@dataclass
class Classification:
    """All bindings of one function, in method/parameter/return-type order."""

    function: FunctionDeclaration
    bindings: list[ClassifiedBinding] = field(default_factory=list)
    has_http_trigger: bool = False


def _http_response(name: str, owner_kind: OwnerKind) -> ClassifiedBinding:
    return ClassifiedBinding(
        name=name,
        owner_kind=owner_kind,
        binding_type=HTTP_BINDING_TYPE,
        direction=Direction.OUT,
    )


def _declared_binding(
    name: str,
    owner_kind: OwnerKind,
    annotation: Annotation,
    capability: BindingCapability,
    data_type: DataType | None = None,
) -> ClassifiedBinding:
    return ClassifiedBinding(
        name=name,
        owner_kind=owner_kind,
        binding_type=capability.binding_type,
        direction=capability.direction,
        annotation=annotation,
        capability=capability,
        data_type=data_type,
    )


def classify_function(
    function: FunctionDeclaration, registry: BindingRegistry | None = None
) -> Classification:
    """Classify every binding annotation of a function.

    Bindings are collected from the method's own annotations, then from each
    parameter, then from the return type. Annotations that are not
    registered binding annotations are ignored.

    Args:
        function: The resolved candidate function
        registry: Binding capabilities (defaults to the built-in set)

    Returns:
        Classification with the ordered bindings

    Raises:
        MalformedAnnotationError: If a trigger or input annotation is placed
            on the method itself
    """
    if registry is None:
        registry = default_registry()
    classification = Classification(function=function)

    _classify_method(classification, registry)
    _classify_parameters(classification, registry)
    _classify_return_type(classification, registry)

    logger.debug(
        f"Classified {len(classification.bindings)} bindings for "
        f"{function.function_name}"
    )
    return classification


def _classify_method(classification: Classification, registry: BindingRegistry):
    function = classification.function
    for annotation in function.annotations:
        capability = registry.lookup(annotation.name)
        if capability is None:
            continue
        if capability.kind is not BindingKind.OUTPUT:
            raise MalformedAnnotationError(
                f"'{annotation.name}' is a {capability.kind.value} binding; "
                "only output bindings may annotate a function method",
                function_name=function.function_name,
                owner=function.owner,
            )
        classification.bindings.append(
            _declared_binding(
                RETURN_BINDING_NAME, OwnerKind.METHOD, annotation, capability
            )
        )


def _classify_parameters(classification: Classification, registry: BindingRegistry):
    for parameter in classification.function.parameters:
        for annotation in parameter.annotations:
            capability = registry.lookup(annotation.name)
            if capability is None:
                logger.debug(
                    f"Ignoring non-binding annotation {annotation.name} "
                    f"on parameter {parameter.name}"
                )
                continue
            if capability.http_trigger:
                classification.has_http_trigger = True
            classification.bindings.append(
                _declared_binding(
                    parameter.name,
                    OwnerKind.PARAMETER,
                    annotation,
                    capability,
                    capability.payload_hint(parameter.type),
                )
            )


def _classify_return_type(classification: Classification, registry: BindingRegistry):
    return_type = classification.function.return_type
    if return_type.name in VOID_TYPES:
        return

    if return_type.name == HTTP_RESPONSE_TYPE:
        classification.bindings.append(
            _http_response(RETURN_BINDING_NAME, OwnerKind.SYNTHESIZED)
        )
        return

    member_outputs = 0
    for member in return_type.members:
        if member.type == HTTP_RESPONSE_TYPE:
            classification.bindings.append(
                _http_response(member.name, OwnerKind.MEMBER)
            )
            member_outputs += 1
            continue

        for annotation in member.annotations:
            capability = registry.lookup(annotation.name)
            if capability is None:
                continue
            classification.bindings.append(
                _declared_binding(
                    member.name,
                    OwnerKind.MEMBER,
                    annotation,
                    capability,
                    capability.payload_hint(member.type),
                )
            )
            if capability.kind is BindingKind.OUTPUT:
                member_outputs += 1

    # HTTP-triggered functions answer with an HTTP response unless the
    # return type declares its own outputs
    if member_outputs == 0 and classification.has_http_trigger:
        classification.bindings.append(
            _http_response(RETURN_BINDING_NAME, OwnerKind.SYNTHESIZED)
        )
