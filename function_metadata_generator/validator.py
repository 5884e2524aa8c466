"""Enforce the uniqueness rules on a function's classified bindings."""

import logging
from collections import Counter

from function_metadata_generator.classifier import Classification, OwnerKind
from function_metadata_generator.declarations.models import (
    ArrayValue,
    ErrorValue,
    TypedValue,
    TypeRef,
)
from function_metadata_generator.errors import (
    MalformedAnnotationError,
    MultipleHttpResponseMembersError,
    MultipleMemberOutputsError,
    MultipleMethodOutputsError,
)

logger = logging.getLogger(__name__)

# Keys every rendered binding already has
RESERVED_PROPERTIES = frozenset({"name", "type", "direction", "dataType"})


def validate_bindings(classification: Classification) -> None:
    """Check a classification, raising on the first violated rule.

    Args:
        classification: The classified bindings of one function

    Raises:
        MultipleMethodOutputsError: More than one output annotation on the method
        MultipleMemberOutputsError: More than one binding annotation on a member
        MultipleHttpResponseMembersError: More than one HTTP response binding
        MalformedAnnotationError: An annotation fits none of its constructors,
            or one of its arguments is not a constant
    """
    function = classification.function
    bindings = classification.bindings
    context = {"function_name": function.function_name, "owner": function.owner}

    method_outputs = [b for b in bindings if b.owner_kind is OwnerKind.METHOD]
    if len(method_outputs) > 1:
        names = ", ".join(b.annotation.name for b in method_outputs)
        raise MultipleMethodOutputsError(
            f"Found multiple output binding annotations on the method ({names}). "
            "Only one output binding annotation is supported on a method.",
            **context,
        )

    member_counts = Counter(
        b.name for b in bindings if b.owner_kind is OwnerKind.MEMBER
    )
    for member_name, count in member_counts.items():
        if count > 1:
            raise MultipleMemberOutputsError(
                f"Found multiple output binding annotations on member "
                f"'{member_name}' of return type '{function.return_type.name}'. "
                "Only one output binding annotation is supported on a member.",
                **context,
            )

    http_members = [
        b
        for b in bindings
        if b.owner_kind is OwnerKind.MEMBER and b.is_http_response
    ]
    if len(http_members) > 1:
        names = ", ".join(b.name for b in http_members)
        raise MultipleHttpResponseMembersError(
            f"Found multiple HTTP response members ({names}) in return type "
            f"'{function.return_type.name}'. Only one HTTP response binding is "
            "supported in a return type.",
            **context,
        )
    if sum(1 for b in bindings if b.is_http_response) > 1:
        raise MultipleHttpResponseMembersError(
            "Found more than one HTTP response output binding. "
            "Only one HTTP response binding is supported per function.",
            **context,
        )

    for binding in bindings:
        if binding.capability is None:
            continue
        try:
            properties = binding.capability.bind_arguments(binding.annotation)
        except MalformedAnnotationError as e:
            raise MalformedAnnotationError(
                f"Binding '{binding.name}': {e.message}", **context
            ) from e
        reserved = [key for key, _ in properties if key in RESERVED_PROPERTIES]
        if reserved:
            raise MalformedAnnotationError(
                f"Binding '{binding.name}': argument '{reserved[0]}' "
                "collides with a reserved binding property",
                **context,
            )
        for key, value in properties:
            source = _non_constant_source(value, function.unresolved_names)
            if source is not None:
                raise MalformedAnnotationError(
                    f"Binding '{binding.name}': argument '{key}' is not a constant "
                    f"value ({source})",
                    **context,
                )

    logger.debug(f"Validated {len(bindings)} bindings for {function.function_name}")


def _non_constant_source(
    value: TypedValue, unresolved_names: frozenset[str]
) -> str | None:
    """Source text of the first part of a value that has no constant value."""
    if isinstance(value, ErrorValue):
        return value.source
    if isinstance(value, TypeRef) and value.type_name in unresolved_names:
        return value.type_name
    if isinstance(value, ArrayValue):
        for item in value.items:
            source = _non_constant_source(item, unresolved_names)
            if source is not None:
                return source
    return None
