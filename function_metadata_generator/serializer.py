"""Render binding descriptors and metadata lists into their wire form."""

import json

from function_metadata_generator.declarations.models import (
    ArrayValue,
    EnumValue,
    Primitive,
    TypedValue,
)
from function_metadata_generator.models import BindingDescriptor, FunctionMetadata


def format_scalar(value: TypedValue) -> str | None:
    """String form of a scalar value, or None if it carries no data.

    Strings stay as they are, enum members render as their name and every
    other primitive is rendered as a string.
    """
    if isinstance(value, Primitive):
        if isinstance(value.value, bool):
            return "true" if value.value else "false"
        return str(value.value)
    if isinstance(value, EnumValue):
        return value.name
    return None


def format_value(value: TypedValue) -> str | list | None:
    """Wire form of a property value; arrays become lists of strings."""
    if isinstance(value, ArrayValue):
        items = []
        for item in value.items:
            formatted = format_value(item)
            if formatted is not None:
                items.append(formatted)
        return items
    return format_scalar(value)


def descriptor_to_dict(descriptor: BindingDescriptor) -> dict:
    """Ordered wire object for a descriptor.

    ``name``, ``type`` and ``direction`` lead, then the extra properties in
    argument order, then ``dataType`` when set.
    """
    result = {
        "name": descriptor.name,
        "type": descriptor.type,
        "direction": descriptor.direction.value,
    }
    for key, value in descriptor.extra_properties:
        formatted = format_value(value)
        if formatted is not None:
            result[key] = formatted
    if descriptor.data_type is not None:
        result["dataType"] = descriptor.data_type.value
    return result


def serialize_descriptor(descriptor: BindingDescriptor) -> str:
    """Compact JSON for one binding, as stored in ``rawBindings``."""
    return json.dumps(
        descriptor_to_dict(descriptor), separators=(",", ":"), ensure_ascii=False
    )


def serialize_metadata_list(functions: list[FunctionMetadata], indent: int = 2) -> str:
    """Serialize the metadata of a build unit into the JSON artifact."""
    return json.dumps([f.to_dict() for f in functions], indent=indent)


def load_metadata_list(content: str) -> list[FunctionMetadata]:
    """Read an artifact produced by serialize_metadata_list."""
    return [FunctionMetadata.from_dict(entry) for entry in json.loads(content)]
