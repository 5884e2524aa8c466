"""Turn validated bindings into descriptors and function metadata records."""

import logging

from function_metadata_generator.classifier import Classification, ClassifiedBinding
from function_metadata_generator.declarations.models import (
    ArrayValue,
    EnumValue,
    Primitive,
)
from function_metadata_generator.models import BindingDescriptor, FunctionMetadata
from function_metadata_generator.serializer import serialize_descriptor

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "python"


def build_descriptor(binding: ClassifiedBinding) -> BindingDescriptor:
    """Build the descriptor for one classified binding.

    Type references carry no data and are dropped. Validation has already
    rejected arguments without a constant value.
    """
    properties = ()
    if binding.capability is not None:
        properties = tuple(
            (key, value)
            for key, value in binding.capability.bind_arguments(binding.annotation)
            if isinstance(value, (Primitive, EnumValue, ArrayValue))
        )
    return BindingDescriptor(
        name=binding.name,
        type=binding.binding_type,
        direction=binding.direction,
        data_type=binding.data_type,
        extra_properties=properties,
    )


def assemble_function_metadata(
    classification: Classification, language: str = DEFAULT_LANGUAGE
) -> FunctionMetadata:
    """Wrap a function's bindings with its identity fields.

    Args:
        classification: Classified and validated bindings of one function
        language: Language tag reported to the host

    Returns:
        FunctionMetadata with the bindings serialized in order
    """
    function = classification.function
    descriptors = [build_descriptor(b) for b in classification.bindings]
    metadata = FunctionMetadata(
        function_id=FunctionMetadata.stable_id(
            function.function_name, function.entry_point
        ),
        language=language,
        name=function.function_name,
        entry_point=function.entry_point,
        raw_bindings=tuple(serialize_descriptor(d) for d in descriptors),
        script_file=function.script_file,
    )
    logger.info(
        f"Assembled {metadata.name} ({metadata.entry_point}) "
        f"with {len(descriptors)} bindings"
    )
    return metadata
