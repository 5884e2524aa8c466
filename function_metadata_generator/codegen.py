"""Generate the provider module that ships a build unit's metadata."""

import logging

from function_metadata_generator.models import FunctionMetadata

logger = logging.getLogger(__name__)

INDENT = "    "


def generate_metadata_entry(metadata: FunctionMetadata) -> str:
    """Generate the ``FunctionMetadata(...)`` literal for one function."""
    if metadata.raw_bindings:
        bindings = "\n".join(
            f"{INDENT * 3}{raw!r}," for raw in metadata.raw_bindings
        )
        bindings_str = f"(\n{bindings}\n{INDENT * 2})"
    else:
        bindings_str = "()"

    return f"""{INDENT}FunctionMetadata(
{INDENT * 2}function_id={metadata.function_id!r},
{INDENT * 2}language={metadata.language!r},
{INDENT * 2}name={metadata.name!r},
{INDENT * 2}entry_point={metadata.entry_point!r},
{INDENT * 2}raw_bindings={bindings_str},
{INDENT * 2}script_file={metadata.script_file!r},
{INDENT}),"""


def generate_provider_module(build_unit: str, functions: list[FunctionMetadata]) -> str:
    """Generate a Python module that registers the build unit's metadata.

    The module defines ``FUNCTION_METADATA``, a
    ``GeneratedFunctionMetadataProvider`` serving it, and
    ``configure_generated_function_metadata_provider`` which installs that
    provider as a singleton in a host registry.

    Args:
        build_unit: Name of the build unit
        functions: Metadata in declaration order

    Returns:
        Python source of the module
    """
    logger.info(f"Generating provider module for {len(functions)} functions")
    entries = "\n".join(generate_metadata_entry(f) for f in functions)

    return f"""# <auto-generated/>
# Function metadata for build unit: {build_unit}

from function_metadata_generator.models import FunctionMetadata
from function_metadata_generator.provider import (
    FUNCTION_METADATA_PROVIDER,
    MetadataProviderRegistry,
    StaticFunctionMetadataProvider,
)

FUNCTION_METADATA = (
{entries}
)


class GeneratedFunctionMetadataProvider(StaticFunctionMetadataProvider):
    \"\"\"Serves metadata indexed at build time.\"\"\"

    def __init__(self):
        super().__init__(FUNCTION_METADATA)


def configure_generated_function_metadata_provider(
    registry: MetadataProviderRegistry,
) -> MetadataProviderRegistry:
    \"\"\"Install GeneratedFunctionMetadataProvider in the host registry.\"\"\"
    registry.add_singleton(
        FUNCTION_METADATA_PROVIDER, GeneratedFunctionMetadataProvider
    )
    return registry
"""
