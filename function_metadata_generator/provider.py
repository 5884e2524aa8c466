"""Metadata providers and the registry a host resolves them from."""

import asyncio
import logging
from collections.abc import Callable, Iterable

from function_metadata_generator.generator import (
    GeneratorSettings,
    generate_from_directory,
)
from function_metadata_generator.models import FunctionMetadata

logger = logging.getLogger(__name__)

# Well-known slot the host looks up its metadata provider under
FUNCTION_METADATA_PROVIDER = "function-metadata-provider"


class FunctionMetadataProvider:
    """Lists the function metadata of a build unit."""

    async def get_function_metadata(
        self, directory: str
    ) -> tuple[FunctionMetadata, ...]:
        raise NotImplementedError


class StaticFunctionMetadataProvider(FunctionMetadataProvider):
    """Serves metadata generated ahead of time."""

    def __init__(self, functions: Iterable[FunctionMetadata]):
        self._functions = tuple(functions)

    async def get_function_metadata(
        self, directory: str
    ) -> tuple[FunctionMetadata, ...]:
        return self._functions


class SourceFunctionMetadataProvider(FunctionMetadataProvider):
    """Generates metadata from the Python sources of a directory on request.

    Any function that fails generation fails the whole request.
    """

    def __init__(self, settings: GeneratorSettings | None = None):
        self.settings = settings or GeneratorSettings()

    async def get_function_metadata(
        self, directory: str
    ) -> tuple[FunctionMetadata, ...]:
        logger.info(f"Indexing functions in {directory}")
        result = await asyncio.to_thread(
            generate_from_directory, directory, self.settings
        )
        result.raise_for_errors()
        return tuple(result.functions)


class MetadataProviderRegistry:
    """Singleton registry of providers, keyed by capability slot."""

    def __init__(self):
        self._factories: dict[str, Callable[[], FunctionMetadataProvider]] = {}
        self._instances: dict[str, FunctionMetadataProvider] = {}

    def add_singleton(
        self, slot: str, factory: Callable[[], FunctionMetadataProvider]
    ) -> None:
        """Register the factory for a slot, replacing any earlier one."""
        if slot in self._factories:
            logger.warning(f"Replacing provider registered for '{slot}'")
        self._factories[slot] = factory
        self._instances.pop(slot, None)

    def get(self, slot: str) -> FunctionMetadataProvider:
        """The provider for a slot, created on first use.

        Raises:
            KeyError: If nothing is registered for the slot
        """
        if slot not in self._instances:
            if slot not in self._factories:
                raise KeyError(f"No provider registered for '{slot}'")
            self._instances[slot] = self._factories[slot]()
        return self._instances[slot]

    def __contains__(self, slot: str) -> bool:
        return slot in self._factories


def configure_source_provider(
    registry: MetadataProviderRegistry, settings: GeneratorSettings | None = None
) -> MetadataProviderRegistry:
    """Install a SourceFunctionMetadataProvider as the metadata provider."""
    registry.add_singleton(
        FUNCTION_METADATA_PROVIDER, lambda: SourceFunctionMetadataProvider(settings)
    )
    return registry
