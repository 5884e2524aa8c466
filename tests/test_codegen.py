"""Tests for the generated provider module."""

import ast
from pathlib import Path

import pytest

from function_metadata_generator.codegen import generate_provider_module
from function_metadata_generator.generator import generate_from_directory
from function_metadata_generator.provider import (
    FUNCTION_METADATA_PROVIDER,
    MetadataProviderRegistry,
)


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures" / "function_apps"


class TestGenerateProviderModule:
    def given_generated_module(self, app_path):
        self.result = generate_from_directory(app_path)
        self.source = generate_provider_module(
            self.result.build_unit, self.result.functions
        )

    def when_module_is_loaded(self):
        self.namespace = {}
        code = compile(self.source, "generated_function_metadata.py", "exec")
        exec(code, self.namespace)

    def test_module_is_valid_python(self, fixtures_path):
        self.given_generated_module(fixtures_path / "storage_app")
        ast.parse(self.source)
        assert self.source.startswith("# <auto-generated/>")

    def test_module_carries_the_same_metadata(self, fixtures_path):
        """The embedded literals reproduce the generated records exactly."""
        self.given_generated_module(fixtures_path / "http_app")
        self.when_module_is_loaded()

        assert self.namespace["FUNCTION_METADATA"] == tuple(self.result.functions)

    @pytest.mark.asyncio
    async def test_registration_installs_provider(self, fixtures_path):
        self.given_generated_module(fixtures_path / "storage_app")
        self.when_module_is_loaded()
        registry = MetadataProviderRegistry()

        self.namespace["configure_generated_function_metadata_provider"](registry)
        provider = registry.get(FUNCTION_METADATA_PROVIDER)
        served = await provider.get_function_metadata("/unused")

        assert served == tuple(self.result.functions)

    def test_empty_build_unit(self):
        self.source = generate_provider_module("Empty", [])
        self.when_module_is_loaded()
        assert self.namespace["FUNCTION_METADATA"] == ()
