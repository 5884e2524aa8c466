"""Tests for CLI interface."""

import json
from pathlib import Path

import pytest

from function_metadata_generator.cli import parse_args, run_cli


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures" / "function_apps"


class TestCLI:
    def given_app(self, fixtures_path, app="storage_app", command=None):
        self.args = [str(fixtures_path / app)]
        if command is not None:
            self.args.insert(0, command)

    def given_no_args(self):
        self.args = []

    async def when_cli_is_run(self, capsys):
        self.exit_code = await run_cli(self.args)
        self.captured = capsys.readouterr()

    def then_exit_code_is(self, expected):
        assert self.exit_code == expected

    def then_stdout_lists_functions(self, *names):
        output = json.loads(self.captured.out)
        assert [entry["name"] for entry in output] == list(names)

    @pytest.mark.asyncio
    async def test_generate_outputs_json_to_stdout(self, fixtures_path, capsys):
        self.given_app(fixtures_path, command="generate")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_lists_functions(
            "QueueToBlobFunction", "BlobToQueueFunction", "QueueTriggerFunction"
        )

    @pytest.mark.asyncio
    async def test_bare_directory_means_generate(self, fixtures_path, capsys):
        """A directory without a subcommand runs generate."""
        self.given_app(fixtures_path, app="http_app")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_lists_functions("HttpTriggerSimple", "HttpWithMultipleOutputs")

    @pytest.mark.asyncio
    async def test_generate_writes_output_file(self, fixtures_path, tmp_path, capsys):
        output = tmp_path / "out" / "functions.metadata.json"
        self.given_app(fixtures_path, command="generate")
        self.args += ["--output", str(output), "--workers", "4"]
        await self.when_cli_is_run(capsys)

        self.then_exit_code_is(0)
        entries = json.loads(output.read_text())
        assert entries[0]["entryPoint"] == (
            "storage.blob_functions.BlobFunctions.queue_to_blob"
        )
        assert "Wrote metadata for 3 functions" in self.captured.err

    @pytest.mark.asyncio
    async def test_provider_writes_module(self, fixtures_path, tmp_path, capsys):
        output = tmp_path / "generated_function_metadata.py"
        self.given_app(fixtures_path, command="provider")
        self.args += ["-o", str(output)]
        await self.when_cli_is_run(capsys)

        self.then_exit_code_is(0)
        content = output.read_text()
        assert "class GeneratedFunctionMetadataProvider" in content
        assert "'QueueTriggerFunction'" in content

    @pytest.mark.asyncio
    async def test_invalid_function_fails_build(self, fixtures_path, capsys):
        """Authoring errors are reported on stderr and exit with 1."""
        self.given_app(fixtures_path, app="invalid_app")
        await self.when_cli_is_run(capsys)

        self.then_exit_code_is(1)
        assert "ERROR:" in self.captured.err
        assert "MultipleMethodOutputsError" in self.captured.err
        assert self.captured.out == ""

    @pytest.mark.asyncio
    async def test_returns_nonzero_without_args(self, capsys):
        self.given_no_args()
        await self.when_cli_is_run(capsys)
        assert self.exit_code != 0
        assert "usage" in self.captured.err.lower()

    @pytest.mark.asyncio
    async def test_missing_directory_exits_with_2(self, tmp_path, capsys):
        self.args = [str(tmp_path / "missing")]
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(2)
        assert "not a directory" in self.captured.err


class TestParseArgs:
    def test_defaults(self):
        parsed = parse_args(["app"])
        assert parsed.command == "generate"
        assert parsed.language == "python"
        assert parsed.workers == 1
        assert parsed.output is None

    def test_provider_default_output(self):
        parsed = parse_args(["provider", "app", "--name", "MyApp"])
        assert parsed.output == "./generated_function_metadata.py"
        assert parsed.name == "MyApp"
