"""Command-line interface for function-metadata-generator."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from function_metadata_generator.assembler import DEFAULT_LANGUAGE
from function_metadata_generator.codegen import generate_provider_module
from function_metadata_generator.errors import ResolutionError
from function_metadata_generator.generator import (
    GenerationResult,
    GeneratorSettings,
    generate_from_directory,
)

logger = logging.getLogger(__name__)

COMMANDS = ("generate", "provider")


def setup_logging(verbose: bool = False):
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "source",
        help="Directory containing the function app's Python sources",
    )
    parser.add_argument(
        "--name",
        "-n",
        default=None,
        help="Build unit name (default: the source directory name)",
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help=f"Language tag reported to the host (default: {DEFAULT_LANGUAGE})",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=1,
        help="Process functions on this many worker threads (default: 1)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log pipeline progress to stderr",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="function-metadata",
        description="Extract function binding metadata from annotated Python sources",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Write the function metadata JSON artifact (default)",
    )
    _add_common_arguments(generate_parser)
    generate_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output path for the JSON artifact (default: stdout)",
    )

    # provider subcommand
    provider_parser = subparsers.add_parser(
        "provider",
        help="Write a Python module that registers the generated metadata",
    )
    _add_common_arguments(provider_parser)
    provider_parser.add_argument(
        "--output",
        "-o",
        default="./generated_function_metadata.py",
        help="Output path for the module (default: ./generated_function_metadata.py)",
    )

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments; a bare directory means 'generate'."""
    parser = create_parser()

    if args and not args[0].startswith("-") and args[0] not in COMMANDS:
        args = ["generate"] + args

    return parser.parse_args(args)


def settings_from_args(parsed: argparse.Namespace) -> GeneratorSettings:
    """Build generator settings from parsed arguments."""
    return GeneratorSettings(
        language=parsed.language,
        workers=max(1, parsed.workers),
        name=parsed.name,
    )


def report_diagnostics(result: GenerationResult) -> None:
    """Print every diagnostic to stderr."""
    for diagnostic in result.diagnostics:
        print(f"ERROR: {diagnostic.format()}", file=sys.stderr)


def _write(output: str, content: str) -> None:
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Written to {output}")


async def run_generate(
    source: str, output: str | None, settings: GeneratorSettings
) -> int:
    """Run the generate command.

    Args:
        source: Directory to scan
        output: Path for the JSON artifact, or None for stdout
        settings: Generator settings

    Returns:
        Exit code (0 for success, 1 when any function failed)
    """
    logger.info(f"Generating function metadata for {source}")
    result = await asyncio.to_thread(generate_from_directory, source, settings)
    report_diagnostics(result)
    if not result.succeeded:
        return 1

    if output is None:
        print(result.to_json())
    else:
        _write(output, result.to_json() + "\n")
        print(
            f"Wrote metadata for {len(result.functions)} functions to: {output}",
            file=sys.stderr,
        )
    return 0


async def run_provider(source: str, output: str, settings: GeneratorSettings) -> int:
    """Run the provider command.

    Args:
        source: Directory to scan
        output: Path for the generated module
        settings: Generator settings

    Returns:
        Exit code (0 for success, 1 when any function failed)
    """
    logger.info(f"Generating provider module for {source}")
    result = await asyncio.to_thread(generate_from_directory, source, settings)
    report_diagnostics(result)
    if not result.succeeded:
        return 1

    _write(output, generate_provider_module(result.build_unit, result.functions))
    print(
        f"Wrote provider for {len(result.functions)} functions to: {output}",
        file=sys.stderr,
    )
    return 0


async def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed = parse_args(args)
    except SystemExit as e:
        return e.code if e.code else 1

    if parsed.command is None:
        # No command and no args - show help
        create_parser().print_help(sys.stderr)
        return 1

    setup_logging(parsed.verbose)

    if not Path(parsed.source).is_dir():
        print(f"Error: not a directory: {parsed.source}", file=sys.stderr)
        return 2

    settings = settings_from_args(parsed)
    try:
        if parsed.command == "generate":
            return await run_generate(parsed.source, parsed.output, settings)
        elif parsed.command == "provider":
            return await run_provider(parsed.source, parsed.output, settings)
    except ResolutionError as e:
        logger.error(f"Declaration model is inconsistent: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 1


def main():
    """Entry point for the CLI."""
    exit_code = asyncio.run(run_cli(sys.argv[1:]))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
