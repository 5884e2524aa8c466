"""Main generator that runs the metadata extraction pipeline."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from function_metadata_generator.assembler import (
    DEFAULT_LANGUAGE,
    assemble_function_metadata,
)
from function_metadata_generator.binding_registry import (
    BindingRegistry,
    default_registry,
)
from function_metadata_generator.classifier import classify_function
from function_metadata_generator.declarations.models import (
    MethodDeclaration,
    Program,
)
from function_metadata_generator.declarations.python_parser import (
    EXCLUDED_DIRS,
    scan_directory,
)
from function_metadata_generator.errors import (
    MetadataGenerationError,
    ResolutionError,
    ValidationError,
)
from function_metadata_generator.models import FunctionMetadata
from function_metadata_generator.scanner import resolve_function, select_candidates
from function_metadata_generator.serializer import serialize_metadata_list
from function_metadata_generator.validator import validate_bindings

logger = logging.getLogger(__name__)


class DuplicateFunctionNameError(ValidationError):
    """Two candidate functions share the same function name."""


@dataclass
class GeneratorSettings:
    """Options for a generation pass."""

    language: str = DEFAULT_LANGUAGE
    workers: int = 1
    name: str | None = None
    excluded_dirs: frozenset[str] = EXCLUDED_DIRS
    registry: BindingRegistry = field(default_factory=default_registry)


@dataclass
class Diagnostic:
    """A function that could not be generated."""

    function_name: str
    owner: str | None
    location: str
    error: MetadataGenerationError

    @property
    def code(self) -> str:
        return type(self.error).__name__

    def format(self) -> str:
        return f"{self.location}: {self.code}: {self.error}"

    def to_dict(self) -> dict:
        return {
            "function": self.function_name,
            "owner": self.owner,
            "location": self.location,
            "code": self.code,
            "phase": self.error.phase,
            "message": str(self.error),
        }


@dataclass
class GenerationResult:
    """Metadata for every function that generated, plus diagnostics for the rest."""

    build_unit: str
    functions: list[FunctionMetadata]
    diagnostics: list[Diagnostic]

    @property
    def succeeded(self) -> bool:
        return not self.diagnostics

    def raise_for_errors(self) -> None:
        """Re-raise the first collected error, if any."""
        if self.diagnostics:
            raise self.diagnostics[0].error

    def to_json(self, indent: int = 2) -> str:
        """Serialize the function metadata artifact."""
        return serialize_metadata_list(self.functions, indent=indent)


def generate_function(
    program: Program, method: MethodDeclaration, settings: GeneratorSettings
) -> FunctionMetadata:
    """Run resolution, classification, validation and assembly for one method."""
    function = resolve_function(program, method)
    classification = classify_function(function, settings.registry)
    validate_bindings(classification)
    return assemble_function_metadata(classification, settings.language)


def generate(
    program: Program, settings: GeneratorSettings | None = None
) -> GenerationResult:
    """Generate metadata for every candidate function of a program.

    Each function is processed on its own: an authoring error in one
    function becomes a diagnostic and does not stop the others. Resolution
    errors mean the declaration model itself is broken and propagate.

    Args:
        program: The declaration model of a build unit
        settings: Generation options

    Returns:
        GenerationResult in declaration order
    """
    settings = settings or GeneratorSettings()
    candidates = select_candidates(program)
    logger.info(
        f"Generating metadata for {len(candidates)} functions in {program.name}"
    )

    def process(method: MethodDeclaration) -> FunctionMetadata | Diagnostic:
        try:
            return generate_function(program, method, settings)
        except ResolutionError:
            raise
        except MetadataGenerationError as e:
            logger.error(f"Cannot generate metadata for {method.location}: {e}")
            return Diagnostic(
                function_name=e.function_name or method.name,
                owner=method.owner,
                location=method.location,
                error=e,
            )

    if settings.workers > 1 and len(candidates) > 1:
        # map() yields in submission order, whatever order workers finish in
        with ThreadPoolExecutor(max_workers=settings.workers) as executor:
            outcomes = list(executor.map(process, candidates))
    else:
        outcomes = [process(method) for method in candidates]

    functions: list[FunctionMetadata] = []
    diagnostics: list[Diagnostic] = []
    seen: dict[str, str] = {}
    for method, outcome in zip(candidates, outcomes):
        if isinstance(outcome, Diagnostic):
            diagnostics.append(outcome)
            continue
        if outcome.name in seen:
            error = DuplicateFunctionNameError(
                f"Function name '{outcome.name}' is already used by "
                f"{seen[outcome.name]}",
                function_name=outcome.name,
                owner=method.owner,
            )
            logger.error(f"Cannot generate metadata for {method.location}: {error}")
            diagnostics.append(
                Diagnostic(outcome.name, method.owner, method.location, error)
            )
            continue
        seen[outcome.name] = outcome.entry_point
        functions.append(outcome)

    logger.info(
        f"Generation complete: {len(functions)} functions, "
        f"{len(diagnostics)} errors"
    )
    return GenerationResult(
        build_unit=program.name, functions=functions, diagnostics=diagnostics
    )


def build_function_metadata(
    program: Program, settings: GeneratorSettings | None = None
) -> list[FunctionMetadata]:
    """Strict form of generate(): any error fails the whole build."""
    result = generate(program, settings)
    result.raise_for_errors()
    return result.functions


def generate_from_directory(
    directory: Path | str, settings: GeneratorSettings | None = None
) -> GenerationResult:
    """Scan a directory of Python sources and generate its metadata."""
    settings = settings or GeneratorSettings()
    program = scan_directory(
        Path(directory), name=settings.name, excluded_dirs=settings.excluded_dirs
    )
    return generate(program, settings)
