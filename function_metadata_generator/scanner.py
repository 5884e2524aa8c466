"""Find the methods that are function entry points and resolve them."""

import builtins
import logging

from function_metadata_generator.binding_registry import (
    ENTRY_POINT_ANNOTATION,
    VOID_TYPES,
)
from function_metadata_generator.declarations.models import (
    Annotation,
    ArrayValue,
    FunctionDeclaration,
    MethodDeclaration,
    Primitive,
    Program,
    ReturnType,
    TypeDeclaration,
    TypedValue,
    TypeRef,
    qualify,
)
from function_metadata_generator.errors import (
    MalformedAnnotationError,
    ResolutionError,
)

logger = logging.getLogger(__name__)


def _entry_point_annotation(method: MethodDeclaration) -> Annotation | None:
    for annotation in method.annotations:
        if annotation.name.removesuffix("Attribute") == ENTRY_POINT_ANNOTATION:
            return annotation
    return None


def select_candidates(program: Program) -> list[MethodDeclaration]:
    """Methods carrying the entry-point annotation, in declaration order."""
    candidates = [m for m in program.methods if _entry_point_annotation(m) is not None]
    logger.info(
        f"Selected {len(candidates)} candidate functions out of "
        f"{len(program.methods)} methods"
    )
    return candidates


def resolve_function(
    program: Program, method: MethodDeclaration
) -> FunctionDeclaration:
    """Resolve a candidate method against the program's types.

    Args:
        program: The program the method was declared in
        method: A method carrying the entry-point annotation

    Returns:
        The resolved FunctionDeclaration

    Raises:
        ResolutionError: If the owner or return type cannot be resolved
        MalformedAnnotationError: If the entry-point annotation has no name
    """
    if (
        method.owner is not None
        and qualify(method.module, method.owner) not in program.types
    ):
        raise ResolutionError(
            f"Owning type '{method.owner}' is not declared in {program.name}",
            function_name=method.name,
            owner=method.owner,
        )
    if not method.return_type:
        raise ResolutionError(
            "Return type could not be resolved",
            function_name=method.name,
            owner=method.owner,
        )

    annotation = _entry_point_annotation(method)
    if annotation is None:
        raise ResolutionError(
            f"Method is not annotated with '{ENTRY_POINT_ANNOTATION}'",
            function_name=method.name,
            owner=method.owner,
        )
    function_name = _function_name(annotation, method)

    declared = None
    if method.return_type in VOID_TYPES:
        return_type = ReturnType(name=method.return_type)
    else:
        declared = _resolve_type(program, method.return_type, method)
        return_type = ReturnType(
            name=method.return_type,
            members=declared.members if declared is not None else (),
        )

    entry_point = ".".join(
        part
        for part in (method.module or program.name, method.owner, method.name)
        if part
    )
    logger.debug(f"Resolved {function_name} -> {entry_point}")
    return FunctionDeclaration(
        function_name=function_name,
        method=method,
        return_type=return_type,
        entry_point=entry_point,
        script_file=method.source_file or program.name,
        unresolved_names=_unresolved_names(program, method, declared),
    )


def _function_name(annotation: Annotation, method: MethodDeclaration) -> str:
    value = (
        annotation.positional_args[0]
        if annotation.positional_args
        else annotation.named("name")
    )
    if (
        not isinstance(value, Primitive)
        or not isinstance(value.value, str)
        or not value.value
    ):
        raise MalformedAnnotationError(
            f"'{annotation.name}' annotation requires a function name",
            function_name=method.name,
            owner=method.owner,
        )
    return value.value


def scan_candidates(program: Program) -> list[FunctionDeclaration]:
    """Select and resolve every candidate function of a program.

    Args:
        program: The program to scan

    Returns:
        Resolved functions in declaration order
    """
    return [resolve_function(program, method) for method in select_candidates(program)]


def _resolve_type(
    program: Program, name: str, method: MethodDeclaration
) -> TypeDeclaration | None:
    """The declaration a return type name refers to from the method's module.

    Raises:
        ResolutionError: If the name matches types in several modules
    """
    matches = program.find_types(name, method.module, method.imports)
    if len(matches) > 1:
        candidates = ", ".join(t.qualified_name for t in matches)
        raise ResolutionError(
            f"Return type '{name}' is ambiguous: declared as {candidates}",
            function_name=method.name,
            owner=method.owner,
        )
    return matches[0] if matches else None


def _unresolved_names(
    program: Program, method: MethodDeclaration, declared: TypeDeclaration | None
) -> frozenset[str]:
    """Bare argument names that refer to no declared type and no builtin."""
    scopes = [(method.module, method.imports, a) for a in method.annotations]
    scopes += [
        (method.module, method.imports, a)
        for parameter in method.parameters
        for a in parameter.annotations
    ]
    if declared is not None:
        scopes += [
            (declared.module, declared.imports, a)
            for member in declared.members
            for a in member.annotations
        ]

    unresolved = set()
    for module, imports, annotation in scopes:
        values = [*annotation.positional_args, *(v for _, v in annotation.named_args)]
        for name in _type_ref_names(values):
            if hasattr(builtins, name) or program.find_types(name, module, imports):
                continue
            unresolved.add(name)
    return frozenset(unresolved)


def _type_ref_names(values: list[TypedValue]) -> list[str]:
    names = []
    for value in values:
        if isinstance(value, TypeRef):
            names.append(value.type_name)
        elif isinstance(value, ArrayValue):
            names.extend(_type_ref_names(list(value.items)))
    return names
