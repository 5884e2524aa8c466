"""Parse Python source files into the declaration model.

Annotations are read from decorators on methods and from ``Annotated[...]``
metadata on parameters and class-level fields. Nothing is imported or
executed; only the syntax tree is inspected.
"""

import ast
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from function_metadata_generator.declarations.models import (
    Annotation,
    ArrayValue,
    EnumValue,
    ErrorValue,
    Member,
    MethodDeclaration,
    Parameter,
    Primitive,
    Program,
    TypeDeclaration,
    TypedValue,
    TypeRef,
    qualify,
)
from function_metadata_generator.errors import SourceParseError

logger = logging.getLogger(__name__)

# Directories never scanned for function declarations
EXCLUDED_DIRS = frozenset(
    {
        "__pycache__",
        ".git",
        ".hg",
        ".tox",
        ".venv",
        "venv",
        "env",
        "node_modules",
        "build",
        "dist",
    }
)

RECEIVER_NAMES = ("self", "cls")
UNTYPED = "Any"
VOID = "None"


@dataclass
class ModuleDeclarations:
    """Methods and types declared in one module, in source order."""

    methods: list[MethodDeclaration] = field(default_factory=list)
    types: list[TypeDeclaration] = field(default_factory=list)


def scan_directory(
    root: Path,
    name: str | None = None,
    excluded_dirs: frozenset[str] = EXCLUDED_DIRS,
) -> Program:
    """Build a Program from every Python file under a directory.

    Files are visited in sorted relative-path order so the resulting
    declaration order is the same on every run.

    Args:
        root: Directory to scan
        name: Build unit name (defaults to the directory name)
        excluded_dirs: Directory names to skip

    Returns:
        Program with all methods and types found
    """
    root = Path(root)
    program = Program(name=name or root.resolve().name)
    logger.info(f"Scanning {root} for function declarations")

    paths = sorted(
        (p for p in root.rglob("*.py") if p.is_file()),
        key=lambda p: p.relative_to(root).as_posix(),
    )
    for path in paths:
        relative = path.relative_to(root)
        if any(part in excluded_dirs for part in relative.parts[:-1]):
            continue

        try:
            declarations = parse_source_file(path, root)
        except (SourceParseError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {relative.as_posix()}: {e}")
            continue

        program.methods.extend(declarations.methods)
        for declaration in declarations.types:
            program.add_type(declaration)

    logger.info(
        f"Found {len(program.methods)} methods and {len(program.types)} types "
        f"in {program.name}"
    )
    return program


def parse_program(content: str, name: str = "app", module: str = "") -> Program:
    """Build a single-module Program from source text."""
    declarations = parse_source(content, module=module)
    program = Program(name=name, methods=list(declarations.methods))
    for declaration in declarations.types:
        program.add_type(declaration)
    return program


def parse_source_file(path: Path, root: Path | None = None) -> ModuleDeclarations:
    """Parse one Python file.

    Args:
        path: Path to the source file
        root: Scan root; the module path is computed relative to it

    Returns:
        ModuleDeclarations for the file
    """
    relative = path.relative_to(root) if root is not None else Path(path.name)
    logger.debug(f"Parsing declarations from {path}")
    return parse_source(
        path.read_text(encoding="utf-8"),
        module=module_name_for(relative),
        source_file=relative.as_posix(),
        is_package=relative.stem == "__init__",
    )


def module_name_for(relative: Path) -> str:
    """Dotted module path for a file path relative to the scan root."""
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def parse_source(
    content: str,
    module: str = "",
    source_file: str | None = None,
    is_package: bool = False,
) -> ModuleDeclarations:
    """Parse Python source text into declarations.

    Args:
        content: The Python source
        module: Dotted module path of the source
        source_file: Path reported in locations
        is_package: Whether the source is a package ``__init__``; relative
            imports then resolve against the module itself

    Returns:
        ModuleDeclarations for the source

    Raises:
        SourceParseError: If the source is not valid Python
    """
    try:
        tree = ast.parse(content, filename=source_file or "<source>")
    except SyntaxError as e:
        raise SourceParseError(
            f"Invalid Python syntax at line {e.lineno}: {e.msg}", path=source_file
        ) from e

    visitor = _DeclarationCollector(
        module,
        source_file,
        aliases=_import_aliases(tree),
        imports=_imported_names(tree, module, is_package),
        constants=_module_constants(tree),
    )
    visitor.visit_body(tree.body, owner=None)
    return visitor.declarations


def _import_aliases(tree: ast.Module) -> dict[str, str]:
    """Map ``from x import A as B`` aliases back to their imported names."""
    aliases = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom):
            for alias in node.names:
                if alias.asname:
                    aliases[alias.asname] = alias.name
    return aliases


def _imported_names(
    tree: ast.Module, module: str, is_package: bool = False
) -> dict[str, str]:
    """Map every name bound by an import to the qualified name it refers to."""
    package = module.split(".") if module else []
    if not is_package:
        package = package[:-1]

    names = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    names[alias.asname] = alias.name
                else:
                    head = alias.name.split(".")[0]
                    names[head] = head
        elif isinstance(node, ast.ImportFrom):
            base = []
            if node.level:
                base = package[: max(len(package) - node.level + 1, 0)]
            source = ".".join([*base, *([node.module] if node.module else [])])
            for alias in node.names:
                if alias.name == "*":
                    continue
                names[alias.asname or alias.name] = qualify(source, alias.name)
    return names


def _module_constants(tree: ast.Module) -> dict[str, TypedValue]:
    """Module-level names assigned exactly once to a constant value."""
    assignments: Counter[str] = Counter()
    values: dict[str, TypedValue] = {}
    for node in tree.body:
        if isinstance(node, ast.AugAssign) and isinstance(node.target, ast.Name):
            assignments[node.target.id] += 1
            continue
        if isinstance(node, ast.Assign) and len(node.targets) == 1:
            target, value = node.targets[0], node.value
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            target, value = node.target, node.value
        else:
            continue
        if not isinstance(target, ast.Name):
            continue
        assignments[target.id] += 1
        values[target.id] = _typed_value(value, values)

    return {
        name: value
        for name, value in values.items()
        if assignments[name] == 1 and _is_constant(value)
    }


def _is_constant(value: TypedValue) -> bool:
    if isinstance(value, ArrayValue):
        return all(_is_constant(item) for item in value.items)
    return isinstance(value, (Primitive, EnumValue))


class _DeclarationCollector:
    """Walks module and class bodies collecting methods and types."""

    def __init__(
        self,
        module: str,
        source_file: str | None,
        aliases: dict[str, str],
        imports: dict[str, str] | None = None,
        constants: dict[str, TypedValue] | None = None,
    ):
        self.module = module
        self.source_file = source_file
        self.aliases = aliases
        self.imports = tuple((imports or {}).items())
        self.constants = constants or {}
        self.declarations = ModuleDeclarations()

    def visit_body(self, body: list[ast.stmt], owner: str | None) -> None:
        for node in body:
            if isinstance(node, ast.ClassDef):
                self.visit_class(node)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self.declarations.methods.append(self.method_from(node, owner))

    def visit_class(self, node: ast.ClassDef) -> None:
        members = []
        for statement in node.body:
            if isinstance(statement, ast.AnnAssign) and isinstance(
                statement.target, ast.Name
            ):
                type_text, annotations = self.split_annotated(statement.annotation)
                members.append(
                    Member(
                        name=statement.target.id,
                        type=type_text,
                        annotations=annotations,
                    )
                )

        self.declarations.types.append(
            TypeDeclaration(
                name=node.name,
                members=tuple(members),
                module=self.module,
                imports=self.imports,
            )
        )
        self.visit_body(node.body, owner=node.name)

    def method_from(
        self, node: ast.FunctionDef | ast.AsyncFunctionDef, owner: str | None
    ) -> MethodDeclaration:
        args = [*node.args.posonlyargs, *node.args.args]
        if owner is not None and args and args[0].arg in RECEIVER_NAMES:
            args = args[1:]
        args.extend(node.args.kwonlyargs)

        parameters = []
        for arg in args:
            if arg.annotation is None:
                parameters.append(Parameter(name=arg.arg, type=UNTYPED))
                continue
            type_text, annotations = self.split_annotated(arg.annotation)
            parameters.append(
                Parameter(name=arg.arg, type=type_text, annotations=annotations)
            )

        if node.returns is None:
            return_type = VOID
        else:
            return_type, _ = self.split_annotated(node.returns)

        annotations = tuple(
            annotation
            for annotation in (self.annotation_from(d) for d in node.decorator_list)
            if annotation is not None
        )

        return MethodDeclaration(
            name=node.name,
            owner=owner,
            parameters=tuple(parameters),
            return_type=return_type,
            annotations=annotations,
            module=self.module,
            source_file=self.source_file,
            line_number=node.lineno,
            imports=self.imports,
        )

    def split_annotated(self, node: ast.expr) -> tuple[str, tuple[Annotation, ...]]:
        """Split ``Annotated[T, A(...), ...]`` into the type text and annotations."""
        if (
            isinstance(node, ast.Subscript)
            and self.simple_name(node.value) == "Annotated"
            and isinstance(node.slice, ast.Tuple)
            and node.slice.elts
        ):
            base, *metadata = node.slice.elts
            annotations = tuple(
                annotation
                for annotation in (self.annotation_from(m) for m in metadata)
                if annotation is not None
            )
            return _type_text(base), annotations
        return _type_text(node), ()

    def annotation_from(self, node: ast.expr) -> Annotation | None:
        if isinstance(node, ast.Call):
            name = self.simple_name(node.func)
            if name is None:
                return None
            positional = tuple(_typed_value(arg, self.constants) for arg in node.args)
            named = tuple(
                (keyword.arg, _typed_value(keyword.value, self.constants))
                for keyword in node.keywords
                # **kwargs expansion and explicit None are not arguments
                if keyword.arg is not None
                and not (
                    isinstance(keyword.value, ast.Constant)
                    and keyword.value.value is None
                )
            )
            return Annotation(name=name, positional_args=positional, named_args=named)

        name = self.simple_name(node)
        return Annotation(name=name) if name is not None else None

    def simple_name(self, node: ast.expr) -> str | None:
        if isinstance(node, ast.Name):
            return self.aliases.get(node.id, node.id)
        if isinstance(node, ast.Attribute):
            return node.attr
        return None


def _type_text(node: ast.expr) -> str:
    # String annotations are forward references
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value.strip()
    return ast.unparse(node)


def _typed_value(
    node: ast.expr, constants: dict[str, TypedValue] | None = None
) -> TypedValue:
    """Convert an argument expression into a typed value.

    Bare names resolve to the module constant they are bound to, if any.
    """
    if isinstance(node, ast.Constant):
        if isinstance(node.value, (str, int, float, bool)):
            return Primitive(node.value)
        return ErrorValue(ast.unparse(node))

    if (
        isinstance(node, ast.UnaryOp)
        and isinstance(node.op, (ast.USub, ast.UAdd))
        and isinstance(node.operand, ast.Constant)
        and isinstance(node.operand.value, (int, float))
        and not isinstance(node.operand.value, bool)
    ):
        value = node.operand.value
        return Primitive(-value if isinstance(node.op, ast.USub) else value)

    if isinstance(node, ast.Attribute) and isinstance(
        node.value, (ast.Name, ast.Attribute)
    ):
        type_name = (
            node.value.id if isinstance(node.value, ast.Name) else node.value.attr
        )
        return EnumValue(type_name=type_name, name=node.attr)

    if isinstance(node, ast.Name):
        if constants and node.id in constants:
            return constants[node.id]
        return TypeRef(node.id)

    if isinstance(node, (ast.List, ast.Tuple)):
        return ArrayValue(
            tuple(_typed_value(element, constants) for element in node.elts)
        )

    return ErrorValue(ast.unparse(node))
