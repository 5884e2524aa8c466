"""Read-only declaration model of a scanned program."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Primitive:
    """A constant string, number or boolean argument."""

    value: str | int | float | bool


@dataclass(frozen=True)
class EnumValue:
    """A reference to an enum member, e.g. ``AuthorizationLevel.Anonymous``."""

    type_name: str
    name: str


@dataclass(frozen=True)
class TypeRef:
    """A reference to a type. Not carried into binding properties."""

    type_name: str


@dataclass(frozen=True)
class ArrayValue:
    """An ordered list of argument values."""

    items: tuple["TypedValue", ...] = ()


@dataclass(frozen=True)
class ErrorValue:
    """An argument that is not a compile-time constant."""

    source: str


TypedValue = Primitive | EnumValue | TypeRef | ArrayValue | ErrorValue


@dataclass(frozen=True)
class Annotation:
    """An annotation attached to a method, parameter or member.

    Attributes:
        name: Simple name of the annotation (``QueueTrigger``)
        positional_args: Positional arguments in call order
        named_args: Named arguments in the order they were supplied
    """

    name: str
    positional_args: tuple[TypedValue, ...] = ()
    named_args: tuple[tuple[str, TypedValue], ...] = ()

    def named(self, key: str) -> TypedValue | None:
        """Return the named argument ``key`` if it was supplied."""
        for arg_name, value in self.named_args:
            if arg_name == key:
                return value
        return None


@dataclass(frozen=True)
class Parameter:
    """A method parameter."""

    name: str
    type: str
    annotations: tuple[Annotation, ...] = ()


@dataclass(frozen=True)
class Member:
    """A property/field of a structured type."""

    name: str
    type: str
    annotations: tuple[Annotation, ...] = ()


def qualify(module: str, name: str) -> str:
    """Module-qualified name; bare when the module is unnamed."""
    return f"{module}.{name}" if module else name


@dataclass(frozen=True)
class TypeDeclaration:
    """A structured type and its members in declaration order.

    ``imports`` maps names bound by imports in the declaring module to the
    qualified names they refer to.
    """

    name: str
    members: tuple[Member, ...] = ()
    module: str = ""
    imports: tuple[tuple[str, str], ...] = ()

    @property
    def qualified_name(self) -> str:
        return qualify(self.module, self.name)


@dataclass(frozen=True)
class MethodDeclaration:
    """A method as it appears in source, before resolution."""

    name: str
    owner: str | None
    parameters: tuple[Parameter, ...] = ()
    return_type: str = "None"
    annotations: tuple[Annotation, ...] = ()
    module: str = ""
    source_file: str | None = None
    line_number: int | None = None
    imports: tuple[tuple[str, str], ...] = ()

    @property
    def location(self) -> str:
        """file:line of the declaration, or the qualified name."""
        if self.source_file and self.line_number is not None:
            return f"{self.source_file}:{self.line_number}"
        if self.source_file:
            return self.source_file
        return f"{self.owner}.{self.name}" if self.owner else self.name


@dataclass
class Program:
    """A whole build unit: every method and every type it declares."""

    name: str
    methods: list[MethodDeclaration] = field(default_factory=list)
    types: dict[str, TypeDeclaration] = field(default_factory=dict)

    def add_type(self, declaration: TypeDeclaration) -> None:
        """Register a type under its qualified name; the first declaration wins."""
        self.types.setdefault(declaration.qualified_name, declaration)

    def find_types(
        self,
        name: str,
        module: str = "",
        imports: tuple[tuple[str, str], ...] = (),
    ) -> list[TypeDeclaration]:
        """Declarations a type name can refer to from inside a module.

        A name declared in the module itself, bound by one of its imports, or
        written fully qualified resolves to exactly one declaration. Anything
        else falls back to every declaration with the same simple name, so a
        caller can tell a missing name from an ambiguous one.
        """
        imported = dict(imports)
        head, _, rest = name.partition(".")
        keys = [qualify(module, name)]
        if head in imported:
            keys.append(qualify(imported[head], rest) if rest else imported[head])
        keys.append(name)

        for key in keys:
            if key in self.types:
                return [self.types[key]]

        simple_name = name.rsplit(".", 1)[-1]
        return [t for t in self.types.values() if t.name == simple_name]


@dataclass(frozen=True)
class ReturnType:
    """A resolved return type. ``members`` is empty for non-structured types."""

    name: str
    members: tuple[Member, ...] = ()


@dataclass(frozen=True)
class FunctionDeclaration:
    """A resolved candidate function.

    ``unresolved_names`` holds bare names used as annotation arguments that
    are neither a constant, a declared type nor a builtin.
    """

    function_name: str
    method: MethodDeclaration
    return_type: ReturnType
    entry_point: str
    script_file: str
    unresolved_names: frozenset[str] = frozenset()

    @property
    def owner(self) -> str | None:
        return self.method.owner

    @property
    def parameters(self) -> tuple[Parameter, ...]:
        return self.method.parameters

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return self.method.annotations
