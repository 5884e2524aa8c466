"""Declaration model and the Python-source front-end that produces it."""

from function_metadata_generator.declarations.models import (
    Annotation,
    ArrayValue,
    EnumValue,
    ErrorValue,
    FunctionDeclaration,
    Member,
    MethodDeclaration,
    Parameter,
    Primitive,
    Program,
    ReturnType,
    TypeDeclaration,
    TypedValue,
    TypeRef,
)
from function_metadata_generator.declarations.python_parser import (
    parse_program,
    parse_source,
    parse_source_file,
    scan_directory,
)

__all__ = [
    # Model
    "Annotation",
    "ArrayValue",
    "EnumValue",
    "ErrorValue",
    "FunctionDeclaration",
    "Member",
    "MethodDeclaration",
    "Parameter",
    "Primitive",
    "Program",
    "ReturnType",
    "TypeDeclaration",
    "TypedValue",
    "TypeRef",
    # Python front-end
    "parse_program",
    "parse_source",
    "parse_source_file",
    "scan_directory",
]
