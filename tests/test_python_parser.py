"""Tests for the Python-source front-end."""

from pathlib import Path
from textwrap import dedent

import pytest

from function_metadata_generator.declarations.models import (
    Annotation,
    ArrayValue,
    EnumValue,
    ErrorValue,
    Primitive,
    TypeRef,
)
from function_metadata_generator.declarations.python_parser import (
    module_name_for,
    parse_source,
    scan_directory,
)
from function_metadata_generator.errors import SourceParseError


@pytest.fixture
def fixtures_path():
    """Path to sample function apps."""
    return Path(__file__).parent / "fixtures" / "function_apps"


class TestParseSource:
    def given_source(self, source):
        self.source = dedent(source)

    def when_source_is_parsed(self):
        self.declarations = parse_source(
            self.source, module="app.functions", source_file="app/functions.py"
        )

    def then_method(self, name):
        return next(m for m in self.declarations.methods if m.name == name)

    def then_type(self, name):
        return next(t for t in self.declarations.types if t.name == name)

    def test_reads_decorators_as_method_annotations(self):
        """Decorators become method annotations in source order."""
        self.given_source(
            """
            class Functions:
                @Function("QueueTriggerFunction")
                @QueueOutput("test-output")
                def run(self, message: str) -> str:
                    return message
            """
        )
        self.when_source_is_parsed()
        method = self.then_method("run")
        assert method.owner == "Functions"
        assert method.annotations == (
            Annotation("Function", (Primitive("QueueTriggerFunction"),)),
            Annotation("QueueOutput", (Primitive("test-output"),)),
        )
        assert method.module == "app.functions"
        assert method.location == "app/functions.py:5"

    def test_reads_annotated_parameters(self):
        """Annotated metadata becomes parameter annotations; self is skipped."""
        self.given_source(
            """
            from typing import Annotated

            class Functions:
                def run(
                    self,
                    message: Annotated[str, QueueTrigger("input", connection="Conn")],
                    context: FunctionContext,
                    untyped,
                ) -> None:
                    pass
            """
        )
        self.when_source_is_parsed()
        method = self.then_method("run")
        assert [p.name for p in method.parameters] == ["message", "context", "untyped"]
        message, context, untyped = method.parameters
        assert message.type == "str"
        assert message.annotations == (
            Annotation(
                "QueueTrigger",
                (Primitive("input"),),
                (("connection", Primitive("Conn")),),
            ),
        )
        assert context.type == "FunctionContext"
        assert context.annotations == ()
        assert untyped.type == "Any"

    def test_missing_return_annotation_is_void(self):
        """A method without a return annotation returns None."""
        self.given_source(
            """
            def run(message):
                pass
            """
        )
        self.when_source_is_parsed()
        method = self.then_method("run")
        assert method.return_type == "None"
        assert method.owner is None

    def test_converts_argument_values(self):
        """Constants, enum members, type names and lists become typed values."""
        self.given_source(
            """
            @Binding(
                "text", 5, -2, True,
                AuthorizationLevel.Anonymous,
                MyType,
                ["get", "post"],
                compute(),
                skipped=None,
            )
            def run():
                pass
            """
        )
        self.when_source_is_parsed()
        annotation = self.then_method("run").annotations[0]
        assert annotation.positional_args == (
            Primitive("text"),
            Primitive(5),
            Primitive(-2),
            Primitive(True),
            EnumValue("AuthorizationLevel", "Anonymous"),
            TypeRef("MyType"),
            ArrayValue((Primitive("get"), Primitive("post"))),
            ErrorValue("compute()"),
        )
        assert annotation.named_args == ()

    def test_module_constants_become_values(self):
        """Names bound once to a constant at module level resolve to it."""
        self.given_source(
            """
            QUEUE = "orders"
            LEVEL = AuthorizationLevel.Function
            METHODS = ["get", QUEUE]
            RETRIES: int = 3
            COUNTER = 0
            COUNTER += 1

            @Binding(QUEUE, LEVEL, METHODS, RETRIES, COUNTER, Unknown)
            def run():
                pass
            """
        )
        self.when_source_is_parsed()
        annotation = self.then_method("run").annotations[0]
        assert annotation.positional_args == (
            Primitive("orders"),
            EnumValue("AuthorizationLevel", "Function"),
            ArrayValue((Primitive("get"), Primitive("orders"))),
            Primitive(3),
            TypeRef("COUNTER"),
            TypeRef("Unknown"),
        )

    def test_records_module_and_imports(self):
        """Types and methods carry their module and its import bindings."""
        self.given_source(
            """
            import typing
            import bindings.storage as storage
            from .models import Output as Result
            from ..shared import Settings

            class Functions:
                def run(self) -> Result:
                    pass
            """
        )
        self.when_source_is_parsed()
        imports = dict(self.then_method("run").imports)
        assert imports == {
            "typing": "typing",
            "storage": "bindings.storage",
            "Result": "app.models.Output",
            "Settings": "shared.Settings",
        }
        functions_type = self.then_type("Functions")
        assert functions_type.module == "app.functions"
        assert functions_type.qualified_name == "app.functions.Functions"

    def test_resolves_import_aliases_and_dotted_names(self):
        """Aliased and module-qualified annotations resolve to the simple name."""
        self.given_source(
            """
            import bindings
            from functions_worker import QueueOutput as Out

            @bindings.Function("Name")
            @Out("queue")
            def run():
                pass
            """
        )
        self.when_source_is_parsed()
        names = [a.name for a in self.then_method("run").annotations]
        assert names == ["Function", "QueueOutput"]

    def test_reads_annotated_class_fields_as_members(self):
        """Class-level annotated fields become members in declaration order."""
        self.given_source(
            """
            class MyOutputType:
                name: Annotated[str, QueueOutput("queue")]
                http_response: HttpResponseData
                counter = 0
            """
        )
        self.when_source_is_parsed()
        output_type = self.then_type("MyOutputType")
        assert [m.name for m in output_type.members] == ["name", "http_response"]
        assert output_type.members[0].annotations[0].name == "QueueOutput"
        assert output_type.members[1].type == "HttpResponseData"

    def test_forward_reference_return_type(self):
        """String return annotations are unquoted."""
        self.given_source(
            """
            def run() -> "MyOutputType":
                pass
            """
        )
        self.when_source_is_parsed()
        assert self.then_method("run").return_type == "MyOutputType"

    def test_invalid_syntax_raises(self):
        """Unparseable source raises SourceParseError."""
        with pytest.raises(SourceParseError):
            parse_source("def broken(:\n")


class TestModuleNameFor:
    def test_nested_file(self):
        assert module_name_for(Path("storage/queue_functions.py")) == (
            "storage.queue_functions"
        )

    def test_package_init(self):
        assert module_name_for(Path("storage/__init__.py")) == "storage"


class TestScanDirectory:
    def test_scans_files_in_sorted_order(self, fixtures_path):
        """Methods come from files in sorted relative-path order."""
        program = scan_directory(fixtures_path / "storage_app")

        assert program.name == "storage_app"
        assert [m.name for m in program.methods] == [
            "queue_to_blob",
            "blob_to_queue",
            "run",
        ]
        assert program.methods[0].source_file == "storage/blob_functions.py"
        assert "storage.blob_functions.BlobFunctions" in program.types

    def test_skips_files_that_do_not_parse(self, fixtures_path):
        """A syntax error in one file does not stop the scan."""
        program = scan_directory(fixtures_path / "storage_app", name="unit")

        assert program.name == "unit"
        assert all(m.source_file != "broken.py" for m in program.methods)

    def test_skips_excluded_directories(self, tmp_path):
        """Files under excluded directories are not scanned."""
        (tmp_path / "venv").mkdir()
        (tmp_path / "venv" / "lib.py").write_text("def hidden():\n    pass\n")
        (tmp_path / "app.py").write_text("def visible():\n    pass\n")

        program = scan_directory(tmp_path)

        assert [m.name for m in program.methods] == ["visible"]
