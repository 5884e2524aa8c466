"""Errors raised while extracting function metadata."""


class MetadataGenerationError(Exception):
    """Base error for metadata generation.

    Carries enough context (function name, owning type) to locate the
    offending declaration.
    """

    def __init__(
        self,
        message: str,
        function_name: str | None = None,
        owner: str | None = None,
        phase: str = "classification",
    ):
        super().__init__(message)
        self.message = message
        self.function_name = function_name
        self.owner = owner
        self.phase = phase

    def __str__(self) -> str:
        if self.function_name is None:
            return self.message
        where = (
            f"{self.owner}.{self.function_name}" if self.owner else self.function_name
        )
        return f"{where}: {self.message}"


class ResolutionError(MetadataGenerationError):
    """The declaration model is inconsistent and cannot be resolved."""

    def __init__(self, message: str, function_name=None, owner=None):
        super().__init__(message, function_name, owner, phase="resolution")


class MalformedAnnotationError(MetadataGenerationError):
    """A binding annotation does not fit any of its constructor shapes."""


class ValidationError(MetadataGenerationError):
    """A function violates a binding uniqueness rule."""

    def __init__(self, message: str, function_name=None, owner=None):
        super().__init__(message, function_name, owner, phase="validation")


class MultipleMethodOutputsError(ValidationError):
    """More than one output binding annotation on the function itself."""


class MultipleMemberOutputsError(ValidationError):
    """More than one output binding annotation on a single return-type member."""


class MultipleHttpResponseMembersError(ValidationError):
    """More than one HTTP response output binding for a function."""


class SourceParseError(MetadataGenerationError):
    """A source file could not be turned into declarations."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, phase="parsing")
        self.path = path
