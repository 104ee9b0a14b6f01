from __future__ import annotations

ERROR_PREFIX = "[AIExport]"


class SchemaError(ValueError):
    """Base class for every validation failure raised by the export engine."""

    def __init__(self, problem: str) -> None:
        super().__init__(f"{ERROR_PREFIX} {problem}")


class UnexpectedFieldError(SchemaError):
    pass


class TypeMismatchError(SchemaError):
    pass


class ShapeMismatchError(SchemaError):
    pass


class InvalidVariantError(SchemaError):
    pass


class BuilderClosedError(RuntimeError):
    """Raised when a finished builder is asked to accept more messages."""

    def __init__(self, problem: str) -> None:
        super().__init__(f"{ERROR_PREFIX} {problem}")
