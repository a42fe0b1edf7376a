"""Build-time diagnostics for http_error expansion.

Extraction raises `DiagnosticError` where it detects a problem. The reporter
boundary (`report`) turns those into plain `Diagnostic` records located at the
directive, so one malformed declaration never aborts the rest of an expansion.
"""

from dataclasses import dataclass

from httperr.enums import DiagnosticKind


class DiagnosticError(Exception):
    """A user-facing problem with a declaration, located at its directive."""

    def __init__(
        self,
        kind: DiagnosticKind,
        message: str,
        name: str,
        line: int = 0,
        column: int = 0,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.name = name
        self.line = line
        self.column = column

    @classmethod
    def not_a_union(
        cls, name: str, found: str, line: int = 0, column: int = 0
    ) -> "DiagnosticError":
        return cls(
            DiagnosticKind.NOT_A_UNION,
            f"expected a tagged union of failure cases, found {found} `{name}`",
            name,
            line,
            column,
        )

    @classmethod
    def invalid_option(
        cls, name: str, detail: str, line: int = 0, column: int = 0
    ) -> "DiagnosticError":
        return cls(
            DiagnosticKind.INVALID_OPTION,
            f"invalid http_error option on `{name}`: {detail}",
            name,
            line,
            column,
        )


class GenerationInvariantError(RuntimeError):
    """Internal inconsistency in the generator itself, never a user error."""


@dataclass(frozen=True)
class Diagnostic:
    """A reported diagnostic, detached from the exception that produced it."""

    file: str
    line: int
    column: int
    kind: DiagnosticKind
    name: str
    message: str

    def render(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: error[{self.kind.value}]: {self.message}"

    def to_dict(self) -> dict[str, object]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "kind": self.kind.value,
            "name": self.name,
            "message": self.message,
        }


def report(error: DiagnosticError, file: str) -> Diagnostic:
    """Convert a raised diagnostic into a record attached to its directive."""
    return Diagnostic(
        file=file,
        line=error.line,
        column=error.column,
        kind=error.kind,
        name=error.name,
        message=error.message,
    )
