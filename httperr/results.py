"""Result dataclasses for query functions.

These define the contract between queries and formatters.
All query functions return one of these typed results.
"""

from dataclasses import dataclass, field
from pathlib import Path

from httperr.diagnostics import Diagnostic
from httperr.expander import ExpansionResult
from httperr.models import TaggedUnionDescriptor


@dataclass
class ExpandResult:
    """Result of expanding a set of files."""

    files: list[ExpansionResult]
    written: bool

    @property
    def changed_files(self) -> list[ExpansionResult]:
        return [f for f in self.files if f.changed]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]


@dataclass
class InspectResult:
    """Result of inspecting the unions declared in one file."""

    file: str
    unions: list[TaggedUnionDescriptor] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class InitResult:
    """Result of initializing a project configuration."""

    directory: Path
    config_path: Path
    created: bool
