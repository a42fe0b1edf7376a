"""Expand `http_error` unions in Python modules.

This is the invocation boundary: it finds every union in a module, runs the
extract/synthesize/assemble pipeline for each one independently, splices the
generated methods into their classes and adds the imports they need. Failures
come back as diagnostics; a union that fails is left exactly as written.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import libcst as cst
from libcst.codemod import CodemodContext, VisitorBasedCodemodCommand
from libcst.codemod.visitors import AddImportsVisitor
from libcst.helpers import ensure_type
from libcst.metadata import PositionProvider

from httperr.arms import synthesize_arm
from httperr.assembler import assemble_function, is_generated_method
from httperr.config import HttpErrorConfig
from httperr.diagnostics import Diagnostic, DiagnosticError, report
from httperr.enums import DiagnosticKind
from httperr.extractor import (
    Declaration,
    collect_declarations,
    extract_union,
    invocation_sites,
)
from httperr.markers import DIRECTIVE
from httperr.models import GeneratedFunction, TaggedUnionDescriptor

log = logging.getLogger("httperr")


@dataclass
class ExpansionResult:
    """Outcome of expanding one module."""

    file: str
    source: str
    code: str
    unions: list[TaggedUnionDescriptor] = field(default_factory=list)
    generated: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.code != self.source

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def _check_method_conflict(site: Declaration, config: HttpErrorConfig) -> None:
    """Refuse to overwrite a hand-written method of the same name."""
    body = ensure_type(site.node, cst.ClassDef).body
    if not isinstance(body, cst.IndentedBlock):
        return
    for stmt in body.body:
        if (
            isinstance(stmt, cst.FunctionDef)
            and stmt.name.value == config.method_name
            and not is_generated_method(stmt, config.method_name)
        ):
            raise DiagnosticError(
                DiagnosticKind.NAME_CONFLICT,
                f"`{site.name}` already defines `{config.method_name}`; "
                "remove it or configure a different method_name",
                site.name,
                site.directive_line,
                site.directive_column,
            )


def generate(
    site: Declaration,
    declarations: Sequence[Declaration],
    config: HttpErrorConfig,
    file: str,
) -> tuple[TaggedUnionDescriptor, GeneratedFunction] | Diagnostic:
    """Run one generation invocation, reporting failures instead of raising."""
    try:
        union = extract_union(site, declarations)
        _check_method_conflict(site, config)
    except DiagnosticError as e:
        return report(e, file)

    arms = [synthesize_arm(variant, config) for variant in union.variants]
    return union, assemble_function(union, arms, config)


class HttpErrorExpander(VisitorBasedCodemodCommand):
    """Splice generated conversion methods into their union classes."""

    DESCRIPTION = "Generate HTTP response conversion for http_error unions."
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(
        self,
        context: CodemodContext,
        generated: dict[tuple[str, int], GeneratedFunction],
        config: HttpErrorConfig,
    ) -> None:
        super().__init__(context)
        self.generated = generated
        self.config = config

        for function in generated.values():
            for requirement in function.imports:
                AddImportsVisitor.add_needed_import(
                    self.context, requirement.module, requirement.obj
                )

    def leave_ClassDef(
        self, original_node: cst.ClassDef, updated_node: cst.ClassDef
    ) -> cst.ClassDef:
        pos = self.get_metadata(PositionProvider, original_node)
        function = self.generated.get((original_node.name.value, pos.start.line))
        if function is None:
            return updated_node
        return updated_node.with_changes(body=self._splice(updated_node.body, function))

    def _splice(self, body: cst.BaseSuite, function: GeneratedFunction) -> cst.IndentedBlock:
        if isinstance(body, cst.SimpleStatementSuite):
            body = cst.IndentedBlock(body=[cst.SimpleStatementLine(body=body.body)])
        block = ensure_type(body, cst.IndentedBlock)

        kept = [
            stmt for stmt in block.body if not is_generated_method(stmt, self.config.method_name)
        ]
        return block.with_changes(body=[*kept, function.node])


def expand_source(
    source: str,
    file: str = "<string>",
    config: HttpErrorConfig | None = None,
) -> ExpansionResult:
    """Expand every http_error union in a module's source text."""
    config = config or HttpErrorConfig()
    result = ExpansionResult(file=file, source=source, code=source)

    if DIRECTIVE not in source:
        return result

    try:
        module = cst.parse_module(source)
    except cst.ParserSyntaxError as e:
        result.diagnostics.append(
            Diagnostic(
                file=file,
                line=e.raw_line,
                column=e.raw_column,
                kind=DiagnosticKind.PARSE_ERROR,
                name=Path(file).name,
                message=e.message,
            )
        )
        return result

    declarations = collect_declarations(module)
    generated: dict[tuple[str, int], GeneratedFunction] = {}

    for site in invocation_sites(declarations):
        outcome = generate(site, declarations, config, file)
        if isinstance(outcome, Diagnostic):
            log.debug("%s: skipped %s (%s)", file, site.name, outcome.kind.value)
            result.diagnostics.append(outcome)
            continue
        union, function = outcome
        log.debug("%s: generated %s.%s", file, union.name, config.method_name)
        result.unions.append(union)
        result.generated.append(union.name)
        generated[(union.name, union.line)] = function

    if not generated:
        return result

    context = CodemodContext(filename=file)
    expander = HttpErrorExpander(context, generated, config)
    result.code = expander.transform_module(module).code
    return result


def expand_file(
    path: Path,
    config: HttpErrorConfig | None = None,
    write: bool = True,
    display_path: str | None = None,
) -> ExpansionResult:
    """Expand one file, writing it back only if it changed without diagnostics."""
    source = path.read_text()
    result = expand_source(source, display_path or str(path), config)
    if write and result.changed and result.ok:
        path.write_text(result.code)
        log.info("expanded %s (%s)", result.file, ", ".join(result.generated))
    return result


def _should_exclude(path_str: str, exclude_dirs: Sequence[str]) -> bool:
    """Check if a path should be excluded based on directory names."""
    parts = Path(path_str).parts
    for part in parts:
        if part in exclude_dirs:
            return True
        if part.startswith(".") and part not in (".", ".."):
            return True
    return False


def iter_python_files(paths: Iterable[Path], exclude_dirs: Sequence[str]) -> list[Path]:
    """Python files under the given paths, in a stable order."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for file_path in sorted(path.rglob("*.py")):
                if not _should_exclude(str(file_path.relative_to(path)), exclude_dirs):
                    files.append(file_path)
        elif path.suffix == ".py":
            files.append(path)
    return files


def expand_paths(
    paths: Iterable[Path],
    config: HttpErrorConfig | None = None,
    write: bool = True,
    root: Path | None = None,
) -> list[ExpansionResult]:
    """Expand every Python file under the given files and directories."""
    config = config or HttpErrorConfig()
    results: list[ExpansionResult] = []
    for file_path in iter_python_files(paths, config.exclude):
        display = str(file_path)
        if root is not None and file_path.is_relative_to(root):
            display = str(file_path.relative_to(root))
        results.append(expand_file(file_path, config, write=write, display_path=display))
    return results
