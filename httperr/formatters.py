"""Output formatters for CLI results.

Each formatter takes a result dataclass and renders it as text or JSON.
All Rich console output is contained here.
"""

import difflib
import json

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from httperr.diagnostics import Diagnostic
from httperr.models import TaggedUnionDescriptor, shape_kind
from httperr.results import ExpandResult, InitResult, InspectResult


def _diagnostic_line(diagnostic: Diagnostic, console: Console) -> None:
    console.print(
        f"  [red]error[/red][dim]{escape(f'[{diagnostic.kind.value}]')}[/dim] "
        f"[cyan]{diagnostic.file}:{diagnostic.line}:{diagnostic.column}[/cyan]  "
        f"{escape(diagnostic.message)}"
    )


def _union_dict(union: TaggedUnionDescriptor) -> dict[str, object]:
    return {
        "name": union.name,
        "line": union.line,
        "generics": list(union.generics.params),
        "variants": [
            {
                "name": v.name,
                "line": v.line,
                "shape": shape_kind(v.shape).value,
                "arity": getattr(v.shape, "arity", 0),
                "status": v.status.code if v.status else None,
                "unclassified": v.is_unclassified,
            }
            for v in union.variants
        ],
    }


def expand(
    result: ExpandResult,
    output_format: str,
    console: Console,
    show_diff: bool = False,
) -> None:
    """Format expand result."""
    if output_format == "json":
        data = {
            "query": "expand",
            "written": result.written,
            "results": [
                {
                    "file": f.file,
                    "changed": f.changed,
                    "generated": f.generated,
                    "diagnostics": [d.to_dict() for d in f.diagnostics],
                }
                for f in result.files
                if f.changed or f.diagnostics
            ],
        }
        console.print_json(json.dumps(data, indent=2))
        return

    if not result.changed_files and not result.diagnostics:
        console.print("[green]All http_error unions are up to date[/green]")
        return

    verb = "Expanded" if result.written else "Would expand"
    for f in result.changed_files:
        names = ", ".join(f.generated)
        status = verb if f.ok else "[yellow]Not written[/yellow]"
        console.print(f"  {status} [cyan]{f.file}[/cyan]  [dim]({names})[/dim]")
        if show_diff:
            diff = "".join(
                difflib.unified_diff(
                    f.source.splitlines(keepends=True),
                    f.code.splitlines(keepends=True),
                    fromfile=f.file,
                    tofile=f.file,
                )
            )
            console.print(Syntax(diff, "diff", theme="ansi_dark"))

    if result.diagnostics:
        console.print()
        for diagnostic in result.diagnostics:
            _diagnostic_line(diagnostic, console)

    console.print()
    console.print(
        f"[bold]{len(result.changed_files)}[/bold] file(s) {verb.lower()}, "
        f"[bold]{len(result.diagnostics)}[/bold] error(s)"
    )


def inspect(result: InspectResult, output_format: str, console: Console) -> None:
    """Format inspect result."""
    if output_format == "json":
        data = {
            "query": "inspect",
            "file": result.file,
            "results": [_union_dict(u) for u in result.unions],
            "diagnostics": [d.to_dict() for d in result.diagnostics],
        }
        console.print_json(json.dumps(data, indent=2))
        return

    if not result.unions and not result.diagnostics:
        console.print(f"[yellow]No http_error unions found in {result.file}[/yellow]")
        return

    for union in result.unions:
        title = escape(union.generics.subscript(union.name))
        table = Table(title=f"{title}  [dim]{result.file}:{union.line}[/dim]")
        table.add_column("Variant", style="green", no_wrap=True)
        table.add_column("Shape")
        table.add_column("Status")
        table.add_column("Message", no_wrap=True)

        for variant in union.variants:
            shape = shape_kind(variant.shape).value
            arity = getattr(variant.shape, "arity", None)
            if arity is not None:
                shape = f"{shape}({arity})"
            if variant.is_unclassified:
                status = "[dim]default (500)[/dim]"
                message = "[yellow]redacted in release[/yellow]"
            else:
                status = escape(variant.status.code) if variant.status else ""
                message = "shown"
            table.add_row(variant.name, shape, status, message)

        console.print(table)

    for diagnostic in result.diagnostics:
        _diagnostic_line(diagnostic, console)


def init_result(result: InitResult, console: Console) -> None:
    """Format init result."""
    if not result.created:
        console.print(f"[yellow]{result.config_path} already exists[/yellow]")
        console.print("[dim]Delete it first if you want to reinitialize.[/dim]")
        return

    console.print(f"  [green]Created[/green] {result.config_path.relative_to(result.directory)}")
    console.print()
    console.print("[dim]Next steps:[/dim]")
    console.print("  1. Review .httperr/config.yaml")
    console.print("  2. Run 'httperr expand' to generate conversion methods")
