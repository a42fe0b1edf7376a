"""Command-line interface for http_error expansion.

This module handles argument parsing only. Business logic lives in queries.py,
output formatting lives in formatters.py.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from httperr import formatters, queries
from httperr.config import load_config
from httperr.enums import OutputFormat

HELP_TEXT = """Generate HTTP response conversion for tagged-union failure types.

**Quick start:**
```
httperr init                  # Write .httperr/config.yaml
httperr inspect errors.py     # Show unions, variants and their statuses
httperr expand src/           # Generate into_response() for every union
```

**Keeping generated code current:**
```
httperr expand --check src/   # Exit 1 if any file needs expanding
httperr expand --diff src/    # Show what expansion would change
```

**All commands support:** `-f json` for structured output
"""

app = typer.Typer(
    name="httperr",
    help=HELP_TEXT,
    no_args_is_help=True,
    rich_markup_mode="markdown",
)

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@app.command()
def expand(
    paths: Annotated[
        list[Path] | None, typer.Argument(help="Files or directories to expand")
    ] = None,
    directory: Annotated[
        Path, typer.Option("--directory", "-d", help="Project directory holding .httperr/")
    ] = Path("."),
    check: Annotated[
        bool, typer.Option("--check", help="Don't write; exit 1 if anything would change")
    ] = False,
    diff: Annotated[bool, typer.Option("--diff", help="Don't write; show a unified diff")] = False,
    output_format: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "text",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log each union")] = False,
) -> None:
    """Generate conversion methods for every http_error union."""
    _configure_logging(verbose)
    directory = directory.resolve()
    config = load_config(directory)
    targets = [p.resolve() for p in paths] if paths else [directory]

    result = queries.run_expand(targets, config, write=not (check or diff), root=directory)
    formatters.expand(result, OutputFormat(output_format), console, show_diff=diff)

    if result.diagnostics:
        raise typer.Exit(1)
    if check and result.changed_files:
        raise typer.Exit(1)


@app.command()
def inspect(
    file: Annotated[Path, typer.Argument(help="Python file to inspect")],
    output_format: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "text",
) -> None:
    """Show the unions declared in a file and how each variant is classified."""
    if not file.is_file():
        err_console.print(f"[red]No such file: {file}[/red]")
        raise typer.Exit(1)

    result = queries.inspect_source(file.read_text(), str(file))
    formatters.inspect(result, OutputFormat(output_format), console)

    if result.diagnostics:
        raise typer.Exit(1)


@app.command()
def init(
    directory: Annotated[
        Path, typer.Option("--directory", "-d", help="Directory to initialize")
    ] = Path("."),
) -> None:
    """Initialize .httperr/ with a default configuration."""
    directory = directory.resolve()
    result = queries.init_project(directory)
    formatters.init_result(result, console)

    if not result.created:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
