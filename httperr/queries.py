"""Query functions behind the CLI commands.

Each function does the work for one command and returns a typed result from
results.py; rendering is left to formatters.py.
"""

from collections.abc import Sequence
from pathlib import Path

import libcst as cst

from httperr.config import CONFIG_DIR, CONFIG_FILE, DEFAULT_EXCLUDE, HttpErrorConfig
from httperr.diagnostics import Diagnostic, DiagnosticError, report
from httperr.enums import DiagnosticKind
from httperr.expander import expand_paths
from httperr.extractor import extract_unions
from httperr.results import ExpandResult, InitResult, InspectResult


def run_expand(
    paths: Sequence[Path],
    config: HttpErrorConfig,
    write: bool = True,
    root: Path | None = None,
) -> ExpandResult:
    """Expand all unions found under the given paths."""
    files = expand_paths(paths, config, write=write, root=root)
    return ExpandResult(files=files, written=write)


def inspect_source(source: str, file: str = "<string>") -> InspectResult:
    """Describe the unions in a module without generating anything."""
    result = InspectResult(file=file)
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

    for extracted in extract_unions(module):
        if isinstance(extracted, DiagnosticError):
            result.diagnostics.append(report(extracted, file))
        else:
            result.unions.append(extracted)
    return result


def render_config_template(directory: Path) -> str:
    """Commented default configuration for a project."""
    exclude = "\n".join(f"  - {name}" for name in DEFAULT_EXCLUDE)
    defaults = HttpErrorConfig()
    return f"""# http_error expansion settings for {directory.name}
version: "0.1"

# Response type constructed as Response(body, status_code=status)
response_class: {defaults.response_class}

# Status-code type; <name>.INTERNAL_SERVER_ERROR is the default status
status_class: {defaults.status_class}

# Name of the generated conversion method
method_name: {defaults.method_name}

# Logger used for redacted failures (defaults to the module's __name__)
# logger_name: myapp.errors

# Directories to skip when expanding a tree
exclude:
{exclude}
"""


def init_project(directory: Path) -> InitResult:
    """Write .httperr/config.yaml unless one already exists."""
    config_path = directory / CONFIG_DIR / CONFIG_FILE
    if config_path.exists():
        return InitResult(directory=directory, config_path=config_path, created=False)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(render_config_template(directory))
    return InitResult(directory=directory, config_path=config_path, created=True)
