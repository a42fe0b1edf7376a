"""Configuration loading for http_error expansion."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_DIR = ".httperr"
CONFIG_FILE = "config.yaml"

DEFAULT_EXCLUDE = [
    "__pycache__",
    ".venv",
    "venv",
    "site-packages",
    "node_modules",
    ".git",
    "dist",
    "build",
]


def _split_dotted(path: str) -> tuple[str, str]:
    module, _, name = path.rpartition(".")
    return module, name


def _is_dotted_path(value: object) -> bool:
    if not isinstance(value, str):
        return False
    module, name = _split_dotted(value)
    return bool(module) and name.isidentifier()


@dataclass
class HttpErrorConfig:
    """Configuration for http_error expansion."""

    response_class: str = "starlette.responses.JSONResponse"
    status_class: str = "http.HTTPStatus"
    method_name: str = "into_response"
    logger_name: str | None = None
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))

    @property
    def response_import(self) -> tuple[str, str]:
        """Module and name to import the response class from."""
        return _split_dotted(self.response_class)

    @property
    def status_import(self) -> tuple[str, str]:
        """Module and name to import the status-code class from."""
        return _split_dotted(self.status_class)

    @property
    def default_status(self) -> str:
        """Expression used for variants without an explicit status."""
        return f"{self.status_import[1]}.INTERNAL_SERVER_ERROR"


def load_config(directory: Path) -> HttpErrorConfig:
    """Load configuration from .httperr/config.yaml if it exists."""
    config_path = directory / CONFIG_DIR / CONFIG_FILE
    if not config_path.exists():
        return HttpErrorConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    defaults = HttpErrorConfig()

    response_class = data.get("response_class", defaults.response_class)
    if not _is_dotted_path(response_class):
        response_class = defaults.response_class

    status_class = data.get("status_class", defaults.status_class)
    if not _is_dotted_path(status_class):
        status_class = defaults.status_class

    method_name = data.get("method_name", defaults.method_name)
    if not isinstance(method_name, str) or not method_name.isidentifier():
        method_name = defaults.method_name

    logger_name = data.get("logger_name")
    if not isinstance(logger_name, str) or not logger_name:
        logger_name = None

    exclude = data.get("exclude", defaults.exclude)
    if not isinstance(exclude, list):
        exclude = defaults.exclude

    return HttpErrorConfig(
        response_class=response_class,
        status_class=status_class,
        method_name=method_name,
        logger_name=logger_name,
        exclude=[str(e) for e in exclude],
    )
