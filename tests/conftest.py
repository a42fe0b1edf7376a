import sys
import types
from collections.abc import Callable
from pathlib import Path

import libcst as cst
import pytest

from httperr.diagnostics import DiagnosticError
from httperr.expander import expand_source
from httperr.extractor import extract_unions
from httperr.models import TaggedUnionDescriptor

FIXTURES = Path(__file__).parent / "fixtures"


def extract(source: str) -> list[TaggedUnionDescriptor | DiagnosticError]:
    """Extract unions from source text."""
    return extract_unions(cst.parse_module(source))


def extract_one(source: str) -> TaggedUnionDescriptor:
    """Extract the single union a snippet declares."""
    results = extract(source)
    assert len(results) == 1
    union = results[0]
    assert isinstance(union, TaggedUnionDescriptor), union
    return union


@pytest.fixture
def api_source() -> str:
    """Source of the api_app fixture."""
    return (FIXTURES / "api_app" / "errors.py").read_text()


@pytest.fixture
def generic_source() -> str:
    """Source of the generic_app fixture."""
    return (FIXTURES / "generic_app" / "errors.py").read_text()


@pytest.fixture
def invalid_source() -> str:
    """Source of the invalid_app fixture."""
    return (FIXTURES / "invalid_app" / "errors.py").read_text()


@pytest.fixture
def api_union(api_source) -> TaggedUnionDescriptor:
    """Descriptor of ApiError from the api_app fixture."""
    return extract_one(api_source)


@pytest.fixture
def load_expanded(monkeypatch) -> Callable[..., types.ModuleType]:
    """Expand source text and import the result as a fresh module.

    `optimize=1` compiles the module the way `python -O` would, which turns
    `__debug__` off.
    """

    def load(source: str, name: str, optimize: int = 0) -> types.ModuleType:
        result = expand_source(source, f"{name}.py")
        assert result.ok, result.diagnostics
        module = types.ModuleType(name)
        monkeypatch.setitem(sys.modules, name, module)
        exec(compile(result.code, f"{name}.py", "exec", optimize=optimize), module.__dict__)
        return module

    return load


@pytest.fixture
def temp_project(tmp_path) -> Path:
    """A project directory holding a copy of the api_app fixture."""
    package = tmp_path / "app"
    package.mkdir()
    (package / "errors.py").write_text((FIXTURES / "api_app" / "errors.py").read_text())
    (package / "plain.py").write_text((FIXTURES / "plain_app" / "app.py").read_text())
    return tmp_path
