"""Tests for union and variant extraction."""

import sys

import pytest
from conftest import extract, extract_one

from httperr.diagnostics import DiagnosticError
from httperr.enums import DiagnosticKind
from httperr.models import NamedPayload, NoPayload, PositionalPayload


def test_finds_variants_in_declaration_order(api_union):
    """Variants are the direct subclasses, in source order."""
    assert api_union.name == "ApiError"
    assert [v.name for v in api_union.variants] == [
        "NotFound",
        "Database",
        "InvalidField",
        "Conflict",
        "Maintenance",
        "Unreachable",
    ]


def test_variant_shapes(api_union):
    """Shapes follow the payload each class declares."""
    shapes = {v.name: v.shape for v in api_union.variants}

    assert shapes["NotFound"] == NoPayload()
    assert shapes["Database"] == PositionalPayload(arity=1)
    assert shapes["InvalidField"] == PositionalPayload(arity=2)
    assert shapes["Conflict"] == NamedPayload()
    assert shapes["Maintenance"] == NoPayload()
    assert shapes["Unreachable"] == NamedPayload()


def test_status_kept_as_written(api_union):
    """Status expressions are carried as source text, never evaluated."""
    statuses = {v.name: v.status.code if v.status else None for v in api_union.variants}

    assert statuses["NotFound"] == "HTTPStatus.NOT_FOUND"
    assert statuses["InvalidField"] == "HTTPStatus.BAD_REQUEST"
    assert statuses["Database"] is None
    assert statuses["Unreachable"] is None


def test_missing_status_is_unclassified(api_union):
    """Only variants without a status are unclassified."""
    unclassified = [v.name for v in api_union.variants if v.is_unclassified]
    assert unclassified == ["Database", "Unreachable"]


def test_explicit_default_status_is_classified(api_union):
    """A status written as the 500 default still counts as a classification."""
    maintenance = next(v for v in api_union.variants if v.name == "Maintenance")

    assert maintenance.status is not None
    assert maintenance.status.code == "HTTPStatus.INTERNAL_SERVER_ERROR"
    assert not maintenance.is_unclassified


def test_generic_base_parameters(generic_source):
    """Type parameters come from a Generic[...] base."""
    union = extract_one(generic_source)

    assert union.name == "LookupFailure"
    assert union.generics.params == ("K",)
    assert not union.generics.inline
    assert [v.name for v in union.variants] == ["Missing", "Corrupt"]


def test_subscripted_base_still_matches_variant(generic_source):
    """`class Missing(LookupFailure[K])` is a variant of LookupFailure."""
    union = extract_one(generic_source)
    shapes = {v.name: v.shape for v in union.variants}

    assert shapes["Missing"] == PositionalPayload(arity=1)
    assert shapes["Corrupt"] == PositionalPayload(arity=2)


@pytest.mark.skipif(sys.version_info < (3, 12), reason="inline type parameters need 3.12")
def test_inline_type_parameters():
    """PEP 695 parameters are collected with bounds left behind."""
    union = extract_one(
        "@http_error\n"
        "class Failure[T: str, *Ts](Exception): ...\n"
        "\n"
        "class Broken(Failure): ...\n"
    )

    assert union.generics.params == ("T", "*Ts")
    assert union.generics.inline
    assert union.generics.subscript("Failure") == "Failure[T, *Ts]"


def test_type_variables_from_subscripted_bases():
    """Without Generic[...], type variables of parameterized bases are collected."""
    union = extract_one(
        "K = TypeVar('K')\n"
        "V = TypeVar('V')\n"
        "Ts = TypeVarTuple('Ts')\n"
        "\n"
        "class Store(Generic[K, V, Unpack[Ts]]): ...\n"
        "\n"
        "@http_error\n"
        "class StoreError(Store[K, list[V], Unpack[Ts]], Exception): ...\n"
        "\n"
        "class Full(StoreError): ...\n"
    )

    assert union.generics.params == ("K", "V", "*Ts")
    assert not union.generics.inline
    assert union.generics.subscript("StoreError") == "StoreError[K, V, *Ts]"


def test_concrete_subscripted_base_is_not_generic():
    """Subscripts that use no module-level type variable add no parameters."""
    union = extract_one(
        "@http_error\n"
        "class TaskError(Base[int], Exception): ...\n"
        "\n"
        "class Cancelled(TaskError): ...\n"
    )

    assert not union.generics


def test_non_init_fields_and_init_vars():
    """Only leading real __init__ fields are matched by position."""
    union = extract_one(
        "@http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "@dataclass\n"
        "class A(E):\n"
        "    reason: str\n"
        "    attempts: int = field(init=False, default=0)\n"
        "\n"
        "@dataclass\n"
        "class B(E):\n"
        "    name: str\n"
        "    raw: InitVar[bytes]\n"
        "    size: int = 0\n"
        "\n"
        "@dataclass\n"
        "class C(E):\n"
        "    raw: dataclasses.InitVar[bytes]\n"
        "    size: int = 0\n"
        "\n"
        "@dataclass\n"
        "class D(E):\n"
        "    stamp: float = field(init=False)\n"
    )
    shapes = {v.name: v.shape for v in union.variants}

    assert shapes["A"] == PositionalPayload(arity=1)
    assert shapes["B"] == PositionalPayload(arity=1)
    assert shapes["C"] == NamedPayload()
    assert shapes["D"] == NamedPayload()


def test_kw_only_sentinel_and_field():
    """Fields after KW_ONLY or declared kw_only are not positional."""
    union = extract_one(
        "@http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "@dataclass\n"
        "class A(E):\n"
        "    first: str\n"
        "    _: KW_ONLY\n"
        "    second: int\n"
        "\n"
        "@dataclass\n"
        "class B(E):\n"
        "    only: str = field(kw_only=True)\n"
        "\n"
        "@dataclasses.dataclass(match_args=False)\n"
        "class C(E):\n"
        "    hidden: str\n"
    )
    shapes = {v.name: v.shape for v in union.variants}

    assert shapes["A"] == PositionalPayload(arity=1)
    assert shapes["B"] == NamedPayload()
    assert shapes["C"] == NamedPayload()


def test_explicit_match_args_and_classvars():
    """__match_args__ wins, and ClassVar annotations are not fields."""
    union = extract_one(
        "@http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "class A(E):\n"
        "    __match_args__ = ('path', 'line')\n"
        "\n"
        "class B(E):\n"
        "    code: ClassVar[int] = 3\n"
        "\n"
        "class C(E): detail: str\n"
    )
    shapes = {v.name: v.shape for v in union.variants}

    assert shapes["A"] == PositionalPayload(arity=2)
    assert shapes["B"] == NoPayload()
    assert shapes["C"] == NamedPayload()


def test_attribute_directive_recognized():
    """`@httperr.http_error(...)` is the same directive."""
    union = extract_one(
        "@httperr.http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "@httperr.http_error(status=418)\n"
        "class Teapot(E): ...\n"
    )

    assert union.variants[0].status is not None
    assert union.variants[0].status.code == "418"


def test_indirect_subclasses_are_not_variants():
    """Only direct subclasses become variants."""
    union = extract_one(
        "@http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "class A(E): ...\n"
        "\n"
        "class B(A): ...\n"
    )

    assert [v.name for v in union.variants] == ["A"]


def test_single_shape_record_is_not_a_union(invalid_source):
    """A marked class without variants is rejected by name."""
    errors = [r for r in extract(invalid_source) if isinstance(r, DiagnosticError)]
    settings = next(e for e in errors if e.name == "Settings")

    assert settings.kind == DiagnosticKind.NOT_A_UNION
    assert "expected a tagged union of failure cases" in settings.message
    assert "`Settings`" in settings.message
    assert settings.line == 7


def test_marked_function_is_not_a_union(invalid_source):
    """The directive on a function is rejected."""
    errors = [r for r in extract(invalid_source) if isinstance(r, DiagnosticError)]
    handler = next(e for e in errors if e.name == "handler")

    assert handler.kind == DiagnosticKind.NOT_A_UNION
    assert "function `handler`" in handler.message


def test_unknown_variant_option(invalid_source):
    """Options other than status are rejected on the variant's union."""
    errors = [r for r in extract(invalid_source) if isinstance(r, DiagnosticError)]
    storage = next(e for e in errors if e.name == "MissingBlob")

    assert storage.kind == DiagnosticKind.INVALID_OPTION
    assert "`retry`" in storage.message


def test_union_directive_takes_no_options():
    """The union-level directive accepts no options."""
    (error,) = extract(
        "@http_error(status=404)\n"
        "class E(Exception): ...\n"
        "\n"
        "class A(E): ...\n"
    )

    assert isinstance(error, DiagnosticError)
    assert error.kind == DiagnosticKind.INVALID_OPTION
    assert error.name == "E"


def test_duplicate_and_positional_options():
    """Status may be given once, and only by keyword."""
    duplicate, positional = extract(
        "@http_error\n"
        "class E(Exception): ...\n"
        "\n"
        "@http_error(status=400, status=401)\n"
        "class A(E): ...\n"
        "\n"
        "@http_error\n"
        "class F(Exception): ...\n"
        "\n"
        "@http_error(404)\n"
        "class B(F): ...\n"
    )

    assert isinstance(duplicate, DiagnosticError)
    assert "duplicate option `status`" in duplicate.message
    assert isinstance(positional, DiagnosticError)
    assert "keyword" in positional.message


def test_unmarked_module_has_no_unions():
    """Classes without the directive are ignored."""
    assert extract("class E(Exception): ...\n\nclass A(E): ...\n") == []
