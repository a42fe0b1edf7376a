"""Extract tagged-union descriptors from Python source using libcst.

A union is a top-level class carrying the `http_error` directive. Its variants
are the top-level classes in the same module that name it as a direct base, in
declaration order. Everything here is read straight from the syntax tree:
status expressions are kept as written and never evaluated.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Literal

import libcst as cst
from libcst.helpers import ensure_type
from libcst.metadata import MetadataWrapper, PositionProvider

from httperr.diagnostics import DiagnosticError
from httperr.markers import DIRECTIVE
from httperr.models import (
    GenericParameterList,
    NamedPayload,
    NoPayload,
    PositionalPayload,
    Shape,
    StatusExpression,
    TaggedUnionDescriptor,
    VariantDescriptor,
)

VARIANT_OPTIONS = frozenset({"status"})
TYPE_VARIABLE_FACTORIES = frozenset({"TypeVar", "ParamSpec", "TypeVarTuple"})


@dataclass(frozen=True)
class Declaration:
    """A top-level class, function or type variable, as far as expansion cares."""

    name: str
    kind: Literal["class", "function", "type_var"]
    node: cst.ClassDef | cst.FunctionDef | cst.Assign
    line: int
    bases: tuple[str, ...] = ()
    directive: cst.Decorator | None = None
    directive_line: int = 0
    directive_column: int = 0


class DeclarationCollector(cst.CSTVisitor):
    """Collects top-level declarations without descending into their bodies."""

    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self) -> None:
        self.declarations: list[Declaration] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        pos = self.get_metadata(PositionProvider, node)
        directive = find_directive(node.decorators)
        directive_line, directive_column = self._directive_position(directive)

        bases: list[str] = []
        for arg in node.bases:
            base_name = _base_name(arg.value)
            if base_name:
                bases.append(base_name)

        self.declarations.append(
            Declaration(
                name=node.name.value,
                kind="class",
                node=node,
                line=pos.start.line,
                bases=tuple(bases),
                directive=directive,
                directive_line=directive_line,
                directive_column=directive_column,
            )
        )
        return False

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        directive = find_directive(node.decorators)
        if directive is not None:
            pos = self.get_metadata(PositionProvider, node)
            directive_line, directive_column = self._directive_position(directive)
            self.declarations.append(
                Declaration(
                    name=node.name.value,
                    kind="function",
                    node=node,
                    line=pos.start.line,
                    directive=directive,
                    directive_line=directive_line,
                    directive_column=directive_column,
                )
            )
        return False

    def visit_Assign(self, node: cst.Assign) -> None:
        """Record `T = TypeVar("T")` style declarations."""
        if len(node.targets) != 1 or not isinstance(node.targets[0].target, cst.Name):
            return
        if not isinstance(node.value, cst.Call):
            return
        if _dotted_tail(node.value.func) not in TYPE_VARIABLE_FACTORIES:
            return
        pos = self.get_metadata(PositionProvider, node)
        self.declarations.append(
            Declaration(
                name=node.targets[0].target.value,
                kind="type_var",
                node=node,
                line=pos.start.line,
            )
        )

    def _directive_position(self, directive: cst.Decorator | None) -> tuple[int, int]:
        if directive is None:
            return 0, 0
        pos = self.get_metadata(PositionProvider, directive)
        return pos.start.line, pos.start.column


def collect_declarations(module: cst.Module) -> list[Declaration]:
    """Collect the top-level declarations of a parsed module."""
    collector = DeclarationCollector()
    MetadataWrapper(module).visit(collector)
    return collector.declarations


def invocation_sites(declarations: Sequence[Declaration]) -> list[Declaration]:
    """Declarations where the directive requests a union expansion.

    A directive on a class that derives from another directive-marked class is
    a variant annotation, not an invocation.
    """
    marked = {d.name for d in declarations if d.directive is not None and d.kind == "class"}
    sites: list[Declaration] = []
    for declaration in declarations:
        if declaration.directive is None:
            continue
        if declaration.kind == "class" and any(
            base in marked and base != declaration.name for base in declaration.bases
        ):
            continue
        sites.append(declaration)
    return sites


def find_directive(decorators: Sequence[cst.Decorator]) -> cst.Decorator | None:
    """Find `@http_error`, `@http_error(...)` or `@<module>.http_error(...)`."""
    for decorator in decorators:
        expr = decorator.decorator
        if isinstance(expr, cst.Call):
            expr = expr.func
        if isinstance(expr, cst.Name) and expr.value == DIRECTIVE:
            return decorator
        if isinstance(expr, cst.Attribute) and expr.attr.value == DIRECTIVE:
            return decorator
    return None


def directive_args(directive: cst.Decorator) -> Sequence[cst.Arg]:
    if isinstance(directive.decorator, cst.Call):
        return directive.decorator.args
    return ()


def extract_union(
    site: Declaration, declarations: Sequence[Declaration]
) -> TaggedUnionDescriptor:
    """Build the descriptor for one invocation site.

    Raises:
        DiagnosticError: if the site is not a union or its options are invalid.
    """
    if not isinstance(site.node, cst.ClassDef):
        raise DiagnosticError.not_a_union(
            site.name, site.kind, site.directive_line, site.directive_column
        )

    if site.directive is not None and directive_args(site.directive):
        raise DiagnosticError.invalid_option(
            site.name,
            "the union directive takes no options",
            site.directive_line,
            site.directive_column,
        )

    variants = [
        _extract_variant(d)
        for d in declarations
        if d.kind == "class" and d.name != site.name and site.name in d.bases
    ]
    if not variants:
        raise DiagnosticError.not_a_union(
            site.name, "single-shape record", site.directive_line, site.directive_column
        )

    type_vars = frozenset(d.name for d in declarations if d.kind == "type_var")
    return TaggedUnionDescriptor(
        name=site.name,
        generics=extract_generics(site.node, type_vars),
        variants=tuple(variants),
        line=site.line,
        column=site.directive_column,
    )


def extract_unions(module: cst.Module) -> list[TaggedUnionDescriptor | DiagnosticError]:
    """Extract every union in a module, keeping failures as values."""
    declarations = collect_declarations(module)
    results: list[TaggedUnionDescriptor | DiagnosticError] = []
    for site in invocation_sites(declarations):
        try:
            results.append(extract_union(site, declarations))
        except DiagnosticError as e:
            results.append(e)
    return results


def _extract_variant(declaration: Declaration) -> VariantDescriptor:
    status = None
    if declaration.directive is not None:
        status = _variant_status(declaration, declaration.directive)
    return VariantDescriptor(
        name=declaration.name,
        shape=extract_shape(ensure_type(declaration.node, cst.ClassDef)),
        status=status,
        line=declaration.line,
    )


def _variant_status(
    declaration: Declaration, directive: cst.Decorator
) -> StatusExpression | None:
    status: StatusExpression | None = None
    seen: set[str] = set()

    for arg in directive_args(directive):
        if arg.keyword is None or arg.star:
            raise DiagnosticError.invalid_option(
                declaration.name,
                "options must be passed by keyword",
                declaration.directive_line,
                declaration.directive_column,
            )
        key = arg.keyword.value
        if key not in VARIANT_OPTIONS:
            raise DiagnosticError.invalid_option(
                declaration.name,
                f"unknown option `{key}`, expected `status`",
                declaration.directive_line,
                declaration.directive_column,
            )
        if key in seen:
            raise DiagnosticError.invalid_option(
                declaration.name,
                f"duplicate option `{key}`",
                declaration.directive_line,
                declaration.directive_column,
            )
        seen.add(key)
        status = StatusExpression.from_node(arg.value)

    return status


def extract_generics(
    node: cst.ClassDef, type_vars: frozenset[str] = frozenset()
) -> GenericParameterList:
    """Read type parameters the way the interpreter orders them.

    An inline list wins, then an explicit `Generic[...]` base. Otherwise the
    module-level type variables used in subscripted bases are collected in
    order of first appearance, so `class Failure(Base[K, list[V]])` yields
    `K, V`.
    """
    if node.type_parameters is not None:
        params: list[str] = []
        for type_param in node.type_parameters.params:
            param = type_param.param
            if isinstance(param, cst.TypeVarTuple):
                params.append(f"*{param.name.value}")
            else:
                params.append(param.name.value)
        return GenericParameterList(params=tuple(params), inline=True)

    for arg in node.bases:
        value = arg.value
        if not isinstance(value, cst.Subscript):
            continue
        if _dotted_tail(value.value) != "Generic":
            continue
        module = cst.Module(body=[])
        params = [
            module.code_for_node(element.slice)
            for element in value.slice
            if isinstance(element.slice, cst.Index)
        ]
        return GenericParameterList(params=tuple(params))

    inherited: list[str] = []
    for arg in node.bases:
        if isinstance(arg.value, cst.Subscript):
            _collect_type_vars(arg.value, type_vars, inherited)
    return GenericParameterList(params=tuple(inherited))


def _collect_type_vars(
    expr: cst.BaseExpression, type_vars: frozenset[str], found: list[str], star: bool = False
) -> None:
    if isinstance(expr, cst.Name):
        if expr.value in type_vars:
            param = f"*{expr.value}" if star else expr.value
            if param not in found:
                found.append(param)
        return
    if not isinstance(expr, cst.Subscript):
        return
    unpack = _dotted_tail(expr.value) == "Unpack"
    for element in expr.slice:
        if isinstance(element.slice, cst.Index):
            index = element.slice
            _collect_type_vars(
                index.value, type_vars, found, star=unpack or index.star is not None
            )


@dataclass
class _Field:
    name: str
    kw_only: bool = False
    init: bool = True
    init_var: bool = False


@dataclass
class _ClassBody:
    fields: list[_Field] = field(default_factory=list)
    match_args: int | None = None


def extract_shape(node: cst.ClassDef) -> Shape:
    """Classify a variant's payload from its class body."""
    dataclass_options = _dataclass_options(node.decorators)
    is_dataclass = dataclass_options is not None
    options = dataclass_options or {}

    body = _read_body(node.body, all_kw_only=_is_true(options.get("kw_only")))

    if body.match_args is not None:
        if body.match_args:
            return PositionalPayload(arity=body.match_args)
        return NamedPayload() if body.fields else NoPayload()

    if not body.fields:
        return NoPayload()

    if is_dataclass and not _is_false(options.get("match_args")):
        positional = _positional_arity(body.fields)
        if positional:
            return PositionalPayload(arity=positional)

    return NamedPayload()


def _positional_arity(fields: list[_Field]) -> int:
    """How many leading `__match_args__` entries are real instance attributes.

    `__match_args__` lists the positional `__init__` parameters. Init-only
    pseudo-fields are among them but never become attributes, so counting
    stops at the first one.
    """
    arity = 0
    for f in fields:
        if f.kw_only or not f.init:
            continue
        if f.init_var:
            break
        arity += 1
    return arity


def _read_body(body: cst.BaseSuite, all_kw_only: bool) -> _ClassBody:
    result = _ClassBody()
    kw_only = all_kw_only

    for stmt in _small_statements(body):
        if isinstance(stmt, cst.AnnAssign) and isinstance(stmt.target, cst.Name):
            name = stmt.target.value
            annotation = stmt.annotation.annotation
            if name == "__match_args__":
                result.match_args = _sequence_length(stmt.value)
                continue
            if _dotted_tail(annotation) == "KW_ONLY":
                kw_only = True
                continue
            if _is_classvar(annotation):
                continue
            result.fields.append(
                _Field(
                    name=name,
                    kw_only=kw_only or _field_flag(stmt.value, "kw_only", default=False),
                    init=_field_flag(stmt.value, "init", default=True),
                    init_var=_is_init_var(annotation),
                )
            )
        elif isinstance(stmt, cst.Assign):
            for target in stmt.targets:
                if isinstance(target.target, cst.Name) and target.target.value == "__match_args__":
                    result.match_args = _sequence_length(stmt.value)

    return result


def _small_statements(body: cst.BaseSuite) -> Iterator[cst.BaseSmallStatement]:
    if isinstance(body, cst.SimpleStatementSuite):
        yield from body.body
    elif isinstance(body, cst.IndentedBlock):
        for stmt in body.body:
            if isinstance(stmt, cst.SimpleStatementLine):
                yield from stmt.body


def _dataclass_options(decorators: Sequence[cst.Decorator]) -> dict[str, cst.BaseExpression] | None:
    """Keyword options of a `@dataclass` decorator, or None if there is none."""
    for decorator in decorators:
        expr = decorator.decorator
        args: Sequence[cst.Arg] = ()
        if isinstance(expr, cst.Call):
            args = expr.args
            expr = expr.func
        if _dotted_tail(expr) == "dataclass":
            return {arg.keyword.value: arg.value for arg in args if arg.keyword is not None}
    return None


def _field_flag(value: cst.BaseExpression | None, flag: str, default: bool) -> bool:
    """Read a literal boolean keyword from a `field(...)` call."""
    if not isinstance(value, cst.Call) or _dotted_tail(value.func) != "field":
        return default
    for arg in value.args:
        if arg.keyword is not None and arg.keyword.value == flag:
            if _is_true(arg.value):
                return True
            if _is_false(arg.value):
                return False
    return default


def _is_classvar(annotation: cst.BaseExpression) -> bool:
    if isinstance(annotation, cst.Subscript):
        annotation = annotation.value
    return _dotted_tail(annotation) == "ClassVar"


def _is_init_var(annotation: cst.BaseExpression) -> bool:
    if isinstance(annotation, cst.Subscript):
        annotation = annotation.value
    return _dotted_tail(annotation) == "InitVar"


def _sequence_length(value: cst.BaseExpression | None) -> int | None:
    if isinstance(value, cst.Tuple | cst.List):
        return len(value.elements)
    return None


def _is_true(expr: cst.BaseExpression | None) -> bool:
    return isinstance(expr, cst.Name) and expr.value == "True"


def _is_false(expr: cst.BaseExpression | None) -> bool:
    return isinstance(expr, cst.Name) and expr.value == "False"


def _dotted_tail(expr: cst.BaseExpression) -> str | None:
    """Last component of a Name or Attribute chain."""
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        return expr.attr.value
    return None


def _base_name(expr: cst.BaseExpression) -> str | None:
    """Name a base class is referred to by, with any subscript stripped."""
    if isinstance(expr, cst.Subscript):
        expr = expr.value
    if isinstance(expr, cst.Name):
        return expr.value
    return None
