"""Data models for http_error code generation."""

from dataclasses import dataclass, field
from typing import assert_never

import libcst as cst

from httperr.enums import ShapeKind

__all__ = [
    "NoPayload",
    "PositionalPayload",
    "NamedPayload",
    "Shape",
    "shape_kind",
    "StatusExpression",
    "GenericParameterList",
    "VariantDescriptor",
    "TaggedUnionDescriptor",
    "DispatchArm",
    "ImportRequirement",
    "GeneratedFunction",
]


@dataclass(frozen=True)
class NoPayload:
    """A variant that carries no fields."""


@dataclass(frozen=True)
class PositionalPayload:
    """A variant whose fields are matched by position."""

    arity: int


@dataclass(frozen=True)
class NamedPayload:
    """A variant whose fields are only reachable by keyword."""


Shape = NoPayload | PositionalPayload | NamedPayload


def shape_kind(shape: Shape) -> ShapeKind:
    """Map a shape onto its enum tag for display and JSON output."""
    match shape:
        case NoPayload():
            return ShapeKind.NO_PAYLOAD
        case PositionalPayload():
            return ShapeKind.POSITIONAL
        case NamedPayload():
            return ShapeKind.NAMED
        case _:
            assert_never(shape)


@dataclass(frozen=True)
class StatusExpression:
    """A status-code expression exactly as written in the directive.

    The node is re-emitted verbatim; it is never evaluated.
    """

    node: cst.BaseExpression
    code: str

    @classmethod
    def from_node(cls, node: cst.BaseExpression) -> "StatusExpression":
        return cls(node=node, code=cst.Module(body=[]).code_for_node(node))

    @classmethod
    def parse(cls, code: str) -> "StatusExpression":
        return cls.from_node(cst.parse_expression(code))


@dataclass(frozen=True)
class GenericParameterList:
    """Type parameters of a union, kept as source text.

    Bounds and defaults stay on the original declaration (a TypeVar or an
    inline PEP 695 parameter); only the names travel into generated code.
    """

    params: tuple[str, ...] = ()
    inline: bool = False

    def __bool__(self) -> bool:
        return bool(self.params)

    def subscript(self, name: str) -> str:
        """Render `name[T, ...]`, or just `name` when there are no parameters."""
        if not self.params:
            return name
        return f"{name}[{', '.join(self.params)}]"


@dataclass(frozen=True)
class VariantDescriptor:
    """One declared case of a tagged union."""

    name: str
    shape: Shape
    status: StatusExpression | None = None
    line: int = 0

    @property
    def is_unclassified(self) -> bool:
        return self.status is None


@dataclass(frozen=True)
class TaggedUnionDescriptor:
    """A failure type declared with the http_error directive."""

    name: str
    generics: GenericParameterList = field(default_factory=GenericParameterList)
    variants: tuple[VariantDescriptor, ...] = ()
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class DispatchArm:
    """A single `case` of the generated match statement."""

    variant: str
    case: cst.MatchCase
    unclassified: bool


@dataclass(frozen=True)
class ImportRequirement:
    """An import the generated code relies on."""

    module: str
    obj: str | None = None


@dataclass(frozen=True)
class GeneratedFunction:
    """The conversion method synthesized for one union."""

    union: str
    node: cst.FunctionDef
    imports: tuple[ImportRequirement, ...] = ()

    @property
    def code(self) -> str:
        return cst.Module(body=[]).code_for_node(self.node)
