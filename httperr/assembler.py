"""Assemble dispatch arms into the conversion method of a union."""

from collections.abc import Sequence

import libcst as cst
from libcst.helpers import ensure_type

from httperr.config import HttpErrorConfig
from httperr.diagnostics import GenerationInvariantError
from httperr.models import (
    DispatchArm,
    GeneratedFunction,
    ImportRequirement,
    TaggedUnionDescriptor,
)

GENERATED_MARKER = "# @generated by httperr; do not edit"


def is_generated_method(stmt: cst.BaseStatement, method_name: str) -> bool:
    """Whether a class-body statement is a method emitted by an earlier expansion."""
    if not isinstance(stmt, cst.FunctionDef) or stmt.name.value != method_name:
        return False
    return any(
        line.comment is not None and line.comment.value == GENERATED_MARKER
        for line in stmt.leading_lines
    )


def _self_param(union: TaggedUnionDescriptor) -> str:
    if not union.generics:
        return "self"
    return f'self: "{union.generics.subscript(union.name)}"'


def required_imports(
    arms: Sequence[DispatchArm], config: HttpErrorConfig
) -> tuple[ImportRequirement, ...]:
    """Imports the assembled method relies on, in a stable order."""
    response_module, response_name = config.response_import
    imports = [ImportRequirement(module=response_module, obj=response_name)]
    if any(arm.unclassified for arm in arms):
        status_module, status_name = config.status_import
        imports.append(ImportRequirement(module="logging"))
        imports.append(ImportRequirement(module=status_module, obj=status_name))
    return tuple(imports)


def assemble_function(
    union: TaggedUnionDescriptor,
    arms: Sequence[DispatchArm],
    config: HttpErrorConfig,
) -> GeneratedFunction:
    """Wrap the arms in one exhaustive `match self:` method.

    Raises:
        GenerationInvariantError: if the arms do not line up with the variants.
    """
    if not arms or len(arms) != len(union.variants):
        raise GenerationInvariantError(
            f"{union.name}: {len(arms)} arms for {len(union.variants)} variants"
        )
    if [arm.variant for arm in arms] != [v.name for v in union.variants]:
        raise GenerationInvariantError(f"{union.name}: arms out of declaration order")

    response_name = config.response_import[1]
    function = ensure_type(
        cst.parse_statement(
            f"def {config.method_name}({_self_param(union)}) -> {response_name}:\n"
            f'    """Convert this {union.name} into an HTTP response."""\n'
            f'    raise TypeError(f"{{type(self).__name__}} is not a variant of {union.name}")\n'
        ),
        cst.FunctionDef,
    )
    body = ensure_type(function.body, cst.IndentedBlock)
    docstring, fallback = body.body
    dispatch = cst.Match(subject=cst.Name("self"), cases=[arm.case for arm in arms])

    function = function.with_changes(
        body=body.with_changes(body=[docstring, dispatch, fallback]),
        leading_lines=[
            cst.EmptyLine(indent=False),
            cst.EmptyLine(comment=cst.Comment(GENERATED_MARKER)),
        ],
    )
    return GeneratedFunction(
        union=union.name,
        node=function,
        imports=required_imports(arms, config),
    )
