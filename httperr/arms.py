"""Build one `match` case per union variant.

Each case matches the variant by class, ignoring its payload, and returns a
JSON response built from the variant's status. Variants without an explicit
status fall back to the internal-server-error status and, outside debug
builds, log the failure and redact its message.
"""

from typing import assert_never

import libcst as cst
from libcst.helpers import parse_template_statement

from httperr.config import HttpErrorConfig
from httperr.models import (
    DispatchArm,
    NamedPayload,
    NoPayload,
    PositionalPayload,
    Shape,
    StatusExpression,
    VariantDescriptor,
)

REDACTED_MESSAGE = "Internal server error"
LOG_MESSAGE = "internal server error: %s"


def effective_status(variant: VariantDescriptor, config: HttpErrorConfig) -> StatusExpression:
    """The variant's own status, or the configured internal-server-error default."""
    if variant.status is not None:
        return variant.status
    return StatusExpression.parse(config.default_status)


def build_pattern(name: str, shape: Shape) -> cst.MatchClass:
    """Class pattern matching a variant while ignoring every field."""
    match shape:
        case NoPayload() | NamedPayload():
            patterns: list[cst.MatchSequenceElement] = []
        case PositionalPayload(arity=arity):
            patterns = [cst.MatchSequenceElement(value=cst.MatchAs()) for _ in range(arity)]
        case _:
            assert_never(shape)
    return cst.MatchClass(cls=cst.Name(name), patterns=patterns)


def _string(value: str) -> cst.SimpleString:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return cst.SimpleString(f'"{escaped}"')


def _str_self() -> cst.Call:
    return cst.Call(func=cst.Name("str"), args=[cst.Arg(cst.Name("self"))])


def _body(status: StatusExpression, message: cst.BaseExpression) -> cst.Dict:
    """The `{"code": ..., "message": ...}` envelope."""
    code = cst.Call(func=cst.Name("int"), args=[cst.Arg(status.node.deep_clone())])
    return cst.Dict(
        elements=[
            cst.DictElement(key=_string("code"), value=code),
            cst.DictElement(key=_string("message"), value=message),
        ]
    )


def _logger(config: HttpErrorConfig) -> cst.BaseExpression:
    name = _string(config.logger_name) if config.logger_name else cst.Name("__name__")
    return cst.Call(
        func=cst.Attribute(value=cst.Name("logging"), attr=cst.Name("getLogger")),
        args=[cst.Arg(name)],
    )


def _return(status: StatusExpression, config: HttpErrorConfig) -> cst.BaseStatement:
    return parse_template_statement(
        "return {response}(body, status_code={status})\n",
        response=cst.Name(config.response_import[1]),
        status=status.node.deep_clone(),
    )


def _classified_body(
    status: StatusExpression, config: HttpErrorConfig
) -> list[cst.BaseStatement]:
    return [
        parse_template_statement("body = {body}\n", body=_body(status, _str_self())),
        _return(status, config),
    ]


def _unclassified_body(
    status: StatusExpression, config: HttpErrorConfig
) -> list[cst.BaseStatement]:
    extra = cst.Dict(elements=[cst.DictElement(key=_string("error"), value=_str_self())])
    branch = parse_template_statement(
        "if not __debug__:\n"
        "    {logger}.error({message}, self, extra={extra})\n"
        "    body = {redacted}\n"
        "else:\n"
        "    body = {shown}\n",
        logger=_logger(config),
        message=_string(LOG_MESSAGE),
        extra=extra,
        redacted=_body(status, _string(REDACTED_MESSAGE)),
        shown=_body(status, _str_self()),
    )
    return [branch, _return(status, config)]


def synthesize_arm(variant: VariantDescriptor, config: HttpErrorConfig) -> DispatchArm:
    """Build the dispatch case for one variant."""
    status = effective_status(variant, config)
    if variant.is_unclassified:
        statements = _unclassified_body(status, config)
    else:
        statements = _classified_body(status, config)

    case = cst.MatchCase(
        pattern=build_pattern(variant.name, variant.shape),
        body=cst.IndentedBlock(body=statements),
    )
    return DispatchArm(variant=variant.name, case=case, unclassified=variant.is_unclassified)
