"""Typed enums for http_error code generation.

Centralizes all enum types to prevent magic string comparisons throughout the codebase.
All enums inherit from (str, Enum) to support JSON serialization and string comparison.
"""

from enum import Enum


class ShapeKind(str, Enum):
    """Payload shape of a tagged-union variant."""

    NO_PAYLOAD = "no_payload"
    POSITIONAL = "positional"
    NAMED = "named"


class DiagnosticKind(str, Enum):
    """Kinds of build-time diagnostics reported at the directive site."""

    NOT_A_UNION = "not_a_union"
    INVALID_OPTION = "invalid_option"
    NAME_CONFLICT = "name_conflict"
    PARSE_ERROR = "parse_error"


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    JSON = "json"
    TEXT = "text"
