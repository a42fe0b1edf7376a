"""The `http_error` directive.

At runtime the directive does nothing: it hands the decorated class back
unchanged, so annotated modules import and run before they are expanded. The
expander recognizes it syntactically, either bare or called with options:

    @http_error
    class ApiError(Exception): ...

    @http_error(status=HTTPStatus.NOT_FOUND)
    class NotFound(ApiError): ...
"""

from collections.abc import Callable
from typing import Any, TypeVar, overload

T = TypeVar("T")

DIRECTIVE = "http_error"


@overload
def http_error(target: T, /) -> T: ...


@overload
def http_error(**options: Any) -> Callable[[T], T]: ...


def http_error(target: Any = None, /, **options: Any) -> Any:
    """Mark a failure union, or one of its variants, for expansion."""
    if target is None:

        def decorate(inner: T) -> T:
            return inner

        return decorate
    return target
