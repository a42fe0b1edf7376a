"""Synthesize HTTP response conversion for tagged-union failure types.

Only the runtime directive is exported here. The generator itself lives in
`httperr.expander` and is driven from the `httperr` command line.
"""

from httperr.markers import http_error

__version__ = "0.1.0"

__all__ = ["http_error", "__version__"]
