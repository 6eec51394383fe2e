"""Single-request HTTP client with buffered, awaitable response bodies."""

from __future__ import annotations

from .api import parse_url, request
from .exceptions import (
    CourierError,
    InvalidURL,
    RequestTimeout,
    UnsupportedMethod,
    UnsupportedScheme,
)
from .models import HTTPMethod, Request, Response

__all__ = [
    "CourierError",
    "HTTPMethod",
    "InvalidURL",
    "Request",
    "RequestTimeout",
    "Response",
    "UnsupportedMethod",
    "UnsupportedScheme",
    "__version__",
    "parse_url",
    "request",
]

# Semantic version for package consumers.
__version__ = "0.1.0"
