"""Scheme-based transport selection on top of :mod:`httpx`."""

from __future__ import annotations

import ssl
from typing import Any, Dict, List, Optional, Union
from urllib.parse import SplitResult

import httpx

from .exceptions import UnsupportedScheme

RawHeaderValue = Union[str, List[str]]


class Transport:
    """Opens one dedicated client per request.

    ``timeout`` is the idle timeout in seconds applied to connecting, writing
    and each read; ``None`` waits forever. Clients never pool connections
    across calls and ignore proxy and netrc settings from the environment.
    """

    scheme = "http"

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def _transport_options(self) -> Dict[str, Any]:
        return {}

    def open(self, target: SplitResult) -> httpx.AsyncClient:
        if target.scheme != self.scheme:
            raise UnsupportedScheme(
                f"Protocol {target.scheme!r} not supported. Expected {self.scheme!r}"
            )
        return httpx.AsyncClient(
            transport=httpx.AsyncHTTPTransport(retries=0, **self._transport_options()),
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
            trust_env=False,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout!r})"


class PlainTransport(Transport):
    """Cleartext HTTP/1.1."""


class SecureTransport(Transport):
    """HTTP/1.1 over TLS, verified against ``context`` or the system defaults."""

    scheme = "https"

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        context: Optional[ssl.SSLContext] = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.context = context

    def _transport_options(self) -> Dict[str, Any]:
        return {"verify": self.context if self.context is not None else True}


def select_transport(
    target: SplitResult,
    *,
    timeout: Optional[float] = None,
    context: Optional[ssl.SSLContext] = None,
) -> Transport:
    """Pick the encrypted transport for ``https`` and the plain one otherwise.

    Unknown schemes are not rejected here; the plain transport refuses them
    when the client is opened.
    """

    if target.scheme == "https":
        return SecureTransport(timeout=timeout, context=context)
    return PlainTransport(timeout=timeout)


def fold_headers(headers: httpx.Headers) -> Dict[str, RawHeaderValue]:
    """Fold a received header block into lower-cased names.

    Names seen once map to their value, repeated names to the list of values
    in arrival order.
    """

    folded: Dict[str, RawHeaderValue] = {}
    for name, value in headers.multi_items():
        key = name.lower()
        existing = folded.get(key)
        if existing is None:
            folded[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            folded[key] = [existing, value]
    return folded


__all__ = [
    "PlainTransport",
    "RawHeaderValue",
    "SecureTransport",
    "Transport",
    "fold_headers",
    "select_transport",
]
