"""Request descriptor and the buffered response returned by :func:`courier.request`."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, Mapping, Optional, Union
from urllib.parse import SplitResult, urlunsplit

import httpx

from .exceptions import UnsupportedMethod
from .transport import fold_headers

LOGGER = logging.getLogger(__name__)

Body = Union[bytes, bytearray, str]
Release = Callable[[], Awaitable[None]]


class HTTPMethod(str, Enum):
    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    TRACE = "TRACE"
    PATCH = "PATCH"

    @classmethod
    def coerce(cls, value: Union["HTTPMethod", str]) -> "HTTPMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedMethod(f"Unsupported HTTP method: {value!r}") from None


@dataclass(frozen=True)
class Request:
    method: HTTPMethod
    target: SplitResult
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def url(self) -> str:
        """The target without userinfo; credentials travel as a header."""

        netloc = self.target.netloc.rpartition("@")[2]
        return urlunsplit(self.target._replace(netloc=netloc, fragment=""))


def encode_body(body: Optional[Body]) -> Optional[bytes]:
    """Return the bytes to write, or ``None`` when there is nothing to send."""

    if not body:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def normalize_headers(raw: Mapping[str, object]) -> Dict[str, str]:
    """Collapse raw header values into one string per name.

    Strings are kept, sequences of strings are joined with ``", "`` and any
    other shape becomes an empty string.
    """

    headers: Dict[str, str] = {}
    for name, value in raw.items():
        if isinstance(value, str):
            headers[name] = value
        elif isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            headers[name] = ", ".join(value)
        else:
            headers[name] = ""
    return headers


class Response:
    """Status and headers of a received response plus its buffered body.

    The body is drained exactly once, starting at construction. ``raw()``,
    ``text()`` and ``json()`` all await that single drain, so every call sees
    the same bytes or the same stream error no matter how often or in which
    order they are invoked. Must be created inside a running event loop.
    """

    def __init__(
        self,
        status_code: Optional[int],
        status_message: Optional[str],
        raw_headers: Mapping[str, object],
        chunks: AsyncIterable[bytes],
        *,
        release: Optional[Release] = None,
    ) -> None:
        self.status_code = status_code or 0
        self.status_message = status_message
        self.headers = normalize_headers(raw_headers)
        self._payload: asyncio.Task[bytes] = asyncio.get_running_loop().create_task(
            self._drain(chunks, release)
        )
        # Errors still surface through the accessors; this only marks them seen.
        self._payload.add_done_callback(_mark_retrieved)

    @classmethod
    def from_incoming(
        cls,
        incoming: httpx.Response,
        *,
        release: Optional[Release] = None,
    ) -> "Response":
        async def close() -> None:
            try:
                await incoming.aclose()
            finally:
                if release is not None:
                    await release()

        return cls(
            incoming.status_code,
            incoming.reason_phrase,
            fold_headers(incoming.headers),
            incoming.aiter_bytes(),
            release=close,
        )

    async def _drain(self, chunks: AsyncIterable[bytes], release: Optional[Release]) -> bytes:
        buffer = bytearray()
        try:
            async for chunk in chunks:
                buffer += chunk
        finally:
            if release is not None:
                await release()
        LOGGER.debug("Drained %d body bytes for %s response", len(buffer), self.status_code)
        return bytes(buffer)

    @property
    def drain_state(self) -> str:
        if not self._payload.done():
            return "draining"
        if self._payload.cancelled() or self._payload.exception() is not None:
            return "failed"
        return "complete"

    async def raw(self) -> bytes:
        return await self._payload

    async def text(self, encoding: str = "utf-8") -> str:
        payload = await self._payload
        return payload.decode(encoding, errors="replace")

    async def json(self) -> Any:
        """Parse the body as JSON; any top-level JSON value may come back."""

        payload = await self._payload
        return json.loads(payload.decode("utf-8", errors="replace"))

    def __repr__(self) -> str:
        message = f" {self.status_message}" if self.status_message else ""
        return f"<Response [{self.status_code}{message}]>"


def _mark_retrieved(task: "asyncio.Task[bytes]") -> None:
    if not task.cancelled():
        task.exception()


__all__ = [
    "Body",
    "HTTPMethod",
    "Release",
    "Request",
    "Response",
    "encode_body",
    "normalize_headers",
]
