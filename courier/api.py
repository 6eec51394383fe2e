"""The :func:`request` coroutine."""

from __future__ import annotations

import base64
import logging
import ssl
from typing import Dict, Mapping, Optional, Union
from urllib.parse import ParseResult, SplitResult, unquote, urlsplit

import httpx

from .exceptions import InvalidURL, RequestTimeout
from .models import Body, HTTPMethod, Request, Response, encode_body
from .transport import select_transport

LOGGER = logging.getLogger(__name__)

URL = Union[str, SplitResult, ParseResult]


def parse_url(url: URL) -> SplitResult:
    """Return ``url`` as a :class:`~urllib.parse.SplitResult`.

    Strings are split first; pre-parsed values are checked as they are. Every
    URL must carry a scheme and a host, and any port must be a valid number.
    """

    try:
        if isinstance(url, SplitResult):
            parsed = url
        elif isinstance(url, ParseResult):
            parsed = urlsplit(url.geturl())
        else:
            parsed = urlsplit(url)
        parsed.port  # raises ValueError for a malformed port
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidURL(f"Invalid URL {url!r}: {exc}") from exc
    if not parsed.scheme or not parsed.hostname:
        raise InvalidURL(f"Invalid URL {url!r}: scheme and host are required")
    return parsed


def with_url_credentials(headers: Mapping[str, str], target: SplitResult) -> Dict[str, str]:
    """Turn ``user:password@`` in the URL into a Basic ``Authorization`` header.

    An ``Authorization`` header supplied by the caller always wins.
    """

    merged = dict(headers)
    if not (target.username or target.password):
        return merged
    if any(name.lower() == "authorization" for name in merged):
        return merged
    credentials = f"{unquote(target.username or '')}:{unquote(target.password or '')}"
    token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
    merged["Authorization"] = f"Basic {token}"
    return merged


async def request(
    method: Union[HTTPMethod, str],
    url: URL,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[Body] = None,
    *,
    timeout: Optional[float] = None,
    context: Optional[ssl.SSLContext] = None,
) -> Response:
    """Send one request and return as soon as the response headers arrive.

    ``timeout`` is the transport idle timeout in seconds and ``context`` the
    TLS context used for ``https`` URLs. Transport errors propagate unchanged;
    an elapsed timeout aborts the request and raises
    :class:`~courier.exceptions.RequestTimeout`.
    """

    target = parse_url(url)
    outgoing = Request(
        method=HTTPMethod.coerce(method),
        target=target,
        headers=with_url_credentials(headers or {}, target),
        body=encode_body(body),
    )
    transport = select_transport(outgoing.target, timeout=timeout, context=context)
    client = transport.open(outgoing.target)

    fields = {"http_method": outgoing.method.value, "url": outgoing.url}
    LOGGER.debug("%s %s via %r", outgoing.method.value, outgoing.url, transport, extra=fields)
    if outgoing.headers:
        LOGGER.debug("Request headers: %s", outgoing.headers)
    try:
        pending = client.build_request(
            outgoing.method.value,
            outgoing.url,
            headers=outgoing.headers,
            content=outgoing.body,
        )
        incoming = await client.send(pending, stream=True)
    except httpx.TimeoutException as exc:
        await client.aclose()
        raise RequestTimeout() from exc
    except BaseException:
        await client.aclose()
        raise

    LOGGER.debug(
        "Response: %s %s",
        incoming.status_code,
        incoming.reason_phrase,
        extra={**fields, "status_code": incoming.status_code},
    )
    return Response.from_incoming(incoming, release=client.aclose)


__all__ = ["URL", "parse_url", "request", "with_url_credentials"]
