"""Errors raised by courier itself.

Transport, decoding and JSON errors are never wrapped; they reach the caller
exactly as the underlying library raised them.
"""


class CourierError(Exception):
    """Base error for failures detected by courier."""


class InvalidURL(CourierError, ValueError):
    """The request URL could not be parsed."""


class UnsupportedMethod(CourierError, ValueError):
    """The HTTP method is not one of the recognised verbs."""


class UnsupportedScheme(CourierError, ValueError):
    """A transport was asked to open a URL with a scheme it cannot speak."""


class RequestTimeout(CourierError, TimeoutError):
    """No response arrived before the transport idle timeout elapsed."""

    def __init__(self, message: str = "TIMEOUT: Request timed out") -> None:
        super().__init__(message)
