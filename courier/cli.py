"""Command-line interface for courier."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

import httpx

from . import __version__
from .api import request
from .config import LOG_FILE_SETTING, TIMEOUT_SETTING, float_setting, load_environment, setting
from .exceptions import CourierError
from .logging_utils import configure_logging
from .models import HTTPMethod, Response


def _header(value: str) -> tuple[str, str]:
    name, sep, content = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError("Headers must look like 'Name: value'")
    return name.strip(), content.strip()


def _timeout(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError("Timeout must be a positive number of seconds")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="courier",
        description="Send a single HTTP request and print the response body.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "method",
        type=str.upper,
        choices=[method.value for method in HTTPMethod],
        help="HTTP method",
    )
    parser.add_argument("url", help="Absolute http:// or https:// URL")
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        action="append",
        type=_header,
        default=[],
        help="Request header as 'Name: value' (repeatable)",
    )
    payload = parser.add_mutually_exclusive_group()
    payload.add_argument("-d", "--data", help="Request body sent as UTF-8 text")
    payload.add_argument("--data-file", type=Path, help="Read the request body from a file")
    parser.add_argument(
        "--timeout",
        type=_timeout,
        help=f"Idle timeout in seconds (default: ${TIMEOUT_SETTING} or none)",
    )
    parser.add_argument("-i", "--include", action="store_true", help="Print the status line and headers")
    parser.add_argument("--json", action="store_true", help="Parse the body as JSON and pretty-print it")
    parser.add_argument("--encoding", default="utf-8", help="Codec used to decode the body as text")
    parser.add_argument("--log-json", action="store_true", help="Emit structured JSON logs to the log file")
    parser.add_argument("--log-file", type=Path, help="Write logs to the specified path")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Reduce logging output")
    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(None if argv is None else list(argv))


def configure_cli_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logfile = args.log_file or setting(LOG_FILE_SETTING)
    configure_logging(level=level, json_logs=args.log_json, logfile=logfile)


def render_head(response: Response) -> str:
    status_line = f"HTTP {response.status_code}"
    if response.status_message:
        status_line = f"{status_line} {response.status_message}"
    lines = [status_line]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    return "\n".join(lines) + "\n"


async def fetch(args: argparse.Namespace, timeout: Optional[float] = None) -> tuple[Response, str]:
    body: Optional[bytes | str] = args.data
    if args.data_file is not None:
        body = args.data_file.read_bytes()

    response = await request(
        args.method,
        args.url,
        dict(args.headers),
        body,
        timeout=timeout,
    )
    if args.json:
        rendered = json.dumps(await response.json(), indent=2, ensure_ascii=False)
    else:
        rendered = await response.text(args.encoding)
    return response, rendered


def main(argv: Optional[Iterable[str]] = None) -> int:
    load_environment()
    args = parse_args(argv)

    configure_cli_logging(args)
    logger = logging.getLogger("courier.cli")

    try:
        timeout = args.timeout if args.timeout is not None else float_setting(TIMEOUT_SETTING)
    except RuntimeError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    try:
        response, rendered = asyncio.run(fetch(args, timeout))
    except (CourierError, OSError, httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Request failed: %s", exc)
        return 1
    except (ValueError, LookupError) as exc:
        logger.error("Unable to decode response body: %s", exc)
        return 1

    if args.include:
        sys.stdout.write(render_head(response) + "\n")
    sys.stdout.write(rendered)
    if rendered and not rendered.endswith("\n"):
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
