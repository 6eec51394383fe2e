"""Configuration helpers and .env loading for courier."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

DEFAULT_ENV_FILES: tuple[Path, ...] = (
    Path(".env"),
    Path("config/.env"),
)

TIMEOUT_SETTING = "COURIER_TIMEOUT"
LOG_FILE_SETTING = "COURIER_LOG_FILE"


@lru_cache(maxsize=1)
def load_environment(*, extra_files: Iterable[Path] | None = None) -> dict[str, str]:
    """Load environment variables from .env files once per process."""

    candidates = list(DEFAULT_ENV_FILES)
    if extra_files:
        candidates = [*candidates, *extra_files]

    for path in candidates:
        try:
            if path.exists():
                load_dotenv(path, override=False)
        except OSError:
            continue

    load_dotenv(override=False)
    return dict(os.environ)


def setting(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def float_setting(name: str, default: Optional[float] = None) -> Optional[float]:
    value = setting(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable '{name}' must be a number, got {value!r}") from exc


__all__ = [
    "DEFAULT_ENV_FILES",
    "LOG_FILE_SETTING",
    "TIMEOUT_SETTING",
    "float_setting",
    "load_environment",
    "setting",
]
