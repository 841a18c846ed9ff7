"""Utility functions for quickvm."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from quickvm.constants import _LOG_VERBOSE, INTEGER_RE
from quickvm.exceptions import ConfigError


def log(level: str, message: str) -> None:
    """Lightweight structured logging with coloured level prefixes."""
    if level == "DEBUG" and not _LOG_VERBOSE:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    stream = sys.stderr if level == "ERROR" else sys.stdout
    print(f"{colour}[{level}]{reset} {message}", file=stream, flush=True)


def parse_int_option(name: str, raw: Optional[str], min_val: int = 1, max_val: Optional[int] = None) -> int:
    """Validate a numeric command-line value; ``name`` is the option as typed."""
    if raw is None or not INTEGER_RE.fullmatch(raw):
        raise ConfigError(f"{name} must be an integer (got '{raw}')")
    value = int(raw)
    if value < min_val:
        raise ConfigError(f"{name} must be >= {min_val} (got {value})")
    if max_val is not None and value > max_val:
        raise ConfigError(f"{name} must be <= {max_val} (got {value})")
    return value


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def run(cmd: List[str], check: bool = True, **kwargs) -> subprocess.CompletedProcess:
    """Run command with logging."""
    log("DEBUG", f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, check=check, text=True, **kwargs)
    return result
