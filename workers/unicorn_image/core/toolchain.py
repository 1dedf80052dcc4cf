"""
Toolchain — run external tools and record what ran.

Tools inherit the caller's stdout/stderr, so compiler diagnostics reach the
user exactly as the tool printed them.  This module only decides whether a
run failed and which error class that failure maps to.
"""
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type

from unicorn_image.config import Settings
from unicorn_image.core.errors import ImagerError
from unicorn_image.io.schema import ToolchainIdentity

logger = logging.getLogger(__name__)

# Conventional shell status for "command not found"
EXIT_NOT_FOUND = 127


@dataclass
class ToolRun:
    """Record of one external process invocation."""
    command: List[str]
    exit_code: int
    duration_ms: int
    cwd: Optional[str] = None

    @property
    def command_str(self) -> str:
        return " ".join(self.command)


def run_tool(
    cmd: List[str],
    error_cls: Type[ImagerError],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
) -> ToolRun:
    """
    Run *cmd* to completion and return its ToolRun.

    Blocks until the process exits unless *timeout* is set.

    Raises
    ------
    error_cls
        If the tool is missing, times out, or exits non-zero.  The
        exception carries the tool's exit status.
    """
    cmd_str = " ".join(cmd)
    logger.info(f"Running: {cmd_str}")

    t0 = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise error_cls(f"Tool not found: {cmd[0]}", exit_code=EXIT_NOT_FOUND) from e
    except PermissionError as e:
        raise error_cls(f"Tool not executable: {cmd[0]} ({e})", exit_code=126) from e
    except subprocess.TimeoutExpired as e:
        raise error_cls(f"{cmd[0]} timed out after {timeout}s") from e
    duration = int((time.monotonic() - t0) * 1000)

    run = ToolRun(
        command=list(cmd),
        exit_code=result.returncode,
        duration_ms=duration,
        cwd=str(cwd) if cwd is not None else None,
    )
    if result.returncode != 0:
        raise error_cls(
            f"{cmd[0]} exited with status {result.returncode}",
            exit_code=result.returncode,
        )

    logger.debug(f"{cmd[0]} finished in {duration} ms")
    return run


# =============================================================================
# Toolchain identity (best-effort, cached per tool set)
# =============================================================================

_cached_identity: Dict[Tuple[str, str], ToolchainIdentity] = {}


def _first_line(cmd: List[str], timeout: int = 5) -> str:
    """First line of a command's stdout, or "unknown" if it cannot run."""
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired):
        return "unknown"
    lines = r.stdout.strip().splitlines()
    return lines[0] if lines else "unknown"


def capture_toolchain(settings: Settings) -> ToolchainIdentity:
    """Record tool versions for the receipt. Never fails the build."""
    key = (settings.CARGO, settings.OBJCOPY)
    if key in _cached_identity:
        return _cached_identity[key]

    identity = ToolchainIdentity(
        cargo_version=_first_line([settings.CARGO, "--version"]),
        rustc_version=_first_line(["rustc", "--version"]),
        objcopy_version=_first_line([settings.OBJCOPY, "--version"]),
        host=os.uname().machine if hasattr(os, "uname") else "unknown",
    )
    _cached_identity[key] = identity
    return identity
