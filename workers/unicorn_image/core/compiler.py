"""
Compiler — run the cargo cross build and locate the executable.

cargo is always given an explicit ``--target-dir`` so the executable ends
up at a path derived only from the target root, triple and build mode:

    <target_root>/<triple>/<debug|release>/<binary_name>
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from unicorn_image.config import Settings
from unicorn_image.core.arguments import BuildConfig, OutputFormat
from unicorn_image.core.errors import ConfigurationError, ToolchainError
from unicorn_image.core.toolchain import ToolRun, run_tool
from unicorn_image.policy.profile import ImageProfile

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Outcome of a successful compile step."""
    executable: Path
    target_root: Path
    run: ToolRun


def resolve_target_root(config: BuildConfig, settings: Settings) -> Path:
    """
    Return the absolute build output root cargo writes into.

    ELF packaging requires ``UNICORN_TARGET_DIR``.  Raw binary packaging
    falls back to the workspace target dir relative to the project.

    Raises
    ------
    ConfigurationError
        If the root is required but unset, or points at a non-directory.
    """
    if settings.TARGET_DIR is not None:
        root = settings.TARGET_DIR
        if root.exists() and not root.is_dir():
            raise ConfigurationError(
                f"UNICORN_TARGET_DIR is not a directory: {root}"
            )
        return root.absolute()

    if config.output_format == OutputFormat.ELF:
        raise ConfigurationError(
            "UNICORN_TARGET_DIR must be set to locate the compiled executable"
        )

    return (settings.PROJECT_DIR / settings.WORKSPACE_TARGET_DIR).absolute()


def executable_path(
    target_root: Path,
    config: BuildConfig,
    profile: ImageProfile,
) -> Path:
    return target_root / config.target_triple / config.mode.profile_dir / profile.binary_name


def cargo_command(
    config: BuildConfig,
    settings: Settings,
    target_root: Path,
) -> List[str]:
    return (
        [settings.CARGO, "build"]
        + config.mode.cargo_flags()
        + ["--target", config.target_triple, "--target-dir", str(target_root)]
    )


def compile_firmware(
    config: BuildConfig,
    settings: Settings,
    profile: ImageProfile,
) -> CompileResult:
    """
    Cross-compile the crate in ``settings.PROJECT_DIR``.

    The target root is resolved before cargo is started, so configuration
    errors never cost a build.

    Raises
    ------
    ConfigurationError
        If the target root cannot be resolved.
    ToolchainError
        If cargo is missing, fails, or leaves no executable behind.
    """
    if not settings.PROJECT_DIR.is_dir():
        raise ConfigurationError(f"Project directory not found: {settings.PROJECT_DIR}")
    target_root = resolve_target_root(config, settings)
    cmd = cargo_command(config, settings, target_root)

    logger.info(
        f"Compiling {profile.binary_name} for {config.target_triple} "
        f"({config.mode.value})"
    )
    run = run_tool(
        cmd,
        ToolchainError,
        cwd=settings.PROJECT_DIR,
        timeout=settings.TOOL_TIMEOUT,
    )

    exe = executable_path(target_root, config, profile)
    if not exe.is_file():
        raise ToolchainError(f"Build succeeded but no executable at {exe}")

    logger.info(f"Compiled executable: {exe}")
    return CompileResult(executable=exe, target_root=target_root, run=run)
