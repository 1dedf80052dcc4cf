"""
Packager — turn the compiled executable into the deployable artifact.

Two formats, exactly one artifact per run:
  - bin: objcopy -O binary, leaving only loadable bytes at their layout
  - elf: byte-for-byte copy of the executable

The output directory is created on demand and existing artifacts are
overwritten.  Nothing else in the directory is touched.
"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from elftools.common.exceptions import ELFError

from unicorn_image.config import Settings
from unicorn_image.core.arguments import BuildConfig, OutputFormat
from unicorn_image.core.elf_reader import ElfMeta, read_elf
from unicorn_image.core.errors import ConversionError, FilesystemError
from unicorn_image.core.toolchain import ToolRun, run_tool
from unicorn_image.policy.profile import ImageProfile
from unicorn_image.policy.verdict import Verdict, gate_executable

logger = logging.getLogger(__name__)


@dataclass
class PackageResult:
    """Outcome of a successful package step."""
    artifact: Path
    output_format: OutputFormat
    elf_meta: ElfMeta
    verdict: Verdict
    reasons: List[str] = field(default_factory=list)
    run: Optional[ToolRun] = None  # objcopy run, bin format only


def ensure_output_dir(output_dir: Path) -> Path:
    """
    Create *output_dir* if missing. Safe to call when it already exists.

    Raises
    ------
    FilesystemError
        On permission errors, or if the path exists as a file.
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create output directory {output_dir}: {e}") from e
    return output_dir


def inspect_executable(executable: Path, profile: ImageProfile):
    """
    Read and gate the executable.

    Returns (ElfMeta, Verdict, reasons).

    Raises
    ------
    ConversionError
        If the executable cannot be read as ELF.
    """
    try:
        meta = read_elf(executable)
    except (ELFError, OSError) as e:
        _, reasons = gate_executable(None, profile)
        raise ConversionError(
            f"{executable} is not a valid ELF executable ({', '.join(reasons)}): {e}"
        ) from e

    verdict, reasons = gate_executable(meta, profile)
    if verdict == Verdict.WARN:
        logger.warning(
            f"Executable {executable} does not match profile "
            f"{profile.profile_id}: {', '.join(reasons)}"
        )
    return meta, verdict, reasons


def convert_to_binary(
    executable: Path,
    artifact: Path,
    settings: Settings,
) -> ToolRun:
    """
    Strip the ELF container with objcopy.

    Raises
    ------
    ConversionError
        If objcopy is missing, fails, or writes an empty image.
    """
    cmd = [settings.OBJCOPY, "-O", "binary", str(executable), str(artifact)]
    run = run_tool(cmd, ConversionError, timeout=settings.TOOL_TIMEOUT)

    if not artifact.is_file() or artifact.stat().st_size == 0:
        raise ConversionError(f"{settings.OBJCOPY} produced an empty image: {artifact}")
    return run


def copy_executable(executable: Path, artifact: Path) -> None:
    """
    Copy the ELF verbatim.

    Raises
    ------
    FilesystemError
        If the copy fails.
    """
    try:
        shutil.copyfile(executable, artifact)
    except OSError as e:
        raise FilesystemError(f"Cannot write {artifact}: {e}") from e


def package(
    executable: Path,
    config: BuildConfig,
    settings: Settings,
    profile: ImageProfile,
) -> PackageResult:
    """
    Package *executable* into ``settings.OUTPUT_DIR`` per the config.

    Raises
    ------
    FilesystemError
        If the output directory or the ELF copy cannot be written.
    ConversionError
        If the executable is not ELF or objcopy fails.
    """
    output_dir = ensure_output_dir(settings.OUTPUT_DIR)
    meta, verdict, reasons = inspect_executable(executable, profile)

    artifact = output_dir / config.output_format.artifact_name(profile.artifact_stem)
    run: Optional[ToolRun] = None

    if config.output_format == OutputFormat.BIN:
        run = convert_to_binary(executable, artifact, settings)
    else:
        copy_executable(executable, artifact)

    logger.info(f"Artifact written: {artifact} ({artifact.stat().st_size} bytes)")
    return PackageResult(
        artifact=artifact,
        output_format=config.output_format,
        elf_meta=meta,
        verdict=verdict,
        reasons=reasons,
        run=run,
    )
