"""
Runner — top-level orchestration: arguments → compile → package.

The pipeline is strictly linear and fail-fast:

    CONFIGURED → COMPILED → PACKAGED

The first error propagates out of ``run_pipeline`` and no later step
runs.  ``main`` is the console entry point and the only place errors
become exit codes.
"""
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from unicorn_image.config import Settings, settings as default_settings
from unicorn_image.core.arguments import BuildConfig, parse_arguments
from unicorn_image.core.compiler import CompileResult, compile_firmware
from unicorn_image.core.elf_reader import sha256_file
from unicorn_image.core.errors import ImagerError
from unicorn_image.core.packager import PackageResult, package
from unicorn_image.core.toolchain import ToolRun, capture_toolchain
from unicorn_image.io.schema import (
    ArtifactMeta,
    ExecutableMeta,
    ImageReceipt,
    JobInfo,
    PhaseRecord,
    RequestedConfig,
    now_iso,
)
from unicorn_image.io.writer import write_receipt
from unicorn_image.policy.profile import ImageProfile

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    CONFIGURED = "CONFIGURED"
    COMPILED = "COMPILED"
    PACKAGED = "PACKAGED"
    FAILED = "FAILED"


@dataclass
class PipelineResult:
    """Everything a successful run produced."""
    config: BuildConfig
    state: PipelineState
    compiled: CompileResult
    packaged: PackageResult
    receipt: Optional[ImageReceipt] = None

    @property
    def artifact(self):
        return self.packaged.artifact

    @property
    def runs(self) -> List[ToolRun]:
        runs = [self.compiled.run]
        if self.packaged.run is not None:
            runs.append(self.packaged.run)
        return runs


def _phase(run: ToolRun) -> PhaseRecord:
    return PhaseRecord(
        command=run.command_str,
        exit_code=run.exit_code,
        duration_ms=run.duration_ms,
    )


def build_receipt(
    config: BuildConfig,
    compiled: CompileResult,
    packaged: PackageResult,
    settings: Settings,
    created_at: str,
) -> ImageReceipt:
    """Assemble the receipt for a completed run."""
    meta = packaged.elf_meta
    artifact = packaged.artifact
    return ImageReceipt(
        job=JobInfo(
            created_at=created_at,
            finished_at=now_iso(),
            state=PipelineState.PACKAGED.value,
        ),
        requested=RequestedConfig(
            target_triple=config.target_triple,
            mode=config.mode.value,
            output_format=config.output_format.value,
        ),
        toolchain=capture_toolchain(settings),
        compile=_phase(compiled.run),
        package=_phase(packaged.run) if packaged.run is not None else None,
        executable=ExecutableMeta(
            path=meta.path,
            sha256=meta.file_sha256,
            size_bytes=meta.file_size,
            elf_class=meta.elf_class,
            machine=meta.machine,
            elf_type=meta.elf_type,
            entry_point=hex(meta.entry_point),
            build_id=meta.build_id,
            verdict=packaged.verdict.value,
            reasons=packaged.reasons,
        ),
        artifact=ArtifactMeta(
            path=str(artifact),
            format=packaged.output_format.value,
            sha256=sha256_file(artifact),
            size_bytes=artifact.stat().st_size,
        ),
    )


def run_pipeline(
    config: BuildConfig,
    settings: Optional[Settings] = None,
    profile: Optional[ImageProfile] = None,
) -> PipelineResult:
    """
    Compile and package the firmware image.

    Parameters
    ----------
    config : BuildConfig
        Parsed command-line configuration.
    settings : Settings, optional
        Defaults to the environment-derived module settings.
    profile : ImageProfile, optional
        Defaults to ImageProfile.v0().

    Raises
    ------
    ImagerError
        The first failure, unmodified.  No cleanup is attempted.
    """
    if settings is None:
        settings = default_settings
    if profile is None:
        profile = ImageProfile.v0()

    created_at = now_iso()
    state = PipelineState.CONFIGURED
    logger.debug(f"Pipeline {state.value}: {config}")

    # ── Step 1: compile ──────────────────────────────────────────────
    compiled = compile_firmware(config, settings, profile)
    state = PipelineState.COMPILED

    # ── Step 2: package ──────────────────────────────────────────────
    packaged = package(compiled.executable, config, settings, profile)
    state = PipelineState.PACKAGED

    result = PipelineResult(
        config=config,
        state=state,
        compiled=compiled,
        packaged=packaged,
    )

    # ── Step 3: optional receipt ─────────────────────────────────────
    if config.receipt_path is not None:
        result.receipt = build_receipt(config, compiled, packaged, settings, created_at)
        write_receipt(result.receipt, config.receipt_path)
        logger.info(f"Receipt saved: {config.receipt_path}")

    return result


def main(
    argv: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
) -> int:
    """Console entry point. Returns the process exit code."""
    if argv is None:
        argv = sys.argv[1:]

    verbose = "-v" in argv or "--verbose" in argv
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = parse_arguments(argv, settings)
        result = run_pipeline(config, settings)
    except ImagerError as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        logger.error(
            f"Pipeline {PipelineState.FAILED.value}, exiting with status {e.exit_code}"
        )
        return e.exit_code

    print(result.artifact)
    return 0


if __name__ == "__main__":
    sys.exit(main())
