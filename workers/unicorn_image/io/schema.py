"""
Schema — Pydantic models for the image build receipt.

One optional JSON document per run, recording exactly what was built,
with which tools, and what came out.  Written only after a successful
package step.

Runtime contract fields (present in every receipt):
  imager name/version, profile_id, schema_version.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from unicorn_image import IMAGER_NAME, IMAGER_VERSION, PROFILE_ID, SCHEMA_VERSION


class ImagerInfo(BaseModel):
    """Identifies the imager package."""
    name: str = IMAGER_NAME
    version: str = IMAGER_VERSION
    profile_id: str = PROFILE_ID
    schema_version: str = SCHEMA_VERSION


class JobInfo(BaseModel):
    created_at: str  # ISO 8601
    finished_at: Optional[str] = None
    state: str = "CONFIGURED"  # CONFIGURED, COMPILED, PACKAGED, FAILED


class RequestedConfig(BaseModel):
    """The BuildConfig as parsed from the command line."""
    target_triple: str
    mode: str
    output_format: str


class ToolchainIdentity(BaseModel):
    """Tool versions seen on the build host (first --version line)."""
    cargo_version: str
    rustc_version: str
    objcopy_version: str
    host: str


class PhaseRecord(BaseModel):
    """One external tool invocation."""
    command: str = ""
    exit_code: int = -1
    duration_ms: int = 0


class ExecutableMeta(BaseModel):
    """ELF facts and gate verdict for the compiled executable."""
    path: str
    sha256: str
    size_bytes: int
    elf_class: int
    machine: str
    elf_type: str
    entry_point: str  # hex
    build_id: Optional[str] = None
    verdict: str  # ACCEPT | WARN | REJECT
    reasons: List[str] = Field(default_factory=list)


class ArtifactMeta(BaseModel):
    path: str
    format: str  # bin | elf
    sha256: str
    size_bytes: int


class ImageReceipt(BaseModel):
    """
    Single receipt for one pipeline run.

    ``package`` is None for ELF output, which copies without a tool.
    """
    imager: ImagerInfo = ImagerInfo()
    job: JobInfo
    requested: RequestedConfig
    toolchain: ToolchainIdentity
    compile: PhaseRecord
    package: Optional[PhaseRecord] = None
    executable: ExecutableMeta
    artifact: ArtifactMeta


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()
