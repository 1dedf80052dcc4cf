"""
Profile — target descriptor for the firmware image.

Everything the pipeline assumes about the target lives here so that the
compile and package steps stay free of hardcoded constants.  Supporting
another board is a profile change, not a code change.
"""
from dataclasses import dataclass, field
from typing import FrozenSet

from unicorn_image import PROFILE_ID


@dataclass(frozen=True)
class ImageProfile:
    """Describes the target triple, the crate binary and the expected ELF."""

    # Identity
    profile_id: str

    # Cargo target
    target_triple: str
    binary_name: str

    # Expected ELF shape of the compiled executable
    expected_machine: str
    expected_elf_class: int
    accepted_elf_types: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"ET_EXEC"})
    )

    # Artifact stem inside the output directory
    artifact_stem: str = "unicorn"

    @classmethod
    def v0(cls) -> "ImageProfile":
        """The locked v0 profile: riscv64gc bare-metal, cargo-built."""
        return cls(
            profile_id=PROFILE_ID,
            target_triple="riscv64gc-unknown-none-elf",
            binary_name="unicorn",
            expected_machine="EM_RISCV",
            expected_elf_class=64,
            accepted_elf_types=frozenset({"ET_EXEC"}),
            artifact_stem="unicorn",
        )
