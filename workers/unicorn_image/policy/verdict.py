"""
Verdict — ACCEPT / WARN / REJECT for the compiled executable.

The gate checks the ELF against the image profile before packaging.
Only REJECT stops the pipeline; WARN is logged and recorded in the
receipt, since a mismatched but valid ELF can still be stripped.

Policy rules reference the ImageProfile but never import core/ logic
beyond the ElfMeta fact record.
"""
from enum import Enum, unique
from typing import List, Optional, Tuple

from unicorn_image.core.elf_reader import ElfMeta
from unicorn_image.policy.profile import ImageProfile


@unique
class Verdict(str, Enum):
    ACCEPT = "ACCEPT"
    WARN = "WARN"
    REJECT = "REJECT"


@unique
class ExecutableRejectReason(str, Enum):
    NOT_ELF = "NOT_ELF"


@unique
class ExecutableWarnReason(str, Enum):
    UNEXPECTED_MACHINE = "UNEXPECTED_MACHINE"
    UNEXPECTED_CLASS = "UNEXPECTED_CLASS"
    UNEXPECTED_TYPE = "UNEXPECTED_TYPE"
    NO_LOADABLE_SECTIONS = "NO_LOADABLE_SECTIONS"


def gate_executable(
    meta: Optional[ElfMeta],
    profile: ImageProfile,
) -> Tuple[Verdict, List[str]]:
    """
    Evaluate the compiled executable against the profile.

    *meta* is None when the file could not be parsed as ELF.

    Returns
    -------
    (Verdict, list of reason strings)
    """
    if meta is None:
        return Verdict.REJECT, [ExecutableRejectReason.NOT_ELF.value]

    reasons: List[str] = []

    if meta.machine != profile.expected_machine:
        reasons.append(ExecutableWarnReason.UNEXPECTED_MACHINE.value)

    if meta.elf_class != profile.expected_elf_class:
        reasons.append(ExecutableWarnReason.UNEXPECTED_CLASS.value)

    if meta.elf_type not in profile.accepted_elf_types:
        reasons.append(ExecutableWarnReason.UNEXPECTED_TYPE.value)

    # objcopy -O binary emits nothing without allocatable content
    if meta.section_names and not meta.has_alloc_sections:
        reasons.append(ExecutableWarnReason.NO_LOADABLE_SECTIONS.value)

    if reasons:
        return Verdict.WARN, reasons
    return Verdict.ACCEPT, []
