"""
ELF reader — open the compiled executable and extract structural metadata.

Responsibilities:
  - Validate that the file is an ELF binary.
  - Report class, machine, endianness, type and entry point.
  - List section names and whether any section has loadable content.
  - Read the build-id from .note.gnu.build-id if present.

No symbol or DWARF parsing; the packager only needs to know the file is
the container it is about to strip or copy.
"""
import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile


@dataclass(frozen=True)
class ElfMeta:
    """Structural metadata extracted from an ELF executable."""

    path: str
    file_sha256: str
    file_size: int

    # ELF header fields
    elf_class: int           # 32 or 64
    machine: str             # e.g. "EM_RISCV"
    endianness: str          # "little" or "big"
    elf_type: str            # e.g. "ET_EXEC"
    entry_point: int

    section_names: List[str] = field(default_factory=list)
    has_alloc_sections: bool = False

    build_id: Optional[str] = None


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def _read_build_id(elffile: ELFFile) -> Optional[str]:
    """Read GNU build-id from .note.gnu.build-id section."""
    section = elffile.get_section_by_name(".note.gnu.build-id")
    if section is None:
        return None
    for note in section.iter_notes():
        if note["n_type"] == "NT_GNU_BUILD_ID":
            return note["n_desc"]
    return None


def read_elf(path: Path) -> ElfMeta:
    """
    Open *path* as an ELF file and return structural metadata.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ELFError
        If the file is not a valid ELF binary.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Executable not found: {path}")

    with open(p, "rb") as f:
        elffile = ELFFile(f)

        section_names = [s.name for s in elffile.iter_sections() if s.name]
        has_alloc = any(
            s["sh_flags"] & SH_FLAGS.SHF_ALLOC and s["sh_type"] != "SHT_NOBITS"
            for s in elffile.iter_sections()
        )
        build_id = _read_build_id(elffile)

        meta = ElfMeta(
            path=str(p),
            file_sha256=sha256_file(p),
            file_size=p.stat().st_size,
            elf_class=elffile.elfclass,
            machine=elffile.header.e_machine,
            endianness="little" if elffile.little_endian else "big",
            elf_type=elffile.header.e_type,
            entry_point=elffile.header.e_entry,
            section_names=section_names,
            has_alloc_sections=has_alloc,
            build_id=build_id,
        )
    return meta

