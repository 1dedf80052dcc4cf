"""
Shared pytest fixtures for unicorn_image tests.

Provides a synthesized RISC-V ELF64 executable and fake ``cargo`` /
``objcopy`` shell scripts, so the whole pipeline runs without a Rust or
RISC-V toolchain installed.

Requirements:
  - a POSIX shell (/bin/sh) to run the fake tools

Tests that need the fake tools are skipped on native Windows.
"""
import os
import shutil
import stat
import struct
import textwrap
from pathlib import Path

import pytest

from unicorn_image.config import Settings

EM_RISCV = 243
EM_X86_64 = 62
ET_EXEC = 2
ET_REL = 1

TEXT_ADDR = 0x80200000
# c.nop / li a0,0 / ret: enough to make a non-empty .text
TEXT_PAYLOAD = bytes.fromhex("0100" "13050000" "67800000") * 4


def make_elf(
    machine: int = EM_RISCV,
    elf_type: int = ET_EXEC,
    payload: bytes = TEXT_PAYLOAD,
    entry: int = TEXT_ADDR,
    text_flags: int = 0x6,
) -> bytes:
    """
    Build a minimal little-endian ELF64 with sections:
    [0] NULL, [1] .text (ALLOC|EXEC unless *text_flags* says otherwise),
    [2] .shstrtab.
    """
    shstrtab = b"\x00.text\x00.shstrtab\x00"
    text_off = 64
    strtab_off = text_off + len(payload)
    shoff = (strtab_off + len(shstrtab) + 7) & ~7

    e_ident = b"\x7fELF" + bytes([2, 1, 1, 0]) + bytes(8)
    ehdr = struct.pack(
        "<16sHHIQQQIHHHHHH",
        e_ident, elf_type, machine, 1, entry,
        0,        # e_phoff
        shoff,
        0x5,      # e_flags: RVC | double-float ABI
        64, 56, 0,
        64, 3, 2,
    )

    shdr_fmt = "<IIQQQQIIQQ"
    sh_null = struct.pack(shdr_fmt, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
    sh_text = struct.pack(
        shdr_fmt, 1, 1, text_flags, TEXT_ADDR, text_off, len(payload), 0, 0, 4, 0
    )
    sh_strtab = struct.pack(
        shdr_fmt, 7, 3, 0, 0, strtab_off, len(shstrtab), 0, 0, 1, 0
    )

    body = ehdr + payload + shstrtab
    body += bytes(shoff - len(body))
    return body + sh_null + sh_text + sh_strtab


def _write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def _fake_cargo(path: Path, elf: Path, log: Path) -> Path:
    """cargo stand-in: drops *elf* where ``cargo build`` would put it."""
    return _write_script(path, f"""\
        if [ "$1" = "--version" ]; then echo "cargo 1.80.0 (fake)"; exit 0; fi
        echo "$@" >> "{log}"
        target_dir=""
        triple=""
        profile=debug
        while [ $# -gt 0 ]; do
          case "$1" in
            --target-dir) target_dir="$2"; shift ;;
            --target) triple="$2"; shift ;;
            --release) profile=release ;;
          esac
          shift
        done
        [ -n "$target_dir" ] || exit 2
        mkdir -p "$target_dir/$triple/$profile"
        cp "{elf}" "$target_dir/$triple/$profile/unicorn"
        echo "    Finished $profile target(s)" >&2
    """)


def _broken_cargo(path: Path, log: Path) -> Path:
    """cargo stand-in for a source tree that does not compile."""
    return _write_script(path, f"""\
        echo "$@" >> "{log}"
        echo "error[E0425]: cannot find value \\`x\\` in this scope" >&2
        exit 101
    """)


def _fake_objcopy(path: Path, log: Path) -> Path:
    """objcopy stand-in: drops the 64-byte ELF header (objcopy -O binary IN OUT)."""
    return _write_script(path, f"""\
        if [ "$1" = "--version" ]; then echo "GNU objcopy (fake) 2.42"; exit 0; fi
        echo "$@" >> "{log}"
        tail -c +65 "$3" > "$4"
    """)


def _broken_objcopy(path: Path, log: Path) -> Path:
    return _write_script(path, f"""\
        echo "$@" >> "{log}"
        echo "objcopy: $3: file format not recognized" >&2
        exit 1
    """)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in its own cwd with no UNICORN_* overrides."""
    for key in list(os.environ):
        if key.startswith("UNICORN_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(scope="session")
def sh_ok():
    """Skip tests if no POSIX shell is available to run the fake tools."""
    if os.name == "nt" or shutil.which("sh") is None:
        pytest.skip("POSIX sh not available - fake toolchain scripts need /bin/sh")


@pytest.fixture
def riscv_elf(tmp_path) -> Path:
    p = tmp_path / "fixtures" / "unicorn.elf"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(make_elf())
    return p


@pytest.fixture
def x86_elf(tmp_path) -> Path:
    p = tmp_path / "fixtures" / "host.elf"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(make_elf(machine=EM_X86_64, elf_type=ET_REL))
    return p


@pytest.fixture
def not_elf(tmp_path) -> Path:
    """A file that is not an ELF binary."""
    p = tmp_path / "fixtures" / "not_an_elf"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(b"This is not an ELF file.\x00\x00\x00")
    return p


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Cargo workspace layout: <ws>/crates/unicorn, target at <ws>/target."""
    crate = tmp_path / "ws" / "crates" / "unicorn"
    crate.mkdir(parents=True)
    return crate


@pytest.fixture
def tool_log(tmp_path) -> Path:
    return tmp_path / "tools.log"


@pytest.fixture
def fake_cargo(tmp_path, sh_ok, riscv_elf, tool_log) -> Path:
    return _fake_cargo(tmp_path / "bin" / "cargo", riscv_elf, tool_log)


@pytest.fixture
def broken_cargo(tmp_path, sh_ok, tool_log) -> Path:
    return _broken_cargo(tmp_path / "bin" / "cargo-broken", tool_log)


@pytest.fixture
def fake_objcopy(tmp_path, sh_ok, tool_log) -> Path:
    return _fake_objcopy(tmp_path / "bin" / "objcopy", tool_log)


@pytest.fixture
def broken_objcopy(tmp_path, sh_ok, tool_log) -> Path:
    return _broken_objcopy(tmp_path / "bin" / "objcopy-broken", tool_log)


@pytest.fixture
def settings(workspace, fake_cargo, fake_objcopy) -> Settings:
    """Settings wired to the fake toolchain; output under <cwd>/build."""
    return Settings(
        PROJECT_DIR=workspace,
        OUTPUT_DIR=Path("build"),
        TARGET_DIR=None,
        CARGO=str(fake_cargo),
        OBJCOPY=str(fake_objcopy),
    )


@pytest.fixture
def target_dir(tmp_path) -> Path:
    d = tmp_path / "target-root"
    d.mkdir()
    return d
