"""
Arguments — command line → BuildConfig.

Unknown arguments are ignored rather than rejected, so wrappers can pass
through flags meant for other tools.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from unicorn_image.config import Settings, settings as default_settings
from unicorn_image.core.errors import ConfigurationError
from unicorn_image.policy.profile import ImageProfile

logger = logging.getLogger(__name__)


class BuildMode(str, Enum):
    """Cargo build profile."""
    DEBUG = "debug"
    RELEASE = "release"

    @property
    def profile_dir(self) -> str:
        """Directory cargo writes this profile's output to."""
        return self.value

    def cargo_flags(self) -> list[str]:
        return ["--release"] if self is BuildMode.RELEASE else []


class OutputFormat(str, Enum):
    """How the compiled executable is packaged."""
    BIN = "bin"  # objcopy -O binary
    ELF = "elf"  # verbatim copy

    def artifact_name(self, stem: str) -> str:
        return f"{stem}.{self.value}"


@dataclass(frozen=True)
class BuildConfig:
    """Immutable per-invocation build configuration."""
    target_triple: str
    mode: BuildMode
    output_format: OutputFormat = OutputFormat.BIN
    receipt_path: Optional[Path] = None
    verbose: bool = False


def _coerce(enum_cls, value: str, setting: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(
            f"Invalid {setting}={value!r} (expected one of: {choices})"
        ) from e


# Flags the parser knows; everything else is dropped before parsing.
SWITCHES = frozenset({
    "--release", "--debug", "--elf", "-v", "--verbose", "-h", "--help",
})
VALUE_FLAGS = frozenset({"--format", "--receipt"})


def split_recognised(args: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Partition *args* into (recognised, ignored) tokens.

    Only exact flag spellings are recognised, so argparse never sees a
    token it could reject: ``-vx``, ``--verbose=1`` or a value flag with
    no value all land in *ignored*.
    """
    recognised: List[str] = []
    ignored: List[str] = []
    i = 0
    while i < len(args):
        tok = args[i]
        name, eq, value = tok.partition("=")
        if tok in SWITCHES:
            recognised.append(tok)
        elif tok in VALUE_FLAGS and i + 1 < len(args) and not args[i + 1].startswith("-"):
            recognised.extend([tok, args[i + 1]])
            i += 1
        elif eq and name in VALUE_FLAGS and value:
            recognised.append(tok)
        else:
            ignored.append(tok)
        i += 1
    return recognised, ignored


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unicorn-image",
        description="Build the unicorn firmware and package it into an image",
        allow_abbrev=False,
    )
    # Both mode flags share a dest; the last one given wins.
    parser.add_argument(
        "--release",
        dest="mode",
        action="store_const",
        const=BuildMode.RELEASE.value,
        help="Build with the optimized release profile",
    )
    parser.add_argument(
        "--debug",
        dest="mode",
        action="store_const",
        const=BuildMode.DEBUG.value,
        help="Build with the unoptimized debug profile",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        default=None,
        help=f"Artifact format: bin or elf (default: {settings.DEFAULT_FORMAT})",
    )
    parser.add_argument(
        "--elf",
        dest="output_format",
        action="store_const",
        const=OutputFormat.ELF.value,
        help="Shorthand for --format elf",
    )
    parser.add_argument(
        "--receipt",
        type=Path,
        default=None,
        help="Write a JSON build receipt to this path",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def parse_arguments(
    args: Sequence[str],
    settings: Optional[Settings] = None,
    profile: Optional[ImageProfile] = None,
) -> BuildConfig:
    """
    Scan *args* for recognised flags and return a BuildConfig.

    Nothing is required.  Without ``--release``/``--debug`` the mode comes
    from ``Settings.DEFAULT_MODE``; without ``--format``/``--elf`` the
    format comes from ``Settings.DEFAULT_FORMAT``.

    Raises
    ------
    ConfigurationError
        If --format or a default from the settings is not a valid
        mode or format.
    """
    if settings is None:
        settings = default_settings
    if profile is None:
        profile = ImageProfile.v0()

    parser = build_parser(settings)
    recognised, ignored = split_recognised(list(args))
    if ignored:
        logger.debug(f"Ignoring unrecognised arguments: {' '.join(ignored)}")
    ns = parser.parse_args(recognised)

    mode = _coerce(BuildMode, ns.mode or settings.DEFAULT_MODE, "DEFAULT_MODE")
    output_format = _coerce(
        OutputFormat,
        ns.output_format or settings.DEFAULT_FORMAT,
        "--format" if ns.output_format else "DEFAULT_FORMAT",
    )

    return BuildConfig(
        target_triple=profile.target_triple,
        mode=mode,
        output_format=output_format,
        receipt_path=ns.receipt,
        verbose=ns.verbose,
    )
