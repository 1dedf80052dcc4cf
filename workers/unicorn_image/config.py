"""
Imager configuration
"""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Imager settings, read from UNICORN_* environment variables"""

    # Layout
    PROJECT_DIR: Path = Path(".")
    OUTPUT_DIR: Path = Path("build")

    # Build output root. Required for ELF packaging; for raw binaries the
    # workspace target dir two levels above the crate is used when unset.
    TARGET_DIR: Optional[Path] = None
    WORKSPACE_TARGET_DIR: Path = Path("../../target")

    # Toolchain
    CARGO: str = "cargo"
    OBJCOPY: str = "riscv64-unknown-elf-objcopy"

    # Build defaults
    DEFAULT_MODE: str = "release"
    DEFAULT_FORMAT: str = "bin"
    TOOL_TIMEOUT: Optional[int] = None  # seconds, None blocks until exit

    class Config:
        env_prefix = "UNICORN_"
        # An empty variable counts as unset, as it does in the shell
        env_ignore_empty = True
        env_file = ".env"
        case_sensitive = True


settings = Settings()
