"""
unicorn_image — firmware image builder for the unicorn RISC-V target.

Compile the crate with cargo for riscv64gc-unknown-none-elf, then package
the ELF into build/ as a raw objcopy binary or a verbatim ELF copy.
No firmware semantics, no flashing, no emulation.

Profile: riscv64gc-none-elf-cargo
"""

__version__ = "0.1.0"
IMAGER_NAME = "unicorn_image"
IMAGER_VERSION = "v0"
PROFILE_ID = "riscv64gc-none-elf-cargo"
SCHEMA_VERSION = "0.1"
