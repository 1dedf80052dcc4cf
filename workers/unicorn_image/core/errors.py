"""
Error taxonomy for the image pipeline.

Every error is fatal where it is raised: nothing in the pipeline catches,
retries or cleans up.  ``runner.main`` is the only place an error turns
into a process exit code.
"""
from typing import Optional


class ImagerError(Exception):
    """Base class for all pipeline failures."""

    default_exit_code = 1

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        # Tools exiting via signal report a negative status; the process
        # still has to exit non-zero.
        if exit_code is None or exit_code <= 0:
            exit_code = self.default_exit_code
        self.exit_code = exit_code


class ConfigurationError(ImagerError):
    """A required setting or environment reference is unset or invalid."""

    default_exit_code = 2


class ToolchainError(ImagerError):
    """The compilation backend failed or produced no executable."""


class ConversionError(ImagerError):
    """The format converter failed or the input is not convertible."""


class FilesystemError(ImagerError):
    """Creating the output directory or writing the artifact failed."""
