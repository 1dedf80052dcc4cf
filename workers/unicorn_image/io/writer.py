"""
Writer — serialize the build receipt to JSON.
"""
import json
from pathlib import Path

from unicorn_image.core.errors import FilesystemError
from unicorn_image.io.schema import ImageReceipt


def write_receipt(receipt: ImageReceipt, path: Path) -> Path:
    """
    Write *receipt* to *path*, creating parent directories.

    Raises
    ------
    FilesystemError
        If the receipt cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                receipt.model_dump(mode="json"),
                indent=2,
                sort_keys=True,
            )
            + "\n"
        )
    except OSError as e:
        raise FilesystemError(f"Cannot write receipt {path}: {e}") from e
    return path
