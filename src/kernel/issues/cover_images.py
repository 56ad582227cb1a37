"""
Journal public files (issue cover images).

Files live under ``<public_files_dir>/journals/<journal_id>/``.
"""

import uuid
from pathlib import Path
from typing import Optional

from src.config import get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)

COVER_IMAGE_EXTENSIONS = {".gif", ".jpg", ".jpeg", ".png", ".webp", ".svg"}


def cover_image_filename(issue_id: uuid.UUID, original_name: str) -> str:
    """
    Stored name for an uploaded issue cover.

    Raises:
        ValueError: the upload is not one of the accepted image types
    """
    extension = Path(original_name or "").suffix.lower()
    if extension not in COVER_IMAGE_EXTENSIONS:
        raise ValueError(f"Unsupported cover image type: {extension or original_name!r}")
    return f"cover_issue_{issue_id.hex}{extension}"


class PublicFileManager:
    """Read/write/remove files in a journal's public directory."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or get_settings().public_files_dir)

    def journal_files_path(self, journal_id: uuid.UUID) -> Path:
        return self.base_dir / "journals" / str(journal_id)

    def journal_file_path(self, journal_id: uuid.UUID, filename: str) -> Path:
        # Only bare file names; no traversal out of the journal directory
        if Path(filename).name != filename or filename in ("", ".", ".."):
            raise ValueError(f"Invalid file name: {filename!r}")
        return self.journal_files_path(journal_id) / filename

    def save_journal_file(self, journal_id: uuid.UUID, filename: str, data: bytes) -> Path:
        """Write a public file, replacing any file of the same name."""
        path = self.journal_file_path(journal_id, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write beside the target first so readers never see a partial file
        partial = path.with_name(f".{filename}.part")
        partial.write_bytes(data)
        partial.replace(path)
        logger.info(
            "Public file saved",
            extra={"journal_id": str(journal_id), "file_name": filename, "size": len(data)},
        )
        return path

    def remove_journal_file(self, journal_id: uuid.UUID, filename: str) -> bool:
        """Delete a public file. Returns False when the file does not exist."""
        path = self.journal_file_path(journal_id, filename)
        if not path.is_file():
            logger.warning(
                "Public file not found",
                extra={"journal_id": str(journal_id), "file_name": filename},
            )
            return False
        path.unlink()
        return True
