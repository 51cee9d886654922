"""Staging of uploaded CSV files.

An upload is copied into a private temporary file before it is previewed.
The same file is parsed again for the import and removed afterwards, or
when the operator cancels.

Usage:
    with StagedUpload.from_stream(request_stream) as staged:
        preview = runner.preview(staged.path)
        ...
        summary = await runner.submit(staged.path, service)
"""

import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

import structlog

from ..utils.exceptions import UploadError

logger = structlog.get_logger(__name__)

STAGED_PREFIX = "hostimport."
STAGED_SUFFIX = ".csv"


class UploadErrorCode(Enum):
    """Reasons an upload transport can fail, with operator-facing messages."""

    NO_FILE = "no_file"
    INI_SIZE = "ini_size"
    FORM_SIZE = "form_size"
    PARTIAL = "partial"
    NO_FILE_SELECTED = "no_file_selected"
    NO_TMP_DIR = "no_tmp_dir"
    CANT_WRITE = "cant_write"
    EXTENSION = "extension"

    @property
    def message(self) -> str:
        return _UPLOAD_MESSAGES[self]


_UPLOAD_MESSAGES = {
    UploadErrorCode.NO_FILE: "Missing file upload.",
    UploadErrorCode.INI_SIZE: "The uploaded file exceeds the upload_max_filesize directive in php.ini",
    UploadErrorCode.FORM_SIZE: (
        "The uploaded file exceeds the MAX_FILE_SIZE directive that was specified in the HTML form"
    ),
    UploadErrorCode.PARTIAL: "The uploaded file was only partially uploaded",
    UploadErrorCode.NO_FILE_SELECTED: "No file was uploaded",
    UploadErrorCode.NO_TMP_DIR: "Missing a temporary folder",
    UploadErrorCode.CANT_WRITE: "Failed to write file to disk.",
    UploadErrorCode.EXTENSION: "A PHP extension stopped the file upload.",
}


def check_upload(code: UploadErrorCode | None) -> None:
    """
    Raise for a failed upload transport.

    Args:
        code: Error reported by the transport, None on success

    Raises:
        UploadError: If code is set
    """
    if code is not None:
        raise UploadError(code)


def stage_upload(stream: BinaryIO | None, directory: Path | None = None) -> Path:
    """
    Copy an uploaded byte stream into a new temporary file.

    Args:
        stream: Readable binary stream, None when nothing was uploaded
        directory: Where to create the file (default: system temp directory)

    Returns:
        Path of the staged file; the caller owns it

    Raises:
        UploadError: NO_FILE without a stream, NO_TMP_DIR if directory is
            missing, CANT_WRITE if the copy fails
    """
    if stream is None:
        raise UploadError(UploadErrorCode.NO_FILE)
    if directory is not None and not directory.is_dir():
        raise UploadError(UploadErrorCode.NO_TMP_DIR)

    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            prefix=STAGED_PREFIX,
            suffix=STAGED_SUFFIX,
            dir=directory,
            delete=False,
        ) as target:
            path = Path(target.name)
            try:
                shutil.copyfileobj(stream, target)
            except OSError:
                target.close()
                path.unlink(missing_ok=True)
                raise
    except OSError as e:
        logger.error("Failed to stage upload", error=str(e))
        raise UploadError(UploadErrorCode.CANT_WRITE) from e

    logger.debug("Upload staged", path=str(path), size=path.stat().st_size)
    return path


def discard_upload(path: Path) -> bool:
    """
    Remove a staged file.

    Returns:
        True if a file was removed
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("Staged upload removed", path=str(path))
    return True


class StagedUpload:
    """
    A staged upload that is removed when the block exits, whatever happens.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def from_stream(cls, stream: BinaryIO | None, directory: Path | None = None) -> "StagedUpload":
        """Stage a stream; see stage_upload."""
        return cls(stage_upload(stream, directory))

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def discard(self) -> None:
        """Remove the staged file now."""
        discard_upload(self.path)

    def __enter__(self) -> "StagedUpload":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.discard()
