"""Unit tests for upload staging."""

import io
from pathlib import Path

import pytest

from src.hostimporter.core.upload import (
    StagedUpload,
    UploadErrorCode,
    check_upload,
    discard_upload,
    stage_upload,
)
from src.hostimporter.utils.exceptions import FileError, UploadError


class TestUploadErrorCode:
    """Test operator-facing upload messages."""

    def test_every_code_has_a_message(self):
        for code in UploadErrorCode:
            assert code.message

    @pytest.mark.parametrize(
        "code,message",
        [
            (UploadErrorCode.NO_FILE, "Missing file upload."),
            (UploadErrorCode.PARTIAL, "The uploaded file was only partially uploaded"),
            (UploadErrorCode.NO_FILE_SELECTED, "No file was uploaded"),
            (UploadErrorCode.NO_TMP_DIR, "Missing a temporary folder"),
            (UploadErrorCode.CANT_WRITE, "Failed to write file to disk."),
        ],
    )
    def test_messages(self, code, message):
        assert code.message == message


class TestCheckUpload:
    """Test check_upload."""

    def test_success(self):
        check_upload(None)

    def test_error_raises_file_error(self):
        with pytest.raises(UploadError) as exc_info:
            check_upload(UploadErrorCode.INI_SIZE)

        assert exc_info.value.code is UploadErrorCode.INI_SIZE
        assert isinstance(exc_info.value, FileError)
        assert "upload_max_filesize" in str(exc_info.value)


class TestStageUpload:
    """Test stage_upload."""

    def test_copies_stream(self, tmp_path: Path):
        path = stage_upload(io.BytesIO(b"NAME;VISIBLE_NAME\n"), directory=tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("hostimport.")
        assert path.suffix == ".csv"
        assert path.read_bytes() == b"NAME;VISIBLE_NAME\n"

    def test_each_upload_gets_its_own_file(self, tmp_path: Path):
        first = stage_upload(io.BytesIO(b"a"), directory=tmp_path)
        second = stage_upload(io.BytesIO(b"b"), directory=tmp_path)
        assert first != second

    def test_no_stream(self):
        with pytest.raises(UploadError, match="Missing file upload."):
            stage_upload(None)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(UploadError) as exc_info:
            stage_upload(io.BytesIO(b"a"), directory=tmp_path / "nope")
        assert exc_info.value.code is UploadErrorCode.NO_TMP_DIR

    def test_read_failure_removes_partial_file(self, tmp_path: Path):
        class BrokenStream(io.RawIOBase):
            def readinto(self, b):
                raise OSError("connection reset")

            def readable(self):
                return True

        with pytest.raises(UploadError) as exc_info:
            stage_upload(BrokenStream(), directory=tmp_path)

        assert exc_info.value.code is UploadErrorCode.CANT_WRITE
        assert list(tmp_path.iterdir()) == []


class TestStagedUpload:
    """Test the StagedUpload context manager."""

    def test_removed_on_exit(self, tmp_path: Path):
        with StagedUpload.from_stream(io.BytesIO(b"x"), directory=tmp_path) as staged:
            assert staged.exists
        assert not staged.exists

    def test_removed_on_error(self, tmp_path: Path):
        with pytest.raises(RuntimeError):
            with StagedUpload.from_stream(io.BytesIO(b"x"), directory=tmp_path) as staged:
                raise RuntimeError("boom")
        assert not staged.path.exists()

    def test_discard_twice_is_harmless(self, tmp_path: Path):
        staged = StagedUpload.from_stream(io.BytesIO(b"x"), directory=tmp_path)
        staged.discard()
        staged.discard()
        assert not staged.exists

    def test_discard_upload_reports_removal(self, tmp_path: Path):
        path = tmp_path / "staged.csv"
        path.write_text("x")

        assert discard_upload(path) is True
        assert discard_upload(path) is False
