"""
Unit Tests for final submission file storage
"""
import io
import pytest
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from app.services.upload_service import (
    discard_stored_file,
    file_extension,
    safe_filename,
    save_submission_file,
)


def upload(filename: str, content: bytes) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


class TestFilenames:

    def test_extension_lowercased(self):
        assert file_extension("Thesis.PDF") == "pdf"
        assert file_extension("noext") == ""

    def test_safe_filename_strips_path_and_symbols(self):
        name = safe_filename("../../etc/my thesis (final).pdf")

        assert "/" not in name
        assert " " not in name
        assert name.endswith("my_thesis_final_.pdf")


class TestSaveSubmissionFile:

    async def test_saves_pdf(self):
        stored = await save_submission_file(upload("thesis.pdf", b"%PDF-1.4 body"), "student-1")

        assert stored.size == len(b"%PDF-1.4 body")
        assert stored.url.startswith("/uploads/submissions/student-1/")
        assert stored.path.exists()

        discard_stored_file(stored)
        assert not stored.path.exists()

    async def test_rejects_other_extensions(self):
        with pytest.raises(InvalidFileTypeError):
            await save_submission_file(upload("thesis.exe", b"MZ"), "student-1")

    async def test_rejects_empty_file(self):
        with pytest.raises(ValidationError):
            await save_submission_file(upload("thesis.pdf", b""), "student-1")

    async def test_size_limit_enforced_while_streaming(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_SUBMISSION_SIZE", 10)

        with pytest.raises(FileTooLargeError):
            await save_submission_file(upload("thesis.pdf", b"x" * 64), "student-1")

        target_dir = settings.UPLOAD_DIR / "submissions" / "student-1"
        assert not any(target_dir.glob("*thesis.pdf"))
