"""
Final submission file storage

Files are streamed to UPLOAD_PATH/submissions/<student_id>/ with aiofiles and
served back under /uploads. The size limit is enforced while streaming, so a
client that lies about Content-Length cannot fill the disk.
"""

from dataclasses import dataclass
from pathlib import Path
import os
import re
import uuid

import aiofiles
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import FileTooLargeError, InvalidFileTypeError, StorageError, ValidationError
from app.core.logging_config import logger

CHUNK_SIZE = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredFile:
    url: str
    name: str
    size: int
    path: Path


def file_extension(filename: str) -> str:
    return Path(filename or "").suffix.lstrip(".").lower()


def safe_filename(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(filename).name).strip("._") or "dissertation"
    return f"{uuid.uuid4().hex[:12]}-{name}"


def validate_submission_file(upload: UploadFile) -> None:
    if upload is None or not upload.filename:
        raise ValidationError("Please upload your dissertation file", field="file")
    extension = file_extension(upload.filename)
    allowed = settings.ALLOWED_SUBMISSION_EXTENSIONS
    if extension not in allowed:
        raise InvalidFileTypeError(extension or "unknown", allowed)


async def save_submission_file(upload: UploadFile, student_id: str) -> StoredFile:
    """Validate and write the upload; returns where it landed"""
    validate_submission_file(upload)

    target_dir = settings.UPLOAD_DIR / "submissions" / str(student_id)
    target_dir.mkdir(parents=True, exist_ok=True)
    stored_name = safe_filename(upload.filename)
    target = target_dir / stored_name

    size = 0
    try:
        async with aiofiles.open(target, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.MAX_SUBMISSION_SIZE:
                    raise FileTooLargeError(size, settings.MAX_SUBMISSION_SIZE)
                await out.write(chunk)
    except FileTooLargeError:
        _discard(target)
        raise
    except OSError as e:
        _discard(target)
        logger.log_error_with_context(e, context="save_submission_file", student_id=str(student_id))
        raise StorageError("Could not store the uploaded file")

    if size == 0:
        _discard(target)
        raise ValidationError("Uploaded file is empty", field="file")

    url = f"/uploads/submissions/{student_id}/{stored_name}"
    logger.info(
        f"[Upload] Stored {upload.filename} ({size} bytes) at {url}",
        extra={"event_type": "file_stored", "file_size": size},
    )
    return StoredFile(url=url, name=upload.filename, size=size, path=target)


def discard_stored_file(stored: StoredFile) -> None:
    _discard(stored.path)


def _discard(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[Upload] Could not remove {path}: {e}")
