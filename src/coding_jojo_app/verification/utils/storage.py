import logging
import os
from datetime import datetime
from uuid import UUID, uuid4
from fastapi import UploadFile
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import UpstreamFailure, ValidationFailed
from coding_jojo_app.verification.models.verification_models import StoredFile

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
DOCUMENT_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf"}
DOCUMENT_CONTENT_TYPES = IMAGE_CONTENT_TYPES | {"application/pdf"}


def _check_type(upload: UploadFile, field: str, allow_pdf: bool):
    extension = os.path.splitext(upload.filename or "")[1].lower()
    extensions = DOCUMENT_EXTENSIONS if allow_pdf else IMAGE_EXTENSIONS
    content_types = DOCUMENT_CONTENT_TYPES if allow_pdf else IMAGE_CONTENT_TYPES

    if extension not in extensions or (upload.content_type or "").lower() not in content_types:
        allowed = ", ".join(sorted(extensions))
        raise ValidationFailed(field, f"Invalid file type for {field}. Allowed: {allowed}")


async def save_upload(
    upload: UploadFile,
    owner_id: UUID,
    folder: str,
    field: str,
    allow_pdf: bool = False,
) -> StoredFile:
    """
    Validate an uploaded file and store it under
    UPLOAD_DIR/verification/<owner>/<folder>/, served from /uploads.
    """
    _check_type(upload, field, allow_pdf)

    content = await upload.read()
    if not content:
        raise ValidationFailed(field, f"{field} is empty")
    if len(content) > config.MAX_UPLOAD_SIZE:
        limit_mb = config.MAX_UPLOAD_SIZE // (1024 * 1024)
        raise ValidationFailed(field, f"{field} must be smaller than {limit_mb}MB")

    extension = os.path.splitext(upload.filename)[1].lower()
    relative_dir = os.path.join("verification", str(owner_id), folder)
    target_dir = os.path.join(config.UPLOAD_DIR, relative_dir)
    filename = f"{field}_{int(datetime.now().timestamp())}_{uuid4().hex}{extension}"
    file_path = os.path.join(target_dir, filename)

    try:
        os.makedirs(target_dir, exist_ok=True)
        with open(file_path, "wb") as buffer:
            buffer.write(content)
    except OSError as e:
        logger.error(f"Failed to store {field} for {owner_id}: {e}")
        raise UpstreamFailure("storage", f"could not store {field}")

    logger.info(f"Stored {field} for {owner_id} at {file_path}")
    return StoredFile(
        url=f"/uploads/{relative_dir.replace(os.sep, '/')}/{filename}",
        path=file_path,
        size=len(content),
        content_type=upload.content_type,
    )


def delete_upload(stored: StoredFile | None):
    """Remove a stored file. Only runs after the record no longer points at it, so failures are logged."""
    if stored is None:
        return
    try:
        os.remove(stored.path)
        logger.info(f"Deleted {stored.path}")
    except FileNotFoundError:
        logger.warning(f"Stored file already gone: {stored.path}")
    except OSError as e:
        logger.error(f"Failed to delete {stored.path}: {e}")
