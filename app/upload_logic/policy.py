"""Storage policy for incoming reports."""

from app.core.config import settings
from app.core.validation import MAX_FILE_SIZE
from app.core.validation import REPORT_FIELD_NAME
from app.models.upload_models import UploadPolicy


def get_upload_policy() -> UploadPolicy:
    """Build the active upload policy from settings and the fixed validation limits."""
    return UploadPolicy(
        destination=settings.report_upload_dir,
        field_name=REPORT_FIELD_NAME,
        max_file_size=MAX_FILE_SIZE,
        chunk_size=settings.upload_chunk_size,
    )
