"""Defines constants and checks for report upload validation."""

import logging
import os
import re

logger = logging.getLogger(__name__)

# Multipart field that carries the report
REPORT_FIELD_NAME: str = "report_pdf"

MAX_FILE_SIZE: int = 20 * 1024 * 1024  # 20 MB per file

# Unanchored substring match: "application/x-pdf" passes as well
ACCEPTED_TYPE_PATTERN = re.compile("pdf")

JPEG_SOI_MARKER: bytes = b"\xff\xd8"


def is_accepted_report_type(content_type: str | None, filename: str | None) -> bool:
    """Return True when both the declared MIME type and the extension look like PDF."""
    mime = (content_type or "").lower()
    ext = os.path.splitext(filename or "")[1].lower()
    mime_ok = ACCEPTED_TYPE_PATTERN.search(mime) is not None
    ext_ok = ACCEPTED_TYPE_PATTERN.search(ext) is not None
    if not (mime_ok and ext_ok):
        logger.debug("Rejected upload type: content_type=%r, extension=%r", content_type, ext)
    return mime_ok and ext_ok


def is_valid_jpeg(data: bytes) -> bool:
    """Check for the JPEG start-of-image marker."""
    return data[:2] == JPEG_SOI_MARKER
