"""Receives a single report PDF from a multipart request.

The flow mirrors a classic upload middleware:

1. Parse the multipart body.
2. Check every file part, in arrival order, for field arity and declared type.
   Nothing reaches the upload directory until these checks pass.
3. Stream the accepted part into the upload directory, enforcing the size
   limit while writing. An oversized file is removed before the error is
   raised.
4. Add the stored size to the cumulative-size ledger.

Failures are raised as ``UploadError`` subclasses; the application turns
them into JSON error responses.
"""

import asyncio
import logging
from uuid import uuid4

from fastapi import Depends
from fastapi import Request
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from app.core.exceptions import InvalidFileTypeError
from app.core.exceptions import TooManyFilesError
from app.core.exceptions import UnexpectedUploadError
from app.core.exceptions import UploadError
from app.core.exceptions import UploadParserError
from app.core.validation import is_accepted_report_type
from app.models.upload_models import StoredFile
from app.models.upload_models import UploadPolicy
from app.services.storage.local_storage import build_storage_filename
from app.services.storage.local_storage import write_upload_stream
from app.services.storage.size_ledger import SizeLedger
from app.services.storage.size_ledger import get_size_ledger
from app.upload_logic.policy import get_upload_policy

__all__ = [
    "handle_file_upload",
]

logger = logging.getLogger(__name__)


async def _parse_form(request: Request) -> FormData:
    try:
        return await request.form()
    except MultiPartException as e:
        raise UploadParserError(e.message) from e
    except StarletteHTTPException as e:
        # Starlette re-raises multipart errors as HTTP 400 inside an app
        raise UploadParserError(str(e.detail)) from e


def _select_report_part(form: FormData, field_name: str, request_id: str) -> UploadFile | None:
    """Pick the single accepted file part, or None when no file was sent."""
    selected: UploadFile | None = None
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        if key != field_name or selected is not None:
            logger.warning(
                "[%s] Rejected extra file part: field=%s, filename=%s",
                request_id,
                key,
                value.filename,
            )
            raise TooManyFilesError()
        if not is_accepted_report_type(value.content_type, value.filename):
            logger.warning(
                "[%s] Rejected file with invalid type: %s (content_type=%s)",
                request_id,
                value.filename,
                value.content_type,
            )
            raise InvalidFileTypeError()
        selected = value
    return selected


async def _store_report(upload: UploadFile, policy: UploadPolicy, request_id: str) -> StoredFile:
    original_name = upload.filename or ""
    filename = build_storage_filename(original_name)
    target = policy.destination / filename
    logger.debug("[%s] Writing %s to %s", request_id, original_name, target)

    size = await asyncio.to_thread(
        write_upload_stream,
        upload.file,
        target,
        policy.max_file_size,
        policy.chunk_size,
    )
    return StoredFile(
        field_name=policy.field_name,
        original_name=original_name,
        filename=filename,
        path=target,
        size=size,
        content_type=upload.content_type,
    )


async def _receive_single_file(request: Request, policy: UploadPolicy, request_id: str) -> StoredFile | None:
    form = await _parse_form(request)
    try:
        upload = _select_report_part(form, policy.field_name, request_id)
        if upload is None:
            logger.info("[%s] No file received for field %s", request_id, policy.field_name)
            return None
        return await _store_report(upload, policy, request_id)
    finally:
        await form.close()


async def handle_file_upload(
    request: Request,
    policy: UploadPolicy = Depends(get_upload_policy),
    ledger: SizeLedger = Depends(get_size_ledger),
) -> StoredFile | None:
    """FastAPI dependency that stores the uploaded report before the route runs.

    Args:
        request: The incoming request carrying a multipart body.
        policy: Destination, field name and limits for the upload.
        ledger: Cumulative-size ledger to credit with the stored bytes.

    Returns:
        The stored file, or None when the request carried no file. The same
        value is available as ``request.state.report_file``.

    Raises:
        TooManyFilesError: More than one file, or a file under another field.
        UploadParserError: The body could not be parsed or the file was too large.
        InvalidFileTypeError: The declared MIME type or extension is not PDF.
        UnexpectedUploadError: Any other failure.
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid4())
    request.state.request_id = request_id

    stored: StoredFile | None = None
    try:
        stored = await _receive_single_file(request, policy, request_id)
        request.state.report_file = stored
        if stored is not None and stored.size > 0:
            request.state.cumulative_size = await ledger.adjust(stored.size)
    except UploadError as e:
        logger.warning("[%s] Upload rejected (status %d): %s", request_id, e.status_code, e.message)
        raise
    except Exception as e:
        logger.error("[%s] Unexpected error during file upload: %s", request_id, str(e), exc_info=True)
        if stored is not None:
            # Ledger update failed; drop the file so disk and ledger agree
            await asyncio.to_thread(stored.path.unlink, missing_ok=True)
        raise UnexpectedUploadError() from e

    if stored is not None:
        logger.info(
            "[%s] Stored %s as %s (%d bytes)",
            request_id,
            stored.original_name,
            stored.path,
            stored.size,
        )
    return stored
