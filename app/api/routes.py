import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import Request
from fastapi import status

from app.core.config import settings
from app.core.security import Depends
from app.core.security import verify_api_key
from app.core.validation import REPORT_FIELD_NAME
from app.models.upload_models import StoredFile
from app.services.storage.local_storage import delete_report_file
from app.services.storage.size_ledger import SizeLedger
from app.services.storage.size_ledger import get_size_ledger
from app.upload_logic import handle_file_upload

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(verify_api_key)])


@router.post("/reports", status_code=status.HTTP_201_CREATED, tags=["Reports"])
async def upload_report(
    request: Request,
    stored: StoredFile | None = Depends(handle_file_upload),
    ledger: SizeLedger = Depends(get_size_ledger),
) -> dict[str, Any]:
    """
    Accepts a single PDF under the `report_pdf` multipart field.
    The file is already on disk and counted in the ledger when this runs.

    Requires a valid API key via the 'X-API-Key' header.
    """
    if stored is None:
        raise HTTPException(status_code=400, detail=f"No file uploaded for {REPORT_FIELD_NAME}.")

    total_size = getattr(request.state, "cumulative_size", None)
    if total_size is None:
        total_size = await ledger.read()

    return {
        "status": True,
        "status_code": status.HTTP_201_CREATED,
        "message": "Report uploaded successfully.",
        "file": stored.model_dump(mode="json"),
        "total_size": total_size,
    }


@router.delete("/reports/{filename}", tags=["Reports"])
async def delete_report(
    filename: str,
    ledger: SizeLedger = Depends(get_size_ledger),
) -> dict[str, Any]:
    """Deletes a stored report by its on-disk name and updates the cumulative size."""
    if not filename or filename in {".", ".."} or Path(filename).name != filename or "\\" in filename:
        logger.warning(f"Rejected delete request with invalid file name: {filename!r}")
        raise HTTPException(status_code=400, detail="Invalid report file name.")

    deleted = await delete_report_file(settings.report_upload_dir / filename, ledger)
    if not deleted:
        raise HTTPException(status_code=404, detail="Report file could not be deleted.")

    return {
        "status": True,
        "status_code": status.HTTP_200_OK,
        "message": "Report deleted successfully.",
        "total_size": await ledger.read(),
    }


@router.get("/reports/usage", tags=["Reports"])
async def report_usage(ledger: SizeLedger = Depends(get_size_ledger)) -> dict[str, Any]:
    """Returns the cumulative size in bytes of all stored reports."""
    return {
        "status": True,
        "status_code": status.HTTP_200_OK,
        "total_size": await ledger.read(),
    }
