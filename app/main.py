import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.config import settings
from app.core.exceptions import UploadError
from app.core.logging import setup_logging

setup_logging()

app = FastAPI(title="Report Upload Service")

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"status": False, "status_code": status_code, "message": message},
        status_code=status_code,
    )


@app.on_event("startup")
async def startup_event() -> None:
    settings.report_upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"INFO: Application startup - storing reports in {settings.report_upload_dir}")


@app.exception_handler(UploadError)
async def upload_exception_handler(_request: Request, exc: UploadError) -> JSONResponse:
    logger.error(f"Upload error: {exc.message} (status: {exc.status_code})")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Log the detailed Pydantic validation errors to the server console
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return error_response(422, "Input validation failed")


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
