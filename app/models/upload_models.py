from pathlib import Path

from pydantic import BaseModel


class StoredFile(BaseModel):
    """Describes a report PDF that has been written to the upload directory."""

    field_name: str
    original_name: str
    filename: str  # Name on disk, e.g. "1717171717171-123456789-report.pdf"
    path: Path
    size: int
    content_type: str | None = None


class UploadPolicy(BaseModel):
    """Where and how an accepted report is stored."""

    destination: Path
    field_name: str
    max_file_size: int
    chunk_size: int
