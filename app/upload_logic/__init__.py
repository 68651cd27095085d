"""Upload handling package.

Holds the dependency that receives a report PDF from a multipart request,
stores it, and keeps the cumulative-size ledger in step. Routes declare it
with ``Depends(handle_file_upload)`` and only run once the file is on disk.
"""

from .policy import get_upload_policy  # noqa: F401
from .upload_handler import handle_file_upload  # noqa: F401
