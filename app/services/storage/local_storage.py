# app/services/storage/local_storage.py
"""Filesystem side of report storage: naming, writing and deleting report files."""

import asyncio
import logging
import os
import random
import re
import time
from pathlib import Path
from pathlib import PurePosixPath
from typing import BinaryIO

from app.core.exceptions import FileTooLargeError
from app.services.storage.size_ledger import SizeLedger
from app.services.storage.size_ledger import get_size_ledger

logger = logging.getLogger(__name__)

# \ufeff is whitespace for JavaScript clients but not for Python's \s
_WHITESPACE_RE = re.compile(r"[\s\ufeff]+")


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def client_basename(original_name: str) -> str:
    """Strip any directory part a client put in the filename."""
    return PurePosixPath(original_name.replace("\\", "/")).name


def build_storage_filename(original_name: str) -> str:
    """Name used on disk: ``<unixMillis>-<random 0..1e9>-<original name>``."""
    unique_suffix = f"{_now_millis()}-{random.randrange(1_000_000_000)}"
    return f"{unique_suffix}-{client_basename(original_name)}"


def generate_unique_file_name(original_name: str) -> str:
    """Replace whitespace runs with underscores and prefix a millisecond timestamp."""
    sanitized = _WHITESPACE_RE.sub("_", original_name)
    return f"{_now_millis()}-{sanitized}"


def write_upload_stream(source: BinaryIO, target: Path, max_size: int, chunk_size: int) -> int:
    """Copy ``source`` into a new file at ``target`` and return the bytes written.

    Blocking; callers on the event loop should run it in a thread. If the
    stream grows past ``max_size`` the partial file is removed and
    FileTooLargeError is raised. An existing ``target`` is never overwritten.
    """
    if hasattr(source, "seek"):
        source.seek(0)

    target.parent.mkdir(parents=True, exist_ok=True)
    out = target.open("xb")
    written = 0
    try:
        with out:
            while True:
                chunk = source.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size:
                    raise FileTooLargeError()
                out.write(chunk)
    except BaseException:
        logger.info(f"Removing partially written upload: {target}")
        target.unlink(missing_ok=True)
        raise
    return written


async def delete_report_file(file_path: str | os.PathLike[str], ledger: SizeLedger | None = None) -> bool:
    """Delete a stored report and subtract its size from the ledger.

    Returns True only if the file was removed and the ledger updated. Any
    failure is logged and reported as False.
    """
    ledger = ledger or get_size_ledger()
    path = Path(file_path)
    try:
        stats = await asyncio.to_thread(path.stat)
        await asyncio.to_thread(path.unlink)
        new_total = await ledger.adjust(-stats.st_size)
        logger.info(f"Deleted report file {path} ({stats.st_size} bytes). Cumulative size now {new_total}.")
        return True
    except Exception as e:
        logger.error(f"File deletion failed: {path}: {e}", exc_info=True)
        return False
