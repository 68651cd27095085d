# app/services/storage/size_ledger.py
"""Running total of bytes stored in the report upload directory.

The total lives in a small JSON document, ``{"totalSize": <int>}``, which is
rewritten in full on every change. Read-modify-write cycles on the same file
are serialized with a per-path lock, so concurrent requests in one process
cannot lose each other's updates. The file is replaced atomically, so a
reader sees either the previous or the new total, never a partial write.
Separate processes sharing the file are not coordinated.
"""

import asyncio
import json
import logging
import math
import os
import tempfile
import threading
from pathlib import Path
from typing import ClassVar

from app.core.config import settings

logger = logging.getLogger(__name__)

TOTAL_SIZE_KEY = "totalSize"


class SizeLedger:
    """Owns the cumulative-size file and the lock guarding it."""

    _instances: ClassVar[dict[Path, "SizeLedger"]] = {}
    _instances_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    @classmethod
    def for_path(cls, path: Path) -> "SizeLedger":
        """Return the shared ledger for ``path``, creating it on first use."""
        key = Path(path).resolve()
        with cls._instances_lock:
            ledger = cls._instances.get(key)
            if ledger is None:
                ledger = cls(path)
                cls._instances[key] = ledger
            return ledger

    async def read(self) -> int:
        """Current total in bytes; 0 when the file is missing or unreadable."""
        return await asyncio.to_thread(self._read_locked)

    async def adjust(self, delta: int) -> int:
        """Add ``delta`` (may be negative) to the total, clamp at 0, persist, and return it."""
        return await asyncio.to_thread(self._adjust_sync, delta)

    def _read_locked(self) -> int:
        with self._lock:
            return self._read_sync()

    def _read_sync(self) -> int:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return 0
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read size ledger {self.path}, treating total as 0: {e}")
            return 0

        if not isinstance(data, dict):
            return 0
        total = data.get(TOTAL_SIZE_KEY)
        if isinstance(total, bool) or not isinstance(total, int | float) or not math.isfinite(total):
            return 0
        return int(total)

    def _adjust_sync(self, delta: int) -> int:
        with self._lock:
            current = self._read_sync()
            new_total = max(0, current + delta)
            self._write_sync(new_total)
        logger.debug("Size ledger %s: %d %+d -> %d", self.path, current, delta, new_total)
        return new_total

    def _write_sync(self, total: int) -> None:
        """Replace the ledger file in one step so readers never see a partial document."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(json.dumps({TOTAL_SIZE_KEY: total}, separators=(",", ":")))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def get_size_ledger() -> SizeLedger:
    """FastAPI dependency returning the ledger configured in settings."""
    return SizeLedger.for_path(settings.cumulative_size_file)
