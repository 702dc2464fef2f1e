"""Durable key-value store backing the conversation history.

The store only offers whole-value reads and writes, one string per key, with
an optional byte quota shared by all keys (the browser local-storage model).
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


class QuotaExceeded(Exception):
    """Raised by a store when a write would exceed its capacity."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class FileKeyValueStore:
    """Key-value store keeping one UTF-8 file per key in a directory.

    Writes go to a temporary file that atomically replaces the previous
    value, so readers never see a partial payload.
    """

    def __init__(self, directory: Path, quota_bytes: int | None = None) -> None:
        """Initialize the store.

        Args:
            directory: Data directory, created if missing.
            quota_bytes: Maximum total size of all values, or None for no limit.
        """
        self._directory = directory
        self._quota_bytes = quota_bytes
        self._directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def _usage_excluding(self, path: Path) -> int:
        return sum(
            p.stat().st_size
            for p in self._directory.glob("*.json")
            if p != path and p.is_file()
        )

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Replace the value stored under key.

        Raises:
            QuotaExceeded: If the new value would push usage over the quota.
        """
        path = self._path(key)
        data = value.encode("utf-8")

        if self._quota_bytes is not None:
            usage = self._usage_excluding(path) + len(data)
            if usage > self._quota_bytes:
                raise QuotaExceeded(
                    f"Writing {len(data)} bytes to {key!r} needs {usage} bytes, "
                    f"quota is {self._quota_bytes}"
                )

        fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Stored {len(data)} bytes under {key!r}")
