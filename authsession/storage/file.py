"""
JSON file backend for the local persistent store.

Reads and writes go through an in-memory copy; every change schedules an
asynchronous write of the whole file with aiofiles on the running event
loop. Call load() once at startup and flush() before shutdown.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Iterator, Optional, Set

import aiofiles

from ..errors import StorageError
from .backends import StorageBackend


logger = logging.getLogger(__name__)


class FileBackend(StorageBackend):
    """Local persistent store kept in a JSON file."""

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, Any] = {}
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self._dirty = False

    async def load(self) -> None:
        """Read the file into memory. A missing file means an empty store."""
        if not os.path.exists(self.path):
            logger.debug(f"No storage file at {self.path}")
            return

        try:
            async with aiofiles.open(self.path, 'r') as f:
                content = await f.read()
        except OSError as e:
            raise StorageError(f"Failed to read storage file: {e}", {"path": self.path})

        if not content.strip():
            self._data = {}
            return

        try:
            data = json.loads(content)
        except ValueError as e:
            raise StorageError(f"Corrupt storage file: {e}", {"path": self.path})

        if not isinstance(data, dict):
            raise StorageError("Storage file must contain a JSON object", {"path": self.path})

        self._data = data
        logger.info(f"Loaded {len(data)} keys from {self.path}")

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._schedule_flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._schedule_flush()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data.keys()))

    def _schedule_flush(self) -> None:
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Written on the next explicit flush()
            return

        task = loop.create_task(self._write())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self) -> None:
        async with self._lock:
            if not self._dirty:
                return
            self._dirty = False
            snapshot = json.dumps(self._data)
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            try:
                async with aiofiles.open(self.path, 'w') as f:
                    await f.write(snapshot)
            except OSError as e:
                self._dirty = True
                logger.error(f"Failed to write storage file {self.path}: {e}")
                return
        logger.debug(f"Wrote storage file {self.path}")

    async def flush(self) -> None:
        """Wait for scheduled writes and persist anything still unwritten."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
        await self._write()


def create_file_backend(path: Optional[str] = None) -> FileBackend:
    """
    Create a file backend.

    Args:
        path: File location; defaults to ~/.config/authsession/storage.json
            or the AUTHSESSION_STORAGE_FILE environment variable
    """
    if path is None:
        path = os.environ.get(
            "AUTHSESSION_STORAGE_FILE",
            os.path.join(os.path.expanduser("~"), ".config", "authsession", "storage.json"),
        )
    return FileBackend(path)
