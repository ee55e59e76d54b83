"""
File Persistence

Stores each id as `<directory>/<id>.data`. Writes go to a temporary file
that is renamed into place, so readers never see a partial value.

`clear()` removes only the ids this provider wrote; other files in the
directory are left alone.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from agentflow.errors import PersistenceError
from agentflow.persistence.ports import PersistenceProvider, PersistenceType

logger = logging.getLogger(__name__)

SUFFIX = ".data"


class FilePersistenceProvider(PersistenceProvider):
    """Directory-backed provider."""

    type = PersistenceType.FILE

    def __init__(self, directory: str | os.PathLike | None = None):
        """
        Args:
            directory: Where files are written (defaults to a fresh private
                directory under the system temp dir)
        """
        if directory is None:
            self._directory = Path(tempfile.mkdtemp(prefix="agentflow-"))
        else:
            self._directory = Path(directory)
            self._directory.mkdir(parents=True, exist_ok=True)
        self._ids: set[str] = set()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, id: str) -> Path:
        if not id or "/" in id or "\\" in id or id in (".", ".."):
            raise PersistenceError(f"Invalid persistence id '{id}'")
        return self._directory / f"{id}{SUFFIX}"

    def _write(self, path: Path, text: str) -> None:
        fd, tmp = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def save(self, id: str, text: str) -> None:
        path = self._path(id)
        try:
            await asyncio.to_thread(self._write, path, text)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
        self._ids.add(id)
        logger.debug(f"Saved {id} to {path}")

    async def load(self, id: str) -> str | None:
        path = self._path(id)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    async def delete(self, id: str) -> None:
        path = self._path(id)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        self._ids.discard(id)

    def _clear(self) -> None:
        for id in list(self._ids):
            self._path(id).unlink(missing_ok=True)
            self._ids.discard(id)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)
