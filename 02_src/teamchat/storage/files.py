"""Local directory file store for chat attachments."""

import asyncio
from pathlib import Path
from typing import Protocol

from ..config import FILES_DIR
from ..logging_config import get_logger

logger = get_logger(__name__)


class IFileStore(Protocol):
    """Blob store returning a public URL per uploaded object."""

    async def upload(self, path: str, data: bytes) -> str:
        """Store data under path and return its public URL."""
        ...


class FileStore:
    """Writes blobs below a root directory, served under ``base_url``."""

    def __init__(self, root: str | Path | None = None, base_url: str = "/files"):
        self._root = Path(root) if root else FILES_DIR
        self._base_url = base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _target(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if self._root.resolve() not in target.parents:
            raise ValueError(f"Path escapes file store root: {path}")
        return target

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def upload(self, path: str, data: bytes) -> str:
        """Store data under path and return its public URL."""
        target = self._target(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("Stored %d bytes at %s", len(data), target)
        return self.public_url(path)
