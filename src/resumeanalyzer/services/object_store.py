from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional
from uuid import uuid4

from resumeanalyzer.config import Settings
from resumeanalyzer.core.contracts import Document, StoredObject

log = logging.getLogger("object_store")

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(filename: str) -> str:
    name = _UNSAFE.sub("_", Path(filename or "").name).strip("._")
    return name or "upload.bin"


class LocalObjectStore:
    """
    Description: Path-addressable blob storage on local disk.
    Layer: L8
    Input: Document blobs
    Output: StoredObject with a path relative to the storage root
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalObjectStore":
        return cls(Path(settings.STORAGE_ROOT))

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Optional[Path]:
        p = (self._root / path).resolve()
        try:
            p.relative_to(self._root.resolve())
        except ValueError:
            return None
        return p

    def _write(self, document: Document) -> StoredObject:
        rel = f"{uuid4().hex}/{_safe_name(document.filename)}"
        target = self._root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(document.content)
        return StoredObject(path=rel, size=document.size)

    async def upload(self, document: Document) -> Optional[StoredObject]:
        """Store the blob; None when the write fails."""
        try:
            stored = await asyncio.to_thread(self._write, document)
        except OSError as e:
            log.warning("upload of %s failed: %s", document.filename, e)
            return None
        log.info("stored %s (%d bytes)", stored.path, stored.size)
        return stored

    async def read(self, path: str) -> Optional[bytes]:
        p = self._resolve(path)
        if p is None or not p.is_file():
            return None
        return await asyncio.to_thread(p.read_bytes)
