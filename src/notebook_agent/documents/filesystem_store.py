"""Document store rooted at a directory on the local filesystem."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Sequence

from ..utils.file_io import create_text, read_text, write_text
from .paths import join_path, parent_path
from .store import (
    DirectoryRef,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentRef,
    DocumentStoreError,
    EntryKind,
    StoreEntry,
)

LOGGER = logging.getLogger(__name__)


class FileSystemDocumentStore:
    """Expose a directory tree as a :class:`~notebook_agent.documents.store.DocumentStore`.

    Blocking file operations run in worker threads so the event loop driving
    a conversation turn stays responsive. Hidden entries (dot-files) are not
    part of the store.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser().resolve()
        if not self._root.is_dir():
            raise DocumentStoreError(f"Document root '{self._root}' is not a directory")

    @property
    def root_path(self) -> Path:
        return self._root

    async def read_text(self, path: str) -> str:
        target = self._absolute(path)
        if not target.is_file():
            raise DocumentNotFoundError(path)
        return await asyncio.to_thread(read_text, target)

    async def write_text(self, path: str, text: str) -> None:
        target = self._absolute(path)
        if not target.is_file():
            raise DocumentNotFoundError(path)
        await asyncio.to_thread(write_text, target, text)
        LOGGER.debug("Wrote %d chars to %s", len(text), path)

    async def create(self, path: str, text: str) -> DocumentRef:
        target = self._absolute(path)
        if not target.parent.is_dir():
            raise DocumentNotFoundError(parent_path(path))
        try:
            await asyncio.to_thread(create_text, target, text)
        except FileExistsError:
            raise DocumentExistsError(path) from None
        LOGGER.debug("Created document %s", path)
        return DocumentRef(path)

    async def create_directory(self, path: str) -> DirectoryRef:
        target = self._absolute(path)
        if target.is_file():
            raise DocumentStoreError(f"'{path}' is a document, not a folder", path=path)
        await asyncio.to_thread(target.mkdir, exist_ok=True)
        return DirectoryRef(path)

    async def resolve(self, path: str) -> DocumentRef | DirectoryRef | None:
        target = self._absolute(path)
        if target.is_file():
            return DocumentRef(path)
        if target.is_dir():
            return DirectoryRef(path)
        return None

    async def list_children(self, directory: DirectoryRef) -> Sequence[StoreEntry]:
        target = self._absolute(directory.path)
        if not target.is_dir():
            raise DocumentNotFoundError(directory.path)
        entries = await asyncio.to_thread(self._scan, target)
        folders = sorted(name for name, is_dir in entries if is_dir)
        files = sorted(name for name, is_dir in entries if not is_dir)
        result = [StoreEntry(name, EntryKind.DIRECTORY) for name in folders]
        result.extend(StoreEntry(name, EntryKind.DOCUMENT) for name in files)
        return result

    def root(self) -> DirectoryRef:
        return DirectoryRef("")

    async def all_documents(self) -> Sequence[DocumentRef]:
        return await asyncio.to_thread(self._walk)

    def _absolute(self, path: str) -> Path:
        if any(segment.startswith(".") and segment != ".." for segment in path.split("/")):
            raise DocumentStoreError(f"'{path}' is a hidden path", path=path)
        target = (self._root / path).resolve() if path else self._root
        if target != self._root and self._root not in target.parents:
            raise DocumentStoreError(f"'{path}' resolves outside the document root", path=path)
        return target

    @staticmethod
    def _scan(directory: Path) -> list[tuple[str, bool]]:
        with os.scandir(directory) as iterator:
            return [
                (entry.name, entry.is_dir())
                for entry in iterator
                if not entry.name.startswith(".")
            ]

    def _walk(self) -> list[DocumentRef]:
        documents: list[DocumentRef] = []
        for current, dirnames, filenames in os.walk(self._root):
            dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
            relative = Path(current).relative_to(self._root).as_posix()
            prefix = "" if relative == "." else relative
            for name in sorted(filenames):
                if name.startswith("."):
                    continue
                documents.append(DocumentRef(join_path(prefix, name)))
        return documents


__all__ = ["FileSystemDocumentStore"]
