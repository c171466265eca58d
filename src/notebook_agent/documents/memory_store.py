"""Dictionary-backed document store used by tests and embedding hosts."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from .paths import basename, parent_path
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


class InMemoryDocumentStore:
    """In-memory implementation of :class:`~notebook_agent.documents.store.DocumentStore`.

    Like a vault on disk, creating a document requires its parent directory
    to exist already.
    """

    def __init__(self, documents: Mapping[str, str] | None = None) -> None:
        self._documents: dict[str, str] = {}
        self._directories: set[str] = {""}
        for path, text in (documents or {}).items():
            self._ensure_parents(path)
            self._documents[path] = text

    async def read_text(self, path: str) -> str:
        try:
            return self._documents[path]
        except KeyError:
            raise DocumentNotFoundError(path) from None

    async def write_text(self, path: str, text: str) -> None:
        if path not in self._documents:
            raise DocumentNotFoundError(path)
        self._documents[path] = text

    async def create(self, path: str, text: str) -> DocumentRef:
        if path in self._documents or path in self._directories:
            raise DocumentExistsError(path)
        parent = parent_path(path)
        if parent not in self._directories:
            raise DocumentNotFoundError(parent)
        self._documents[path] = text
        LOGGER.debug("Created document %s (%d chars)", path, len(text))
        return DocumentRef(path)

    async def create_directory(self, path: str) -> DirectoryRef:
        if path in self._directories:
            return DirectoryRef(path)
        if path in self._documents:
            raise DocumentStoreError(f"'{path}' is a document, not a folder", path=path)
        parent = parent_path(path)
        if parent not in self._directories:
            raise DocumentNotFoundError(parent)
        self._directories.add(path)
        return DirectoryRef(path)

    async def resolve(self, path: str) -> DocumentRef | DirectoryRef | None:
        if path in self._documents:
            return DocumentRef(path)
        if path in self._directories:
            return DirectoryRef(path)
        return None

    async def list_children(self, directory: DirectoryRef) -> Sequence[StoreEntry]:
        if directory.path not in self._directories:
            raise DocumentNotFoundError(directory.path)
        folders = sorted(
            basename(path)
            for path in self._directories
            if path and parent_path(path) == directory.path
        )
        files = sorted(
            basename(path) for path in self._documents if parent_path(path) == directory.path
        )
        entries = [StoreEntry(name, EntryKind.DIRECTORY) for name in folders]
        entries.extend(StoreEntry(name, EntryKind.DOCUMENT) for name in files)
        return entries

    def root(self) -> DirectoryRef:
        return DirectoryRef("")

    async def all_documents(self) -> Sequence[DocumentRef]:
        return [DocumentRef(path) for path in sorted(self._documents)]

    def snapshot(self) -> dict[str, str]:
        """Return a copy of every document keyed by path."""

        return dict(self._documents)

    def _ensure_parents(self, path: str) -> None:
        parent = parent_path(path)
        while parent and parent not in self._directories:
            self._directories.add(parent)
            parent = parent_path(parent)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"InMemoryDocumentStore(documents={len(self._documents)}, folders={len(self._directories) - 1})"


__all__ = ["InMemoryDocumentStore"]
