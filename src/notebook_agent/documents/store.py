"""Abstract document store interface consumed by the agent core.

The core never touches files directly. It talks to a hierarchical store of
text documents through the :class:`DocumentStore` protocol; hosts plug in an
implementation (see :mod:`notebook_agent.documents.memory_store` and
:mod:`notebook_agent.documents.filesystem_store`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

from .paths import basename, parent_path

__all__ = [
    "EntryKind",
    "DocumentRef",
    "DirectoryRef",
    "StoreEntry",
    "DocumentStore",
    "DocumentStoreError",
    "DocumentNotFoundError",
    "DocumentExistsError",
]


class EntryKind(str, Enum):
    """Kinds of nodes the store can hold."""

    DOCUMENT = "document"
    DIRECTORY = "directory"


@dataclass(slots=True, frozen=True)
class DocumentRef:
    """Reference to a document by its normalized store path."""

    path: str

    @property
    def name(self) -> str:
        return basename(self.path)

    @property
    def extension(self) -> str:
        name = self.name
        dot = name.rfind(".")
        return name[dot:].lower() if dot > 0 else ""

    @property
    def parent(self) -> "DirectoryRef":
        return DirectoryRef(parent_path(self.path))


@dataclass(slots=True, frozen=True)
class DirectoryRef:
    """Reference to a directory; the empty path denotes the store root."""

    path: str = ""

    @property
    def name(self) -> str:
        return basename(self.path)

    @property
    def is_root(self) -> bool:
        return not self.path


@dataclass(slots=True, frozen=True)
class StoreEntry:
    """Immediate child of a directory as reported by ``list_children``."""

    name: str
    kind: EntryKind


class DocumentStoreError(Exception):
    """Base class for store failures."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a path does not resolve to the expected node."""

    def __init__(self, path: str) -> None:
        super().__init__(f"'{path}' not found", path=path)


class DocumentExistsError(DocumentStoreError):
    """Raised by ``create`` when something already lives at the path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"'{path}' already exists", path=path)


@runtime_checkable
class DocumentStore(Protocol):
    """Async key/tree store of text documents.

    Paths are store-relative, ``/``-separated, and already normalized by the
    caller (see :func:`notebook_agent.documents.paths.normalize_path`).
    """

    async def read_text(self, path: str) -> str:
        """Return the document text or raise :class:`DocumentNotFoundError`."""
        ...

    async def write_text(self, path: str, text: str) -> None:
        """Overwrite the document at ``path``."""
        ...

    async def create(self, path: str, text: str) -> DocumentRef:
        """Create a document, raising :class:`DocumentExistsError` if present."""
        ...

    async def create_directory(self, path: str) -> DirectoryRef:
        """Create a directory; a no-op when it already exists."""
        ...

    async def resolve(self, path: str) -> DocumentRef | DirectoryRef | None:
        """Resolve ``path`` to a node reference, or ``None`` when absent."""
        ...

    async def list_children(self, directory: DirectoryRef) -> Sequence[StoreEntry]:
        """Return the immediate children of ``directory`` in a stable order."""
        ...

    def root(self) -> DirectoryRef:
        """Return the root directory."""
        ...

    async def all_documents(self) -> Sequence[DocumentRef]:
        """Return every document in the store (order unspecified)."""
        ...
