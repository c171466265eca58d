"""Context assembly: which document text is attached to a turn."""

from __future__ import annotations

import logging
from typing import Iterable

from ..documents.paths import PathEscapeError, join_path, normalize_path
from ..documents.store import DirectoryRef, DocumentRef, DocumentStore, EntryKind
from .ai_types import ContextScope

__all__ = [
    "ContextAssembler",
    "NO_ACTIVE_DOCUMENT",
    "NO_FOLDER_CONTEXT",
    "DEFAULT_CONTEXT_LIMIT",
    "wrap_document",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTEXT_LIMIT = 50
NO_ACTIVE_DOCUMENT = "No active document selected."
NO_FOLDER_CONTEXT = "No active document to determine folder context."


def wrap_document(path: str, text: str) -> str:
    """Delimit one document's text for inclusion in the context blob."""
    return f"\n--- START FILE: {path} ---\n{text}\n--- END FILE: {path} ---\n"


class ContextAssembler:
    """Build the context text for a scope by reading the document store.

    Nothing is cached: the store may change between turns, so every call
    reads it again. The store is never modified.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        limit: int = DEFAULT_CONTEXT_LIMIT,
        text_extensions: Iterable[str] = (".md",),
    ) -> None:
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self._store = store
        self._limit = limit
        self._text_extensions = frozenset(ext.lower() for ext in text_extensions)

    @property
    def limit(self) -> int:
        return self._limit

    async def assemble(self, scope: ContextScope | str, current_location: str | None = None) -> str:
        """Return the context text for ``scope``.

        ``current_location`` is the store path of the document the user is
        looking at, or ``None`` when nothing is open.
        """

        scope = ContextScope.parse(scope)
        if scope is ContextScope.STORE:
            return await self._store_content()

        document = await self._resolve_document(current_location)
        if scope is ContextScope.DOCUMENT:
            if document is None:
                return NO_ACTIVE_DOCUMENT
            return await self._document_content(document)

        if document is None:
            return NO_FOLDER_CONTEXT
        return await self._folder_content(document.parent)

    def is_text_document(self, document: DocumentRef) -> bool:
        return document.extension in self._text_extensions

    async def _resolve_document(self, location: str | None) -> DocumentRef | None:
        if not location:
            return None
        try:
            path = normalize_path(location)
        except PathEscapeError:
            LOGGER.warning("Ignoring current location outside the store: %r", location)
            return None
        if not path:
            return None
        node = await self._store.resolve(path)
        return node if isinstance(node, DocumentRef) else None

    async def _document_content(self, document: DocumentRef) -> str:
        if not self.is_text_document(document):
            return ""
        text = await self._store.read_text(document.path)
        return wrap_document(document.path, text)

    async def _folder_content(self, folder: DirectoryRef) -> str:
        parts: list[str] = []
        for entry in await self._store.list_children(folder):
            child_path = join_path(folder.path, entry.name)
            if entry.kind is EntryKind.DIRECTORY:
                parts.append(await self._folder_content(DirectoryRef(child_path)))
            else:
                parts.append(await self._document_content(DocumentRef(child_path)))
        return "".join(parts)

    async def _store_content(self) -> str:
        documents = list(await self._store.all_documents())
        included = documents[: self._limit]
        parts = [await self._document_content(document) for document in included]
        omitted = len(documents) - len(included)
        if omitted > 0:
            LOGGER.info("Store context truncated: %d of %d documents omitted", omitted, len(documents))
            parts.append(f"\n... (Truncated. {omitted} more documents in store) ...\n")
        return "".join(parts)
