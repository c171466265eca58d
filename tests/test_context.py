"""Tests for :mod:`notebook_agent.ai.context`."""

from __future__ import annotations

import pytest

from notebook_agent.ai.ai_types import ContextScope
from notebook_agent.ai.context import (
    NO_ACTIVE_DOCUMENT,
    NO_FOLDER_CONTEXT,
    ContextAssembler,
    wrap_document,
)
from notebook_agent.documents.memory_store import InMemoryDocumentStore


def _store_with(count: int) -> InMemoryDocumentStore:
    return InMemoryDocumentStore({f"n{index:03d}.md": f"body {index}" for index in range(count)})


class TestDocumentScope:
    @pytest.mark.asyncio
    async def test_without_active_document(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        assert await assembler.assemble(ContextScope.DOCUMENT, None) == NO_ACTIVE_DOCUMENT
        assert await assembler.assemble(ContextScope.DOCUMENT, "Missing.md") == NO_ACTIVE_DOCUMENT

    @pytest.mark.asyncio
    async def test_wraps_active_document(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        text = await assembler.assemble("document", "Projects/Alpha.md")

        assert text == "\n--- START FILE: Projects/Alpha.md ---\nalpha notes\n--- END FILE: Projects/Alpha.md ---\n"

    @pytest.mark.asyncio
    async def test_non_text_document_contributes_nothing(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        assert await assembler.assemble(ContextScope.DOCUMENT, "Projects/diagram.png") == ""


class TestSubtreeScope:
    @pytest.mark.asyncio
    async def test_without_active_document(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        assert await assembler.assemble(ContextScope.SUBTREE, None) == NO_FOLDER_CONTEXT

    @pytest.mark.asyncio
    async def test_recurses_from_parent_folder(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        text = await assembler.assemble(ContextScope.SUBTREE, "Projects/Beta.md")

        assert text == (
            wrap_document("Projects/Archive/Old.md", "old notes")
            + wrap_document("Projects/Alpha.md", "alpha notes")
            + wrap_document("Projects/Beta.md", "beta notes")
        )
        assert "inbox" not in text
        assert "binary" not in text

    @pytest.mark.asyncio
    async def test_document_at_root_covers_whole_store(self, store: InMemoryDocumentStore) -> None:
        assembler = ContextAssembler(store)

        text = await assembler.assemble(ContextScope.SUBTREE, "Inbox.md")

        for path in ("Inbox.md", "Projects/Alpha.md", "Projects/Archive/Old.md"):
            assert f"--- START FILE: {path} ---" in text


class TestStoreScope:
    @pytest.mark.asyncio
    async def test_limit_exactly_reached_has_no_marker(self) -> None:
        assembler = ContextAssembler(_store_with(50))

        text = await assembler.assemble(ContextScope.STORE)

        assert text.count("--- START FILE:") == 50
        assert "Truncated" not in text

    @pytest.mark.asyncio
    async def test_one_over_limit_adds_marker(self) -> None:
        assembler = ContextAssembler(_store_with(51))

        text = await assembler.assemble(ContextScope.STORE)

        assert text.count("--- START FILE:") == 50
        assert text.endswith("\n... (Truncated. 1 more documents in store) ...\n")

    @pytest.mark.asyncio
    async def test_non_text_documents_count_toward_limit(self) -> None:
        documents = {"a.md": "a", "b.png": "b", "c.md": "c"}
        assembler = ContextAssembler(InMemoryDocumentStore(documents), limit=2)

        text = await assembler.assemble(ContextScope.STORE)

        assert text == wrap_document("a.md", "a") + "\n... (Truncated. 1 more documents in store) ...\n"

    @pytest.mark.asyncio
    async def test_extra_text_extensions(self) -> None:
        store = InMemoryDocumentStore({"a.md": "a", "b.txt": "b"})
        assembler = ContextAssembler(store, text_extensions=(".md", ".TXT"))

        text = await assembler.assemble(ContextScope.STORE)

        assert wrap_document("b.txt", "b") in text

    @pytest.mark.asyncio
    async def test_store_is_read_fresh_each_call(self) -> None:
        store = InMemoryDocumentStore({"a.md": "first"})
        assembler = ContextAssembler(store)

        before = await assembler.assemble(ContextScope.STORE)
        await store.write_text("a.md", "second")
        after = await assembler.assemble(ContextScope.STORE)

        assert "first" in before
        assert "second" in after


def test_negative_limit_rejected(store: InMemoryDocumentStore) -> None:
    with pytest.raises(ValueError):
        ContextAssembler(store, limit=-1)
