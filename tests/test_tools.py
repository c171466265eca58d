"""Tests for the built-in document tools."""

from __future__ import annotations

from typing import Any

import pytest

from notebook_agent.ai.tools.base import BaseTool, ToolContext
from notebook_agent.ai.tools.create_document import CreateDocumentTool, ensure_extension
from notebook_agent.ai.tools.errors import (
    DocumentExistsToolError,
    ErrorCode,
    InvalidParameterError,
    ToolNotFoundError,
)
from notebook_agent.ai.tools.list_documents import ListDocumentsTool
from notebook_agent.ai.tools.update_document import UpdateDocumentTool
from notebook_agent.documents.memory_store import InMemoryDocumentStore


def _context(store: InMemoryDocumentStore, notices: list[str] | None = None) -> ToolContext:
    return ToolContext(store=store, notifier=notices.append if notices is not None else None)


class TestEnsureExtension:
    def test_appends_missing_extension(self) -> None:
        assert ensure_extension("Ideas", ".md") == "Ideas.md"
        assert ensure_extension("notes/todo.txt", ".md") == "notes/todo.txt.md"

    def test_keeps_existing_extension_case_insensitively(self) -> None:
        assert ensure_extension("Ideas.MD", ".md") == "Ideas.MD"


class TestCreateDocument:
    @pytest.mark.asyncio
    async def test_creates_document_and_notifies(self) -> None:
        store = InMemoryDocumentStore()
        notices: list[str] = []

        result = await CreateDocumentTool().run(_context(store, notices), {"path": "Ideas", "content": "first"})

        assert result.success
        assert result.message == "Successfully created document: Ideas.md"
        assert store.snapshot() == {"Ideas.md": "first"}
        assert notices == ["Created document: Ideas.md"]

    @pytest.mark.asyncio
    async def test_creates_intermediate_folders(self) -> None:
        store = InMemoryDocumentStore()

        result = await CreateDocumentTool().run(_context(store), {"path": "a/b/c.md", "content": "deep"})

        assert result.success
        assert await store.read_text("a/b/c.md") == "deep"
        assert [entry.name for entry in await store.list_children(store.root())] == ["a"]

    @pytest.mark.asyncio
    async def test_existing_document_is_left_unchanged(self, store: InMemoryDocumentStore) -> None:
        result = await CreateDocumentTool().run(_context(store), {"path": "Inbox.md", "content": "other"})

        assert not result.success
        assert result.error_code == ErrorCode.DOCUMENT_EXISTS
        assert result.message == "Error: Document 'Inbox.md' already exists. Use update_document instead."
        assert await store.read_text("Inbox.md") == "inbox"

    @pytest.mark.asyncio
    async def test_document_in_folder_position_is_refused(self, store: InMemoryDocumentStore) -> None:
        result = await CreateDocumentTool().run(_context(store), {"path": "Inbox.md/child", "content": ""})

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_PARAMETER

    @pytest.mark.asyncio
    async def test_path_escaping_root_is_refused(self) -> None:
        store = InMemoryDocumentStore()

        result = await CreateDocumentTool().run(_context(store), {"path": "../outside", "content": "x"})

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_PARAMETER
        assert store.snapshot() == {}


class TestUpdateDocument:
    @pytest.mark.asyncio
    async def test_create_replace_append_round_trip(self) -> None:
        store = InMemoryDocumentStore()
        context = _context(store)

        await CreateDocumentTool().run(context, {"path": "log.md", "content": "A"})
        replaced = await UpdateDocumentTool().run(context, {"path": "log.md", "content": "B", "mode": "replace"})
        appended = await UpdateDocumentTool().run(context, {"path": "log.md", "content": "C", "mode": "append"})

        assert replaced.message == "Successfully replaced content of log.md"
        assert appended.message == "Successfully appended to log.md"
        assert await store.read_text("log.md") == "B\nC"

    @pytest.mark.asyncio
    async def test_default_mode_appends(self, store: InMemoryDocumentStore) -> None:
        notices: list[str] = []

        result = await UpdateDocumentTool().run(_context(store, notices), {"path": "Inbox", "content": "more"})

        assert result.success
        assert await store.read_text("Inbox.md") == "inbox\nmore"
        assert notices == ["Updated (appended) document: Inbox.md"]

    @pytest.mark.asyncio
    async def test_missing_document(self, store: InMemoryDocumentStore) -> None:
        result = await UpdateDocumentTool().run(_context(store), {"path": "Nope.md", "content": "x"})

        assert not result.success
        assert result.message == "Error: Document 'Nope.md' not found."
        assert "Nope.md" not in store.snapshot()

    @pytest.mark.asyncio
    async def test_folder_is_not_a_document(self, store: InMemoryDocumentStore) -> None:
        result = await UpdateDocumentTool().run(
            _context(store), {"path": "Projects", "content": "x", "mode": "replace"}
        )

        assert result.error_code == ErrorCode.DOCUMENT_NOT_FOUND


class TestListDocuments:
    @pytest.mark.asyncio
    async def test_lists_root_folders_first(self, store: InMemoryDocumentStore) -> None:
        result = await ListDocumentsTool().run(_context(store), {"path": "/"})

        assert result.message == "Files in '/':\n- Projects (Folder)\n- Inbox.md (File)"

    @pytest.mark.asyncio
    async def test_listing_is_idempotent(self, store: InMemoryDocumentStore) -> None:
        tool = ListDocumentsTool()

        first = await tool.run(_context(store), {"path": "Projects"})
        second = await tool.run(_context(store), {"path": "Projects"})

        assert first.message == second.message
        assert first.message.splitlines() == [
            "Files in 'Projects':",
            "- Archive (Folder)",
            "- Alpha.md (File)",
            "- Beta.md (File)",
            "- diagram.png (File)",
        ]

    @pytest.mark.asyncio
    async def test_missing_folder(self, store: InMemoryDocumentStore) -> None:
        result = await ListDocumentsTool().run(_context(store), {"path": "Nowhere"})

        assert not result.success
        assert result.message == "Error: Folder 'Nowhere' not found."

    @pytest.mark.asyncio
    async def test_document_path_is_not_a_folder(self, store: InMemoryDocumentStore) -> None:
        result = await ListDocumentsTool().run(_context(store), {"path": "Inbox.md"})

        assert result.error_code == ErrorCode.FOLDER_NOT_FOUND


class _ExplodingTool(BaseTool):
    name = "explode"
    description = "Always fails."

    async def execute(self, context: ToolContext, params: dict[str, Any]) -> str:
        raise RuntimeError("disk on fire")


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_internal_error(store: InMemoryDocumentStore) -> None:
    result = await _ExplodingTool().run(_context(store), {})

    assert not result.success
    assert result.error_code == ErrorCode.INTERNAL_ERROR
    assert result.message == "disk on fire"


def test_tool_errors_serialize() -> None:
    error = DocumentExistsToolError("a.md")

    assert error.to_dict()["error"] == ErrorCode.DOCUMENT_EXISTS
    assert error.to_dict()["suggestion"] == "Use update_document instead"
    assert str(ToolNotFoundError("x")) == "[tool_not_found] Error: Tool 'x' not found."
    assert InvalidParameterError("bad", parameter="path").details == {"parameter": "path"}


def test_schema_lists_required_parameters() -> None:
    schema = UpdateDocumentTool.schema()

    assert schema.to_json_schema()["required"] == ["path", "content"]
    assert schema.signature() == "update_document(path: string, content: string, mode?: 'append' | 'replace')"
    assert schema.writes_document
