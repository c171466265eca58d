"""Tests for the document store implementations and path helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from notebook_agent.ai.orchestration.tool_dispatcher import ToolDispatcher
from notebook_agent.ai.tools.tool_wiring import register_builtin_tools
from notebook_agent.documents.filesystem_store import FileSystemDocumentStore
from notebook_agent.documents.memory_store import InMemoryDocumentStore
from notebook_agent.documents.paths import PathEscapeError, is_root_path, normalize_path
from notebook_agent.documents.store import (
    DirectoryRef,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentRef,
    DocumentStore,
    DocumentStoreError,
    EntryKind,
)


@pytest.fixture
def fs_root(tmp_path: Path) -> Path:
    (tmp_path / "Projects" / "Archive").mkdir(parents=True)
    (tmp_path / ".obsidian").mkdir()
    (tmp_path / "Inbox.md").write_text("inbox", encoding="utf-8")
    (tmp_path / "Projects" / "Alpha.md").write_text("alpha\r\nnotes", encoding="utf-8")
    (tmp_path / "Projects" / "Archive" / "Old.md").write_text("old", encoding="utf-8")
    (tmp_path / ".hidden.md").write_text("secret", encoding="utf-8")
    return tmp_path


@pytest.fixture(params=["memory", "filesystem"])
def any_store(request: pytest.FixtureRequest, fs_root: Path) -> DocumentStore:
    if request.param == "memory":
        return InMemoryDocumentStore(
            {
                "Inbox.md": "inbox",
                "Projects/Alpha.md": "alpha\nnotes",
                "Projects/Archive/Old.md": "old",
            }
        )
    return FileSystemDocumentStore(fs_root)


class TestPaths:
    @pytest.mark.parametrize("raw", ["", "/", ".", None, "  "])
    def test_root_aliases(self, raw: str | None) -> None:
        assert normalize_path(raw) == ""
        assert is_root_path(raw)

    def test_normalizes_separators_and_dots(self) -> None:
        assert normalize_path("/Projects\\./Archive//Old.md") == "Projects/Archive/Old.md"
        assert normalize_path("Projects/Archive/../Alpha.md") == "Projects/Alpha.md"

    def test_rejects_escape(self) -> None:
        with pytest.raises(PathEscapeError):
            normalize_path("../etc/passwd")
        with pytest.raises(PathEscapeError):
            normalize_path("Projects/../../x")


class TestStoreContract:
    @pytest.mark.asyncio
    async def test_resolve(self, any_store: DocumentStore) -> None:
        assert await any_store.resolve("Inbox.md") == DocumentRef("Inbox.md")
        assert await any_store.resolve("Projects") == DirectoryRef("Projects")
        assert await any_store.resolve("Nope.md") is None

    @pytest.mark.asyncio
    async def test_read_normalizes_text(self, any_store: DocumentStore) -> None:
        assert await any_store.read_text("Projects/Alpha.md") == "alpha\nnotes"
        with pytest.raises(DocumentNotFoundError):
            await any_store.read_text("Nope.md")

    @pytest.mark.asyncio
    async def test_list_children_folders_first(self, any_store: DocumentStore) -> None:
        entries = await any_store.list_children(any_store.root())

        assert [(entry.name, entry.kind) for entry in entries] == [
            ("Projects", EntryKind.DIRECTORY),
            ("Inbox.md", EntryKind.DOCUMENT),
        ]

    @pytest.mark.asyncio
    async def test_all_documents_lists_every_document(self, any_store: DocumentStore) -> None:
        paths = sorted(document.path for document in await any_store.all_documents())

        assert paths == ["Inbox.md", "Projects/Alpha.md", "Projects/Archive/Old.md"]

    @pytest.mark.asyncio
    async def test_create_and_write(self, any_store: DocumentStore) -> None:
        created = await any_store.create("Projects/New.md", "draft")
        await any_store.write_text("Projects/New.md", "final")

        assert created == DocumentRef("Projects/New.md")
        assert await any_store.read_text("Projects/New.md") == "final"
        with pytest.raises(DocumentExistsError):
            await any_store.create("Projects/New.md", "again")

    @pytest.mark.asyncio
    async def test_create_requires_parent_folder(self, any_store: DocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            await any_store.create("Missing/New.md", "x")

        await any_store.create_directory("Missing")
        await any_store.create_directory("Missing")
        await any_store.create("Missing/New.md", "x")
        assert await any_store.resolve("Missing") == DirectoryRef("Missing")

    @pytest.mark.asyncio
    async def test_write_requires_existing_document(self, any_store: DocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            await any_store.write_text("Nope.md", "x")


def test_document_ref_properties() -> None:
    ref = DocumentRef("Projects/Archive/Old.MD")

    assert ref.name == "Old.MD"
    assert ref.extension == ".md"
    assert ref.parent == DirectoryRef("Projects/Archive")
    assert DocumentRef(".env").extension == ""
    assert DirectoryRef().is_root


class TestFileSystemStore:
    @pytest.mark.asyncio
    async def test_hidden_entries_are_not_part_of_store(self, fs_root: Path) -> None:
        store = FileSystemDocumentStore(fs_root)

        names = [entry.name for entry in await store.list_children(store.root())]
        documents = [document.path for document in await store.all_documents()]

        assert ".obsidian" not in names
        assert ".hidden.md" not in documents

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [".hidden.md", ".secret.md", ".obsidian/app.md", "Projects/.cache"])
    async def test_hidden_paths_are_refused(self, fs_root: Path, path: str) -> None:
        store = FileSystemDocumentStore(fs_root)

        with pytest.raises(DocumentStoreError):
            await store.resolve(path)
        with pytest.raises(DocumentStoreError):
            await store.create(path, "x")
        assert not (fs_root / ".secret.md").exists()

    @pytest.mark.asyncio
    async def test_create_document_tool_refuses_hidden_path(self, fs_root: Path) -> None:
        dispatcher = ToolDispatcher(register_builtin_tools(), FileSystemDocumentStore(fs_root))

        text = await dispatcher.execute("create_document", {"path": ".secret", "content": "x"})

        assert text == "Error executing 'create_document': '.secret.md' is a hidden path"
        assert not (fs_root / ".secret.md").exists()

    @pytest.mark.asyncio
    async def test_writes_land_on_disk(self, fs_root: Path) -> None:
        store = FileSystemDocumentStore(fs_root)

        await store.create("Inbox2.md", "hello")
        await store.write_text("Inbox.md", "updated")

        assert (fs_root / "Inbox2.md").read_text(encoding="utf-8") == "hello"
        assert (fs_root / "Inbox.md").read_text(encoding="utf-8") == "updated"

    def test_root_must_be_directory(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentStoreError):
            FileSystemDocumentStore(tmp_path / "missing")

    @pytest.mark.asyncio
    async def test_refuses_paths_outside_root(self, fs_root: Path) -> None:
        store = FileSystemDocumentStore(fs_root / "Projects")

        with pytest.raises(DocumentStoreError):
            await store.resolve("../Inbox.md")
