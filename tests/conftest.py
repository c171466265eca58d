"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

from notebook_agent.ai.orchestration.tool_dispatcher import ToolDispatcher
from notebook_agent.ai.tools.tool_wiring import register_builtin_tools
from notebook_agent.documents.memory_store import InMemoryDocumentStore
from notebook_agent.services.settings import Settings


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of settings-driven tests."""

    for name in list(os.environ):
        if name.startswith("NOTEBOOK_AGENT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(
        {
            "Inbox.md": "inbox",
            "Projects/Alpha.md": "alpha notes",
            "Projects/Beta.md": "beta notes",
            "Projects/Archive/Old.md": "old notes",
            "Projects/diagram.png": "binary",
        }
    )


@pytest.fixture
def dispatcher(store: InMemoryDocumentStore) -> ToolDispatcher:
    return ToolDispatcher(register_builtin_tools(), store)


@pytest.fixture
def settings() -> Settings:
    return Settings(active_provider="openai", openai_api_key="sk-test-key")
