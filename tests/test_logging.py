"""Tests for :mod:`notebook_agent.utils.logging`."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from notebook_agent.utils import logging as logging_utils


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    previous_level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in previous_handlers:
        root.addHandler(handler)
    root.setLevel(previous_level)


def test_setup_logging_writes_rotating_file(tmp_path: Path, restore_root_logging: None) -> None:
    log_path = logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False, force=True)
    logging.getLogger("notebook_agent.test").info("hello log")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path == tmp_path / "notebook_agent.log"
    assert "hello log" in log_path.read_text(encoding="utf-8")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_is_idempotent_unless_forced(tmp_path: Path, restore_root_logging: None) -> None:
    first = logging_utils.setup_logging(log_dir=tmp_path / "a", console=False, force=True)
    again = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False)
    forced = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False, force=True)

    assert again == first
    assert forced == tmp_path / "b" / "notebook_agent.log"


def test_log_dir_comes_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, restore_root_logging: None
) -> None:
    monkeypatch.setenv("NOTEBOOK_AGENT_LOG_DIR", str(tmp_path / "env"))

    log_path = logging_utils.setup_logging(console=False, force=True)

    assert log_path == tmp_path / "env" / "notebook_agent.log"
