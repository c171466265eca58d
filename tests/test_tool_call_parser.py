"""Tests for fenced tool-call detection."""

from __future__ import annotations

import pytest

from notebook_agent.ai.orchestration.tool_call_parser import (
    ToolCallParseError,
    find_tool_block,
    find_tool_call,
)


def test_plain_text_is_not_a_tool_call() -> None:
    assert find_tool_call("Just an answer.") is None
    assert find_tool_call("") is None


def test_parses_fenced_block_with_surrounding_text() -> None:
    reply = 'Sure.\n```json\n{"tool": "list_files", "parameters": {"path": ""}}\n```\nDone.'

    invocation = find_tool_call(reply)

    assert invocation is not None
    assert invocation.tool == "list_files"
    assert invocation.parameters == {"path": ""}


def test_missing_parameters_default_to_empty_mapping() -> None:
    invocation = find_tool_call('```json\n{"tool": "list_documents"}\n```')

    assert invocation is not None
    assert invocation.parameters == {}


def test_only_first_block_is_considered() -> None:
    reply = (
        '```json\n{"tool": "first", "parameters": {}}\n```\n'
        '```json\n{"tool": "second", "parameters": {}}\n```'
    )

    invocation = find_tool_call(reply)

    assert invocation is not None
    assert invocation.tool == "first"


def test_untagged_fence_is_ignored() -> None:
    assert find_tool_block('```\n{"tool": "list_files"}\n```') is None


def test_invalid_json_raises_parse_error() -> None:
    with pytest.raises(ToolCallParseError) as excinfo:
        find_tool_call('```json\n{"tool": "list_files", \n```')

    assert excinfo.value.raw == '{"tool": "list_files",'


def test_json_without_tool_key_is_left_alone() -> None:
    assert find_tool_call('```json\n{"name": "example"}\n```') is None
    assert find_tool_call("```json\n[1, 2, 3]\n```") is None


def test_non_mapping_parameters_are_preserved_for_validation() -> None:
    invocation = find_tool_call('```json\n{"tool": "list_files", "parameters": "Projects"}\n```')

    assert invocation is not None
    assert invocation.parameters == "Projects"
