"""Detection of fenced JSON tool calls in model replies.

The only recognized shape is a fenced block tagged ``json`` whose body is an
object carrying a ``"tool"`` name and an optional ``"parameters"`` mapping::

    ```json
    {"tool": "list_documents", "parameters": {"path": ""}}
    ```

Only the first fenced ``json`` block in a reply is considered.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

__all__ = [
    "TOOL_BLOCK_RE",
    "ToolInvocation",
    "ToolCallParseError",
    "find_tool_block",
    "find_tool_call",
]

TOOL_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


@dataclass(slots=True, frozen=True)
class ToolInvocation:
    """A tool call requested by the model."""

    tool: str
    parameters: Any = field(default_factory=dict)
    raw: str = ""


class ToolCallParseError(ValueError):
    """Raised when the fenced block is present but is not valid JSON."""

    def __init__(self, message: str, *, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


def find_tool_block(text: str) -> str | None:
    """Return the body of the first fenced ``json`` block, if any."""

    if not text or not isinstance(text, str):
        return None
    match = TOOL_BLOCK_RE.search(text)
    return match.group(1) if match else None


def find_tool_call(text: str) -> ToolInvocation | None:
    """Parse the first fenced tool call out of ``text``.

    Returns ``None`` when there is no fenced ``json`` block, or when the block
    holds valid JSON that is not a tool call (not an object, or no ``"tool"``
    key), so ordinary JSON examples in a reply are left alone.

    Raises:
        ToolCallParseError: The block exists but its body is not valid JSON.
    """

    body = find_tool_block(text)
    if body is None:
        return None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ToolCallParseError(str(exc), raw=body) from exc

    if not isinstance(payload, dict) or "tool" not in payload:
        return None
    tool = payload.get("tool")
    if not isinstance(tool, str):
        tool = "" if tool is None else str(tool)
    parameters = payload.get("parameters")
    if parameters is None:
        parameters = {}
    elif isinstance(parameters, Mapping):
        parameters = dict(parameters)
    return ToolInvocation(tool=tool.strip(), parameters=parameters, raw=body)
