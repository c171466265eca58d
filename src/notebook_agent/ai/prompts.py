"""Prompt templates for the notebook agent.

The system prompt teaches the model the one tool-call shape the engine
recognizes and lists the registered tools by signature.
"""

from __future__ import annotations

from .tools.tool_registry import ToolRegistry

CONTEXT_PREFIX = "CURRENT CONTEXT:\n"


def build_system_prompt(registry: ToolRegistry) -> str:
    """Render the fixed agent instructions for ``registry``'s tools."""
    return f"""{_personality_section()}

You have the ability to execute tools to interact with the document store.
To use a tool, you MUST reply with a JSON block in the following format ONLY.
Do not include any other text if you are calling a tool.

```json
{{
  "tool": "tool_name",
  "parameters": {{
    "param1": "value1"
  }}
}}
```

Available Tools:
{_tool_section(registry)}

Only one tool call is executed per message. After it runs you will receive
its output and can then answer the user.
If you don't need to use a tool, just reply normally.
Be concise, helpful, and use Markdown for formatting.
"""


def format_context_message(context_text: str) -> str:
    """Return the content of the system message carrying the turn's context."""
    return f"{CONTEXT_PREFIX}{context_text}"


def format_tool_output(tool_name: str, text: str) -> str:
    """Return the user-role message that reports a tool's output to the model."""
    return f"Tool '{tool_name}' Output:\n{text}"


def _personality_section() -> str:
    return (
        'You are a "Notebook Agent" working inside the user\'s collection of notes. '
        "You have access to the user's notes and folders.\n"
        "Your goal is to assist the user in writing, organizing, and understanding their notes."
    )


def _tool_section(registry: ToolRegistry) -> str:
    lines = []
    for index, schema in enumerate(registry.get_all_schemas(), start=1):
        lines.append(f"{index}. {schema.signature()}: {schema.description}")
    return "\n".join(lines) if lines else "(no tools are available)"


__all__ = ["CONTEXT_PREFIX", "build_system_prompt", "format_context_message", "format_tool_output"]
