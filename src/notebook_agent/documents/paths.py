"""Store path normalization.

This is the only confinement applied to tool-supplied paths: they are
reduced to a canonical, root-relative form and may never climb above the
store root.
"""

from __future__ import annotations

__all__ = ["PathEscapeError", "normalize_path", "join_path", "parent_path", "basename", "is_root_path"]

_ROOT_ALIASES = {"", "/", "."}


class PathEscapeError(ValueError):
    """Raised when a path resolves outside the store root."""


def normalize_path(raw: str | None) -> str:
    """Return the canonical store path for ``raw``.

    Backslashes become ``/``, empty and ``.`` segments are dropped and ``..``
    segments are resolved. The root is the empty string.
    """

    text = (raw or "").strip().replace("\\", "/")
    if text in _ROOT_ALIASES:
        return ""
    parts: list[str] = []
    for segment in text.split("/"):
        segment = segment.strip()
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                raise PathEscapeError(f"Path '{raw}' escapes the document store root")
            parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def is_root_path(raw: str | None) -> bool:
    return normalize_path(raw) == ""


def join_path(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


def parent_path(path: str) -> str:
    head, _, _ = path.rpartition("/")
    return head


def basename(path: str) -> str:
    return path.rpartition("/")[2]
