"""File IO helpers backing the on-disk document store."""

from __future__ import annotations

import codecs
import locale
import os
import tempfile
from pathlib import Path

__all__ = ["read_text", "write_text", "create_text"]

_BOM_MAP: dict[bytes, str] = {
    codecs.BOM_UTF8: "utf-8-sig",
    codecs.BOM_UTF16_LE: "utf-16-le",
    codecs.BOM_UTF16_BE: "utf-16-be",
    codecs.BOM_UTF32_LE: "utf-32-le",
    codecs.BOM_UTF32_BE: "utf-32-be",
}


def read_text(
    path: Path | str,
    *,
    encoding: str | None = None,
    errors: str = "strict",
    normalize_newlines: bool = True,
) -> str:
    """Read a text file with encoding detection and optional newline normalization."""

    target = Path(path)
    raw = target.read_bytes()
    detected_encoding = encoding or _detect_encoding(raw)
    text = raw.decode(detected_encoding, errors=errors)
    text = _strip_bom(text)
    return _normalize_newlines(text) if normalize_newlines else text


def write_text(
    path: Path | str,
    content: str,
    *,
    encoding: str = "utf-8",
    atomic: bool = True,
) -> Path:
    """Write text to disk, replacing the target atomically by default."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    normalized = _normalize_newlines(content)
    if not atomic:
        with target.open("w", encoding=encoding, newline="") as handle:
            handle.write(normalized)
            handle.flush()
            os.fsync(handle.fileno())
        return target

    descriptor, tmp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(normalized)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def create_text(path: Path | str, content: str, *, encoding: str = "utf-8") -> Path:
    """Create ``path`` exclusively; raises :class:`FileExistsError` when present."""

    target = Path(path)
    with target.open("x", encoding=encoding, newline="") as handle:
        handle.write(_normalize_newlines(content))
    return target


def _detect_encoding(raw: bytes) -> str:
    for bom, encoding in _BOM_MAP.items():
        if raw.startswith(bom):
            return encoding

    preferred = locale.getpreferredencoding(False) or "utf-8"
    seen: set[str] = set()
    for candidate in ("utf-8", preferred, "latin-1"):
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        try:
            raw.decode(candidate)
            return candidate
        except UnicodeDecodeError:
            continue
    return "utf-8"


def _normalize_newlines(text: str) -> str:
    if "\r" not in text:
        return text
    text = text.replace("\r\n", "\n")
    return text.replace("\r", "\n")


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text
