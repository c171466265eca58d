"""Update Document tool: replace or append to an existing document."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Sequence

from ...documents.store import DocumentRef
from .base import BaseTool, ToolContext
from .create_document import ensure_extension
from .errors import DocumentMissingError
from .tool_registry import ParameterSchema

LOGGER = logging.getLogger(__name__)

MODES = ("append", "replace")


class UpdateDocumentTool(BaseTool):
    """Overwrite a document or append a line-separated block to it.

    The read-modify-write in append mode is not transactional; a concurrent
    external edit between the read and the write is lost.
    """

    name: ClassVar[str] = "update_document"
    description: ClassVar[str] = "Updates an existing document by appending to it or replacing its content."
    parameters: ClassVar[Sequence[ParameterSchema]] = (
        ParameterSchema("path", "string", "Store-relative path of the document.", required=True),
        ParameterSchema("content", "string", "Text to write.", required=True),
        ParameterSchema("mode", "string", "How to apply the content.", default="append", enum=MODES),
    )
    writes_document: ClassVar[bool] = True

    async def execute(self, context: ToolContext, params: dict[str, Any]) -> str:
        path = ensure_extension(self.normalize_path_param(params), context.document_extension)
        content = params.get("content", "")
        mode = params.get("mode") or "append"

        store = context.store
        if not isinstance(await store.resolve(path), DocumentRef):
            raise DocumentMissingError(path)

        if mode == "replace":
            await store.write_text(path, content)
            LOGGER.info("Replaced content of %s", path)
            context.notify(f"Updated (replaced) document: {path}")
            return f"Successfully replaced content of {path}"

        current = await store.read_text(path)
        await store.write_text(path, current + "\n" + content)
        LOGGER.info("Appended %d chars to %s", len(content), path)
        context.notify(f"Updated (appended) document: {path}")
        return f"Successfully appended to {path}"


__all__ = ["UpdateDocumentTool", "MODES"]
