"""Streams an assembled DOCX back to the client as an attachment."""

import logging

from fastapi.responses import StreamingResponse

from peticao.services.doc_builder import DOCX_MEDIA_TYPE

__all__ = [
    "_stream_docx",
    "docx_filename",
]

logger = logging.getLogger(__name__)


def docx_filename(doc_type: str, process_number: str) -> str:
    safe_number = "".join(ch if ch.isascii() and ch.isalnum() else "-" for ch in process_number).strip("-")
    return f"{doc_type}_{safe_number or 'documento'}.docx"


def _stream_docx(content: bytes, filename: str, request_id: str) -> StreamingResponse:
    logger.info("[%s] Streaming %s (%d bytes)", request_id, filename, len(content))
    return StreamingResponse(
        iter([content]),
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
