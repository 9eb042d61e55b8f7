"""Upload validation: allow-lists, size limits and the validation gate itself."""

import logging
from pathlib import PurePosixPath
from typing import Protocol

from pydantic import BaseModel
from pydantic import Field

logger = logging.getLogger(__name__)

BYTES_PER_MB: int = 1024 * 1024

DEFAULT_MAX_SIZE_MB: int = 50
LOGO_MAX_SIZE_MB: int = 5

# MIME type mapping for validation
MIME_MAPPING: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}

DOCUMENT_MIME_TYPES: list[str] = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]
DOCUMENT_EXTENSIONS: list[str] = ["pdf", "doc", "docx"]

LOGO_MIME_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp", "image/svg+xml"]
LOGO_EXTENSIONS: list[str] = ["jpg", "jpeg", "png", "webp", "svg"]


class FileLike(Protocol):
    """Anything that exposes the attributes the gate looks at."""

    filename: str
    content_type: str
    size: int


class ValidationOptions(BaseModel):
    max_size_mb: float = Field(default=DEFAULT_MAX_SIZE_MB)
    allowed_mime_types: list[str] = Field(default_factory=lambda: list(DOCUMENT_MIME_TYPES))
    allowed_extensions: list[str] = Field(default_factory=lambda: list(DOCUMENT_EXTENSIONS))


class ValidationResult(BaseModel):
    valid: bool
    error: str | None = None


LOGO_VALIDATION = ValidationOptions(
    max_size_mb=LOGO_MAX_SIZE_MB,
    allowed_mime_types=LOGO_MIME_TYPES,
    allowed_extensions=LOGO_EXTENSIONS,
)


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or an empty string."""
    return PurePosixPath(filename).suffix.lstrip(".").lower()


def _format_limit(max_size_mb: float) -> str:
    return f"{max_size_mb:g}MB"


def validate_file(file: FileLike, options: ValidationOptions | None = None) -> ValidationResult:
    """Check *file* against size, MIME type and extension constraints.

    Checks run in a fixed order and the first failure wins: empty file, size
    limit, declared MIME type, then extension (case-insensitive). An empty MIME
    allow-list disables the MIME check.
    """
    opts = options or ValidationOptions()
    allowed_extensions = [ext.lstrip(".").lower() for ext in opts.allowed_extensions]
    accepted = ", ".join(allowed_extensions)

    if file.size == 0:
        return ValidationResult(valid=False, error="Arquivo está vazio")

    if file.size > opts.max_size_mb * BYTES_PER_MB:
        return ValidationResult(
            valid=False,
            error=f"Arquivo muito grande. Tamanho máximo: {_format_limit(opts.max_size_mb)}",
        )

    if opts.allowed_mime_types and file.content_type not in opts.allowed_mime_types:
        return ValidationResult(
            valid=False,
            error=f"Tipo de arquivo não permitido. Tipos aceitos: {accepted}",
        )

    extension = file_extension(file.filename)
    if not extension or extension not in allowed_extensions:
        return ValidationResult(
            valid=False,
            error=f"Extensão não permitida. Extensões aceitas: {accepted}",
        )

    logger.debug("File '%s' passed validation (%d bytes, %s)", file.filename, file.size, file.content_type)
    return ValidationResult(valid=True)
