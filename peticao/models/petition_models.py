from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class DocType(str, Enum):
    """Petition kinds that can be generated. Values are the wire values."""

    RECURSO_ADMINISTRATIVO = "recurso_administrativo"
    CONTRARRAZOES = "contrarrazoes"
    SUBSTITUICAO_MARCA = "substituicao_marca"
    PRORROGACAO_PRAZO = "prorrogacao_prazo"
    DEFESA_NOTIFICACAO = "defesa_notificacao"


class SourceDocumentKind(str, Enum):
    FILING_NOTICE = "edital"
    COMPETITOR_APPEAL = "recurso_concorrente"
    OTHER = "outros"


class CaseStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class UploadState(str, Enum):
    """Lifecycle of a single upload, logged as it progresses."""

    VALIDATING = "validating"
    REJECTED = "rejected"
    UPLOADING = "uploading"
    STORED = "stored"
    RECORDING_METADATA = "recording_metadata"
    COMPENSATING = "compensating"
    FAILED = "failed"
    COMMITTED = "committed"


class _Record(BaseModel):
    # Field names are Python-side; aliases are the database column names
    model_config = ConfigDict(populate_by_name=True)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Company(_Record):
    id: str | None = None
    name: str
    tax_id: str = Field(alias="cnpj")
    email: str = ""
    phone: str = ""
    address: str = ""
    logo_url: str | None = None


class Case(_Record):
    id: str | None = None
    company_id: str
    title: str
    process_number: str
    agency: str
    description: str = ""
    status: CaseStatus = CaseStatus.ACTIVE


class SourceDocument(_Record):
    id: str | None = None
    case_id: str
    filename: str
    kind: SourceDocumentKind = Field(alias="type")
    storage_key: str = Field(alias="storage_path")
    size_bytes: int = Field(alias="file_size")
    uploaded_at: datetime | None = None


class GeneratedDocument(_Record):
    id: str | None = None
    case_id: str
    doc_type: DocType
    storage_url: str = Field(alias="docx_url")
    parameters: dict[str, Any] = Field(default_factory=dict)
    content: str = "Documento DOCX gerado com sucesso"
    created_at: datetime | None = None


class UploadedFile(BaseModel):
    """An upload candidate held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class UploadResult(BaseModel):
    document_id: str
    storage_key: str
    public_url: str


class LogoUploadResult(BaseModel):
    public_url: str
    storage_key: str
