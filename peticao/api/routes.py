import logging
from functools import lru_cache
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import Form
from fastapi import HTTPException
from fastapi import UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from pydantic import Field as PydanticField

from peticao.core.validation import MIME_MAPPING
from peticao.generation_logic.generation_flow import assemble_for_case
from peticao.generation_logic.generation_flow import generate_petition
from peticao.generation_logic.generation_flow import load_case_and_company
from peticao.generation_logic.report_finalization import _stream_docx
from peticao.generation_logic.report_finalization import docx_filename
from peticao.models.petition_models import Case
from peticao.models.petition_models import CaseStatus
from peticao.models.petition_models import Company
from peticao.models.petition_models import DocType
from peticao.models.petition_models import SourceDocumentKind
from peticao.models.petition_models import UploadedFile
from peticao.services.storage.contracts import MetadataStore
from peticao.services.storage.contracts import ObjectStore
from peticao.services.storage.metadata_store import SupabaseMetadataStore
from peticao.services.storage.s3_service import S3ObjectStore
from peticao.services.upload_service import UploadService

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Dependencies ---------------------------------------------------------


@lru_cache(maxsize=1)
def get_metadata_store() -> MetadataStore:
    return SupabaseMetadataStore()


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    return S3ObjectStore()


def get_upload_service(
    object_store: ObjectStore = Depends(get_object_store),
    metadata: MetadataStore = Depends(get_metadata_store),
) -> UploadService:
    return UploadService(object_store, metadata)


async def _read_upload(file: UploadFile, request_id: str) -> UploadedFile:
    filename = file.filename or "arquivo"
    try:
        content = await file.read()
    except Exception as e:
        logger.error(f"[{request_id}] Failed to read upload {filename}: {e}", exc_info=True)
        raise HTTPException(status_code=400, detail=f"Não foi possível ler '{filename}'.") from e
    suffix = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    content_type = file.content_type or MIME_MAPPING.get(suffix, "application/octet-stream")
    return UploadedFile(filename=filename, content_type=content_type, content=content)


def _column_changes(model: type[BaseModel], changes: dict[str, Any]) -> dict[str, Any]:
    """Map Python field names to database column names."""
    fields = model.model_fields
    return {(fields[name].alias or name): value for name, value in changes.items()}


# --- Payloads -------------------------------------------------------------


class CaseCreatePayload(BaseModel):
    company_id: str
    title: str
    process_number: str
    agency: str
    description: str = ""


class CaseUpdatePayload(BaseModel):
    title: str | None = None
    process_number: str | None = None
    agency: str | None = None
    description: str | None = None
    status: CaseStatus | None = None


class CompanyUpdatePayload(BaseModel):
    name: str | None = None
    tax_id: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class GeneratePayload(BaseModel):
    doc_type: DocType = PydanticField(..., description="Kind of petition to generate.")
    parameters: str | None = PydanticField(default=None, description="Free text inserted into the petition.")


# --- Cases ----------------------------------------------------------------


@router.post("/cases", status_code=201, tags=["Cases"])
async def create_case(
    payload: CaseCreatePayload,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> dict[str, Any]:
    case = await metadata.create_case(Case(**payload.model_dump()))
    logger.info("Case %s created for company %s", case.id, case.company_id)
    return case.model_dump(mode="json")


@router.patch("/cases/{case_id}", tags=["Cases"])
async def update_case(
    case_id: str,
    payload: CaseUpdatePayload,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> dict[str, Any]:
    changes = payload.model_dump(mode="json", exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nenhuma alteração informada.")
    case = await metadata.update_case(case_id, _column_changes(Case, changes))
    return case.model_dump(mode="json")


@router.get("/cases/{case_id}/documents", tags=["Documents"])
async def list_source_documents(
    case_id: str,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> list[dict[str, Any]]:
    return [doc.model_dump(mode="json") for doc in await metadata.list_source_documents(case_id)]


@router.get("/cases/{case_id}/generated", tags=["Generated documents"])
async def list_generated_documents(
    case_id: str,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> list[dict[str, Any]]:
    return [doc.model_dump(mode="json") for doc in await metadata.list_generated_documents(case_id)]


# --- Source documents -----------------------------------------------------


@router.post("/cases/{case_id}/documents", status_code=201, tags=["Documents"])
async def upload_source_document(
    case_id: str,
    file: UploadFile = File(...),
    kind: SourceDocumentKind = Form(SourceDocumentKind.OTHER),
    service: UploadService = Depends(get_upload_service),
) -> dict[str, str]:
    """Store a user-supplied document (notice, competitor appeal...) for a case."""
    request_id = str(uuid4())
    logger.info(f"[{request_id}] Upload received for case {case_id}: {file.filename} ({kind.value})")
    uploaded = await _read_upload(file, request_id)
    result = await service.upload_source_document(uploaded, case_id, kind)
    return result.model_dump()


@router.delete("/documents/{document_id}", status_code=204, tags=["Documents"])
async def delete_source_document(
    document_id: str,
    service: UploadService = Depends(get_upload_service),
) -> None:
    await service.delete_source_document(document_id)


# --- Company --------------------------------------------------------------


@router.patch("/companies/{company_id}", tags=["Company"])
async def update_company(
    company_id: str,
    payload: CompanyUpdatePayload,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> dict[str, Any]:
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nenhuma alteração informada.")
    company = await metadata.update_company(company_id, _column_changes(Company, changes))
    return company.model_dump(mode="json")


@router.post("/companies/{company_id}/logo", tags=["Company"])
async def upload_company_logo(
    company_id: str,
    file: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
) -> dict[str, str]:
    request_id = str(uuid4())
    uploaded = await _read_upload(file, request_id)
    result = await service.upload_company_logo(uploaded, company_id)
    return result.model_dump()


# --- Generation -----------------------------------------------------------


@router.post("/cases/{case_id}/generate", status_code=201, tags=["Generated documents"])
async def generate_document(
    case_id: str,
    payload: GeneratePayload,
    service: UploadService = Depends(get_upload_service),
    metadata: MetadataStore = Depends(get_metadata_store),
) -> dict[str, Any]:
    """Generate a petition for the case, store it and return its record.

    The call takes a few seconds: the text generation step is simulated with a
    fixed delay before the document is assembled.
    """
    request_id = str(uuid4())
    outcome = await generate_petition(service, metadata, case_id, payload.doc_type, payload.parameters, request_id)
    return {
        "document": outcome.record.model_dump(mode="json"),
        "warnings": outcome.warnings,
    }


@router.get("/cases/{case_id}/preview/{doc_type}", tags=["Generated documents"])
async def preview_document(
    case_id: str,
    doc_type: DocType,
    parameters: str | None = None,
    metadata: MetadataStore = Depends(get_metadata_store),
) -> StreamingResponse:
    """Assemble the petition and stream it back without storing anything."""
    request_id = str(uuid4())
    case, company = await load_case_and_company(metadata, case_id)
    assembled = await assemble_for_case(case, company, doc_type, parameters, request_id)
    return _stream_docx(assembled.content, docx_filename(doc_type.value, case.process_number), request_id)
