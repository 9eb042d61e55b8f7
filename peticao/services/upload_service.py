"""Upload orchestration: validation, key generation, storage write and metadata.

Cleanup policy:
- storage written but metadata insert failed: the object is removed
  (best effort) and the insert error is raised;
- a metadata record never exists without its storage object;
- when deleting a document, a failed storage removal is only logged and the
  metadata record is deleted anyway.
"""

import logging
from typing import Any
from uuid import uuid4

from peticao.core.config import settings
from peticao.core.exceptions import CompensationFailure
from peticao.core.exceptions import ValidationError
from peticao.core.validation import LOGO_VALIDATION
from peticao.core.validation import ValidationOptions
from peticao.core.validation import file_extension
from peticao.core.validation import validate_file
from peticao.models.petition_models import DocType
from peticao.models.petition_models import GeneratedDocument
from peticao.models.petition_models import LogoUploadResult
from peticao.models.petition_models import SourceDocument
from peticao.models.petition_models import SourceDocumentKind
from peticao.models.petition_models import UploadedFile
from peticao.models.petition_models import UploadResult
from peticao.models.petition_models import UploadState
from peticao.services.doc_builder import DOCX_MEDIA_TYPE
from peticao.services.retry import RetryConfig
from peticao.services.retry import with_retry
from peticao.services.storage.contracts import MetadataStore
from peticao.services.storage.contracts import ObjectStore
from peticao.services.storage.naming import generate_storage_key

logger = logging.getLogger(__name__)


class UploadService:
    """Keeps object storage and relational metadata consistent under partial failure."""

    def __init__(
        self,
        object_store: ObjectStore,
        metadata: MetadataStore,
        retry_config: RetryConfig | None = None,
        document_validation: ValidationOptions | None = None,
    ):
        self.object_store = object_store
        self.metadata = metadata
        self.retry_config = retry_config or RetryConfig.from_settings()
        self.document_validation = document_validation or ValidationOptions(max_size_mb=settings.max_upload_size_mb)
        self.logo_validation = LOGO_VALIDATION.model_copy(update={"max_size_mb": settings.logo_max_size_mb})

    def _transition(self, rid: str, state: UploadState, detail: str = "") -> None:
        log = logger.warning if state in (UploadState.REJECTED, UploadState.FAILED, UploadState.COMPENSATING) else logger.info
        log("[%s] upload -> %s %s", rid, state.value, detail)

    async def _write(self, rid: str, key: str, data: bytes, content_type: str, overwrite: bool) -> None:
        self._transition(rid, UploadState.UPLOADING, key)
        try:
            await with_retry(
                lambda: self.object_store.put(key, data, content_type=content_type, overwrite=overwrite),
                self.retry_config,
            )
        except Exception:
            self._transition(rid, UploadState.FAILED, "storage write failed")
            raise
        self._transition(rid, UploadState.STORED, key)

    async def _compensate(self, rid: str, key: str) -> None:
        """Best-effort removal of an object whose metadata could not be recorded."""
        self._transition(rid, UploadState.COMPENSATING, key)
        try:
            await self.object_store.remove([key])
        except Exception as e:
            failure = CompensationFailure(f"Could not remove orphaned object {key}: {e}")
            logger.error("[%s] %s", rid, failure, exc_info=True)

    async def _record(self, rid: str, key: str, insert: Any) -> Any:
        """Run the metadata *insert* coroutine factory, compensating on failure."""
        self._transition(rid, UploadState.RECORDING_METADATA)
        try:
            record = await insert()
        except Exception as e:
            logger.error("[%s] Metadata insert failed: %s", rid, e)
            await self._compensate(rid, key)
            self._transition(rid, UploadState.FAILED, "metadata insert failed")
            raise
        self._transition(rid, UploadState.COMMITTED, key)
        return record

    def _validate(self, rid: str, file: UploadedFile, options: ValidationOptions) -> None:
        self._transition(rid, UploadState.VALIDATING, file.filename)
        result = validate_file(file, options)
        if not result.valid:
            self._transition(rid, UploadState.REJECTED, result.error or "")
            raise ValidationError(result.error or "Arquivo inválido")

    async def upload_source_document(self, file: UploadedFile, case_id: str, kind: SourceDocumentKind) -> UploadResult:
        rid = str(uuid4())
        logger.info("[%s] Uploading source document '%s' for case %s", rid, file.filename, case_id)
        self._validate(rid, file, self.document_validation)

        key = generate_storage_key(file.filename, case_id)
        await self._write(rid, key, file.content, file.content_type, overwrite=False)

        record = await self._record(
            rid,
            key,
            lambda: self.metadata.insert_source_document(
                SourceDocument(
                    case_id=case_id,
                    filename=file.filename,
                    kind=SourceDocumentKind(kind),
                    storage_key=key,
                    size_bytes=file.size,
                )
            ),
        )
        return UploadResult(
            document_id=str(record.id),
            storage_key=key,
            public_url=self.object_store.get_public_url(key),
        )

    async def upload_company_logo(self, file: UploadedFile, company_id: str) -> LogoUploadResult:
        rid = str(uuid4())
        logger.info("[%s] Uploading logo '%s' for company %s", rid, file.filename, company_id)
        self._validate(rid, file, self.logo_validation)
        # Raises NotFoundError before anything is written for an unknown company
        await self.metadata.get_company(company_id)

        # Deterministic key: re-uploading replaces the previous logo
        key = f"logos/{company_id}.{file_extension(file.filename)}"
        await self._write(rid, key, file.content, file.content_type, overwrite=True)

        public_url = self.object_store.get_public_url(key)
        await self.metadata.update_company(company_id, {"logo_url": public_url})
        self._transition(rid, UploadState.COMMITTED, key)
        return LogoUploadResult(public_url=public_url, storage_key=key)

    async def delete_source_document(self, document_id: str) -> None:
        rid = str(uuid4())
        record = await self.metadata.get_source_document(document_id)
        try:
            await self.object_store.remove([record.storage_key])
        except Exception as e:
            logger.error("[%s] Failed to delete %s from storage: %s", rid, record.storage_key, e)
        await self.metadata.delete_source_document(document_id)
        logger.info("[%s] Deleted document %s", rid, document_id)

    async def store_generated_document(
        self,
        content: bytes,
        case_id: str,
        doc_type: DocType,
        parameters: dict[str, Any],
    ) -> GeneratedDocument:
        rid = str(uuid4())
        doc_type = DocType(doc_type)
        key = generate_storage_key(f"{doc_type.value}.docx", f"generated/{case_id}")
        logger.info("[%s] Storing generated %s for case %s", rid, doc_type.value, case_id)
        await self._write(rid, key, content, DOCX_MEDIA_TYPE, overwrite=False)

        public_url = self.object_store.get_public_url(key)
        return await self._record(
            rid,
            key,
            lambda: self.metadata.insert_generated_document(
                GeneratedDocument(
                    case_id=case_id,
                    doc_type=doc_type,
                    storage_url=public_url,
                    parameters=parameters,
                )
            ),
        )
