from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client
from supabase import create_client

from peticao.core.config import settings
from peticao.core.exceptions import ConfigurationError
from peticao.core.exceptions import NotFoundError
from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import GeneratedDocument
from peticao.models.petition_models import SourceDocument
from peticao.services.retry import storage_error

# Configure module logger
logger = logging.getLogger(__name__)

COMPANIES_TABLE = "companies"
CASES_TABLE = "cases"
DOCUMENTS_TABLE = "documents"
GENERATED_DOCS_TABLE = "generated_docs"


class SupabaseMetadataStore:
    """Relational metadata kept in Supabase (PostgREST) tables.

    The Supabase client is synchronous; queries are offloaded to a worker thread
    so the event loop stays free.
    """

    def __init__(self, client: Client | None = None):
        if client is None:
            if not settings.supabase_url or not settings.supabase_key:
                logger.error("Missing Supabase configuration")
                raise ConfigurationError("Supabase is not configured (SUPABASE_URL and SUPABASE_KEY are required)")
            logger.info("Initializing Supabase client")
            client = create_client(settings.supabase_url, settings.supabase_key)
        self.sb = client

    async def _execute(self, description: str, build: Callable[[], Any]) -> list[dict[str, Any]]:
        def _sync() -> list[dict[str, Any]]:
            try:
                resp = build().execute()
            except APIError as e:
                logger.error("%s failed: %s (code=%s)", description, e.message, e.code)
                raise storage_error(f"{description} failed: {e.message}", code=e.code) from e
            except httpx.TransportError as e:
                logger.warning("%s failed with a transport error: %s", description, e)
                raise storage_error(f"{description} failed: network error ({e})", transient=True) from e
            return list(resp.data or [])

        return await asyncio.to_thread(_sync)

    async def _one(self, description: str, build: Callable[[], Any], missing: str) -> dict[str, Any]:
        rows = await self._execute(description, build)
        if not rows:
            raise NotFoundError(missing)
        return rows[0]

    # --- companies -----------------------------------------------------------

    async def get_company(self, company_id: str) -> Company:
        row = await self._one(
            "Fetch company",
            lambda: self.sb.table(COMPANIES_TABLE).select("*").eq("id", company_id).limit(1),
            f"Empresa {company_id} não encontrada",
        )
        return Company.model_validate(row)

    async def update_company(self, company_id: str, changes: dict[str, Any]) -> Company:
        row = await self._one(
            "Update company",
            lambda: self.sb.table(COMPANIES_TABLE).update(changes).eq("id", company_id),
            f"Empresa {company_id} não encontrada",
        )
        return Company.model_validate(row)

    # --- cases ---------------------------------------------------------------

    async def create_case(self, case: Case) -> Case:
        row = await self._one(
            "Case insert",
            lambda: self.sb.table(CASES_TABLE).insert(case.to_row()),
            "Case insert returned no data",
        )
        return Case.model_validate(row)

    async def get_case(self, case_id: str) -> Case:
        row = await self._one(
            "Fetch case",
            lambda: self.sb.table(CASES_TABLE).select("*").eq("id", case_id).limit(1),
            f"Caso {case_id} não encontrado",
        )
        return Case.model_validate(row)

    async def update_case(self, case_id: str, changes: dict[str, Any]) -> Case:
        row = await self._one(
            "Update case",
            lambda: self.sb.table(CASES_TABLE).update(changes).eq("id", case_id),
            f"Caso {case_id} não encontrado",
        )
        return Case.model_validate(row)

    async def list_cases(self, company_id: str) -> list[Case]:
        rows = await self._execute(
            "List cases",
            lambda: self.sb.table(CASES_TABLE).select("*").eq("company_id", company_id).order("created_at", desc=True),
        )
        return [Case.model_validate(row) for row in rows]

    # --- source documents ----------------------------------------------------

    async def insert_source_document(self, record: SourceDocument) -> SourceDocument:
        row = await self._one(
            "Document database insert",
            lambda: self.sb.table(DOCUMENTS_TABLE).insert(record.to_row()),
            "Document insert returned no data",
        )
        return SourceDocument.model_validate(row)

    async def get_source_document(self, document_id: str) -> SourceDocument:
        row = await self._one(
            "Fetch document",
            lambda: self.sb.table(DOCUMENTS_TABLE).select("*").eq("id", document_id).limit(1),
            f"Documento {document_id} não encontrado",
        )
        return SourceDocument.model_validate(row)

    async def delete_source_document(self, document_id: str) -> None:
        await self._execute(
            "Delete document from database",
            lambda: self.sb.table(DOCUMENTS_TABLE).delete().eq("id", document_id),
        )

    async def list_source_documents(self, case_id: str) -> list[SourceDocument]:
        rows = await self._execute(
            "List documents",
            lambda: self.sb.table(DOCUMENTS_TABLE).select("*").eq("case_id", case_id).order("uploaded_at", desc=True),
        )
        return [SourceDocument.model_validate(row) for row in rows]

    # --- generated documents -------------------------------------------------

    async def insert_generated_document(self, record: GeneratedDocument) -> GeneratedDocument:
        row = await self._one(
            "Generated document database insert",
            lambda: self.sb.table(GENERATED_DOCS_TABLE).insert(record.to_row()),
            "Generated document insert returned no data",
        )
        return GeneratedDocument.model_validate(row)

    async def list_generated_documents(self, case_id: str) -> list[GeneratedDocument]:
        rows = await self._execute(
            "List generated documents",
            lambda: self.sb.table(GENERATED_DOCS_TABLE).select("*").eq("case_id", case_id).order("created_at", desc=True),
        )
        return [GeneratedDocument.model_validate(row) for row in rows]
