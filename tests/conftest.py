import io
from typing import Any
from uuid import uuid4

import pytest
from PIL import Image

from peticao.core.exceptions import NotFoundError
from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import GeneratedDocument
from peticao.models.petition_models import SourceDocument
from peticao.models.petition_models import UploadedFile
from peticao.services.retry import RetryConfig


class InMemoryObjectStore:
    """Object store double. ``put_failures`` / ``remove_failures`` are raised in order."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.put_calls: list[str] = []
        self.remove_calls: list[list[str]] = []
        self.put_failures: list[Exception] = []
        self.remove_failures: list[Exception] = []

    async def put(self, key: str, data: bytes, *, content_type: str, overwrite: bool = False) -> None:
        self.put_calls.append(key)
        if self.put_failures:
            raise self.put_failures.pop(0)
        self.objects[key] = data
        self.content_types[key] = content_type

    def get_public_url(self, key: str) -> str:
        return f"https://files.example.com/{key}"

    async def remove(self, keys: list[str]) -> None:
        self.remove_calls.append(list(keys))
        if self.remove_failures:
            raise self.remove_failures.pop(0)
        for key in keys:
            self.objects.pop(key, None)


class InMemoryMetadataStore:
    """Metadata store double keeping rows in dicts. ``insert_failures`` are raised in order."""

    def __init__(self):
        self.companies: dict[str, Company] = {}
        self.cases: dict[str, Case] = {}
        self.documents: dict[str, SourceDocument] = {}
        self.generated: dict[str, GeneratedDocument] = {}
        self.insert_failures: list[Exception] = []
        self.calls: list[str] = []

    def _maybe_fail(self) -> None:
        if self.insert_failures:
            raise self.insert_failures.pop(0)

    async def get_company(self, company_id: str) -> Company:
        self.calls.append("get_company")
        if company_id not in self.companies:
            raise NotFoundError(f"Empresa {company_id} não encontrada", code="PGRST116")
        return self.companies[company_id]

    async def update_company(self, company_id: str, changes: dict[str, Any]) -> Company:
        self.calls.append("update_company")
        current = await self.get_company(company_id)
        updated = Company.model_validate({**current.to_row(), **changes})
        self.companies[company_id] = updated
        return updated

    async def create_case(self, case: Case) -> Case:
        self.calls.append("create_case")
        stored = case.model_copy(update={"id": str(uuid4())})
        self.cases[stored.id] = stored
        return stored

    async def get_case(self, case_id: str) -> Case:
        self.calls.append("get_case")
        if case_id not in self.cases:
            raise NotFoundError(f"Caso {case_id} não encontrado", code="PGRST116")
        return self.cases[case_id]

    async def update_case(self, case_id: str, changes: dict[str, Any]) -> Case:
        self.calls.append("update_case")
        current = await self.get_case(case_id)
        updated = Case.model_validate({**current.to_row(), **changes})
        self.cases[case_id] = updated
        return updated

    async def list_cases(self, company_id: str) -> list[Case]:
        return [case for case in self.cases.values() if case.company_id == company_id]

    async def insert_source_document(self, record: SourceDocument) -> SourceDocument:
        self.calls.append("insert_source_document")
        self._maybe_fail()
        stored = record.model_copy(update={"id": str(uuid4())})
        self.documents[stored.id] = stored
        return stored

    async def get_source_document(self, document_id: str) -> SourceDocument:
        if document_id not in self.documents:
            raise NotFoundError(f"Documento {document_id} não encontrado", code="PGRST116")
        return self.documents[document_id]

    async def delete_source_document(self, document_id: str) -> None:
        self.calls.append("delete_source_document")
        self.documents.pop(document_id, None)

    async def list_source_documents(self, case_id: str) -> list[SourceDocument]:
        return [doc for doc in self.documents.values() if doc.case_id == case_id]

    async def insert_generated_document(self, record: GeneratedDocument) -> GeneratedDocument:
        self.calls.append("insert_generated_document")
        self._maybe_fail()
        stored = record.model_copy(update={"id": str(uuid4())})
        self.generated[stored.id] = stored
        return stored

    async def list_generated_documents(self, case_id: str) -> list[GeneratedDocument]:
        return [doc for doc in self.generated.values() if doc.case_id == case_id]


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def metadata_store():
    return InMemoryMetadataStore()


@pytest.fixture
def fast_retry():
    # No real waiting between attempts
    return RetryConfig(max_retries=3, initial_delay_ms=0, max_delay_ms=0, backoff_multiplier=1.0)


@pytest.fixture
def company():
    return Company(
        id="company-1",
        name="Construtora Horizonte Ltda",
        tax_id="12.345.678/0001-90",
        email="contato@horizonte.com.br",
        phone="(11) 4000-1234",
        address="Av. Paulista, 1000, São Paulo/SP",
    )


@pytest.fixture
def case(company):
    return Case(
        id="case-1",
        company_id=company.id,
        title="Pregão Eletrônico 12/2026",
        process_number="2026/0042",
        agency="Prefeitura Municipal de Campinas",
    )


@pytest.fixture
def seeded_metadata(metadata_store, company, case):
    metadata_store.companies[company.id] = company
    metadata_store.cases[case.id] = case
    return metadata_store


# Fixture factory to create in-memory uploads with filename, content and MIME type
@pytest.fixture
def make_upload():
    def _make_upload(filename: str, content: bytes = b"%PDF-1.4\n", content_type: str = "application/pdf"):
        return UploadedFile(filename=filename, content_type=content_type, content=content)

    return _make_upload


@pytest.fixture
def png_bytes():
    out = io.BytesIO()
    Image.new("RGBA", (32, 32), (200, 30, 30, 255)).save(out, format="PNG")
    return out.getvalue()
