"""Interfaces of the two external stores the upload pipeline talks to.

Implementations translate backend failures into ``TransientIOError`` or
``TerminalIOError`` (see ``peticao.core.exceptions``) so that the retry
executor can classify them from structured fields alone.
"""

from typing import Any
from typing import Protocol

from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import GeneratedDocument
from peticao.models.petition_models import SourceDocument


class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes, *, content_type: str, overwrite: bool = False) -> None: ...
    def get_public_url(self, key: str) -> str: ...
    async def remove(self, keys: list[str]) -> None: ...


class MetadataStore(Protocol):
    async def get_company(self, company_id: str) -> Company: ...
    async def update_company(self, company_id: str, changes: dict[str, Any]) -> Company: ...

    async def create_case(self, case: Case) -> Case: ...
    async def get_case(self, case_id: str) -> Case: ...
    async def update_case(self, case_id: str, changes: dict[str, Any]) -> Case: ...
    async def list_cases(self, company_id: str) -> list[Case]: ...

    async def insert_source_document(self, record: SourceDocument) -> SourceDocument: ...
    async def get_source_document(self, document_id: str) -> SourceDocument: ...
    async def delete_source_document(self, document_id: str) -> None: ...
    async def list_source_documents(self, case_id: str) -> list[SourceDocument]: ...

    async def insert_generated_document(self, record: GeneratedDocument) -> GeneratedDocument: ...
    async def list_generated_documents(self, case_id: str) -> list[GeneratedDocument]: ...
