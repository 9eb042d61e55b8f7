import pytest

from peticao.core.exceptions import ConflictError
from peticao.core.exceptions import NotFoundError
from peticao.core.exceptions import TerminalIOError
from peticao.core.exceptions import TransientIOError
from peticao.core.exceptions import ValidationError
from peticao.models.petition_models import DocType
from peticao.models.petition_models import SourceDocumentKind
from peticao.services import upload_service as upload_module
from peticao.services.doc_builder import DOCX_MEDIA_TYPE
from peticao.services.upload_service import UploadService


@pytest.fixture
def service(object_store, seeded_metadata, fast_retry):
    return UploadService(object_store, seeded_metadata, retry_config=fast_retry)


# ---------------------------------------------------------------------------
# Source documents
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_upload_source_document_happy_path(service, object_store, seeded_metadata, make_upload):
    result = await service.upload_source_document(make_upload("Edital 12.pdf"), "case-1", SourceDocumentKind.FILING_NOTICE)

    assert result.storage_key.startswith("case-1/")
    assert result.storage_key.endswith("-Edital_12.pdf")
    assert result.public_url == f"https://files.example.com/{result.storage_key}"
    assert object_store.objects[result.storage_key] == b"%PDF-1.4\n"

    record = seeded_metadata.documents[result.document_id]
    assert record.storage_key == result.storage_key
    assert record.kind == SourceDocumentKind.FILING_NOTICE
    assert record.size_bytes == len(b"%PDF-1.4\n")
    assert record.filename == "Edital 12.pdf"


@pytest.mark.asyncio
async def test_rejected_upload_makes_no_network_call(service, object_store, seeded_metadata, make_upload):
    with pytest.raises(ValidationError) as exc:
        await service.upload_source_document(make_upload("virus.exe", content_type="application/x-msdownload"), "case-1", "outros")

    assert str(exc.value).startswith("Tipo de arquivo não permitido")
    assert object_store.put_calls == []
    assert seeded_metadata.calls == []


@pytest.mark.asyncio
async def test_empty_upload_rejected(service, object_store, make_upload):
    with pytest.raises(ValidationError, match="Arquivo está vazio"):
        await service.upload_source_document(make_upload("a.pdf", content=b""), "case-1", "outros")
    assert object_store.put_calls == []


@pytest.mark.asyncio
async def test_transient_storage_failure_is_retried(service, object_store, seeded_metadata, make_upload):
    object_store.put_failures = [TransientIOError("timeout"), TransientIOError("timeout")]

    result = await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    assert len(object_store.put_calls) == 3
    assert result.document_id in seeded_metadata.documents


@pytest.mark.asyncio
async def test_terminal_storage_failure_is_not_retried(service, object_store, seeded_metadata, make_upload):
    object_store.put_failures = [TerminalIOError("Access Denied", code="AccessDenied", status_code=403)]

    with pytest.raises(TerminalIOError):
        await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    assert len(object_store.put_calls) == 1
    assert seeded_metadata.documents == {}


@pytest.mark.asyncio
async def test_storage_exhaustion_reports_attempts(service, object_store, seeded_metadata, make_upload):
    object_store.put_failures = [TransientIOError("timeout") for _ in range(4)]

    with pytest.raises(TransientIOError) as exc:
        await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    assert exc.value.attempts == 4
    assert "insert_source_document" not in seeded_metadata.calls


@pytest.mark.asyncio
async def test_metadata_failure_removes_stored_object(service, object_store, seeded_metadata, make_upload):
    seeded_metadata.insert_failures = [TerminalIOError("insert failed", code="23502")]

    with pytest.raises(TerminalIOError, match="insert failed"):
        await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    assert object_store.objects == {}
    assert len(object_store.remove_calls) == 1
    assert object_store.remove_calls[0][0] == object_store.put_calls[0]
    assert seeded_metadata.documents == {}


@pytest.mark.asyncio
async def test_failed_compensation_still_raises_insert_error(service, object_store, seeded_metadata, make_upload, monkeypatch):
    seeded_metadata.insert_failures = [TerminalIOError("insert failed")]
    object_store.remove_failures = [TransientIOError("network down")]
    logged = []
    monkeypatch.setattr(upload_module.logger, "error", lambda msg, *args, **_kw: logged.append(msg % args))

    with pytest.raises(TerminalIOError, match="insert failed"):
        await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    assert any("Could not remove orphaned object" in line for line in logged)
    assert seeded_metadata.documents == {}


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_removes_object_and_record(service, object_store, seeded_metadata, make_upload):
    result = await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")

    await service.delete_source_document(result.document_id)

    assert object_store.objects == {}
    assert seeded_metadata.documents == {}


@pytest.mark.asyncio
async def test_delete_tolerates_storage_failure(service, object_store, seeded_metadata, make_upload):
    result = await service.upload_source_document(make_upload("a.pdf"), "case-1", "outros")
    object_store.remove_failures = [TerminalIOError("Access Denied")]

    await service.delete_source_document(result.document_id)

    assert seeded_metadata.documents == {}
    assert result.storage_key in object_store.objects


# ---------------------------------------------------------------------------
# Company logo
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_logo_upload_updates_company(service, object_store, seeded_metadata, make_upload, png_bytes):
    result = await service.upload_company_logo(make_upload("Logo.PNG", png_bytes, "image/png"), "company-1")

    assert result.storage_key == "logos/company-1.png"
    assert object_store.objects["logos/company-1.png"] == png_bytes
    assert seeded_metadata.companies["company-1"].logo_url == result.public_url


@pytest.mark.asyncio
async def test_logo_reupload_overwrites(service, object_store, make_upload, png_bytes):
    await service.upload_company_logo(make_upload("logo.png", png_bytes, "image/png"), "company-1")
    await service.upload_company_logo(make_upload("novo.png", b"new-bytes", "image/png"), "company-1")

    assert object_store.objects["logos/company-1.png"] == b"new-bytes"


@pytest.mark.asyncio
async def test_logo_for_unknown_company_writes_nothing(service, object_store, make_upload, png_bytes):
    with pytest.raises(NotFoundError):
        await service.upload_company_logo(make_upload("logo.png", png_bytes, "image/png"), "missing")
    assert object_store.put_calls == []
    assert object_store.objects == {}


@pytest.mark.asyncio
async def test_logo_rejects_pdf(service, object_store, make_upload):
    with pytest.raises(ValidationError):
        await service.upload_company_logo(make_upload("logo.pdf"), "company-1")
    assert object_store.put_calls == []


# ---------------------------------------------------------------------------
# Generated documents
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_store_generated_document(service, object_store, seeded_metadata):
    record = await service.store_generated_document(b"PK-docx", "case-1", DocType.CONTRARRAZOES, {"params": "x"})

    key = next(iter(object_store.objects))
    assert key.startswith("generated/case-1/")
    assert key.endswith("-contrarrazoes.docx")
    assert object_store.content_types[key] == DOCX_MEDIA_TYPE
    assert record.storage_url == f"https://files.example.com/{key}"
    assert record.doc_type == DocType.CONTRARRAZOES
    assert record.id in seeded_metadata.generated


@pytest.mark.asyncio
async def test_store_generated_document_compensates(service, object_store, seeded_metadata):
    seeded_metadata.insert_failures = [ConflictError("duplicate", code="23505")]

    with pytest.raises(ConflictError):
        await service.store_generated_document(b"PK-docx", "case-1", DocType.CONTRARRAZOES, {})

    assert object_store.objects == {}
    assert seeded_metadata.generated == {}
