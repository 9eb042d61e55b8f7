"""End-to-end petition generation for a case.

Loads the case and its company, waits out the simulated text-generation step,
fetches the company logo, assembles the DOCX in a worker thread and hands the
result to the upload service, which records it as a ``GeneratedDocument``.
"""

import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field

import httpx

from peticao.core.config import settings
from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import DocType
from peticao.models.petition_models import GeneratedDocument
from peticao.services.doc_builder import AssembledDocument
from peticao.services.doc_builder import assemble
from peticao.services.storage.contracts import MetadataStore
from peticao.services.upload_service import UploadService

__all__ = [
    "GenerationOutcome",
    "Logo",
    "assemble_for_case",
    "fetch_logo",
    "generate_petition",
    "load_case_and_company",
    "simulate_generation_delay",
]

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutcome:
    record: GeneratedDocument
    warnings: list[str] = field(default_factory=list)


@dataclass
class Logo:
    content: bytes
    mime_type: str | None


async def simulate_generation_delay() -> None:
    """Stand-in for the text-generation step: a fixed, uninterruptible wait."""
    await asyncio.sleep(settings.generation_delay_seconds)


async def fetch_logo(url: str, request_id: str) -> Logo | None:
    """Download the company logo. Failures are logged and yield ``None``."""
    try:
        async with httpx.AsyncClient(timeout=settings.logo_fetch_timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("[%s] Failed to fetch logo from %s: %s", request_id, url, e)
        return None
    mime_type = resp.headers.get("content-type", "").split(";")[0].strip() or None
    logger.debug("[%s] Logo fetched (%d bytes, %s)", request_id, len(resp.content), mime_type)
    return Logo(content=resp.content, mime_type=mime_type)


async def load_case_and_company(metadata: MetadataStore, case_id: str) -> tuple[Case, Company]:
    case = await metadata.get_case(case_id)
    company = await metadata.get_company(case.company_id)
    return case, company


async def assemble_for_case(
    case: Case,
    company: Company,
    doc_type: DocType,
    parameters: str | None,
    request_id: str,
) -> AssembledDocument:
    """Fetch the logo (if any) and assemble the document off the event loop."""
    logo = await fetch_logo(company.logo_url, request_id) if company.logo_url else None
    warnings: list[str] = []
    if company.logo_url and logo is None:
        warnings.append("Logo não pôde ser obtido")

    assembled = await asyncio.to_thread(
        assemble,
        doc_type,
        company,
        case,
        parameters,
        logo.content if logo else None,
        logo.mime_type if logo else None,
    )
    assembled.warnings[:0] = warnings
    return assembled


async def generate_petition(
    service: UploadService,
    metadata: MetadataStore,
    case_id: str,
    doc_type: DocType,
    parameters: str | None,
    request_id: str,
) -> GenerationOutcome:
    doc_type = DocType(doc_type)
    logger.info("[%s] Generating %s for case %s", request_id, doc_type.value, case_id)
    case, company = await load_case_and_company(metadata, case_id)

    await simulate_generation_delay()

    assembled = await assemble_for_case(case, company, doc_type, parameters, request_id)
    record = await service.store_generated_document(
        assembled.content,
        case_id,
        doc_type,
        {"params": parameters or "", "docType": doc_type.value},
    )
    logger.info("[%s] Generated document %s stored at %s", request_id, record.id, record.storage_url)
    return GenerationOutcome(record=record, warnings=assembled.warnings)
