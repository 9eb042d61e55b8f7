import io
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from uuid import uuid4

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches
from docx.shared import Pt
from docx.text.paragraph import Paragraph
from PIL import Image

from peticao.core.config import settings
from peticao.core.exceptions import AssemblyError
from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import DocType
from peticao.services.templates import ADDRESSEE_LINE
from peticao.services.templates import get_template
from peticao.services.templates import opening_sentence
from peticao.services.templates import render_paragraphs

# Configure module logger
logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

PAGE_MARGIN = Inches(1)
TITLE_SIZE = Pt(14)
HEADING_SIZE = Pt(12)
BODY_SIZE = Pt(11)
LETTERHEAD_NAME_SIZE = Pt(12)
LETTERHEAD_DETAIL_SIZE = Pt(10)
FIRST_LINE_INDENT = Inches(0.5)
LOGO_BOUNDS = Inches(1)
SIGNATURE_RULE = "_" * 50

MONTHS_PT_BR = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


@dataclass
class AssembledDocument:
    content: bytes
    warnings: list[str] = field(default_factory=list)


def format_long_date(value: date) -> str:
    """``19 de outubro de 2026``"""
    return f"{value.day} de {MONTHS_PT_BR[value.month - 1]} de {value.year}"


def _add_text(
    doc,
    text: str,
    *,
    size: Pt,
    bold: bool = False,
    align: WD_ALIGN_PARAGRAPH | None = None,
    space_before: Pt | None = None,
    space_after: Pt | None = None,
) -> Paragraph:
    par = doc.add_paragraph()
    run = par.add_run(text)
    run.bold = bold
    run.font.size = size
    if align is not None:
        par.alignment = align
    fmt = par.paragraph_format
    if space_before is not None:
        fmt.space_before = space_before
    if space_after is not None:
        fmt.space_after = space_after
    return par


def _add_body(doc, text: str) -> Paragraph:
    par = _add_text(doc, text, size=BODY_SIZE, align=WD_ALIGN_PARAGRAPH.JUSTIFY, space_after=Pt(10))
    par.paragraph_format.first_line_indent = FIRST_LINE_INDENT
    return par


def _add_horizontal_rule(doc) -> Paragraph:
    """Empty paragraph with a single top border spanning the text width."""
    par = doc.add_paragraph()
    par.paragraph_format.space_after = Pt(20)
    p_pr = par._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    top = OxmlElement("w:top")
    top.set(qn("w:val"), "single")
    top.set(qn("w:sz"), "6")
    top.set(qn("w:space"), "1")
    top.set(qn("w:color"), "000000")
    borders.append(top)
    p_pr.append(borders)
    return par


def _normalize_logo(data: bytes, mime_type: str | None) -> io.BytesIO:
    """Re-encode the logo into the container chosen from the declared MIME type."""
    target = "PNG" if mime_type and "png" in mime_type.lower() else "JPEG"
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if target == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        out = io.BytesIO()
        img.save(out, format=target)
    out.seek(0)
    return out


def _add_logo(doc, data: bytes, mime_type: str | None) -> None:
    stream = _normalize_logo(data, mime_type)
    par = doc.add_paragraph()
    par.alignment = WD_ALIGN_PARAGRAPH.CENTER
    par.add_run().add_picture(stream, width=LOGO_BOUNDS, height=LOGO_BOUNDS)


def _add_letterhead(doc, company: Company) -> None:
    center = WD_ALIGN_PARAGRAPH.CENTER
    _add_text(doc, company.name.upper(), size=LETTERHEAD_NAME_SIZE, bold=True, align=center, space_after=Pt(10))
    _add_text(doc, f"CNPJ: {company.tax_id}", size=LETTERHEAD_DETAIL_SIZE, align=center, space_after=Pt(10))
    if company.address:
        _add_text(doc, company.address, size=LETTERHEAD_DETAIL_SIZE, align=center, space_after=Pt(10))
    if company.email or company.phone:
        contact = " | ".join(part for part in (company.email, company.phone) if part)
        _add_text(doc, contact, size=LETTERHEAD_DETAIL_SIZE, align=center, space_after=Pt(20))
    _add_horizontal_rule(doc)


def _add_closing(doc, company: Company, issued_on: date) -> None:
    center = WD_ALIGN_PARAGRAPH.CENTER
    _add_text(
        doc,
        f"{settings.signature_city}, {format_long_date(issued_on)}.",
        size=BODY_SIZE,
        space_before=Pt(20),
        space_after=Pt(20),
    )
    _add_text(doc, SIGNATURE_RULE, size=BODY_SIZE, align=center, space_after=Pt(5))
    _add_text(doc, company.name, size=BODY_SIZE, bold=True, align=center, space_after=Pt(5))
    _add_text(doc, f"CNPJ: {company.tax_id}", size=LETTERHEAD_DETAIL_SIZE, align=center)


def assemble(
    doc_type: DocType,
    company: Company,
    case: Case,
    parameters: str | None = None,
    logo: bytes | None = None,
    logo_mime_type: str | None = None,
    issued_on: date | None = None,
) -> AssembledDocument:
    """Build the petition for *doc_type* and serialize it to DOCX bytes.

    Pure function of its inputs and the template table. A broken logo never
    fails the call: the document is produced without it and the failure is
    reported in ``warnings``. Raises ``AssemblyError`` only for a malformed
    template table.
    """
    rid = str(uuid4())
    template = get_template(doc_type)
    logger.info("[%s] Assembling '%s' for case %s", rid, template.title, case.process_number)
    warnings: list[str] = []

    doc = Document()
    for section in doc.sections:
        section.top_margin = PAGE_MARGIN
        section.bottom_margin = PAGE_MARGIN
        section.left_margin = PAGE_MARGIN
        section.right_margin = PAGE_MARGIN

    if logo:
        try:
            _add_logo(doc, logo, logo_mime_type)
        except Exception as e:
            logger.warning("[%s] Failed to add logo to document: %s", rid, e)
            warnings.append(f"Logo não incluído: {e}")

    _add_letterhead(doc, company)

    center = WD_ALIGN_PARAGRAPH.CENTER
    _add_text(doc, template.title, size=TITLE_SIZE, bold=True, align=center, space_after=Pt(20))
    _add_text(doc, f"Processo: {case.process_number}", size=BODY_SIZE, bold=True, space_after=Pt(5))
    _add_text(doc, f"Órgão: {case.agency}", size=BODY_SIZE, bold=True, space_after=Pt(20))
    _add_text(doc, ADDRESSEE_LINE, size=BODY_SIZE, bold=True, space_after=Pt(15))

    opening = opening_sentence(company, case)
    for section in template.sections:
        _add_text(doc, section.heading, size=HEADING_SIZE, bold=True, space_before=Pt(15), space_after=Pt(10))
        for text in render_paragraphs(section, opening, parameters):
            _add_body(doc, text)

    _add_closing(doc, company, issued_on or date.today())

    try:
        bio = io.BytesIO()
        doc.save(bio)
    except Exception as err:
        logger.exception("[%s] Document serialization failed", rid)
        raise AssemblyError("unexpected serialization error") from err
    size = bio.tell()
    bio.seek(0)
    logger.info("[%s] Document ready (%d bytes, %d warning(s))", rid, size, len(warnings))
    return AssembledDocument(content=bio.read(), warnings=warnings)
