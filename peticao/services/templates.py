"""Fixed legal templates for the five petition kinds.

Each template is a title plus ordered sections. Two sentinels may appear among a
section's paragraphs: ``OPENING_SLOT`` is replaced by the boilerplate opening
sentence built from company and case data, and ``PARAMETER_SLOT`` by the
caller's free text, falling back to the section's ``parameter_default``. Every
template carries exactly one parameter slot.
"""

from dataclasses import dataclass

from peticao.core.exceptions import AssemblyError
from peticao.models.petition_models import Case
from peticao.models.petition_models import Company
from peticao.models.petition_models import DocType

OPENING_SLOT = "{{ABERTURA}}"
PARAMETER_SLOT = "{{PARAMETROS}}"

ADDRESSEE_LINE = "EXCELENTÍSSIMO(A) SENHOR(A) PREGOEIRO(A),"

_REQUEST_CLOSING = ("Termos em que,", "Pede deferimento.")


@dataclass(frozen=True)
class TemplateSection:
    heading: str
    paragraphs: tuple[str, ...]
    parameter_default: str | None = None


@dataclass(frozen=True)
class DocumentTemplate:
    title: str
    sections: tuple[TemplateSection, ...]


TEMPLATES: dict[DocType, DocumentTemplate] = {
    DocType.CONTRARRAZOES: DocumentTemplate(
        title="CONTRARRAZÕES AO RECURSO ADMINISTRATIVO",
        sections=(
            TemplateSection(
                heading="I - DOS FATOS",
                paragraphs=(
                    OPENING_SLOT,
                    "A empresa recorrente interpôs recurso administrativo questionando a decisão proferida pelo "
                    "Pregoeiro, alegando supostas irregularidades no certame licitatório.",
                    "Ocorre que, conforme se demonstrará adiante, as alegações apresentadas não encontram respaldo "
                    "técnico, jurídico ou fático, razão pela qual devem ser rejeitadas.",
                    PARAMETER_SLOT,
                ),
                parameter_default="Os fatos específicos do caso demonstram a regularidade do procedimento adotado.",
            ),
            TemplateSection(
                heading="II - DO DIREITO",
                paragraphs=(
                    "DA LEGALIDADE DO PROCEDIMENTO ADOTADO",
                    "O procedimento licitatório foi conduzido em estrita observância aos princípios constitucionais "
                    "da legalidade, impessoalidade, moralidade, publicidade e eficiência, conforme estabelecido no "
                    "art. 37 da Constituição Federal.",
                    "A Lei nº 14.133/2021 (Nova Lei de Licitações) estabelece em seu art. 3º que a licitação "
                    "destina-se a garantir a observância do princípio constitucional da isonomia, a seleção da "
                    "proposta acentuadamente mais vantajosa para a administração e a promoção do desenvolvimento "
                    "nacional sustentável.",
                    "DA IMPROCEDÊNCIA DAS ALEGAÇÕES",
                    "As alegações apresentadas pela recorrente não merecem prosperar, uma vez que carecem de "
                    "fundamentação jurídica adequada e de respaldo nos autos do processo.",
                    "Todos os atos praticados foram devidamente motivados e publicados, garantindo-se ampla "
                    "transparência e possibilidade de contraditório, em observância ao devido processo legal "
                    "administrativo.",
                ),
            ),
            TemplateSection(
                heading="III - DO PEDIDO",
                paragraphs=(
                    "Diante do exposto, requer-se:",
                    "a) O conhecimento e provimento das presentes contrarrazões;",
                    "b) A rejeição integral do recurso interposto pela empresa concorrente;",
                    "c) A manutenção da decisão proferida pelo Pregoeiro;",
                    "d) Sejam os autos remetidos à autoridade superior para ratificação.",
                    *_REQUEST_CLOSING,
                ),
            ),
        ),
    ),
    DocType.RECURSO_ADMINISTRATIVO: DocumentTemplate(
        title="RECURSO ADMINISTRATIVO",
        sections=(
            TemplateSection(
                heading="I - DOS FATOS",
                paragraphs=(
                    OPENING_SLOT,
                    "Vem a requerente, tempestivamente, interpor o presente RECURSO ADMINISTRATIVO contra a "
                    "decisão que [descrever a decisão recorrida].",
                    PARAMETER_SLOT,
                    "A decisão ora recorrida viola frontalmente os princípios constitucionais aplicáveis às "
                    "licitações públicas.",
                ),
                parameter_default="Os fatos que motivam o presente recurso estão detalhadamente descritos nos autos.",
            ),
            TemplateSection(
                heading="II - DO DIREITO",
                paragraphs=(
                    "DO CABIMENTO DO RECURSO",
                    "O presente recurso encontra amparo no art. 165 da Lei nº 14.133/2021, que assegura o direito "
                    "de recurso aos licitantes.",
                    "DA ILEGALIDADE DA DECISÃO RECORRIDA",
                    "A decisão proferida viola os princípios da isonomia, da competitividade e da economicidade, "
                    "conforme demonstrado a seguir:",
                    "A interpretação adotada contraria jurisprudência pacífica do Tribunal de Contas da União sobre "
                    "a matéria.",
                    "Os requisitos impostos são manifestamente descabidos e criam restrições indevidas à "
                    "participação no certame.",
                ),
            ),
            TemplateSection(
                heading="III - DO PEDIDO",
                paragraphs=(
                    "Diante do exposto, requer-se:",
                    "a) O conhecimento e provimento do presente recurso;",
                    "b) A reforma da decisão recorrida;",
                    "c) Sejam observados os princípios constitucionais aplicáveis;",
                    "d) A produção de todas as provas admitidas em direito.",
                    *_REQUEST_CLOSING,
                ),
            ),
        ),
    ),
    DocType.SUBSTITUICAO_MARCA: DocumentTemplate(
        title="SOLICITAÇÃO DE SUBSTITUIÇÃO DE MARCA",
        sections=(
            TemplateSection(
                heading="I - DO PEDIDO",
                paragraphs=(
                    OPENING_SLOT,
                    "Vem requerer a SUBSTITUIÇÃO DE MARCA do produto ofertado na licitação em referência.",
                    PARAMETER_SLOT,
                ),
                parameter_default="A necessidade de substituição decorre de circunstâncias supervenientes.",
            ),
            TemplateSection(
                heading="II - DA JUSTIFICATIVA",
                paragraphs=(
                    "A marca originalmente proposta encontra-se temporariamente indisponível no mercado devido a "
                    "[motivo].",
                    "A marca substituta atende integralmente às especificações técnicas exigidas no edital.",
                    "A substituição não implica em alteração de preço ou condições da proposta.",
                    "Anexa-se documentação técnica comprobatória da equivalência entre os produtos.",
                ),
            ),
            TemplateSection(
                heading="III - DA CONCLUSÃO",
                paragraphs=(
                    "A substituição pretendida está prevista no edital e na legislação aplicável.",
                    "Não há prejuízo à Administração ou aos demais licitantes.",
                    "Requer-se o deferimento da presente solicitação de substituição de marca.",
                    *_REQUEST_CLOSING,
                ),
            ),
        ),
    ),
    DocType.PRORROGACAO_PRAZO: DocumentTemplate(
        title="SOLICITAÇÃO DE PRORROGAÇÃO DE PRAZO",
        sections=(
            TemplateSection(
                heading="I - DO PEDIDO",
                paragraphs=(
                    OPENING_SLOT,
                    "Vem requerer a PRORROGAÇÃO DO PRAZO para [especificar o ato: apresentação de documentos, "
                    "cumprimento de diligência, etc.].",
                    PARAMETER_SLOT,
                ),
                parameter_default="A necessidade de prorrogação decorre de circunstâncias alheias à vontade da requerente.",
            ),
            TemplateSection(
                heading="II - DA JUSTIFICATIVA",
                paragraphs=(
                    "O prazo originalmente estabelecido mostrou-se insuficiente devido a [motivo específico].",
                    "A empresa envidou todos os esforços para atender ao prazo inicialmente fixado.",
                    "A prorrogação não causará prejuízos ao certame ou ao interesse público.",
                    "Solicita-se prazo adicional de [número] dias úteis para cumprimento integral da exigência.",
                ),
            ),
            TemplateSection(
                heading="III - DA CONCLUSÃO",
                paragraphs=(
                    "A prorrogação de prazos é expressamente prevista na legislação, desde que devidamente "
                    "justificada.",
                    "O deferimento do pedido preserva o interesse público e a competitividade do certame.",
                    "Requer-se o deferimento da presente solicitação de prorrogação de prazo.",
                    *_REQUEST_CLOSING,
                ),
            ),
        ),
    ),
    DocType.DEFESA_NOTIFICACAO: DocumentTemplate(
        title="DEFESA CONTRA NOTIFICAÇÃO",
        sections=(
            TemplateSection(
                heading="I - DOS FATOS",
                paragraphs=(
                    OPENING_SLOT,
                    "Vem apresentar DEFESA em face da notificação recebida em [data], que aponta suposta "
                    "irregularidade.",
                    PARAMETER_SLOT,
                ),
                parameter_default="Os fatos narrados na notificação não correspondem à realidade.",
            ),
            TemplateSection(
                heading="II - DA DEFESA",
                paragraphs=(
                    "DA INEXISTÊNCIA DE IRREGULARIDADE",
                    "Contrariamente ao alegado na notificação, a empresa agiu em conformidade com todas as normas "
                    "aplicáveis.",
                    "A documentação acostada comprova a regularidade da conduta adotada.",
                    "DO CUMPRIMENTO DAS OBRIGAÇÕES CONTRATUAIS",
                    "Todas as obrigações previstas no contrato foram rigorosamente cumpridas nos prazos "
                    "estabelecidos.",
                    "Eventual divergência de interpretação não caracteriza irregularidade ou má-fé.",
                ),
            ),
            TemplateSection(
                heading="III - DO PEDIDO",
                paragraphs=(
                    "Diante do exposto, requer-se:",
                    "a) O acolhimento da presente defesa;",
                    "b) O arquivamento do procedimento instaurado;",
                    "c) A manutenção da empresa em situação regular;",
                    "d) Sejam considerados os documentos anexos.",
                    *_REQUEST_CLOSING,
                ),
            ),
        ),
    ),
}

DOC_TYPE_LABELS: dict[DocType, str] = {
    DocType.RECURSO_ADMINISTRATIVO: "Recurso Administrativo",
    DocType.CONTRARRAZOES: "Contrarrazões de Recurso",
    DocType.SUBSTITUICAO_MARCA: "Solicitação de Substituição de Marca",
    DocType.PRORROGACAO_PRAZO: "Solicitação de Prorrogação de Prazo",
    DocType.DEFESA_NOTIFICACAO: "Defesa contra Notificação",
}


def get_template(doc_type: DocType, table: dict[DocType, DocumentTemplate] | None = None) -> DocumentTemplate:
    """Look up the template for *doc_type* and check its shape."""
    templates = TEMPLATES if table is None else table
    template = templates.get(doc_type)
    if template is None:
        raise AssemblyError(f"No template registered for document type '{doc_type}'")
    if not template.title or not template.sections:
        raise AssemblyError(f"Template '{doc_type}' has no title or no sections")

    slots = 0
    for section in template.sections:
        section_slots = section.paragraphs.count(PARAMETER_SLOT)
        if section_slots and not section.parameter_default:
            raise AssemblyError(f"Template '{doc_type}' section '{section.heading}' has a slot but no default text")
        slots += section_slots
    if slots != 1:
        raise AssemblyError(f"Template '{doc_type}' must have exactly one parameter slot, found {slots}")
    return template


def opening_sentence(company: Company, case: Case) -> str:
    address = company.address or "conforme cadastro"
    return (
        f"{company.name}, inscrita no CNPJ sob o nº {company.tax_id}, com endereço {address}, vem, "
        "respeitosamente, à presença de Vossa Senhoria, apresentar o presente documento referente ao "
        f"Processo nº {case.process_number}."
    )


def render_paragraphs(section: TemplateSection, opening: str, parameters: str | None) -> list[str]:
    """Resolve the sentinels of *section* into final paragraph texts."""
    filler = parameters.strip() if parameters and parameters.strip() else section.parameter_default
    rendered = []
    for paragraph in section.paragraphs:
        if paragraph == OPENING_SLOT:
            rendered.append(opening)
        elif paragraph == PARAMETER_SLOT:
            rendered.append(filler or "")
        else:
            rendered.append(paragraph)
    return rendered
