"""PDF generator tests (reportlab)."""

import io

import pytest
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth

from core.exceptions import GenerationError
from models.export import ExportOptions, ExportQuality, ProposalExportData
from services import pdf_generator
from services.pdf_fonts import get_font_set
from services.pdf_generator import PageWriter, PDFGenerator, StampingCanvas
from utils.date_utils import format_date_only


def _generate(proposal, **options):
    generator = PDFGenerator(ExportOptions(format="pdf", **options))
    return generator, generator.generate(proposal)


def test_end_to_end_compliance_glyph(proposal):
    generator, result = _generate(proposal, include_compliance=True)

    assert result.success
    assert result.data.blob.startswith(b"%PDF")
    assert result.data.size == len(result.data.blob) > 0
    assert result.data.filename == f"elderly-care-proposal-{format_date_only()}.pdf"
    assert result.data.content_type == "application/pdf"

    items = [e.text for e in generator.layout if e.kind == "compliance_item"]
    assert items == ["✓ CQC rating"]
    requirements = [e.text for e in generator.layout if e.kind == "requirement"]
    assert requirements == ["1. Annual audit"]


def test_page_order_and_toc_page_numbers(proposal):
    generator, result = _generate(proposal)

    # title, TOC, Intro, compliance, document information
    assert generator.page_count == 5
    assert result.metadata.page_count == 5
    toc = [e.text for e in generator.layout if e.kind == "toc_entry"]
    assert toc == ["Intro 3", "Compliance Checklist 4", "Document Information 5"]
    sections = [(e.page, e.text) for e in generator.layout if e.kind == "section"]
    assert sections == [
        (3, "Intro"),
        (4, "Compliance Checklist"),
        (5, "Document Information"),
    ]


def test_sections_render_in_ascending_order():
    proposal = ProposalExportData.model_validate(
        {
            "title": "Ordering",
            "sections": [
                {"title": "Gamma", "content": "c", "order": 2},
                {"title": "Alpha", "content": "a", "order": 0},
                {"title": "Beta", "content": "b", "order": 1},
            ],
        }
    )
    generator, _ = _generate(proposal, include_metadata=False, include_table_of_contents=False)
    titles = [e.text for e in generator.layout if e.kind == "section"]
    assert titles == ["Alpha", "Beta", "Gamma"]


def test_long_section_flows_across_pages():
    paragraphs = "\n\n".join(
        f"Paragraph {i}: " + "Our staff provide person-centred support every day. " * 6
        for i in range(80)
    )
    proposal = ProposalExportData.model_validate(
        {"title": "Long", "sections": [{"title": "Delivery", "content": paragraphs}]}
    )
    generator, _ = _generate(
        proposal, include_metadata=False, include_table_of_contents=False
    )

    pages = {e.page for e in generator.layout if e.kind == "paragraph"}
    assert len(pages) > 3
    assert max(pages) <= generator.page_count
    numbers = [e.text.split(":")[0] for e in generator.layout if e.kind == "paragraph"]
    assert numbers == [f"Paragraph {i}" for i in range(80)]


def test_optional_parts_can_be_switched_off(proposal):
    generator, _ = _generate(
        proposal,
        include_compliance=False,
        include_metadata=False,
        include_table_of_contents=False,
    )
    kinds = {e.kind for e in generator.layout}
    assert "compliance_item" not in kinds
    assert "metadata" not in kinds
    assert "toc_entry" not in kinds
    assert generator.page_count == 2


def test_draft_quality_implies_watermark(proposal):
    generator = PDFGenerator(ExportOptions(format="pdf", quality=ExportQuality.DRAFT))
    assert generator.watermark == "DRAFT"
    explicit = PDFGenerator(ExportOptions(format="pdf", watermark="CONFIDENTIAL"))
    assert explicit.watermark == "CONFIDENTIAL"
    assert explicit.generate(proposal).success


def test_stamping_canvas_sees_every_page_with_total():
    calls = []
    canv = StampingCanvas(
        io.BytesIO(), pagesize=A4, stamp=lambda c, page, total: calls.append((page, total))
    )
    for _ in range(3):
        canv.drawString(100, 100, "page")
        canv.showPage()
    canv.save()

    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_internal_failure_is_wrapped_with_cause(proposal, monkeypatch):
    def _boom(_):
        raise RuntimeError("layout exploded")

    monkeypatch.setattr(pdf_generator, "build_document_plan", _boom)

    with pytest.raises(GenerationError) as excinfo:
        PDFGenerator(ExportOptions(format="pdf")).generate(proposal)

    assert excinfo.value.code == "PDF_GENERATION_FAILED"
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_generate_pdf_alias(proposal):
    generator = PDFGenerator(ExportOptions(format="pdf", include_table_of_contents=False))
    assert generator.generate_pdf(proposal).data.blob.startswith(b"%PDF")


def _extract_text(blob):
    return "\n".join(page.extract_text() for page in PdfReader(io.BytesIO(blob)).pages)


def test_non_latin_text_survives_into_the_pdf():
    sample = "Zażółć gęślą jaźń"
    fonts = get_font_set()
    if not fonts.unicode or fonts.missing_glyphs(sample):
        pytest.skip("no Unicode TrueType font installed on this host")
    proposal = ProposalExportData.model_validate(
        {"title": "Plan opieki", "sections": [{"title": "Zespół", "content": sample}]}
    )

    _, result = _generate(proposal, include_table_of_contents=False)

    text = _extract_text(result.data.blob)
    assert sample in text
    assert "Zespół" in text
    assert "■" not in text
    assert "missing_glyphs" not in result.metadata.extra


def test_undrawable_characters_are_reported():
    if get_font_set().missing_glyphs("介護計画") != set("介護計画"):
        pytest.skip("installed font covers CJK")
    proposal = ProposalExportData.model_validate(
        {"title": "Bid", "sections": [{"title": "Intro", "content": "介護 計画"}]}
    )

    _, result = _generate(proposal)

    assert result.success
    assert set(result.metadata.extra["missing_glyphs"]) == set("介護計画")


def test_long_unbroken_tokens_are_hard_wrapped():
    writer = PageWriter(io.BytesIO())
    font = writer.fonts.regular
    url = "https://example.org/" + "a" * 400

    lines = writer._wrap(url, font, 9, writer.content_width)

    assert len(lines) > 1
    assert "".join(lines) == url
    assert all(stringWidth(line, font, 9) <= writer.content_width for line in lines)
