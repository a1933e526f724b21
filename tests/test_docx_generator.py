"""DOCX generator tests (python-docx)."""

import io

import pytest
from docx import Document
from docx.shared import RGBColor

from core.exceptions import GenerationError
from models.export import ExportOptions, ProposalExportData
from services import docx_generator
from services.docx_generator import DOCXGenerator
from utils.date_utils import format_date_only

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _render(proposal, **options):
    result = DOCXGenerator(ExportOptions(format="docx", **options)).generate(proposal)
    assert result.success
    return result, Document(io.BytesIO(result.data.blob))


def _headings(document, level=1):
    return [p.text for p in document.paragraphs if p.style.name == f"Heading {level}"]


def test_docx_result_shape(proposal):
    result, document = _render(proposal)

    assert result.data.filename == f"elderly-care-proposal-{format_date_only()}.docx"
    assert result.data.content_type == DOCX_MIME
    texts = [p.text for p in document.paragraphs]
    assert "Elderly Care Proposal" in texts
    assert "Business Proposal" in texts
    assert "Prepared by: Sunrise Care Ltd" in texts
    assert document.core_properties.title == "Elderly Care Proposal"


def test_document_order(proposal):
    _, document = _render(proposal)
    assert _headings(document) == [
        "Table of Contents",
        "Intro",
        "Compliance Checklist",
        "Document Information",
    ]


def test_sections_follow_order_field():
    proposal = ProposalExportData.model_validate(
        {
            "title": "Ordering",
            "sections": [
                {"title": "Gamma", "order": 2},
                {"title": "Alpha", "order": 0},
                {"title": "Beta", "order": 1},
            ],
        }
    )
    _, document = _render(
        proposal, include_table_of_contents=False, include_metadata=False
    )
    assert _headings(document) == ["Alpha", "Beta", "Gamma"]


def test_compliance_glyphs_and_colours():
    proposal = ProposalExportData.model_validate(
        {
            "title": "Compliance",
            "compliance": {
                "checklist": [
                    {"item": "CQC rating", "status": "complete"},
                    {"item": "Insurance", "status": "incomplete", "notes": "Renewal due"},
                ],
                "requirements": ["Annual audit"],
            },
        }
    )
    _, document = _render(proposal, include_metadata=False)
    runs = {
        run.text: run
        for p in document.paragraphs
        for run in p.runs
        if run.text
    }

    assert runs["✓ CQC rating"].font.color.rgb == RGBColor.from_string("008000")
    assert runs["○ Insurance"].font.color.rgb == RGBColor.from_string("FF0000")
    assert runs["Notes: Renewal due"].italic
    assert "Requirements:" in runs
    assert "• Annual audit" in runs


def test_metadata_table_with_defaults(proposal):
    _, document = _render(proposal)
    assert len(document.tables) == 1
    table = document.tables[0]
    assert table.style.name == "Table Grid"

    rows = {row.cells[0].text: row.cells[1].text for row in table.rows}
    assert list(rows)[:2] == ["Document ID", "Title"]
    assert rows["Document ID"] == "prop-42"
    assert rows["Organization"] == "Sunrise Care Ltd"
    assert rows["Last Modified"] == "N/A"
    assert rows["Version"] == "1.0"
    assert rows["Created"] == "1 October 2026"
    assert "Export Time" in rows


def test_rich_content_becomes_headings_and_bullets():
    proposal = ProposalExportData.model_validate(
        {
            "title": "Rich",
            "sections": [
                {
                    "title": "Delivery",
                    "content": "<h2>Staffing</h2><p>We recruit locally.</p><ul><li>DBS checks</li></ul>",
                }
            ],
        }
    )
    _, document = _render(
        proposal, include_table_of_contents=False, include_metadata=False
    )
    assert _headings(document, level=2) == ["Staffing"]
    bullets = [p.text for p in document.paragraphs if p.style.name == "List Bullet"]
    assert bullets == ["DBS checks"]
    assert "We recruit locally." in [p.text for p in document.paragraphs]


def test_footer_carries_page_fields(proposal):
    _, document = _render(proposal)
    footer_xml = document.sections[0].footer._element.xml
    assert "NUMPAGES" in footer_xml
    assert " PAGE " in footer_xml


def test_internal_failure_is_wrapped(proposal, monkeypatch):
    def _boom(_):
        raise ValueError("bad tree")

    monkeypatch.setattr(docx_generator, "build_document_plan", _boom)
    with pytest.raises(GenerationError) as excinfo:
        DOCXGenerator(ExportOptions(format="docx")).generate(proposal)
    assert excinfo.value.code == "DOCX_GENERATION_FAILED"
    assert isinstance(excinfo.value.cause, ValueError)


def test_generate_docx_alias(proposal):
    result = DOCXGenerator(ExportOptions(format="docx")).generate_docx(proposal)
    assert result.success and result.data.size > 0


def test_pasted_control_characters_do_not_break_docx():
    proposal = ProposalExportData.model_validate(
        {
            "title": "Care\x0bPlan",
            "sections": [{"title": "Staff\x01ing", "content": "<p>Rota\x0c review</p>"}],
            "compliance": {"checklist": [{"item": "CQC\x08 rating", "status": "complete"}]},
        }
    )

    result, document = _render(proposal)

    texts = [p.text for p in document.paragraphs]
    assert "CarePlan" in texts
    assert "Staffing" in _headings(document)
    assert "Rota review" in texts
    assert result.data.filename.startswith("careplan-")
