"""Rich text to block model and document plan tests."""

from models.export import ProposalExportData
from services.document_model import Block, BlockKind, parse_rich_text, split_plain_text
from services.document_plan import (
    EXECUTIVE_SUMMARY_TITLE,
    FALLBACK_SECTION_TITLE,
    build_document_plan,
)


def test_html_structure_becomes_blocks():
    html = (
        "<h1>Intro</h1>"
        "<p>Hello <strong>world</strong>.</p>"
        "<ul><li>One</li><li>Two<ul><li>Nested</li></ul></li></ul>"
        "<h4>Detail</h4>"
    )
    assert parse_rich_text(html) == [
        Block(BlockKind.HEADING, "Intro", 1),
        Block(BlockKind.PARAGRAPH, "Hello world."),
        Block(BlockKind.LIST_ITEM, "One"),
        Block(BlockKind.LIST_ITEM, "Two"),
        Block(BlockKind.LIST_ITEM, "Nested"),
        Block(BlockKind.HEADING, "Detail", 3),
    ]


def test_plain_text_heading_promotion():
    text = "OVERVIEW\n\nWe provide care.\n\n# Staffing\n\n2024\n\nAll staff are vetted."
    blocks = split_plain_text(text)

    assert blocks == [
        Block(BlockKind.HEADING, "OVERVIEW", 2),
        Block(BlockKind.PARAGRAPH, "We provide care."),
        Block(BlockKind.HEADING, "Staffing", 2),
        Block(BlockKind.PARAGRAPH, "2024"),
        Block(BlockKind.PARAGRAPH, "All staff are vetted."),
    ]


def test_long_uppercase_text_stays_a_paragraph():
    shout = "THIS IS A VERY LONG UPPERCASE SENTENCE THAT GOES ON AND ON FOREVER"
    assert split_plain_text(shout) == [Block(BlockKind.PARAGRAPH, shout)]


def test_unsafe_markup_never_reaches_blocks():
    blocks = parse_rich_text("<p>Safe</p><script>alert(1)</script>")
    assert blocks == [Block(BlockKind.PARAGRAPH, "Safe")]


def test_empty_content_has_no_blocks():
    assert parse_rich_text("") == []
    assert parse_rich_text("   \n ") == []


def _proposal(**overrides):
    data = {"title": "Bid", "content": "", "sections": []}
    data.update(overrides)
    return ProposalExportData.model_validate(data)


def test_sections_sorted_by_order_regardless_of_input():
    plan = build_document_plan(
        _proposal(
            sections=[
                {"title": "Third", "order": 2},
                {"title": "First", "order": 0},
                {"title": "Second", "order": 1},
            ]
        )
    )
    assert [s.title for s in plan.sections] == ["First", "Second", "Third"]


def test_equal_orders_keep_input_sequence():
    plan = build_document_plan(
        _proposal(sections=[{"title": "B", "order": 1}, {"title": "A", "order": 1}])
    )
    assert [s.title for s in plan.sections] == ["B", "A"]


def test_content_with_summary_marker_becomes_executive_summary():
    plan = build_document_plan(
        _proposal(
            content="<p>Executive summary: we deliver safe care.</p>",
            sections=[{"title": "Staffing", "order": 0}],
        )
    )
    assert plan.executive_summary.title == EXECUTIVE_SUMMARY_TITLE
    assert [s.title for s in plan.sections] == ["Staffing"]


def test_summary_from_content_drops_executive_section():
    plan = build_document_plan(
        _proposal(
            content="<p>Overview of our service offer.</p>",
            sections=[
                {"title": "Executive Summary", "order": 0, "content": "Old summary"},
                {"title": "Staffing", "order": 1},
            ],
        )
    )
    assert plan.executive_summary.title == EXECUTIVE_SUMMARY_TITLE
    assert plan.executive_summary.blocks == [
        Block(BlockKind.PARAGRAPH, "Overview of our service offer.")
    ]
    assert [s.title for s in plan.sections] == ["Staffing"]


def test_executive_section_is_promoted_and_not_repeated():
    plan = build_document_plan(
        _proposal(
            sections=[
                {"title": "Intro", "order": 0, "content": "Hi"},
                {"title": "Executive Overview", "order": 1, "content": "Key points"},
            ]
        )
    )
    assert plan.executive_summary.title == "Executive Overview"
    assert [s.title for s in plan.sections] == ["Intro"]


def test_content_only_proposal_gets_fallback_section():
    plan = build_document_plan(_proposal(content="Plain body text."))
    assert plan.executive_summary is None
    assert [s.title for s in plan.sections] == [FALLBACK_SECTION_TITLE]
    assert plan.sections[0].blocks == [Block(BlockKind.PARAGRAPH, "Plain body text.")]


def test_has_compliance_requires_items():
    assert not build_document_plan(_proposal()).has_compliance
    assert not build_document_plan(_proposal(compliance={})).has_compliance
    assert build_document_plan(_proposal(compliance={"requirements": ["Audit"]})).has_compliance
