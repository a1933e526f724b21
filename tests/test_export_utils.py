"""Export helper tests: sanitising, text extraction, sizing and filenames."""

import re
from datetime import datetime, timezone

import pytest

from models.export import ExportFormat, ResearchSessionExportOptions
from utils.date_utils import format_long_date
from utils.export_utils import (
    build_export_filename,
    estimate_file_size,
    extract_text_content,
    format_label,
    sanitize_html,
    slugify,
    strip_xml_illegal,
)

FILENAME_RE = re.compile(r"^[a-z0-9-]+-\d{4}-\d{2}-\d{2}\.(pdf|docx)$")


def test_sanitize_html_drops_active_content():
    dirty = (
        '<p onclick="steal()">Safe <a href="javascript:alert(1)">link</a></p>'
        "<script>alert('x')</script><iframe src='https://evil'></iframe>"
        "<style>p{}</style>"
    )
    clean = sanitize_html(dirty)

    assert "script" not in clean
    assert "iframe" not in clean
    assert "style" not in clean
    assert "onclick" not in clean
    assert "javascript:" not in clean
    assert "Safe" in clean and "link" in clean


def test_extract_text_content_strips_tags_then_decodes():
    assert extract_text_content("<h1>Title</h1><p>x</p>") == "Titlex"
    assert extract_text_content("&lt;b&gt;kept&lt;/b&gt;") == "<b>kept</b>"
    assert extract_text_content("<p>&nbsp;spaced&nbsp;</p>") == "spaced"
    assert extract_text_content("") == ""


def test_estimate_file_size_uses_format_ratio():
    content = "x" * 1000
    assert estimate_file_size(content, "pdf") == 800
    assert estimate_file_size(content, "docx") == 1200


def test_slugify_collapses_and_trims():
    assert slugify("  Elderly Care: Proposal!! ") == "elderly-care-proposal"
    assert slugify("!!!") == "document"
    assert slugify("") == "document"
    assert slugify("a" * 60 + " tail", max_length=50) == "a" * 50


@pytest.mark.parametrize(
    "title",
    [
        "Elderly Care Proposal",
        "../../etc/passwd",
        "C:\\Windows\\system32",
        "Ünïcödé Tïtle",
        "   ",
        "Q3 / Q4 <Bid> & \"Tender\"",
    ],
)
@pytest.mark.parametrize("fmt", ["pdf", "docx"])
def test_export_filename_is_filesystem_safe(title, fmt):
    filename = build_export_filename(title, fmt)
    assert FILENAME_RE.match(filename), filename
    assert "/" not in filename and "\\" not in filename


def test_export_filename_uses_utc_date_and_prefix():
    when = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)
    assert (
        build_export_filename("Elderly Care Proposal", "pdf", when=when)
        == "elderly-care-proposal-2026-10-18.pdf"
    )
    assert (
        build_export_filename("Notes", "docx", prefix="research-session-", when=when)
        == "research-session-notes-2026-10-18.docx"
    )


def test_format_long_date_passes_through_unparseable_text():
    assert format_long_date("2026-10-18") == "18 October 2026"
    assert format_long_date("next spring") == "next spring"


@pytest.mark.parametrize(
    "options, expected",
    [
        ({"format": "PDF"}, "pdf"),
        ({"format": "xlsx"}, "xlsx"),
        ({}, "unknown"),
        ({"format": None}, "unknown"),
        (ResearchSessionExportOptions(format=ExportFormat.DOCX), "docx"),
        ("not options", "unknown"),
    ],
)
def test_format_label(options, expected):
    assert format_label(options) == expected


def test_strip_xml_illegal_keeps_tabs_and_newlines():
    assert strip_xml_illegal("Care\x0bPlan\x00") == "CarePlan"
    assert strip_xml_illegal("a\tb\nc\rd") == "a\tb\nc\rd"
    assert strip_xml_illegal("Zażółć\ufffe") == "Zażółć"
    assert strip_xml_illegal("") == ""
