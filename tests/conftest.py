"""Shared fixtures for the CareDraft export and dispatch tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
#  Ensure project modules are importable regardless of invocation directory
# ---------------------------------------------------------------------------
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from models.export import ProposalExportData, ResearchSessionData  # noqa: E402


@pytest.fixture
def proposal_dict():
    return {
        "id": "prop-42",
        "title": "Elderly Care Proposal",
        "content": "",
        "sections": [
            {"id": "s1", "title": "Intro", "content": "Hello world.", "order": 0},
        ],
        "metadata": {
            "organization": "Sunrise Care Ltd",
            "author": "Jordan Patel",
            "created_at": "2026-10-01T09:00:00Z",
        },
        "compliance": {
            "checklist": [{"item": "CQC rating", "status": "complete"}],
            "requirements": ["Annual audit"],
        },
    }


@pytest.fixture
def proposal(proposal_dict):
    return ProposalExportData.model_validate(proposal_dict)


def make_result(idx: int, source: str, relevance: float) -> dict:
    return {
        "id": f"r{idx}",
        "title": f"Result {idx}",
        "url": f"https://example.org/{idx}",
        "snippet": f"Snippet for result {idx}",
        "source": source,
        "relevance_score": relevance,
    }


@pytest.fixture
def research_session_dict():
    return {
        "id": "sess-1",
        "title": "Dementia Care Evidence",
        "query": "dementia care staffing ratios",
        "results": [
            make_result(1, "NHS", 0.2),
            make_result(2, "Kings Fund", 0.9),
            make_result(3, "NHS", 0.7),
            make_result(4, "Kings Fund", 0.5),
            make_result(5, "NHS", 0.95),
        ],
        "created_at": "2026-10-10T12:00:00Z",
    }


@pytest.fixture
def research_session(research_session_dict):
    return ResearchSessionData.model_validate(research_session_dict)
