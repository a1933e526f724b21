"""
Fact-check Pydantic models
"""

from enum import Enum, IntEnum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field


class AISource(str, Enum):
    LIBRARY = "library"
    CREATIVE = "creative"
    INTERNET = "internet"


class ConfidenceScore(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CitationStyle(str, Enum):
    APA = "apa"
    MLA = "mla"
    CHICAGO = "chicago"


class WordLimit(IntEnum):
    SHORT = 50
    STANDARD = 100
    EXTENDED = 200


class FactCheckSource(BaseModel):
    id: str
    fact_check_id: Optional[str] = None
    title: str
    url: Optional[str] = None
    author: Optional[str] = None
    publication_date: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    reliability_score: Optional[float] = None
    source_type: Optional[str] = None
    relevant_excerpt: Optional[str] = None


class FactCheck(BaseModel):
    id: str
    text_content: str
    text_hash: str
    ai_source: AISource
    is_verified: bool = False
    confidence_score: ConfidenceScore
    confidence_percentage: Optional[float] = None
    sources: List[FactCheckSource] = Field(default_factory=list)
    citations: Optional[List[str]] = None
    citation_style: CitationStyle = CitationStyle.APA
    word_limit: WordLimit = WordLimit.STANDARD
    expanded_content: Optional[str] = None
    created_at: str
    updated_at: str


class FactCheckRequest(BaseModel):
    text: str = Field(..., min_length=1)
    ai_source: AISource
    word_limit: WordLimit
    citation_style: Optional[CitationStyle] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class FactCheckResponse(BaseModel):
    fact_check: FactCheck
    sources: List[FactCheckSource] = Field(default_factory=list)
    is_cached: bool = False
    processing_time_ms: float = 0.0


class SourceAttributionRequest(BaseModel):
    fact_check_id: str
    citation_style: CitationStyle = CitationStyle.APA
    include_excerpts: bool = False


class SourceAttributionResponse(BaseModel):
    formatted_citations: List[str] = Field(default_factory=list)
    sources: List[FactCheckSource] = Field(default_factory=list)
    citation_style: CitationStyle = CitationStyle.APA
    metadata: Dict[str, Any] = Field(default_factory=dict)
