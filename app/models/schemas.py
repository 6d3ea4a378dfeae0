"""
Pydantic schemas for the Research Report Gateway.

This module contains all data validation and serialization models used
throughout the application, following Pydantic V2 syntax. Models exchanged
with the frontend serialize with camelCase aliases; persisted rows keep the
snake_case column names of the ``reports`` table.
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


RecordType = Literal["search"]


class Paper(BaseModel):
    """
    A paper returned by the bibliographic search provider.

    Immutable once parsed; fields the provider omitted are empty strings.
    """
    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Paper title, whitespace-collapsed")
    authors: list[str] = Field(default_factory=list, description="Author names in listed order")
    abstract: str = Field(default="", description="Paper abstract")
    link: str = Field(default="", description="Canonical link to the paper")


class PaperAnalysis(BaseModel):
    """Structured analysis of one paper, produced for report synthesis."""
    paper: Paper
    analysis: str = Field(..., description="Model-written analysis of the paper")


class AuthenticatedUser(BaseModel):
    """Identity resolved from a bearer credential for the current request."""
    id: str = Field(..., min_length=1, description="Opaque user id from the identity provider")
    email: str | None = Field(default=None, description="Account email, when the provider returns one")


class StoredRecord(BaseModel):
    """
    A row of the ``reports`` relation.

    Reports leave ``type`` and ``papers`` empty; saved searches carry
    ``type="search"`` and the list of papers the search returned.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    content: str
    papers: list[Paper] | None = None
    type: RecordType | None = None
    created_at: datetime


class QuestionVariation(BaseModel):
    """An alternative phrasing of the research question."""
    question: str
    explanation: str = ""


class RefinementSuggestion(BaseModel):
    """
    Suggested improvements to a research query.

    Parsed from model output, so unknown keys are rejected and every field
    is typed. ``research_tags`` is filled separately and may be empty.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    refined_query: str = Field(..., min_length=1, alias="refinedQuery")
    suggested_elements: dict[str, list[str]] = Field(
        default_factory=dict,
        alias="suggestedElements",
        description="Category (specificity, researchType, practicalApplication, ...) to suggestions"
    )
    question_variations: list[QuestionVariation] = Field(
        default_factory=list, alias="questionVariations"
    )
    related_concepts: list[str] = Field(default_factory=list, alias="relatedConcepts")
    research_tags: list[str] = Field(default_factory=list, alias="researchTags")


# ---------------------------------------------------------------------------
# Request bodies
#
# Required fields are optional here so that a missing value reaches the route
# and is reported as a 400 with a field-specific message.
# ---------------------------------------------------------------------------

class QueryRequest(BaseModel):
    """Body of /search-papers and /generate-report."""
    query: str | None = None


class SuggestPromptRequest(BaseModel):
    """Body of /suggest-prompt."""
    model_config = ConfigDict(populate_by_name=True)

    initial_query: str | None = Field(default=None, alias="initialQuery")


class AnalyzePaperRequest(BaseModel):
    """Body of /analyze-paper."""
    abstract: str | None = None


class SaveSearchRequest(BaseModel):
    """Body of /save-search."""
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    papers: list[Paper] = Field(default_factory=list)
    consolidated_summary: str | None = Field(default=None, alias="consolidatedSummary")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class SearchPapersResponse(BaseModel):
    """Papers for a query, a brief summary of each and an overview of all."""
    model_config = ConfigDict(populate_by_name=True)

    papers: list[Paper] = Field(default_factory=list)
    summaries: list[str] = Field(default_factory=list)
    consolidated_summary: str = Field(default="", alias="consolidatedSummary")


class GenerateReportResponse(BaseModel):
    """A generated, already persisted report."""
    model_config = ConfigDict(populate_by_name=True)

    report: str
    papers: list[PaperAnalysis]
    saved_report: StoredRecord = Field(..., alias="savedReport")


class AnalyzePaperResponse(BaseModel):
    summary: str


class SaveSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    saved_search: StoredRecord = Field(..., alias="savedSearch")
    message: str = "Search saved successfully"


class ReportListResponse(BaseModel):
    reports: list[StoredRecord] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
