"""API routes for the Research Report Gateway."""

import logging

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import (
    get_completion_client,
    get_current_user,
    get_report_repository,
    get_search_client,
)
from app.config import get_settings
from app.errors import GatewayError, UpstreamError, ValidationError
from app.models.schemas import (
    AnalyzePaperRequest,
    AnalyzePaperResponse,
    AuthenticatedUser,
    GenerateReportResponse,
    QueryRequest,
    RecordType,
    RefinementSuggestion,
    ReportListResponse,
    SaveSearchRequest,
    SaveSearchResponse,
    SearchPapersResponse,
    SuggestPromptRequest,
)
from app.services.arxiv_client import ArxivClient
from app.services.completion_client import CompletionClient
from app.services.paper_summarizer import PaperSummarizer, analyze_abstract
from app.services.query_refiner import QueryRefiner
from app.services.report_pipeline import ReportPipeline
from app.services.report_repository import ReportRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _require(value: str | None, field_label: str) -> str:
    """Return the stripped value, or raise a 400 naming the missing field."""
    if value is None or not value.strip():
        raise ValidationError(f"{field_label} is required")
    return value.strip()


@router.post("/search-papers", response_model=SearchPapersResponse)
async def search_papers(
    body: QueryRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    search_client: ArxivClient = Depends(get_search_client),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    """Search arXiv and summarize each result plus an overview of all of them."""
    query = _require(body.query, "Query")
    settings = get_settings()

    summarizer = PaperSummarizer(
        search_client=search_client,
        completion_client=completion_client,
        max_papers=settings.search_max_papers,
    )
    result = await summarizer.search_and_summarize(query)
    logger.info("search-papers returned %d papers for user %s", len(result.papers), user.id)
    return result


@router.post("/generate-report", response_model=GenerateReportResponse)
async def generate_report(
    body: QueryRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    search_client: ArxivClient = Depends(get_search_client),
    completion_client: CompletionClient = Depends(get_completion_client),
    repository: ReportRepository = Depends(get_report_repository),
):
    """Generate a structured research report and save it for the user.

    The report is only returned once it has been persisted.
    """
    query = _require(body.query, "Query")
    settings = get_settings()
    logger.info("Report requested by user %s", user.id)

    pipeline = ReportPipeline(
        search_client=search_client,
        completion_client=completion_client,
        max_papers=settings.report_max_papers,
    )
    outcome = await pipeline.generate_report(query, user, repository)
    return GenerateReportResponse(
        report=outcome.report,
        papers=outcome.papers,
        saved_report=outcome.saved_report,
    )


@router.post(
    "/suggest-prompt",
    response_model=RefinementSuggestion,
    response_model_by_alias=True,
)
async def suggest_prompt(
    body: SuggestPromptRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    """Suggest a refined query, variations, related concepts and research tags."""
    initial_query = _require(body.initial_query, "Initial query")
    refiner = QueryRefiner(completion_client)
    return await refiner.suggest_refinement(initial_query)


@router.post("/analyze-paper", response_model=AnalyzePaperResponse)
async def analyze_paper(
    body: AnalyzePaperRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    """Summarize one abstract as What / How / Result bullets."""
    abstract = _require(body.abstract, "Abstract")
    try:
        return await analyze_abstract(completion_client, abstract)
    except UpstreamError as e:
        logger.error("Error analyzing paper: %s", e)
        raise GatewayError("Failed to analyze paper", details=e.detail) from e


@router.post("/save-search", response_model=SaveSearchResponse)
async def save_search(
    body: SaveSearchRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: ReportRepository = Depends(get_report_repository),
):
    """Save a search (query, papers and overview) to the user's history."""
    query = _require(body.query, "Query")
    saved = await repository.save_search(
        owner=user.id,
        title=query,
        summary=body.consolidated_summary or "",
        papers=body.papers,
    )
    return SaveSearchResponse(saved_search=saved)


@router.get("/reports", response_model=ReportListResponse)
async def list_reports(
    record_type: RecordType | None = Query(default=None, alias="type"),
    user: AuthenticatedUser = Depends(get_current_user),
    repository: ReportRepository = Depends(get_report_repository),
):
    """List the user's saved reports and searches, newest first."""
    records = await repository.list_for_owner(user.id, kind=record_type)
    return ReportListResponse(reports=records)
