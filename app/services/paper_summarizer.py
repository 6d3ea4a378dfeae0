"""Short summaries for search results and single abstracts.

Unlike the report pipeline these are best-effort: a paper whose summary
cannot be generated gets a placeholder instead of failing the search.
"""

import asyncio
import logging

from app.errors import GatewayError
from app.models.schemas import AnalyzePaperResponse, Paper, SearchPapersResponse
from app.services.arxiv_client import ArxivClient
from app.services.completion_client import CompletionClient

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "Summary not available"
SUMMARY_FAILED = "Summary generation failed"
OVERVIEW_UNAVAILABLE = "Overview not available"
ABSTRACT_SUMMARY_UNAVAILABLE = "Failed to generate summary"

ABSTRACT_CHAR_LIMIT = 1000

BRIEF_SUMMARY_PROMPT = """Provide a very brief 2-3 bullet point summary of this research paper (max 50 words total):
Title: {title}
Abstract: {abstract}"""

OVERVIEW_PROMPT = """Synthesize a cohesive overview of these research papers (max 100 words). Focus on common themes, key findings, and broader implications. Don't list papers individually.

Papers:
{papers}"""

ABSTRACT_PROMPT = """Give 3 one-line bullet points (max 10 words each):
- What: Main goal?
- How: Key method?
- Result: Key finding?

Abstract: {abstract}"""


class PaperSummarizer:
    """Search-and-summarize flow plus one-off abstract analysis."""

    def __init__(
        self,
        search_client: ArxivClient,
        completion_client: CompletionClient,
        max_papers: int = 6,
    ):
        self._search = search_client
        self._completion = completion_client
        self._max_papers = max_papers

    async def search_and_summarize(self, query: str) -> SearchPapersResponse:
        """Fetch papers for ``query`` with a brief summary each and an overview.

        Returns an empty response (no summaries, empty overview) when the
        search finds nothing.

        Raises:
            UpstreamError: If the search fails, or the overview request fails.
            ParseError: If the search response cannot be parsed.
        """
        papers = await self._search.search(query, self._max_papers)
        if not papers:
            logger.info("Search returned no papers")
            return SearchPapersResponse()

        summaries = await asyncio.gather(*(self.summarize_paper(p) for p in papers))
        overview = await self._completion.complete(
            OVERVIEW_PROMPT.format(
                papers="\n\n".join(f"{p.title}\n{p.abstract}" for p in papers)
            ),
            temperature=0.3,
            max_tokens=200,
            fallback=OVERVIEW_UNAVAILABLE,
        )
        return SearchPapersResponse(
            papers=papers,
            summaries=list(summaries),
            consolidated_summary=overview,
        )

    async def summarize_paper(self, paper: Paper) -> str:
        """Two or three bullet points for one paper; never raises a provider error."""
        try:
            return await self._completion.complete(
                BRIEF_SUMMARY_PROMPT.format(
                    title=paper.title,
                    abstract=paper.abstract[:ABSTRACT_CHAR_LIMIT],
                ),
                temperature=0.2,
                max_tokens=100,
                fallback=SUMMARY_UNAVAILABLE,
            )
        except GatewayError as e:
            logger.warning("Summary generation failed for '%s': %s", paper.title[:50], e)
            return SUMMARY_FAILED


async def analyze_abstract(
    completion_client: CompletionClient, abstract: str
) -> AnalyzePaperResponse:
    """What/How/Result bullets for a single abstract.

    Raises:
        UpstreamError: If the completion provider fails.
    """
    summary = await completion_client.complete(
        ABSTRACT_PROMPT.format(abstract=abstract),
        temperature=0.3,
        max_tokens=100,
        fallback=ABSTRACT_SUMMARY_UNAVAILABLE,
    )
    return AnalyzePaperResponse(summary=summary)
