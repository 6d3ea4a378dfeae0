"""
Report pipeline: turns a research query into a persisted markdown report.

Steps run strictly in order and each has its own failure kind:

1. fetch papers from the search provider          -> SearchFailed
2. analyze every paper concurrently (join on all) -> UpstreamError
3. synthesize one report from all analyses        -> ReportGenerationFailed
4. persist the report for the requesting user     -> PersistenceError

A failed step aborts the request; earlier steps are never retried.
"""

import asyncio
import logging
from typing import Awaitable, Iterable, TypeVar

from pydantic import BaseModel

from app.errors import (
    ParseError,
    ReportGenerationFailed,
    SearchFailed,
    UpstreamError,
)
from app.models.schemas import AuthenticatedUser, Paper, PaperAnalysis, StoredRecord
from app.services.arxiv_client import ArxivClient
from app.services.completion_client import CompletionClient
from app.services.report_repository import ReportRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_FALLBACK = "Analysis failed"

ANALYSIS_PROMPT = """Analyze this research paper and provide the following details in a structured format:
- Research question
- Study methodology
- Key findings
- Limitations
- Conclusion

Title: {title}
Abstract: {abstract}"""

REPORT_PROMPT = """Generate a comprehensive, **evidence-based** research report about **"{query}"** following this **structured academic format**:

## {query}

---

### Abstract
Summarize the key aspects of the research:
- **Objective**: What is the study trying to achieve?
- **Methodology Overview**: What methods were used?
- **Key Findings Summary**: What are the main results?
- **Significance**: Why is this research important?

---

### Introduction & Research Objectives
- **Research Context**: Why is this topic important?
- **Problem Statement**: What problem does this research address?
- **Research Questions**: List the specific questions being explored.
- **Scope and Limitations**: Define the boundaries of the study.

---

### Literature Review
Compare the existing research:
- **Current State of Research**: Key studies and trends.
- **Theoretical Framework**: Models or theories that apply.
- **Research Gaps Identified**: Gaps in the current literature.
- **Key Concepts Defined**: Critical terms.

(Compare findings against the papers provided below.)

---

### Methodology
- **Research Approach**: Qualitative, quantitative or mixed?
- **Data Collection Methods**: Data sources used.
- **Analysis Techniques**: Statistical or analytical methods applied.
- **Tools & Frameworks Used**: Technologies, software or algorithms.

---

### Results & Analysis
Organize key results into a table:

| **Category** | **Findings** | **Evidence** | **Impact** |
|-------------|-------------|-------------|-------------|
| [area] | [result] | [data] | [significance] |

- Provide statistical results with proper benchmarks.
- Cite the referenced papers where possible.
- Highlight strengths and weaknesses of the findings.

---

### Discussion
- **Interpretation of Findings**: What do the results indicate?
- **Comparison with Existing Research**: How does this compare with past studies?
- **Practical Implications**: Real-world applications.
- **Limitations Encountered**: Potential biases or errors.

---

### Conclusions
- **Main Contributions**: New insights offered.
- **Key Insights**: What researchers and practitioners should take away.
- **Future Research Directions**: Open questions.
- **Recommendations**: Next steps for researchers.

---

### References
Provide a properly formatted reference list (APA, Harvard or IEEE) that cites the papers below.

---

### Analysis Guidelines
1. Use an academic writing style.
2. Support claims with evidence.
3. Include data tables where applicable.
4. Compare findings across multiple papers.
5. Highlight performance metrics and benchmarks where relevant.
6. Prioritize quantitative evidence.

Base your analysis on these papers and their findings:
{papers}

Work through the findings step by step and focus on data-driven insights rather than vague generalizations."""

PAPER_BLOCK = """Title: **{title}**
Authors: {authors}
Key Findings: {analysis}
"""


class ReportOutcome(BaseModel):
    """Everything the generate-report endpoint returns."""
    report: str
    papers: list[PaperAnalysis]
    saved_report: StoredRecord


async def gather_all_or_nothing(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently and return every result, in order.

    If any of them raises, the ones still pending are cancelled and the
    first error propagates; no partial result list is ever returned.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def build_analysis_prompt(paper: Paper) -> str:
    return ANALYSIS_PROMPT.format(title=paper.title, abstract=paper.abstract)


def build_report_prompt(query: str, analyses: list[PaperAnalysis]) -> str:
    """Fill the report template.

    The query is copied verbatim into provider-bound text; it is only ever
    treated as prompt content.
    """
    papers = "\n".join(
        PAPER_BLOCK.format(
            title=a.paper.title,
            authors=", ".join(a.paper.authors),
            analysis=a.analysis,
        )
        for a in analyses
    )
    return REPORT_PROMPT.format(query=query, papers=papers)


class ReportPipeline:
    """Generates and persists research reports."""

    def __init__(
        self,
        search_client: ArxivClient,
        completion_client: CompletionClient,
        max_papers: int = 5,
    ):
        self._search = search_client
        self._completion = completion_client
        self._max_papers = max_papers

    async def fetch_papers(self, query: str) -> list[Paper]:
        try:
            return await self._search.search(query, self._max_papers)
        except (UpstreamError, ParseError) as e:
            logger.error("Paper fetch failed: %s", e)
            raise SearchFailed("Failed to fetch papers from arXiv", details=e.message) from e

    async def analyze_paper(self, paper: Paper) -> PaperAnalysis:
        analysis = await self._completion.complete(
            build_analysis_prompt(paper),
            temperature=0.3,
            max_tokens=500,
            fallback=ANALYSIS_FALLBACK,
        )
        return PaperAnalysis(paper=paper, analysis=analysis)

    async def analyze_papers(self, papers: list[Paper]) -> list[PaperAnalysis]:
        """Analyze all papers concurrently; one failure fails the batch."""
        return await gather_all_or_nothing(self.analyze_paper(p) for p in papers)

    async def synthesize(self, query: str, analyses: list[PaperAnalysis]) -> str:
        try:
            return await self._completion.complete(
                build_report_prompt(query, analyses),
                temperature=0.3,
                max_tokens=2000,
            )
        except UpstreamError as e:
            logger.error("Report synthesis failed: %s", e)
            raise ReportGenerationFailed(
                "Failed to generate report content", details=e.detail
            ) from e

    async def generate_report(
        self,
        query: str,
        user: AuthenticatedUser,
        repository: ReportRepository,
    ) -> ReportOutcome:
        """Run the four steps for ``query`` on behalf of ``user``.

        Raises:
            SearchFailed, UpstreamError, ReportGenerationFailed, PersistenceError
        """
        if not query or not query.strip():
            raise ValueError("query must be a non-empty string")

        logger.info("Generating report: fetching papers")
        papers = await self.fetch_papers(query)

        logger.info("Analyzing %d papers", len(papers))
        analyses = await self.analyze_papers(papers)

        logger.info("Synthesizing report from %d analyses", len(analyses))
        report = await self.synthesize(query, analyses)

        logger.info("Persisting report")
        saved = await repository.save_report(owner=user.id, title=query, content=report)

        return ReportOutcome(report=report, papers=analyses, saved_report=saved)
