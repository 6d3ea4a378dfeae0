"""Query refinement service.

Asks the completion provider to improve a research query and return the
suggestion as JSON, then validates that JSON strictly. A short list of
research-type tags is generated alongside; tags are decorative, so their
failure never fails the suggestion.
"""

import json
import logging
import re

from pydantic import ValidationError as SchemaValidationError

from app.errors import GatewayError, MalformedSuggestion, UpstreamError
from app.models.schemas import RefinementSuggestion
from app.services.completion_client import CompletionClient
from app.services.report_pipeline import gather_all_or_nothing

logger = logging.getLogger(__name__)


SUGGESTION_PROMPT = """As a research assistant, analyze this query and suggest improvements:

Original query: "{query}"

Provide response in this JSON format:
{{
  "refinedQuery": "improved version of the query",
  "suggestedElements": {{
    "specificity": ["specific aspect 1", "specific aspect 2"],
    "researchType": ["methodology 1", "methodology 2"],
    "practicalApplication": ["application 1", "application 2"]
  }},
  "questionVariations": [
    {{
      "question": "more specific version of the query",
      "explanation": "why this version is more effective"
    }},
    {{
      "question": "alternative approach to the query",
      "explanation": "how this approach differs"
    }}
  ],
  "relatedConcepts": ["technical term 1", "technical term 2"]
}}

Guidelines:
1. Make suggestions more specific and measurable
2. Include relevant technical terms
3. Consider different research approaches
4. Focus on practical applications
5. Break down complex queries into specific elements

Return ONLY the JSON object."""

TAGS_PROMPT = (
    'Generate 3-4 relevant research type tags for this query: "{query}"\n'
    'Return only the tags separated by commas, like: '
    '"Specificity, Research type, Practical application"'
)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def parse_tags(raw: str) -> list[str]:
    """Split a comma-separated tag line, trimming each tag and keeping order."""
    tags = [tag.strip().strip('"').strip() for tag in raw.split(",")]
    return [tag for tag in tags if tag]


def parse_suggestion(raw: str) -> RefinementSuggestion:
    """Parse model output into a RefinementSuggestion.

    A surrounding markdown code fence is tolerated; anything else that is not
    a JSON object matching the schema is rejected whole.

    Raises:
        MalformedSuggestion: If the text is not valid JSON or fails validation.
    """
    match = _FENCE_RE.match(raw)
    text = match.group(1) if match else raw.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedSuggestion(
            "Failed to parse query suggestions", details=f"invalid JSON: {e}"
        ) from e
    if not isinstance(data, dict):
        raise MalformedSuggestion(
            "Failed to parse query suggestions", details="expected a JSON object"
        )
    # Tags come from their own request, never from this payload
    data.pop("researchTags", None)
    try:
        return RefinementSuggestion.model_validate(data)
    except SchemaValidationError as e:
        raise MalformedSuggestion(
            "Failed to parse query suggestions", details=str(e)
        ) from e


class QueryRefiner:
    """Suggests refinements and research tags for a query."""

    def __init__(self, completion_client: CompletionClient):
        self._completion = completion_client

    async def suggest_refinement(self, initial_query: str) -> RefinementSuggestion:
        """Return a validated suggestion with research tags attached.

        Args:
            initial_query: The query as the user typed it.

        Raises:
            ValueError: If the query is empty.
            MalformedSuggestion: If the provider gives no usable JSON suggestion.
        """
        if not initial_query or not initial_query.strip():
            raise ValueError("No query provided")

        suggestion, tags = await gather_all_or_nothing([
            self._request_suggestion(initial_query),
            self.get_research_tags(initial_query),
        ])
        return suggestion.model_copy(update={"research_tags": tags})

    async def get_research_tags(self, query: str) -> list[str]:
        """Return 3-4 research-type tags, or [] if they cannot be generated."""
        try:
            raw = await self._completion.complete(
                TAGS_PROMPT.format(query=query),
                temperature=0.2,
                max_tokens=100,
            )
        except GatewayError as e:
            logger.warning("Tag generation failed: %s", e)
            return []
        return parse_tags(raw)

    async def _request_suggestion(self, query: str) -> RefinementSuggestion:
        try:
            raw = await self._completion.complete(
                SUGGESTION_PROMPT.format(query=query),
                temperature=0.3,
                max_tokens=800,
            )
        except UpstreamError as e:
            raise MalformedSuggestion(
                "Failed to generate query suggestions", details=e.detail
            ) from e
        return parse_suggestion(raw)
