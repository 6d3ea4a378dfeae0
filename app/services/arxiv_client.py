"""arXiv API client for retrieving paper metadata."""

from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
import httpx
from defusedxml import DefusedXmlException
from loguru import logger

from app.errors import ParseError, UpstreamError
from app.models.schemas import Paper

ATOM_NS = {"a": "http://www.w3.org/2005/Atom"}


def _text(element: Element | None) -> str:
    """Full text content of an element (including children), or ''."""
    if element is None:
        return ""
    return "".join(element.itertext())


def _parse_entry(entry: Element) -> Paper:
    """Build a Paper from one Atom ``<entry>``.

    Missing sub-elements become empty strings; titles are wrapped over
    several lines in the feed, so newlines are collapsed to spaces.
    """
    title = _text(entry.find("a:title", ATOM_NS)).replace("\n", " ").strip()

    authors: list[str] = []
    for author in entry.findall("a:author", ATOM_NS):
        name = author.find("a:name", ATOM_NS)
        authors.append((_text(name) if name is not None else _text(author)).strip())

    return Paper(
        title=title,
        authors=authors,
        abstract=_text(entry.find("a:summary", ATOM_NS)).strip(),
        link=_text(entry.find("a:id", ATOM_NS)).strip(),
    )


def parse_feed(xml_text: str) -> list[Paper]:
    """Parse an arXiv Atom feed into Papers.

    Raises:
        ParseError: If the body is not well-formed XML, or declares entities.
    """
    try:
        root = ET.fromstring(xml_text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise ParseError("Unparseable response from arXiv", details=str(e)) from e
    return [_parse_entry(entry) for entry in root.findall("a:entry", ATOM_NS)]


class ArxivClient:
    """Async client for the arXiv query API.

    Holds one pooled HTTP client for the lifetime of the application; close
    it with ``close()`` at shutdown.
    """

    BASE_URL = "https://export.arxiv.org/api/query"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def search(self, query: str, max_results: int) -> list[Paper]:
        """Search arXiv across all fields.

        Args:
            query: Non-empty search text, sent as ``all:<query>``.
            max_results: Positive number of entries to request.

        Returns:
            Papers in the order arXiv ranks them. Empty list when nothing matches.

        Raises:
            UpstreamError: On a non-success response, timeout or connection failure.
            ParseError: If the response body is not a parseable feed.
        """
        if not query or not query.strip():
            raise ValueError("query must be a non-empty string")
        if max_results < 1:
            raise ValueError("max_results must be positive")

        params = {
            "search_query": f"all:{query}",
            "start": 0,
            "max_results": max_results,
        }

        try:
            response = await self._http_client.get(self.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"arXiv API error: {e.response.status_code} {e.response.reason_phrase}")
            raise UpstreamError("search", f"arXiv API error: {e.response.reason_phrase}") from e
        except httpx.TimeoutException as e:
            logger.warning(f"arXiv API timed out after {self.timeout}s")
            raise UpstreamError("search", "arXiv API timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"arXiv API request failed: {e}")
            raise UpstreamError("search", f"arXiv API request failed: {e}") from e

        papers = parse_feed(response.text)
        logger.info(f"arXiv returned {len(papers)} papers for query")
        return papers

    async def close(self):
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
