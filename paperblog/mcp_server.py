"""Model Context Protocol server exposing paper tools to AI assistants.

Tools
-----
search_paper   -- find a paper's PDF by title (arXiv, then Semantic Scholar)
generate_blog  -- turn paper text into a blog post through the relay
find_related   -- list papers related by arXiv category or S2 recommendations

Every tool returns a JSON string: ``{"success": true, ...}`` on success and
``{"success": false, "error": message}`` on any failure.  Runs over stdio,
so nothing in this process may write to stdout.
"""

import json
import logging

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from paperblog.client import RelayClient
from paperblog.log import setup_logging
from paperblog.models import GenerationRequest, McpSettings, PaperMetadata, RelayError
from paperblog.pipeline import prepare_content
from paperblog.scholar import find_related_papers, search_paper as scholar_search_paper

logger = logging.getLogger(__name__)

#: Paper text sent to the relay by ``generate_blog`` is trimmed to this size.
MAX_CONTENT_CHARS = 8_000

mcp = FastMCP("paperblog-mcp")


def _ok(**fields) -> str:
    return json.dumps({"success": True, **fields}, ensure_ascii=False, indent=2)


def _error(message: str) -> str:
    return json.dumps({"success": False, "error": message}, ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
def search_paper(title: str) -> str:
    """Search for an academic paper by title on arXiv and Semantic Scholar.

    Returns the PDF URL and bibliographic metadata of the best match.
    """
    if not title or not title.strip():
        return _error("Title is required")
    result = scholar_search_paper(title.strip())
    if result is None:
        return _error("Paper not found on ArXiv or Semantic Scholar")
    return _ok(result=result.to_wire())


@mcp.tool()
def generate_blog(
    content: str,
    metadata: dict | None = None,
    temperature: float = 0.8,
    writingStyle: str = "alphaxiv",
) -> str:
    """Generate an engaging blog post from academic paper content.

    Args:
        content:      Paper text; trimmed to 8,000 characters.
        metadata:     Optional paper metadata (title, authors, arxivId, ...).
        temperature:  Creativity level between 0 and 1.
        writingStyle: alphaxiv, technical, casual, or academic.
    """
    if not content:
        return _error("Content is required")
    settings = McpSettings.from_env()
    if not settings.api_key:
        return _error("API_KEY environment variable is required for blog generation")

    try:
        request = GenerationRequest(
            pdf_content=prepare_content(content, MAX_CONTENT_CHARS),
            arxiv_metadata=PaperMetadata.model_validate(metadata) if metadata else None,
            temperature=temperature,
            writing_style=writingStyle,
            include_emojis=writingStyle == "alphaxiv",
            include_humor=writingStyle in ("alphaxiv", "casual"),
        )
    except ValidationError as exc:
        return _error(f"Invalid arguments: {exc}")

    client = RelayClient(settings.agent_url, settings.api_key, timeout_s=settings.timeout_s)
    try:
        blog_post = client.generate(request)
    except RelayError as exc:
        logger.error("Blog generation failed: %s", exc)
        return _error(str(exc))
    return _ok(blogPost=blog_post)


@mcp.tool()
def find_related(
    arxiv_id: str | None = None,
    title: str | None = None,
    max_results: int = 5,
) -> str:
    """Find papers related to a given paper by arXiv id or title."""
    if not arxiv_id and not title:
        return _error("Either arxiv_id or title is required")
    related = find_related_papers(arxiv_id=arxiv_id, title=title, max_results=max_results)
    return _ok(relatedPapers=[paper.to_wire() for paper in related])


def main() -> None:
    """Run the protocol server on stdio."""
    setup_logging()
    logger.info("Starting paperblog-mcp on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
