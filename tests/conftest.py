"""Shared pytest fixtures for the paperblog test suite."""

import json
import logging
from unittest.mock import MagicMock

import pytest

from paperblog.models import GenerationRequest, PaperMetadata


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_paperblog_logger():
    """Clear the paperblog logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("paperblog")
    for h in logger.handlers[:]:
        h.close()
        logger.removeHandler(h)
    logger.propagate = True
    yield
    for h in logger.handlers[:]:
        h.close()
        logger.removeHandler(h)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

PAPER_TEXT = (
    "Attention Is All You Need. The dominant sequence transduction models are "
    "based on complex recurrent or convolutional neural networks. We propose a "
    "new simple network architecture, the Transformer, based solely on "
    "attention mechanisms, dispensing with recurrence and convolutions entirely."
)

ARXIV_ATOM = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <updated>2023-08-02T00:41:18Z</updated>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
      You Need</title>
    <summary>The dominant sequence transduction models are based on complex
      recurrent or convolutional neural networks.</summary>
    <author><name>Ashish Vaswani</name></author>
    <author><name>Noam Shazeer</name></author>
    <link href="http://arxiv.org/abs/1706.03762v7" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/1706.03762v7" rel="related" type="application/pdf"/>
    <category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
</feed>
"""

EMPTY_ATOM = '<?xml version="1.0" encoding="UTF-8"?><feed xmlns="http://www.w3.org/2005/Atom"></feed>'


@pytest.fixture
def paper_text() -> str:
    return PAPER_TEXT


@pytest.fixture
def metadata() -> PaperMetadata:
    """Metadata as the arXiv lookup would return it for 1706.03762."""
    return PaperMetadata(
        arxiv_id="1706.03762",
        title="Attention Is All You Need",
        authors=["Ashish Vaswani", "Noam Shazeer"],
        published="2017-06-12T17:57:34Z",
        categories=["cs.CL", "cs.LG"],
        url="https://arxiv.org/abs/1706.03762",
    )


@pytest.fixture
def generation_request(paper_text) -> GenerationRequest:
    return GenerationRequest(pdf_content=paper_text)


# ---------------------------------------------------------------------------
# HTTP response helpers
# ---------------------------------------------------------------------------


def _http_response(status_code: int = 200, body=None, text: str | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = json.dumps(body) if body is not None else ""
    response.text = text
    if body is not None:
        response.json.return_value = body
    else:
        response.json.side_effect = ValueError("not JSON")
    return response


@pytest.fixture
def http_response():
    """Factory for stand-ins of ``httpx.Response`` with ``status_code``, ``text`` and ``json()``."""
    return _http_response


@pytest.fixture
def arxiv_atom() -> str:
    """arXiv API feed with one entry (1706.03762v7)."""
    return ARXIV_ATOM


@pytest.fixture
def empty_atom() -> str:
    return EMPTY_ATOM
