"""Tests for paperblog/scholar.py — arXiv and Semantic Scholar lookups."""

from unittest.mock import patch

import httpx
import pytest

from paperblog.scholar import (
    extract_arxiv_id,
    fetch_arxiv_metadata,
    find_related_papers,
    search_arxiv,
    search_paper,
    search_semantic_scholar,
)

RELATED_ATOM = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry><id>http://arxiv.org/abs/1706.03762v7</id><title>Attention Is All You Need</title></entry>
  <entry><id>http://arxiv.org/abs/1810.04805v2</id><title>BERT</title></entry>
  <entry><id>http://arxiv.org/abs/2005.14165v4</id><title>Language Models are Few-Shot Learners</title></entry>
</feed>
"""


# ---------------------------------------------------------------------------
# extract_arxiv_id
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("2506.21170v2.pdf", "2506.21170v2"),
        ("1706.03762.pdf", "1706.03762"),
        ("arxiv_2101.00001.pdf", "2101.00001"),
        ("ArXiv-2101.12345v3 attention.pdf", "2101.12345v3"),
        ("attention-is-all-you-need.pdf", None),
    ],
)
def test_extract_arxiv_id(filename, expected):
    assert extract_arxiv_id(filename) == expected


# ---------------------------------------------------------------------------
# fetch_arxiv_metadata / search_arxiv
# ---------------------------------------------------------------------------


def test_fetch_arxiv_metadata_parses_entry(http_response, arxiv_atom):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, text=arxiv_atom)) as mock_get:
        metadata = fetch_arxiv_metadata("1706.03762")

    assert mock_get.call_args.kwargs["params"] == {"id_list": "1706.03762"}
    assert metadata.arxiv_id == "1706.03762"
    assert metadata.title == "Attention Is All You Need"
    assert metadata.authors == ["Ashish Vaswani", "Noam Shazeer"]
    assert metadata.categories == ["cs.CL", "cs.LG"]
    assert metadata.published == "2017-06-12T17:57:34Z"
    assert metadata.url == "https://arxiv.org/abs/1706.03762"


def test_fetch_arxiv_metadata_empty_feed(http_response, empty_atom):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, text=empty_atom)):
        assert fetch_arxiv_metadata("0000.00000") is None


def test_fetch_arxiv_metadata_network_error_returns_none(caplog):
    with patch("paperblog.scholar.httpx.get", side_effect=httpx.ConnectError("offline")):
        assert fetch_arxiv_metadata("1706.03762") is None
    assert "offline" in caplog.text


def test_fetch_arxiv_metadata_bad_status_returns_none(http_response):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(503, text="busy")):
        assert fetch_arxiv_metadata("1706.03762") is None


def test_search_arxiv_returns_pdf_link(http_response, arxiv_atom):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, text=arxiv_atom)) as mock_get:
        result = search_arxiv("Attention Is All You Need")
    assert mock_get.call_args.kwargs["params"]["search_query"] == "ti:Attention Is All You Need"
    assert result.url == "http://arxiv.org/pdf/1706.03762v7"
    assert result.metadata.arxiv_id == "1706.03762v7"


def test_search_arxiv_malformed_xml(http_response):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, text="<feed")):
        assert search_arxiv("x") is None


# ---------------------------------------------------------------------------
# Semantic Scholar
# ---------------------------------------------------------------------------

S2_HIT = {
    "data": [
        {
            "paperId": "abc123",
            "title": "Some Paper",
            "authors": [{"name": "A. Author"}],
            "year": 2021,
            "abstract": "Abstract.",
            "openAccessPdf": {"url": "https://example.org/paper.pdf"},
            "externalIds": {"DOI": "10.1/x"},
        }
    ]
}


def test_search_semantic_scholar_open_access(http_response):
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, S2_HIT)):
        result = search_semantic_scholar("Some Paper")
    assert result.url == "https://example.org/paper.pdf"
    assert result.metadata.published == "2021"
    assert result.metadata.url == "https://www.semanticscholar.org/paper/abc123"


def test_search_semantic_scholar_without_pdf(http_response):
    body = {"data": [{**S2_HIT["data"][0], "openAccessPdf": None}]}
    with patch("paperblog.scholar.httpx.get", return_value=http_response(200, body)):
        assert search_semantic_scholar("Some Paper") is None


def test_search_paper_falls_back_to_semantic_scholar(http_response, empty_atom):
    responses = [http_response(200, text=empty_atom), http_response(200, S2_HIT)]
    with patch("paperblog.scholar.httpx.get", side_effect=responses):
        result = search_paper("Some Paper")
    assert result.url == "https://example.org/paper.pdf"


def test_search_paper_not_found(http_response, empty_atom):
    responses = [http_response(200, text=empty_atom), http_response(200, {"data": []})]
    with patch("paperblog.scholar.httpx.get", side_effect=responses):
        assert search_paper("Nothing") is None


# ---------------------------------------------------------------------------
# find_related_papers
# ---------------------------------------------------------------------------


def test_find_related_by_category_skips_source(http_response, arxiv_atom):
    responses = [http_response(200, text=arxiv_atom), http_response(200, text=RELATED_ATOM)]
    with patch("paperblog.scholar.httpx.get", side_effect=responses) as mock_get:
        related = find_related_papers(arxiv_id="1706.03762", max_results=5)

    assert mock_get.call_args.kwargs["params"]["search_query"] == "cat:cs.CL"
    assert [p.arxiv_id for p in related] == ["1810.04805v2", "2005.14165v4"]
    assert all(p.source == "ArXiv" for p in related)


def test_find_related_fills_from_semantic_scholar_without_duplicates(http_response, arxiv_atom):
    search = {"data": [{"paperId": "s2id"}]}
    recs = {
        "recommendedPapers": [
            {"paperId": "r1", "title": "BERT", "externalIds": {"ArXiv": "1810.04805"}},
            {"paperId": "r2", "title": "GPT-2", "externalIds": {}},
        ]
    }
    responses = [
        http_response(200, text=arxiv_atom),
        http_response(200, text=RELATED_ATOM),
        http_response(200, search),
        http_response(200, recs),
    ]
    with patch("paperblog.scholar.httpx.get", side_effect=responses):
        related = find_related_papers(arxiv_id="1706.03762", title="Attention", max_results=5)

    titles = [p.title for p in related]
    assert titles.count("BERT") == 1
    assert related[-1].title == "GPT-2"
    assert related[-1].source == "Semantic Scholar"
    assert related[-1].url == "https://www.semanticscholar.org/paper/r2"


def test_find_related_respects_max_results(http_response, arxiv_atom):
    responses = [http_response(200, text=arxiv_atom), http_response(200, text=RELATED_ATOM)]
    with patch("paperblog.scholar.httpx.get", side_effect=responses):
        related = find_related_papers(arxiv_id="1706.03762", max_results=1)
    assert len(related) == 1


def test_find_related_all_lookups_fail():
    with patch("paperblog.scholar.httpx.get", side_effect=httpx.ConnectError("offline")):
        assert find_related_papers(arxiv_id="1706.03762", title="Attention") == []
