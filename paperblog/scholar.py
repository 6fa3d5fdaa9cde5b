"""arXiv and Semantic Scholar lookups.

Metadata lookups are best effort: network failures, bad status codes and
empty result sets are logged and come back as ``None`` or an empty list, so a
flaky metadata API never blocks blog generation.
"""

import logging
import re
import xml.etree.ElementTree as ET

import httpx

from paperblog.models import PaperMetadata, RelatedPaper, SearchResult

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"
S2_SEARCH_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
S2_RECOMMENDATIONS_URL = "https://api.semanticscholar.org/recommendations/v1/papers/forpaper"
ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}
TIMEOUT_S = 30.0

_ARXIV_ID_PATTERNS = [
    re.compile(r"(\d{4}\.\d{4,5}(?:v\d+)?)"),
    re.compile(r"arxiv[_-]?(\d{4}\.\d{4,5}(?:v\d+)?)", re.IGNORECASE),
]


def extract_arxiv_id(filename: str) -> str | None:
    """Return the arXiv id embedded in a filename such as ``2506.21170v2.pdf``."""
    for pattern in _ARXIV_ID_PATTERNS:
        match = pattern.search(filename)
        if match:
            return match.group(1)
    return None


# ---------------------------------------------------------------------------
# arXiv
# ---------------------------------------------------------------------------


def fetch_arxiv_metadata(arxiv_id: str) -> PaperMetadata | None:
    """Fetch metadata for one arXiv id, or ``None`` if the lookup fails."""
    xml_text = _get_text(ARXIV_API_URL, {"id_list": arxiv_id})
    if xml_text is None:
        return None
    entries = _parse_entries(xml_text)
    if not entries:
        logger.warning("No entry found in arXiv response for %s", arxiv_id)
        return None
    metadata = _entry_metadata(entries[0])
    # Keep the id the caller asked for (it may carry an explicit version).
    metadata.arxiv_id = arxiv_id
    metadata.url = f"https://arxiv.org/abs/{arxiv_id}"
    return metadata


def search_arxiv(title: str) -> SearchResult | None:
    """Search arXiv by title and return the best hit with its PDF link."""
    logger.info("Searching arXiv for: %s", title)
    xml_text = _get_text(
        ARXIV_API_URL,
        {
            "search_query": f"ti:{title}",
            "start": 0,
            "max_results": 1,
            "sortBy": "relevance",
            "sortOrder": "descending",
        },
    )
    if xml_text is None:
        return None
    entries = _parse_entries(xml_text)
    if not entries:
        logger.info("No results found on arXiv")
        return None

    entry = entries[0]
    pdf_url = _pdf_link(entry)
    if not pdf_url:
        logger.info("arXiv hit has no PDF link")
        return None
    metadata = _entry_metadata(entry)
    logger.info("Found on arXiv: %s", metadata.title)
    return SearchResult(url=pdf_url, metadata=metadata)


def _parse_entries(xml_text: str) -> list[ET.Element]:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        logger.warning("Could not parse arXiv response: %s", exc)
        return []
    return root.findall("atom:entry", ATOM_NS)


def _entry_metadata(entry: ET.Element) -> PaperMetadata:
    arxiv_id = _entry_arxiv_id(entry)
    authors = [
        name
        for name in (_read_text(a, "atom:name") for a in entry.findall("atom:author", ATOM_NS))
        if name
    ]
    categories = [
        node.attrib["term"]
        for node in entry.findall("atom:category", ATOM_NS)
        if node.attrib.get("term")
    ]
    return PaperMetadata(
        arxiv_id=arxiv_id,
        title=_read_text(entry, "atom:title"),
        authors=authors,
        summary=_read_text(entry, "atom:summary"),
        published=_read_text(entry, "atom:published"),
        updated=_read_text(entry, "atom:updated"),
        categories=categories,
        url=f"https://arxiv.org/abs/{arxiv_id}",
    )


def _entry_arxiv_id(entry: ET.Element) -> str:
    id_url = _read_text(entry, "atom:id")
    if "/abs/" in id_url:
        return id_url.split("/abs/", 1)[1]
    return id_url.rstrip("/").split("/")[-1]


def _pdf_link(entry: ET.Element) -> str | None:
    for link in entry.findall("atom:link", ATOM_NS):
        if link.attrib.get("title") == "pdf":
            return link.attrib.get("href")
    return None


def _read_text(node: ET.Element, path: str) -> str:
    child = node.find(path, ATOM_NS)
    if child is None or child.text is None:
        return ""
    return " ".join(child.text.split())


# ---------------------------------------------------------------------------
# Semantic Scholar
# ---------------------------------------------------------------------------


def search_semantic_scholar(title: str) -> SearchResult | None:
    """Search Semantic Scholar by title; only open-access hits are returned."""
    logger.info("Searching Semantic Scholar for: %s", title)
    data = _get_json(
        S2_SEARCH_URL,
        {
            "query": title,
            "limit": 1,
            "fields": "paperId,title,authors,year,abstract,openAccessPdf,externalIds",
        },
    )
    papers = (data or {}).get("data") or []
    if not papers:
        logger.info("No results found on Semantic Scholar")
        return None

    paper = papers[0]
    pdf_url = (paper.get("openAccessPdf") or {}).get("url")
    if not pdf_url:
        logger.info("No open access PDF available")
        return None

    year = paper.get("year")
    metadata = PaperMetadata(
        arxiv_id=(paper.get("externalIds") or {}).get("ArXiv") or "",
        title=paper.get("title"),
        authors=[a.get("name", "") for a in paper.get("authors") or []],
        published=str(year) if year else "",
        summary=paper.get("abstract") or "",
        categories=[],
        url=f"https://www.semanticscholar.org/paper/{paper.get('paperId')}",
    )
    logger.info("Found on Semantic Scholar: %s", metadata.title)
    return SearchResult(url=pdf_url, metadata=metadata)


def search_paper(title: str) -> SearchResult | None:
    """Find a paper by title on arXiv, falling back to Semantic Scholar."""
    return search_arxiv(title) or search_semantic_scholar(title)


# ---------------------------------------------------------------------------
# Related papers
# ---------------------------------------------------------------------------


def find_related_papers(
    arxiv_id: str | None = None,
    title: str | None = None,
    max_results: int = 5,
) -> list[RelatedPaper]:
    """Collect up to ``max_results`` papers related to the given one.

    arXiv papers sharing the source paper's primary category come first;
    Semantic Scholar recommendations for ``title`` fill the remaining slots,
    skipping titles already collected.
    """
    related: list[RelatedPaper] = []
    if arxiv_id:
        related.extend(_related_by_category(arxiv_id, max_results))
    if title and len(related) < max_results:
        seen = {paper.title for paper in related}
        for paper in _recommended_by_semantic_scholar(title, max_results):
            if len(related) >= max_results:
                break
            if paper.title in seen:
                continue
            seen.add(paper.title)
            related.append(paper)
    return related[:max_results]


def _related_by_category(arxiv_id: str, max_results: int) -> list[RelatedPaper]:
    source = fetch_arxiv_metadata(arxiv_id)
    if source is None or not source.categories:
        return []

    category = source.categories[0]
    xml_text = _get_text(
        ARXIV_API_URL,
        {
            "search_query": f"cat:{category}",
            "start": 0,
            "max_results": max_results + 1,
            "sortBy": "relevance",
            "sortOrder": "descending",
        },
    )
    if xml_text is None:
        return []

    source_base = _strip_version(arxiv_id)
    related = []
    for entry in _parse_entries(xml_text):
        rel_id = _entry_arxiv_id(entry)
        if _strip_version(rel_id) == source_base:
            continue
        related.append(
            RelatedPaper(
                title=_read_text(entry, "atom:title"),
                url=f"https://arxiv.org/abs/{rel_id}",
                arxiv_id=rel_id,
                source="ArXiv",
            )
        )
    return related[:max_results]


def _recommended_by_semantic_scholar(title: str, limit: int) -> list[RelatedPaper]:
    data = _get_json(S2_SEARCH_URL, {"query": title, "limit": 1, "fields": "paperId"})
    papers = (data or {}).get("data") or []
    if not papers:
        return []

    paper_id = papers[0].get("paperId")
    recs = _get_json(
        f"{S2_RECOMMENDATIONS_URL}/{paper_id}",
        {"limit": limit, "fields": "title,externalIds"},
    )
    related = []
    for paper in (recs or {}).get("recommendedPapers") or []:
        rel_arxiv = (paper.get("externalIds") or {}).get("ArXiv") or ""
        url = (
            f"https://arxiv.org/abs/{rel_arxiv}"
            if rel_arxiv
            else f"https://www.semanticscholar.org/paper/{paper.get('paperId')}"
        )
        related.append(
            RelatedPaper(
                title=paper.get("title") or "",
                url=url,
                arxiv_id=rel_arxiv,
                source="Semantic Scholar",
            )
        )
    return related


def _strip_version(arxiv_id: str) -> str:
    return re.sub(r"v\d+$", "", arxiv_id)


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def _get(url: str, params: dict) -> httpx.Response | None:
    try:
        response = httpx.get(url, params=params, timeout=TIMEOUT_S, follow_redirects=True)
    except httpx.HTTPError as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        return None
    if response.status_code != 200:
        logger.warning("%s returned status %d", url, response.status_code)
        return None
    return response


def _get_text(url: str, params: dict) -> str | None:
    response = _get(url, params)
    return response.text if response is not None else None


def _get_json(url: str, params: dict) -> dict | None:
    response = _get(url, params)
    if response is None:
        return None
    try:
        data = response.json()
    except ValueError as exc:
        logger.warning("%s returned invalid JSON: %s", url, exc)
        return None
    return data if isinstance(data, dict) else None
