"""Per-paper orchestration — converts one PDF to a generated blog post.

Text extraction and the length check run before the cache lookup and before
any relay call, so an unreadable PDF never costs a provider request.
"""

import logging
from pathlib import Path

from paperblog.cache import ResultCache, make_entry, make_fingerprint
from paperblog.client import RelayClient
from paperblog.models import (
    BlogPostResult,
    Config,
    GenerationRequest,
    PaperMetadata,
    ParseError,
    PipelineError,
)
from paperblog.parser import extract_text
from paperblog.scholar import extract_arxiv_id, fetch_arxiv_metadata

logger = logging.getLogger(__name__)

MIN_TEXT_CHARS = 100
TRUNCATION_MARKER = "[Content truncated for processing]"


def process_pdf(
    pdf_path: Path,
    config: Config,
    client: RelayClient,
    cache: ResultCache | None = None,
) -> BlogPostResult:
    """Process a single PDF end-to-end and return its blog post.

    Steps
    -----
    1. Look up arXiv metadata when the filename carries an arXiv id.
    2. Extract the PDF text; fail if it is shorter than 100 characters.
    3. Trim the text to ``config.max_chars`` with a truncation marker.
    4. Serve from ``cache`` when the fingerprint and arXiv id match.
    5. Otherwise call the relay and store the result in ``cache``.

    Raises:
        PipelineError: wraps any ``ParseError``, ``RelayError``, or other
            exception that occurs.
    """
    try:
        return _run_pipeline(pdf_path, config, client, cache)
    except PipelineError:
        raise
    except Exception as e:
        raise PipelineError(pdf_path, e) from e


def _run_pipeline(
    pdf_path: Path,
    config: Config,
    client: RelayClient,
    cache: ResultCache | None,
) -> BlogPostResult:
    metadata = lookup_metadata(pdf_path) if config.fetch_metadata else None

    text = extract_text(pdf_path, extractor=config.extractor)
    if len(text.strip()) < MIN_TEXT_CHARS:
        raise ParseError(
            f"Could not extract sufficient text from {pdf_path.name} "
            f"({len(text.strip())} chars)"
        )
    pdf_content = prepare_content(text, config.max_chars)

    settings = config.settings()
    fingerprint = make_fingerprint(pdf_content, settings)
    if cache is not None:
        entry = cache.get(fingerprint, metadata)
        if entry is not None:
            logger.info("Cache hit for %s (%s)", pdf_path.name, fingerprint)
            return BlogPostResult(
                pdf_path=str(pdf_path),
                blog_post=entry.blog_post,
                metadata=entry.metadata,
                from_cache=True,
            )
        logger.debug("Cache miss for %s (%s)", pdf_path.name, fingerprint)

    request = GenerationRequest(
        pdf_content=pdf_content,
        arxiv_metadata=metadata,
        **settings.model_dump(),
    )
    blog_post = client.generate(request)

    if cache is not None:
        cache.put(fingerprint, make_entry(fingerprint, blog_post, settings, metadata))
    return BlogPostResult(pdf_path=str(pdf_path), blog_post=blog_post, metadata=metadata)


def answer_question(
    pdf_path: Path, question: str, config: Config, client: RelayClient
) -> str:
    """Extract ``pdf_path`` and ask the relay ``question`` about it.

    Raises:
        PipelineError: wraps any extraction or relay failure.
    """
    try:
        text = extract_text(pdf_path, extractor=config.extractor)
        if len(text.strip()) < MIN_TEXT_CHARS:
            raise ParseError(f"Could not extract sufficient text from {pdf_path.name}")
        return client.ask(
            prepare_content(text, config.max_chars), question, temperature=0.7
        )
    except Exception as e:
        raise PipelineError(pdf_path, e) from e


def lookup_metadata(pdf_path: Path) -> PaperMetadata | None:
    arxiv_id = extract_arxiv_id(pdf_path.name)
    if arxiv_id is None:
        return None
    logger.info("Fetching arXiv metadata for %s", arxiv_id)
    return fetch_arxiv_metadata(arxiv_id)


def prepare_content(text: str, max_chars: int) -> str:
    """Trim ``text`` to ``max_chars`` and mark the cut.

    Raises:
        ValueError: if ``max_chars`` is less than 1.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")
    if len(text) <= max_chars:
        return text
    logger.info(
        "Truncating paper text from %s to %s chars", f"{len(text):,}", f"{max_chars:,}"
    )
    return f"{text[:max_chars]}\n\n{TRUNCATION_MARKER}"
