"""Render a generated blog post with YAML front matter, and name its file.

No file I/O is performed here — the caller (``batch.py`` / ``cli.py``) is
responsible for writing the returned string to disk.
"""

import re
from datetime import date, datetime, timezone

from paperblog.models import BlogPostResult, PaperMetadata

GENERATOR = "paperblog"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def render_blog_post(result: BlogPostResult, generated_at: datetime | None = None) -> str:
    """Prefix the blog post with front matter describing its source.

    With metadata the front matter carries title, arXiv id and URL, authors,
    published date and categories; without it only the title (the PDF stem),
    source file, timestamp and generator.

    Args:
        result:       The generated post and the metadata it was built from.
        generated_at: Timestamp written to ``generated``; defaults to now (UTC).
    """
    stem = _pdf_stem(result.pdf_path)
    generated = (generated_at or datetime.now(timezone.utc)).isoformat()
    return f"{render_front_matter(stem, result.metadata, generated)}\n\n{result.blog_post}"


def render_front_matter(stem: str, metadata: PaperMetadata | None, generated: str) -> str:
    lines = ["---"]
    if metadata is not None:
        lines += [
            f"title: {_quote(metadata.title or stem)}",
            f"arxiv_id: {_quote(metadata.arxiv_id or '')}",
            f"arxiv_url: {_quote(metadata.url or '')}",
            f"authors: {_quote(', '.join(metadata.authors or []))}",
            f"published: {_quote(metadata.published or '')}",
            f"categories: {_quote(', '.join(metadata.categories or []))}",
        ]
    else:
        lines.append(f"title: {_quote(stem)}")
    lines += [
        f"source_pdf: {_quote(f'{stem}.pdf')}",
        f"generated: {generated}",
        f"generator: {GENERATOR}",
        "---",
    ]
    return "\n".join(lines)


def output_filename(pdf_path: str, today: date | None = None) -> str:
    """Return ``{YYYY-MM-DD}_{stem}.md`` with the stem sanitized and lowercased."""
    day = (today or date.today()).isoformat()
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", _pdf_stem(pdf_path)).lower()
    return f"{day}_{sanitized}.md"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pdf_stem(pdf_path: str) -> str:
    name = re.split(r"[\\/]", pdf_path)[-1]
    if name.lower().endswith(".pdf"):
        name = name[: -len(".pdf")]
    return name


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
