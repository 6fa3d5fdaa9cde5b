"""Batch processing — scan a directory of PDFs and generate a post for each.

PDFs are processed one at a time with a fixed pause between items (none
after the last) to stay under provider rate limits.  A failed paper is
recorded and the loop moves on.

Output location
---------------
Posts are written to ``{output_dir}/{YYYY-MM-DD}_{stem}.md``.  If that path
already exists, a version suffix is appended (``_v2``, ``_v3``, ...).
"""

import logging
import sys
import time
from pathlib import Path

from tqdm.auto import tqdm

from paperblog.cache import ResultCache
from paperblog.client import RelayClient
from paperblog.models import BatchReport, BlogPostResult, Config, FailedPaper, PipelineError
from paperblog.pipeline import process_pdf
from paperblog.renderer import output_filename, render_blog_post

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# PDF discovery
# ---------------------------------------------------------------------------


def find_pdfs(source_dir: Path) -> list[Path]:
    """Return all PDF files found recursively under ``source_dir``, sorted."""
    return sorted(source_dir.rglob("*.pdf"))


# ---------------------------------------------------------------------------
# Output path
# ---------------------------------------------------------------------------


def get_output_path(output_dir: Path, pdf_path: Path) -> Path:
    """Return the output path for a post and create its parent directory."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / output_filename(pdf_path.name)


def get_versioned_output_path(path: Path) -> Path:
    """Return a non-clobbering output path by appending a version suffix.

    If ``path`` does not exist, it is returned unchanged.
    If it exists, ``_v2``, ``_v3``, ... are appended before the suffix.
    """
    if not path.exists():
        return path

    stem = path.stem
    suffix = path.suffix
    version = 2
    while True:
        candidate = path.with_name(f"{stem}_v{version}{suffix}")
        if not candidate.exists():
            return candidate
        version += 1


def write_blog_post(result: BlogPostResult, output_dir: Path) -> Path:
    """Render ``result`` and write it next to earlier posts without overwriting."""
    output_path = get_versioned_output_path(
        get_output_path(output_dir, Path(result.pdf_path))
    )
    output_path.write_text(render_blog_post(result), encoding="utf-8")
    return output_path


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------


def run_batch(
    source_dir: Path,
    config: Config,
    client: RelayClient,
    cache: ResultCache | None = None,
    sleep=time.sleep,
) -> BatchReport:
    """Process all PDFs under ``source_dir`` and return an aggregate report.

    For each PDF:

    1. Run ``process_pdf`` (cache lookup, relay call, cache update).
    2. Render with front matter and write to a versioned output path.
    3. On ``PipelineError``, record the failure and continue.
    4. Sleep ``config.batch_delay_s`` before the next PDF.

    With ``config.dry_run`` the PDFs are listed and counted as skipped.

    Args:
        source_dir: Directory to scan for PDFs (recursive).
        config:     Runtime configuration.
        client:     Relay client used for generation.
        cache:      Result cache, or ``None`` to always call the relay.
        sleep:      Delay function; replaced in tests.

    Returns:
        A ``BatchReport`` with counts and details of failed papers.
    """
    pdfs = find_pdfs(source_dir)
    total = len(pdfs)
    logger.info("Discovered PDFs: %d", total)

    if config.dry_run:
        for pdf_path in pdfs:
            logger.info("  Would process: %s", pdf_path)
        logger.info("Dry run mode: %d files would be processed", total)
        return BatchReport(processed=0, skipped=total, failed=0, failed_papers=[])

    n_processed = 0
    n_failed = 0
    failed_papers: list[FailedPaper] = []
    show_progress = sys.stderr.isatty()

    with tqdm(
        total=total,
        desc="Generate",
        unit="pdf",
        disable=not show_progress,
        leave=True,
    ) as progress:
        for idx, pdf_path in enumerate(pdfs, start=1):
            logger.info("  Processing [%d/%d]: %s", idx, total, pdf_path.name)
            try:
                result = process_pdf(pdf_path, config, client, cache)
                output_path = write_blog_post(result, config.output_dir)
                logger.info(
                    "  [%d/%d] Written%s: %s",
                    idx,
                    total,
                    " (cached)" if result.from_cache else "",
                    output_path,
                )
                n_processed += 1
            except PipelineError as exc:
                logger.error("  [%d/%d] Failed: %s", idx, total, exc)
                n_failed += 1
                failed_papers.append(FailedPaper(pdf_path=str(pdf_path), error=str(exc)))
            except OSError as exc:
                logger.error("  [%d/%d] Could not write output: %s", idx, total, exc)
                n_failed += 1
                failed_papers.append(FailedPaper(pdf_path=str(pdf_path), error=str(exc)))
            finally:
                progress.update(1)
                progress.set_postfix(ok=n_processed, failed=n_failed)

            if idx < total and config.batch_delay_s > 0:
                sleep(config.batch_delay_s)

    return BatchReport(
        processed=n_processed,
        skipped=0,
        failed=n_failed,
        failed_papers=failed_papers,
    )
