"""Command-line interface for paperblog.

Entry point: ``paperblog`` (configured in ``pyproject.toml``).

Usage:
    paperblog --source DIR [options]              # batch mode
    paperblog --file PDF [options]                # single-file mode
    paperblog --file PDF --ask "QUESTION"         # question about one paper
    paperblog --clear-cache                       # empty the result cache

Key options:
    --agent-url, --api-key, --style, --temperature, --emojis/--no-emojis,
    --humor/--no-humor, --custom-prompt, --cache/--no-cache, --cache-file,
    --extractor, --max-chars, --output-dir, --dry-run, --verbose,
    --log-file, --timeout, --delay.

``--source`` and ``--file`` are mutually exclusive.  The API key defaults to
``PAPERBLOG_API_KEY``; its prefix selects the provider on the relay side.

Before processing (except in dry-run mode), the CLI checks that the relay's
health endpoint answers.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from paperblog.batch import run_batch, write_blog_post
from paperblog.cache import ResultCache
from paperblog.client import RelayClient
from paperblog.log import setup_logging
from paperblog.models import Config, PipelineError, RelayError, _DEFAULT_MAX_CHARS
from paperblog.pipeline import answer_question, process_pdf
from paperblog.prompts import STYLE_DESCRIPTIONS

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


def _temperature(value: str) -> float:
    parsed = float(value)
    if not 0.0 <= parsed <= 1.0:
        raise argparse.ArgumentTypeError("must be between 0 and 1")
    return parsed


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, validate environment, and run paperblog."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args(argv)
    if not (args.file or args.source or args.clear_cache):
        parser.error("one of the arguments --source --file --clear-cache is required")
    if args.ask and not args.file:
        parser.error("--ask requires --file")

    setup_logging(
        verbose=args.verbose,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    config = Config(
        agent_url=args.agent_url,
        api_key=args.api_key,
        output_dir=Path(args.output_dir),
        temperature=args.temperature,
        include_emojis=args.emojis,
        include_humor=args.humor,
        custom_prompt=args.custom_prompt,
        writing_style=args.style,
        enable_cache=args.cache,
        cache_path=Path(args.cache_file),
        max_chars=args.max_chars,
        extractor=args.extractor,
        dry_run=args.dry_run,
        verbose=args.verbose,
        timeout_s=args.timeout,
        batch_delay_s=args.delay,
    )

    if args.clear_cache:
        with ResultCache(config.cache_path) as cache:
            cache.clear()
        logger.info("Cache cleared: %s", config.cache_path)
        if not (args.file or args.source):
            return

    if not config.dry_run and not config.api_key:
        logger.error("No API key: pass --api-key or set PAPERBLOG_API_KEY")
        sys.exit(1)

    client = RelayClient(config.agent_url, config.api_key, timeout_s=config.timeout_s)

    # Validate the relay is reachable before starting any work
    if not config.dry_run:
        _check_relay(client)

    if args.file and args.ask:
        _run_ask(Path(args.file), args.ask, config, client)
    elif args.file:
        _run_single(Path(args.file), config, client)
    else:
        _run_batch(Path(args.source), config, client)


# ---------------------------------------------------------------------------
# Single-file mode
# ---------------------------------------------------------------------------


def _run_single(pdf_path: Path, config: Config, client: RelayClient) -> None:
    """Generate a post for one PDF and write it to the output dir."""
    if not pdf_path.exists():
        logger.error("File not found: %s", pdf_path)
        sys.exit(1)

    if config.dry_run:
        logger.info("Dry run: would process %s", pdf_path)
        return

    logger.info("Processing: %s", pdf_path.name)
    try:
        if config.enable_cache:
            with ResultCache(config.cache_path) as cache:
                result = process_pdf(pdf_path, config, client, cache)
        else:
            result = process_pdf(pdf_path, config, client)
    except PipelineError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    output_path = write_blog_post(result, config.output_dir)
    logger.info("Written%s: %s", " (cached)" if result.from_cache else "", output_path)


def _run_ask(pdf_path: Path, question: str, config: Config, client: RelayClient) -> None:
    """Answer a question about one PDF and print the answer to stdout."""
    if not pdf_path.exists():
        logger.error("File not found: %s", pdf_path)
        sys.exit(1)
    try:
        answer = answer_question(pdf_path, question, config, client)
    except PipelineError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    print(answer)


# ---------------------------------------------------------------------------
# Batch mode
# ---------------------------------------------------------------------------


def _run_batch(source_dir: Path, config: Config, client: RelayClient) -> None:
    """Scan ``source_dir`` for PDFs and process each one."""
    if not source_dir.exists():
        logger.error("Directory not found: %s", source_dir)
        sys.exit(1)

    if config.enable_cache:
        with ResultCache(config.cache_path) as cache:
            report = run_batch(source_dir, config, client, cache)
    else:
        report = run_batch(source_dir, config, client)

    logger.info(
        "Done — processed: %d, skipped: %d, failed: %d",
        report.processed,
        report.skipped,
        report.failed,
    )

    if report.failed_papers:
        logger.error("Failed papers:")
        for fp in report.failed_papers:
            logger.error("  %s: %s", fp.pdf_path, fp.error)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Relay health check
# ---------------------------------------------------------------------------


def _check_relay(client: RelayClient) -> None:
    """Verify that the relay answers its health endpoint."""
    try:
        info = client.health()
    except RelayError as exc:
        logger.error("Cannot reach relay at %s\n  Details: %s", client.base_url, exc)
        sys.exit(1)
    logger.debug("Relay %s %s is up", info.get("service"), info.get("version"))


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paperblog",
        description=(
            "Turn research papers into blog posts through the paperblog relay. "
            "Processes a directory of PDFs (--source) or a single PDF (--file)."
        ),
    )

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--source",
        metavar="DIR",
        help="Directory to scan recursively for PDF files.",
    )
    source_group.add_argument(
        "--file",
        metavar="PDF",
        help="Path to a single PDF file to process.",
    )

    parser.add_argument(
        "--ask",
        metavar="QUESTION",
        default=None,
        help="Ask a question about --file instead of generating a post.",
    )
    parser.add_argument(
        "--agent-url",
        metavar="URL",
        default=os.environ.get("PAPERBLOG_AGENT_URL", "http://localhost:8080"),
        help="Relay base URL (default: PAPERBLOG_AGENT_URL or http://localhost:8080).",
    )
    parser.add_argument(
        "--api-key",
        metavar="KEY",
        default=os.environ.get("PAPERBLOG_API_KEY"),
        help=(
            "Provider credential: pplx-..., sk-ant-..., sk-..., or a local "
            "endpoint http://host:port[|model] (default: PAPERBLOG_API_KEY)."
        ),
    )
    parser.add_argument(
        "--style",
        choices=sorted(STYLE_DESCRIPTIONS),
        default="alphaxiv",
        help="Writing style (default: alphaxiv).",
    )
    parser.add_argument(
        "--temperature",
        metavar="T",
        type=_temperature,
        default=0.8,
        help="Generation temperature between 0 and 1 (default: 0.8).",
    )
    parser.add_argument(
        "--emojis",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Ask for emojis in the post (default: on).",
    )
    parser.add_argument(
        "--humor",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Ask for humor in the post (default: on).",
    )
    parser.add_argument(
        "--custom-prompt",
        metavar="TEXT",
        default="",
        help="Additional instructions appended to the system prompt.",
    )
    parser.add_argument(
        "--cache",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Serve repeated generations from the result cache (default: on).",
    )
    parser.add_argument(
        "--cache-file",
        metavar="FILE",
        default=".paperblog-cache.json",
        help="Result cache file (default: .paperblog-cache.json).",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        default=False,
        help="Remove every cached blog post before running.",
    )
    parser.add_argument(
        "--extractor",
        choices=["auto", "docling", "pypdf"],
        default="auto",
        help="PDF extraction backend strategy (default: auto).",
    )
    parser.add_argument(
        "--max-chars",
        metavar="N",
        type=_positive_int,
        default=_DEFAULT_MAX_CHARS,
        help=f"Maximum characters of paper text sent to the relay (default: {_DEFAULT_MAX_CHARS:,}).",
    )
    parser.add_argument(
        "--output-dir",
        metavar="DIR",
        default="blog-posts",
        help="Directory for generated blog posts (default: blog-posts).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="List PDFs that would be processed without calling the relay.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging (default: off).",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help="Also write log output to FILE.",
    )
    parser.add_argument(
        "--timeout",
        metavar="S",
        type=_positive_int,
        default=120,
        help="Relay call timeout in seconds (default: 120).",
    )
    parser.add_argument(
        "--delay",
        metavar="S",
        type=float,
        default=2.0,
        help="Pause between papers in batch mode (default: 2.0).",
    )

    return parser


if __name__ == "__main__":
    main()
