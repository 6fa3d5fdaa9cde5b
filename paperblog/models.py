"""Pydantic models, dataclass configs, and exceptions for paperblog.

This module defines the *schema* of the data that flows between the host
CLI, the relay, and the protocol server: generation requests and their wire
format, paper metadata, cache entries, provider envelopes' normalized
outcome, and runtime configuration.  Wire names are camelCase; Python
attribute names are snake_case.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------


class WireModel(BaseModel):
    """Base for models exchanged as JSON: camelCase aliases, snake_case attrs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class ProviderKind(str, Enum):
    """The LLM vendors a credential can route to."""

    PERPLEXITY = "perplexity"
    CLAUDE = "claude"
    OPENAI = "openai"
    LOCAL = "local"


WritingStyle = Literal["alphaxiv", "technical", "casual", "academic"]
"""Known writing styles.  Unknown strings are accepted and treated as alphaxiv."""

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class PaperMetadata(WireModel):
    """Bibliographic metadata from arXiv or Semantic Scholar.

    Every field is optional: the host app sends whatever the lookup found.
    """

    arxiv_id: str | None = None
    title: str | None = None
    authors: list[str] | None = None
    summary: str | None = None
    published: str | None = None
    updated: str | None = None
    categories: list[str] | None = None
    url: str | None = None


class SearchResult(WireModel):
    """A paper found by title search: its PDF URL and metadata."""

    url: str
    metadata: PaperMetadata


class RelatedPaper(WireModel):
    title: str
    url: str
    arxiv_id: str = ""
    source: Literal["ArXiv", "Semantic Scholar"]


# ---------------------------------------------------------------------------
# Relay requests / responses
# ---------------------------------------------------------------------------


class GenerationSettings(WireModel):
    """The settings tuple that, together with the paper text, keys the cache."""

    temperature: float = Field(default=0.8, ge=0.0, le=1.0)
    include_emojis: bool = True
    include_humor: bool = True
    custom_prompt: str = ""
    writing_style: str = "alphaxiv"


class GenerationRequest(GenerationSettings):
    """Body of ``POST /api/v1/generate``.

    ``pdf_content`` is unbounded here; the prompt builder truncates it.
    """

    pdf_content: str
    arxiv_metadata: PaperMetadata | None = None
    extracted_images: list[str] = Field(default_factory=list)

    def settings(self) -> GenerationSettings:
        return GenerationSettings(
            temperature=self.temperature,
            include_emojis=self.include_emojis,
            include_humor=self.include_humor,
            custom_prompt=self.custom_prompt,
            writing_style=self.writing_style,
        )


class GenerateResponse(WireModel):
    blog_post: str
    success: bool
    error: str | None = None


class ChatRequest(WireModel):
    pdf_content: str
    question: str
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)


class ChatResponse(WireModel):
    answer: str
    success: bool


class ExtractPdfRequest(WireModel):
    pdf_base64: str
    filename: str = "document.pdf"


class ExtractPdfResponse(WireModel):
    text: str
    success: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Agent outcome (discriminated union on status)
# ---------------------------------------------------------------------------


class Generated(BaseModel):
    """A provider returned non-empty text."""

    status: Literal["ok"] = "ok"
    text: str
    provider: ProviderKind


class GenerationFailed(BaseModel):
    """Routing or the provider call failed; ``error`` is user-presentable."""

    status: Literal["failed"] = "failed"
    error: str


GenerationOutcome = Annotated[
    Union[Generated, GenerationFailed],
    Field(discriminator="status"),
]
"""What ``BlogAgent`` returns: callers branch on ``status`` instead of catching."""

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class CacheEntry(WireModel):
    """One generated blog post stored under its fingerprint.

    ``timestamp`` is milliseconds since the epoch.
    """

    pdf_hash: str
    blog_post: str
    metadata: PaperMetadata | None = None
    timestamp: int
    settings: GenerationSettings


# ---------------------------------------------------------------------------
# Host app results and batch reporting
# ---------------------------------------------------------------------------


class BlogPostResult(BaseModel):
    """A blog post produced (or served from cache) for one source PDF."""

    pdf_path: str
    blog_post: str
    metadata: PaperMetadata | None = None
    from_cache: bool = False


class FailedPaper(BaseModel):
    """Records a single paper that could not be processed during a batch run."""

    pdf_path: str
    error: str


class BatchReport(BaseModel):
    """Aggregate result of a batch run over a directory of PDFs."""

    processed: int
    skipped: int
    failed: int
    failed_papers: list[FailedPaper]


# ---------------------------------------------------------------------------
# Config (dataclasses — runtime settings, not wire data)
# ---------------------------------------------------------------------------

#: The host app trims paper text to this many characters before sending it to
#: the relay.  Larger bodies risk provider timeouts on the 60 s budget.
_DEFAULT_MAX_CHARS = 8_000


@dataclass
class Config:
    """Runtime configuration for the host CLI.

    All fields correspond to CLI flags.

    Attributes:
        agent_url:      Base URL of the relay service.
        api_key:        Provider credential forwarded as ``X-API-Key``.  Its
                        prefix selects the provider (``pplx-``, ``sk-ant-``,
                        ``sk-``, or an ``http(s)://URL|model`` local endpoint).
        output_dir:     Folder the blog posts are written to.
        temperature:    Generation temperature (0.0-1.0).
        include_emojis: Ask the model to use emojis.
        include_humor:  Ask the model for jokes and meme references.
        custom_prompt:  Free-text instructions appended to the system prompt.
        writing_style:  alphaxiv, technical, casual, or academic.
        enable_cache:   Serve repeated generations from the result cache.
        cache_path:     JSON file holding the result cache.
        max_chars:      Paper text budget applied before sending.
        extractor:      PDF text extraction strategy: ``auto`` (docling with
                        pypdf fallback), ``docling``, or ``pypdf``.
        fetch_metadata: Look up arXiv metadata when the filename carries an id.
        dry_run:        List PDFs without extracting or calling the relay.
        verbose:        DEBUG-level logging.
        timeout_s:      Seconds before a relay call is abandoned.
        batch_delay_s:  Pause between batch items to stay under provider
                        rate limits.
    """

    agent_url: str = "http://localhost:8080"
    api_key: str | None = None
    output_dir: Path = Path("blog-posts")
    temperature: float = 0.8
    include_emojis: bool = True
    include_humor: bool = True
    custom_prompt: str = ""
    writing_style: str = "alphaxiv"
    enable_cache: bool = True
    cache_path: Path = Path(".paperblog-cache.json")
    max_chars: int = _DEFAULT_MAX_CHARS
    extractor: Literal["auto", "docling", "pypdf"] = "auto"
    fetch_metadata: bool = True
    dry_run: bool = False
    verbose: bool = False
    timeout_s: int = 120
    batch_delay_s: float = 2.0

    def settings(self) -> GenerationSettings:
        return GenerationSettings(
            temperature=self.temperature,
            include_emojis=self.include_emojis,
            include_humor=self.include_humor,
            custom_prompt=self.custom_prompt,
            writing_style=self.writing_style,
        )


@dataclass(frozen=True)
class RelaySettings:
    host: str
    port: int
    log_level: str
    extractor: str

    @classmethod
    def from_env(cls) -> "RelaySettings":
        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8080")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            extractor=os.environ.get("PAPERBLOG_EXTRACTOR", "auto"),
        )


@dataclass(frozen=True)
class McpSettings:
    agent_url: str
    api_key: str
    timeout_s: int

    @classmethod
    def from_env(cls) -> "McpSettings":
        return cls(
            agent_url=os.environ.get("PAPERBLOG_AGENT_URL", "http://localhost:8080"),
            api_key=os.environ.get("API_KEY", ""),
            timeout_s=int(os.environ.get("PAPERBLOG_TIMEOUT", "120")),
        )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CredentialError(Exception):
    """Raised when a credential is missing or its format matches no provider."""


class ProviderError(Exception):
    """Raised when a provider call fails, returns an error envelope, or no text."""


class ParseError(Exception):
    """Raised when PDF text extraction fails or yields too little text."""


class RelayError(Exception):
    """Raised when the relay is unreachable or reports a failure."""


class PipelineError(Exception):
    """Wraps any sub-error that occurs during per-paper processing.

    Attributes:
        pdf_path: Path to the PDF that failed.
        cause:    The original exception that triggered the failure.
    """

    def __init__(self, pdf_path: Path, cause: Exception) -> None:
        self.pdf_path = pdf_path
        self.cause = cause
        super().__init__(f"Pipeline failed for {pdf_path}: {cause}")
