"""
Relay service -- forwards blog-generation and Q&A requests to an LLM provider.

Routes (all under ``/api/v1``):
1. POST /generate    -- paper text + settings -> blog post
2. POST /chat        -- paper text + question -> answer
3. POST /extract-pdf -- base64 PDF -> plain text
4. GET  /health      -- liveness

The provider is chosen from the shape of the ``X-API-Key`` header; the relay
stores no credentials of its own.  Endpoints are plain ``def`` functions, so
FastAPI runs each blocking provider call in its thread pool.
"""

import base64
import binascii
import logging

import uvicorn
from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paperblog import __version__
from paperblog.agent import BlogAgent
from paperblog.log import setup_logging
from paperblog.models import (
    ChatRequest,
    ChatResponse,
    ExtractPdfRequest,
    ExtractPdfResponse,
    GenerateResponse,
    GenerationFailed,
    GenerationRequest,
    ParseError,
    RelaySettings,
)
from paperblog.parser import extract_text_from_bytes

SERVICE_NAME = "paperblog-relay"

logger = logging.getLogger(__name__)


def create_app(agent: BlogAgent | None = None, extractor: str = "auto") -> FastAPI:
    """Build the relay application around ``agent``."""
    agent = agent or BlogAgent()

    application = FastAPI(
        title="paperblog relay",
        version=__version__,
        description="Routes paper-to-blog prompts to Claude, OpenAI, Perplexity or a local model",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    @application.post("/api/v1/generate")
    def generate(
        request: GenerationRequest,
        x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    ):
        if not x_api_key or not x_api_key.strip():
            return JSONResponse(content={"error": "API key required"}, status_code=401)

        outcome = agent.generate_blog_post(x_api_key.strip(), request)
        if isinstance(outcome, GenerationFailed):
            return JSONResponse(
                content={"error": f"Failed to generate blog post: {outcome.error}"},
                status_code=500,
            )
        return GenerateResponse(blog_post=outcome.text, success=True).to_wire()

    @application.post("/api/v1/chat")
    def chat(
        request: ChatRequest,
        x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    ):
        if not x_api_key or not x_api_key.strip():
            return JSONResponse(content={"error": "API key required"}, status_code=401)

        outcome = agent.answer_question(
            x_api_key.strip(), request.pdf_content, request.question, request.temperature
        )
        if isinstance(outcome, GenerationFailed):
            return JSONResponse(
                content={"error": f"Failed to answer question: {outcome.error}"},
                status_code=500,
            )
        return ChatResponse(answer=outcome.text, success=True).to_wire()

    @application.post("/api/v1/extract-pdf")
    def extract_pdf(request: ExtractPdfRequest):
        try:
            data = base64.b64decode(request.pdf_base64, validate=True)
            text = extract_text_from_bytes(data, request.filename, extractor=extractor)
        except (binascii.Error, ParseError) as exc:
            logger.error("PDF extraction failed for %s: %s", request.filename, exc)
            failed = ExtractPdfResponse(
                text="", success=False, error=f"Failed to extract PDF text: {exc}"
            )
            return JSONResponse(content=failed.to_wire(), status_code=500)
        logger.info("Extracted %s chars from %s", f"{len(text):,}", request.filename)
        return ExtractPdfResponse(text=text, success=True).to_wire()

    @application.get("/api/v1/health")
    def health():
        return {"status": "ok", "service": SERVICE_NAME, "version": __version__}

    return application


def main() -> None:
    """Serve the relay with uvicorn using ``HOST``/``PORT``/``LOG_LEVEL``."""
    settings = RelaySettings.from_env()
    setup_logging(verbose=settings.log_level == "DEBUG")
    logger.info("Starting %s on %s:%d", SERVICE_NAME, settings.host, settings.port)
    uvicorn.run(
        create_app(extractor=settings.extractor),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
