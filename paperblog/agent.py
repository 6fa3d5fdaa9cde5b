"""Blog agent — route the credential, build the prompts, call the provider.

``BlogAgent`` is the one place that turns a request into generated text.  It
returns a ``GenerationOutcome`` (``Generated`` or ``GenerationFailed``) so
every call site handles failure explicitly.  Credential routing runs before
prompt building and before any network call, so a malformed key costs
nothing.
"""

import logging
from typing import Callable

from paperblog.models import (
    CredentialError,
    GenerationFailed,
    GenerationOutcome,
    GenerationRequest,
    Generated,
    ProviderError,
    ProviderKind,
)
from paperblog.prompts import DEFAULT_MAX_CHARS, build_chat_prompts, build_prompts
from paperblog.providers import complete as provider_complete
from paperblog.router import resolve_provider

logger = logging.getLogger(__name__)

CompleteFn = Callable[[str, str, str, float], str]


class BlogAgent:
    """Generates blog posts and answers questions about papers.

    Attributes:
        max_chars: Paper text budget applied by the prompt builder.
    """

    def __init__(
        self,
        complete: CompleteFn = provider_complete,
        max_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self._complete = complete
        self.max_chars = max_chars

    def generate_blog_post(
        self, api_key: str, request: GenerationRequest
    ) -> GenerationOutcome:
        """Generate one blog post for ``request`` with the provider ``api_key`` selects."""
        try:
            kind = resolve_provider(api_key)
        except CredentialError as exc:
            logger.warning("Rejected credential: %s", exc)
            return GenerationFailed(error=str(exc))

        logger.info(
            "Generating blog post  provider=%s  style=%s  chars=%s  figures=%d",
            kind.value,
            request.writing_style,
            f"{len(request.pdf_content):,}",
            len(request.extracted_images),
        )
        prompt = build_prompts(request, max_chars=self.max_chars)
        return self._run(kind, api_key, prompt.system, prompt.user, request.temperature)

    def answer_question(
        self,
        api_key: str,
        pdf_content: str,
        question: str,
        temperature: float = 0.7,
    ) -> GenerationOutcome:
        """Answer ``question`` from the paper text."""
        try:
            kind = resolve_provider(api_key)
        except CredentialError as exc:
            logger.warning("Rejected credential: %s", exc)
            return GenerationFailed(error=str(exc))

        logger.info("Answering question  provider=%s  question=%r", kind.value, question[:100])
        prompt = build_chat_prompts(pdf_content, question, max_chars=self.max_chars)
        return self._run(kind, api_key, prompt.system, prompt.user, temperature)

    def _run(
        self,
        kind: ProviderKind,
        api_key: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> GenerationOutcome:
        try:
            text = self._complete(api_key, system_prompt, user_prompt, temperature)
        except (CredentialError, ProviderError) as exc:
            logger.error("%s generation failed: %s", kind.value, exc)
            return GenerationFailed(error=str(exc))
        return Generated(text=text, provider=kind)
