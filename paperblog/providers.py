"""Provider adapters — one blocking completion call per vendor.

OpenAI and Perplexity go through the ``openai`` SDK with a per-vendor base
URL.  Claude's Messages API and self-hosted chat-completions servers go
through ``httpx``; a local server is called at the exact endpoint its
credential names.

Every adapter decodes the raw JSON body into a typed envelope instead of
trusting the SDK's parsed object, because providers sometimes answer with
an ``{"error": ...}`` envelope and a 2xx status.  An error envelope or a
missing content field always raises ``ProviderError``; an adapter never
returns an empty string.

No retries: the SDK's built-in retries are switched off and every call is
bounded by a single timeout.
"""

import json
import logging
import time

import httpx
import openai as _openai
from pydantic import BaseModel, ValidationError

from paperblog.log import mask_key
from paperblog.models import ProviderError, ProviderKind
from paperblog.router import resolve_provider

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 4000
TIMEOUT_S = 60.0

CLAUDE_URL = "https://api.anthropic.com/v1/messages"
CLAUDE_MODEL = "claude-sonnet-4-20250514"
ANTHROPIC_VERSION = "2023-06-01"

OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODEL = "gpt-4o"

PERPLEXITY_BASE_URL = "https://api.perplexity.ai"
PERPLEXITY_MODEL = "sonar-pro"

LOCAL_DEFAULT_MODEL = "llama3.1"
_CHAT_COMPLETIONS_PATH = "/chat/completions"


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------


class _ErrorDetail(BaseModel):
    message: str | None = None
    type: str | None = None


class _ChatMessage(BaseModel):
    content: str | None = None


class _ChatChoice(BaseModel):
    message: _ChatMessage | None = None


class ChatCompletionEnvelope(BaseModel):
    """OpenAI-compatible body: either ``choices`` or an ``error``."""

    choices: list[_ChatChoice] | None = None
    error: _ErrorDetail | str | None = None

    def text(self) -> str | None:
        if not self.choices:
            return None
        message = self.choices[0].message
        return message.content if message else None


class _ContentBlock(BaseModel):
    type: str
    text: str | None = None


class ClaudeEnvelope(BaseModel):
    """Claude Messages body: either ``content`` blocks or an ``error``."""

    content: list[_ContentBlock] | None = None
    error: _ErrorDetail | str | None = None

    def text(self) -> str | None:
        for block in self.content or []:
            if block.type == "text" and block.text:
                return block.text
        return None


def _error_message(error: _ErrorDetail | str) -> str:
    if isinstance(error, str):
        return error
    return error.message or error.type or "unknown error"


def decode_envelope(
    vendor: str, payload: object, envelope_cls: type[BaseModel]
) -> str:
    """Extract the generated text from a provider body.

    Raises:
        ProviderError: on an error envelope, an unexpected shape, or when the
            content field is absent or empty.
    """
    if not isinstance(payload, dict):
        raise ProviderError(f"{vendor} returned an unexpected response: {str(payload)[:200]!r}")
    try:
        envelope = envelope_cls.model_validate(payload)
    except ValidationError as exc:
        raise ProviderError(f"{vendor} returned an unexpected response shape: {exc}") from exc

    if envelope.error is not None:
        raise ProviderError(f"{vendor} error: {_error_message(envelope.error)}")

    text = envelope.text()
    if not text:
        raise ProviderError(f"Empty response from {vendor}")
    return text


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class OpenAICompatibleAdapter:
    """Chat-completions adapter for OpenAI and Perplexity.

    Attributes:
        vendor:   Human-readable vendor name used in errors and logs.
        base_url: API base URL; the SDK appends ``/chat/completions``.
        model:    Model identifier sent with every request.
    """

    def __init__(
        self,
        vendor: str,
        base_url: str,
        model: str,
        timeout_s: float = TIMEOUT_S,
    ) -> None:
        self.vendor = vendor
        self.base_url = base_url
        self.model = model
        self.timeout_s = timeout_s

    def complete(
        self, api_key: str, system_prompt: str, user_prompt: str, temperature: float
    ) -> str:
        client = _openai.OpenAI(
            base_url=self.base_url,
            api_key=api_key,
            timeout=self.timeout_s,
            max_retries=0,
        )
        try:
            raw = client.chat.completions.with_raw_response.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=MAX_OUTPUT_TOKENS,
            )
        except _openai.APIStatusError as exc:
            raise ProviderError(
                f"{self.vendor} request failed ({exc.status_code}): "
                f"{_status_error_detail(exc.body, exc.message)}"
            ) from exc
        except _openai.APIError as exc:
            raise ProviderError(f"{self.vendor} request failed: {exc}") from exc

        logger.debug("%s response: %s", self.vendor, raw.text[:500])
        return decode_envelope(self.vendor, _parse_json(self.vendor, raw.text), ChatCompletionEnvelope)


class ClaudeAdapter:
    """Claude Messages API adapter.

    System and user prompts travel together in a single ``user`` message.
    """

    vendor = "Claude"

    def __init__(
        self, model: str = CLAUDE_MODEL, url: str = CLAUDE_URL, timeout_s: float = TIMEOUT_S
    ) -> None:
        self.model = model
        self.url = url
        self.timeout_s = timeout_s

    def complete(
        self, api_key: str, system_prompt: str, user_prompt: str, temperature: float
    ) -> str:
        payload = {
            "model": self.model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "temperature": temperature,
            "messages": [
                {"role": "user", "content": f"{system_prompt}\n\n{user_prompt}"},
            ],
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        body = _post_json(self.vendor, self.url, headers, payload, self.timeout_s)
        return decode_envelope(self.vendor, body, ClaudeEnvelope)


class LocalAdapter:
    """Chat-completions adapter for a self-hosted server (Ollama, LM Studio, ...).

    The request goes to ``endpoint`` exactly; nothing is appended to it.
    """

    vendor = "local model"

    def __init__(self, endpoint: str, model: str, timeout_s: float = TIMEOUT_S) -> None:
        self.endpoint = endpoint
        self.model = model
        self.timeout_s = timeout_s

    def complete(
        self, api_key: str, system_prompt: str, user_prompt: str, temperature: float
    ) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": MAX_OUTPUT_TOKENS,
        }
        headers = {"content-type": "application/json"}
        body = _post_json(self.vendor, self.endpoint, headers, payload, self.timeout_s)
        return decode_envelope(self.vendor, body, ChatCompletionEnvelope)


Adapter = OpenAICompatibleAdapter | ClaudeAdapter | LocalAdapter


def local_endpoint(base_url: str) -> str:
    """Return the chat-completions endpoint for a self-hosted server URL.

    URLs that already contain ``/v1/`` are used as given; bare base URLs get
    ``/v1/chat/completions`` appended.
    """
    if "/v1/" in base_url:
        return base_url
    return f"{base_url.rstrip('/')}/v1{_CHAT_COMPLETIONS_PATH}"


def local_adapter(credential: str) -> LocalAdapter:
    """Build the adapter for a ``URL[|model]`` credential."""
    url, _, model = credential.partition("|")
    return LocalAdapter(
        endpoint=local_endpoint(url.strip()),
        model=model.strip() or LOCAL_DEFAULT_MODEL,
    )


def adapter_for(kind: ProviderKind, credential: str) -> Adapter:
    """Return the adapter instance that serves ``kind``."""
    if kind is ProviderKind.PERPLEXITY:
        return OpenAICompatibleAdapter("Perplexity", PERPLEXITY_BASE_URL, PERPLEXITY_MODEL)
    if kind is ProviderKind.CLAUDE:
        return ClaudeAdapter()
    if kind is ProviderKind.OPENAI:
        return OpenAICompatibleAdapter("OpenAI", OPENAI_BASE_URL, OPENAI_MODEL)
    return local_adapter(credential)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def complete(
    credential: str, system_prompt: str, user_prompt: str, temperature: float
) -> str:
    """Route ``credential`` to its provider and return the generated text.

    Raises:
        CredentialError: if the credential matches no provider (no network
            call is made).
        ProviderError: if the provider call fails or yields no text.
    """
    kind = resolve_provider(credential)
    adapter = adapter_for(kind, credential)
    # Local credentials carry the URL, not a secret.
    api_key = "local" if kind is ProviderKind.LOCAL else credential

    logger.info(
        "Calling %s  model=%s  key=%s", adapter.vendor, adapter.model, mask_key(credential)
    )
    logger.debug(
        "Prompt sizes: system=%s chars, user=%s chars",
        f"{len(system_prompt):,}",
        f"{len(user_prompt):,}",
    )
    t0 = time.monotonic()
    text = adapter.complete(api_key, system_prompt, user_prompt, temperature)
    logger.info(
        "Response received (%.1fs, %s chars)", time.monotonic() - t0, f"{len(text):,}"
    )
    return text


def _post_json(
    vendor: str, url: str, headers: dict[str, str], payload: dict, timeout_s: float
) -> object:
    """POST ``payload`` to ``url`` and return the decoded JSON body.

    Raises:
        ProviderError: on a transport failure, a 4xx/5xx status, or a
            non-JSON body.
    """
    try:
        response = httpx.post(url, headers=headers, json=payload, timeout=timeout_s)
    except httpx.HTTPError as exc:
        raise ProviderError(f"{vendor} request failed: {exc}") from exc

    if response.status_code >= 400:
        try:
            body = response.json()
        except ValueError:
            body = None
        raise ProviderError(
            f"{vendor} request failed ({response.status_code}): "
            f"{_status_error_detail(body, response.text[:200])}"
        )
    return _parse_json(vendor, response.text)


def _parse_json(vendor: str, text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ProviderError(
            f"{vendor} returned a non-JSON response: {text[:200]!r}"
        ) from e


def _status_error_detail(body: object, fallback: str) -> str:
    """Pull the error message out of an error body, else use ``fallback``.

    Accepts both a full envelope (``{"error": {...}}``) and the bare error
    object the openai SDK attaches to ``APIStatusError.body``.
    """
    if isinstance(body, dict):
        if "error" in body:
            return _status_error_detail(body["error"], fallback)
        if body.get("message"):
            return str(body["message"])
    if isinstance(body, str) and body:
        return body
    return fallback
