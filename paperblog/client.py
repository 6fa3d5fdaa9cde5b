"""HTTP client for the relay, used by the host CLI and the protocol server."""

import logging

import httpx

from paperblog.log import mask_key
from paperblog.models import (
    ChatRequest,
    GenerationRequest,
    RelayError,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class RelayClient:
    """Calls the relay's ``/api/v1`` endpoints with the caller's credential.

    Attributes:
        base_url:  Relay root, e.g. ``http://localhost:8080``.
        timeout_s: Seconds before a call is abandoned.
    """

    def __init__(self, base_url: str, api_key: str | None, timeout_s: float = 120) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s

    def generate(self, request: GenerationRequest) -> str:
        """POST ``/generate`` and return the blog post.

        Raises:
            RelayError: if the relay is unreachable, answers non-200, or
                reports ``success: false``.
        """
        body = self._post("/generate", request.to_wire())
        return self._require(body, "blogPost")

    def ask(self, pdf_content: str, question: str, temperature: float = 0.7) -> str:
        """POST ``/chat`` and return the answer."""
        request = ChatRequest(pdf_content=pdf_content, question=question, temperature=temperature)
        body = self._post("/chat", request.to_wire())
        return self._require(body, "answer")

    def health(self) -> dict:
        """GET ``/health``; raises ``RelayError`` when the relay is down."""
        url = f"{self.base_url}{API_PREFIX}/health"
        try:
            response = httpx.get(url, timeout=5)
        except httpx.HTTPError as e:
            raise RelayError(f"Cannot reach relay at {self.base_url}: {e}") from e
        if response.status_code != 200:
            raise RelayError(f"Relay health check failed with status {response.status_code}")
        return response.json()

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        logger.debug("POST %s  key=%s", url, mask_key(self.api_key or ""))
        try:
            response = httpx.post(url, json=payload, headers=headers, timeout=self.timeout_s)
        except httpx.HTTPError as e:
            raise RelayError(f"Relay request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code != 200:
            detail = body.get("error") if isinstance(body, dict) else None
            raise RelayError(
                f"Relay returned {response.status_code}: {detail or response.text[:200]}"
            )
        if not isinstance(body, dict):
            raise RelayError(f"Relay returned an unexpected body: {response.text[:200]!r}")
        return body

    @staticmethod
    def _require(body: dict, field: str) -> str:
        if not body.get("success"):
            raise RelayError(body.get("error") or "Relay reported failure")
        value = body.get(field)
        if not value:
            raise RelayError(f"Relay response has no {field}")
        return value
