"""Tests for paperblog/client.py — the relay HTTP client."""

from unittest.mock import patch

import httpx
import pytest

from paperblog.client import RelayClient
from paperblog.models import GenerationRequest, RelayError


@pytest.fixture
def relay():
    return RelayClient("http://relay:8080/", "sk-ant-test", timeout_s=30)


def test_generate_posts_camel_case_body(relay, http_response):
    response = http_response(200, {"blogPost": "# Post", "success": True})
    request = GenerationRequest(pdf_content="text", writing_style="casual")
    with patch("paperblog.client.httpx.post", return_value=response) as mock_post:
        assert relay.generate(request) == "# Post"

    args, kwargs = mock_post.call_args
    assert args[0] == "http://relay:8080/api/v1/generate"
    assert kwargs["headers"]["X-API-Key"] == "sk-ant-test"
    assert kwargs["timeout"] == 30
    assert kwargs["json"]["pdfContent"] == "text"
    assert kwargs["json"]["writingStyle"] == "casual"
    assert "arxivMetadata" not in kwargs["json"]


def test_generate_error_status_raises_with_relay_message(relay, http_response):
    response = http_response(500, {"error": "Failed to generate blog post: Claude error: Overloaded"})
    with patch("paperblog.client.httpx.post", return_value=response):
        with pytest.raises(RelayError, match="Claude error: Overloaded"):
            relay.generate(GenerationRequest(pdf_content="text"))


def test_generate_unreachable_relay_raises(relay):
    with patch("paperblog.client.httpx.post", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(RelayError, match="failed"):
            relay.generate(GenerationRequest(pdf_content="text"))


def test_generate_success_false_raises(relay, http_response):
    response = http_response(200, {"blogPost": "", "success": False, "error": "nope"})
    with patch("paperblog.client.httpx.post", return_value=response):
        with pytest.raises(RelayError, match="nope"):
            relay.generate(GenerationRequest(pdf_content="text"))


def test_ask_returns_answer(relay, http_response):
    response = http_response(200, {"answer": "42", "success": True})
    with patch("paperblog.client.httpx.post", return_value=response) as mock_post:
        assert relay.ask("text", "What is the answer?") == "42"
    assert mock_post.call_args.args[0].endswith("/api/v1/chat")
    assert mock_post.call_args.kwargs["json"]["question"] == "What is the answer?"


def test_no_key_sends_no_header(http_response):
    response = http_response(401, {"error": "API key required"})
    with patch("paperblog.client.httpx.post", return_value=response) as mock_post:
        with pytest.raises(RelayError, match="API key required"):
            RelayClient("http://relay", None).generate(GenerationRequest(pdf_content="t"))
    assert "X-API-Key" not in mock_post.call_args.kwargs["headers"]


def test_health_ok(relay, http_response):
    body = {"status": "ok", "service": "paperblog-relay", "version": "1.0.0"}
    with patch("paperblog.client.httpx.get", return_value=http_response(200, body)):
        assert relay.health() == body


def test_health_unreachable(relay):
    with patch("paperblog.client.httpx.get", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(RelayError, match="Cannot reach relay"):
            relay.health()
