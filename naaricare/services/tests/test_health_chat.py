"""Tests for the health assistant relay and its stream parser."""

from __future__ import annotations

import json

import httpx
import pytest

from naaricare.services.health_chat import (
    SYSTEM_PROMPT,
    ChatMessage,
    ChatServiceError,
    DeltaStreamParser,
    HealthChatClient,
)
from naaricare.services.tests.conftest import make_settings

MESSAGES = [ChatMessage(role="user", content="Is a 35 day cycle normal?")]


def _event(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n"


def _client(handler, **overrides) -> HealthChatClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HealthChatClient(make_settings(**overrides), http_client=http)


class TestDeltaStreamParser:
    def test_collects_fragments(self) -> None:
        parser = DeltaStreamParser()
        assert parser.feed(_event("Hello") + _event(", there")) == ["Hello", ", there"]

    def test_partial_line_waits_for_newline(self) -> None:
        parser = DeltaStreamParser()
        line = _event("Hi")
        assert parser.feed(line[:15]) == []
        assert parser.feed(line[15:]) == ["Hi"]

    def test_skips_comments_and_blank_lines(self) -> None:
        parser = DeltaStreamParser()
        chunk = ": keep-alive\n\n" + _event("a") + "event: ping\n" + _event("b")
        assert parser.feed(chunk) == ["a", "b"]

    def test_handles_crlf(self) -> None:
        parser = DeltaStreamParser()
        assert parser.feed(_event("x").replace("\n", "\r\n")) == ["x"]

    def test_done_stops_parsing(self) -> None:
        parser = DeltaStreamParser()
        fragments = parser.feed(_event("a") + "data: [DONE]\n" + _event("ignored"))
        assert fragments == ["a"]
        assert parser.done is True
        assert parser.flush() == []

    def test_incomplete_json_is_kept_for_later(self) -> None:
        parser = DeltaStreamParser()
        assert parser.feed('data: {"choices": [\n') == []
        assert parser.done is False
        # Unrecoverable remainder is dropped on flush
        assert parser.flush() == []

    def test_flush_parses_unterminated_last_line(self) -> None:
        parser = DeltaStreamParser()
        assert parser.feed(_event("a") + _event("b").rstrip("\n")) == ["a"]
        assert parser.flush() == ["b"]

    def test_ignores_events_without_content(self) -> None:
        parser = DeltaStreamParser()
        chunk = 'data: {"choices": [{"delta": {"role": "assistant"}}]}\n' + 'data: {"usage": {}}\n'
        assert parser.feed(chunk) == []


class TestHealthChatClient:
    @pytest.mark.asyncio
    async def test_complete_joins_stream(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            body = _event("Cycles of ") + _event("21 to 35 days are common.") + "data: [DONE]\n"
            return httpx.Response(
                200, text=body, headers={"Content-Type": "text/event-stream"}
            )

        reply = await _client(handler).complete(MESSAGES)
        assert reply == "Cycles of 21 to 35 days are common."
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["stream"] is True
        assert seen["body"]["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert seen["body"]["messages"][1] == {
            "role": "user",
            "content": "Is a 35 day cycle normal?",
        }

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        client = _client(lambda request: httpx.Response(200), ai_gateway_api_key="")
        with pytest.raises(ChatServiceError) as excinfo:
            await client.complete(MESSAGES)
        assert excinfo.value.status_code == 503
        assert excinfo.value.retryable is False

    @pytest.mark.asyncio
    async def test_rate_limited(self) -> None:
        client = _client(lambda request: httpx.Response(429, text="slow down"))
        with pytest.raises(ChatServiceError, match="too many requests") as excinfo:
            await client.complete(MESSAGES)
        assert excinfo.value.status_code == 429
        assert excinfo.value.retryable is True

    @pytest.mark.asyncio
    async def test_credits_exhausted(self) -> None:
        client = _client(lambda request: httpx.Response(402, text="payment required"))
        with pytest.raises(ChatServiceError) as excinfo:
            await client.complete(MESSAGES)
        assert excinfo.value.status_code == 503
        assert excinfo.value.retryable is False

    @pytest.mark.asyncio
    async def test_upstream_failure(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(ChatServiceError) as excinfo:
            await client.complete(MESSAGES)
        assert excinfo.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ChatServiceError, match="interrupted") as excinfo:
            await _client(handler).complete(MESSAGES)
        assert excinfo.value.retryable is True
