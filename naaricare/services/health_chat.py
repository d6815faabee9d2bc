"""Health assistant relay.

Sends the conversation to an OpenAI-compatible chat completions gateway
with ``stream: true`` and stitches the streamed ``choices[0].delta.content``
fragments into one reply.  A reply is only returned once the stream has
finished; if it fails part-way, the partial text is discarded and the caller
may retry the same input.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Sequence

import httpx

from naaricare.config import Settings, get_settings

logger = logging.getLogger("naaricare.chat")

SYSTEM_PROMPT = """You are NaariCare Health Assistant, a supportive and knowledgeable AI companion for women's health and wellness.

Your role:
- Provide helpful, accurate information about women's health topics including menstrual health, PCOS, menopause, hormonal health, nutrition, and general wellness
- Use simple, easy-to-understand language that non-medical users can relate to
- Be warm, empathetic, and supportive in your responses
- Always remind users that you provide general information and not medical advice
- Encourage users to consult healthcare professionals for medical concerns
- Be culturally sensitive and inclusive

Guidelines:
- Never provide specific medical diagnoses or prescriptions
- If asked about emergencies or serious symptoms, always recommend seeking immediate medical attention
- Keep responses concise but thorough (2-4 paragraphs max)
- Use bullet points for lists when appropriate
- End with a helpful follow-up question or suggestion when relevant"""


class ChatServiceError(Exception):
    """The assistant could not produce a complete reply.

    Attributes:
        status_code: HTTP status to report to the client.
        retryable:   Whether resending the same messages may succeed.
    """

    def __init__(self, message: str, status_code: int = 502, retryable: bool = True) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


@dataclass
class ChatMessage:
    role: str  # 'user' | 'assistant'
    content: str


class DeltaStreamParser:
    """Incremental parser for ``data: {json}`` event-stream lines.

    Feed it decoded text chunks as they arrive.  Complete lines are parsed;
    a line whose JSON does not parse yet is put back into the buffer and
    retried on the next feed, since a network chunk can split a payload.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self.done = False

    def feed(self, text: str) -> list[str]:
        """Add a chunk and return the content fragments it completed."""
        self._buffer += text
        fragments: list[str] = []
        while not self.done and "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            payload = _event_payload(line)
            if payload is None:
                continue
            if payload == "[DONE]":
                self.done = True
                break
            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                # Incomplete JSON: put it back and wait for more data
                self._buffer = line + "\n" + self._buffer
                break
            content = _delta_content(parsed)
            if content:
                fragments.append(content)
        return fragments

    def flush(self) -> list[str]:
        """Parse whatever is left once the stream has closed."""
        fragments: list[str] = []
        remaining, self._buffer = self._buffer, ""
        if self.done:
            return fragments
        for raw in remaining.split("\n"):
            payload = _event_payload(raw)
            if payload is None or payload == "[DONE]":
                continue
            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                logger.debug("Dropping unparseable trailing stream line")
                continue
            content = _delta_content(parsed)
            if content:
                fragments.append(content)
        return fragments


def _event_payload(line: str) -> str | None:
    """Return the data payload of an event-stream line, or None to skip it."""
    if line.endswith("\r"):
        line = line[:-1]
    if line.startswith(":") or not line.strip():
        return None
    if not line.startswith("data: "):
        return None
    return line[6:].strip()


def _delta_content(parsed: Any) -> str | None:
    try:
        content = parsed["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


class HealthChatClient:
    """Relay a conversation to the AI gateway and collect the streamed reply.

    Args:
        settings:    App settings (gateway URL, API key, model).
        http_client: Optional pre-configured httpx client (for testing).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        s = settings or get_settings()
        self._url = s.ai_gateway_url
        self._api_key = s.ai_gateway_api_key
        self._model = s.ai_model
        self._http_client = http_client

    def _request_body(self, messages: Sequence[ChatMessage]) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                *({"role": m.role, "content": m.content} for m in messages),
            ],
            "stream": True,
        }

    async def stream_reply(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Yield reply fragments as they arrive.

        Raises:
            ChatServiceError: On configuration, HTTP or transport failure.
        """
        if not self._api_key:
            raise ChatServiceError("Assistant is not configured", status_code=503, retryable=False)

        logger.info("Calling AI gateway with %d messages", len(messages))
        headers = {"Authorization": f"Bearer {self._api_key}"}
        client = self._http_client or httpx.AsyncClient(timeout=httpx.Timeout(60.0, connect=10.0))
        try:
            async with client.stream(
                "POST", self._url, json=self._request_body(messages), headers=headers
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise _gateway_error(response)

                parser = DeltaStreamParser()
                async for chunk in response.aiter_text():
                    for fragment in parser.feed(chunk):
                        yield fragment
                    if parser.done:
                        break
                for fragment in parser.flush():
                    yield fragment
        except httpx.HTTPError as exc:
            logger.warning("AI gateway stream failed: %s", exc)
            raise ChatServiceError("The assistant connection was interrupted") from exc
        finally:
            if self._http_client is None:
                await client.aclose()

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Return the full reply, or raise without any partial text."""
        parts: list[str] = []
        async for fragment in self.stream_reply(messages):
            parts.append(fragment)
        return "".join(parts)


def _gateway_error(response: httpx.Response) -> ChatServiceError:
    status = response.status_code
    logger.warning("AI gateway error %d: %s", status, response.text[:200])
    if status == 429:
        return ChatServiceError(
            "I'm receiving too many requests right now. Please wait a moment and try again.",
            status_code=429,
        )
    if status == 402:
        return ChatServiceError(
            "The assistant is temporarily unavailable. Please try again later.",
            status_code=503,
            retryable=False,
        )
    return ChatServiceError("The assistant is unavailable right now", status_code=502)
