"""Pydantic models for the health assistant relay."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from naaricare.models.base import NaariCareBase


class ChatMessageIn(NaariCareBase):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=8000)


class ChatRequest(NaariCareBase):
    messages: list[ChatMessageIn] = Field(min_length=1, max_length=50)


class ChatReply(NaariCareBase):
    reply: str

