"""Pydantic models for the authenticated user."""

from __future__ import annotations

import uuid

from naaricare.models.base import NaariCareBase


class UserRead(NaariCareBase):
    user_id: uuid.UUID
    email: str | None = None
    is_admin: bool
