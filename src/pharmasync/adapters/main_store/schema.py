"""Pydantic models describing main-store API responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordPage(BaseModel):
    """``GET /api/pharmacy/<collection>`` response."""

    model_config = ConfigDict(extra="ignore")

    data: list[dict[str, Any]] = Field(default_factory=list)
    page: int = 1
    total_pages: int = Field(default=1, alias="totalPages")


class RecordEnvelope(BaseModel):
    """Single-record response of ``POST`` and ``PUT``."""

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any]


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: str
    message: str | None = None
