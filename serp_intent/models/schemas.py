from __future__ import annotations

from pydantic import BaseModel


# --- Requests ---


class IntentRequest(BaseModel):
    # Missing keywords are reported inside the stream, not rejected here.
    keyword: str | None = None


# --- Responses ---


class HealthResponse(BaseModel):
    status: str
    service: str


class ErrorResponse(BaseModel):
    error: str
