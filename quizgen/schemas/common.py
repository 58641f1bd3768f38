"""
quizgen — Shared Response Envelopes
====================================
Every error from this API is wrapped in ErrorResponse.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    status: str = "error"
    message: str
    detail: Optional[str] = None


class MessageResponse(BaseModel):
    """Plain acknowledgement for delete operations."""
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    database: str
