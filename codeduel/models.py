from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SolveRequest(BaseModel):
    """Request body for POST /api/solve."""

    provider: Optional[str] = None
    model: Optional[str] = None
    problem: Optional[str] = None


class SolveResponse(BaseModel):
    """Response body for POST /api/solve."""

    solution: str


class EvaluateRequest(BaseModel):
    """Request body for POST /api/evaluate."""

    provider: Optional[str] = None
    model: Optional[str] = None
    problem: Optional[str] = None
    solution: Optional[str] = None


class Evaluation(BaseModel):
    """Peer evaluation of a solution; also the response body for POST /api/evaluate."""

    score: str
    critique: str
    improvements: str
    verdict: str


class HealthResponse(BaseModel):
    """Response body for GET /api/health."""

    status: str
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
