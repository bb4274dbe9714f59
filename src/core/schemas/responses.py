"""Response envelopes for the dispatch server."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body returned for any reviewer error."""

    success: bool = False
    error: str
    details: dict | None = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "pr-review-action"
    version: str
    provider: str
    model: str
    rubric: str
