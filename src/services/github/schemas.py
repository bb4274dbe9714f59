"""Pydantic schemas for GitHub service."""

from pydantic import BaseModel, Field


class ManualReviewRequest(BaseModel):
    """Request schema for manual PR review trigger."""

    owner: str
    repo: str
    pr_number: int = Field(gt=0)


class PingResponse(BaseModel):
    """Response schema for GitHub ping event."""

    message: str = "pong"
    zen: str = ""


class ReviewStartedResponse(BaseModel):
    """Response schema when review is started."""

    message: str = "Review started"
    pr: str
    trigger: str = "workflow_dispatch"
