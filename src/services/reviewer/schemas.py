"""Pydantic schemas for reviewer service."""

from typing import Literal

from pydantic import BaseModel

Stage = Literal["segment", "review", "post"]


class UnitFailure(BaseModel):
    """An isolated failure of one file or chunk."""

    path: str
    stage: Stage
    error: str
    chunk: int | None = None


class FileOutcome(BaseModel):
    path: str
    language: str
    chunked: bool = False
    comments_posted: int = 0
    failures: list[UnitFailure] = []


class ReviewRunReport(BaseModel):
    """Result of a PR review run."""

    success: bool = True
    pr: str
    commit_id: str
    files_listed: int
    files_reviewed: int
    comments_posted: int
    failures: list[UnitFailure] = []
