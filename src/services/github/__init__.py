"""GitHub service."""

from src.services.github.service import (
    PullRequestService,
    filter_for_review,
    matches_pattern,
)

__all__ = [
    "PullRequestService",
    "filter_for_review",
    "matches_pattern",
]
