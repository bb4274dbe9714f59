"""Resolve the pull request to review from references and workflow events."""

import re
from typing import Optional

from src.config import settings
from src.core.exceptions import ConfigurationError, UnsupportedTriggerError
from src.schemas.review import PullRequestRef

SUPPORTED_TRIGGERS = ("workflow_dispatch",)


def split_repository(repository: str) -> tuple[str, str]:
    """Split an ``owner/repo`` string."""
    owner, sep, repo = (repository or "").partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ConfigurationError(f"Invalid repository: {repository!r}, expected owner/repo")
    return owner, repo


def _default_repository() -> Optional[tuple[str, str]]:
    if not settings.github_repository:
        return None
    try:
        return split_repository(settings.github_repository)
    except ConfigurationError:
        return None


def parse_pr_reference(text: str) -> Optional[PullRequestRef]:
    """
    Parse PR reference from text.

    Supported formats:
    - #123 -> uses GITHUB_REPOSITORY for owner/repo
    - owner/repo#123 -> specific repo
    - https://github.com/owner/repo/pull/123 -> full URL
    """
    # Pattern 1: Full GitHub URL
    url_pattern = r"https?://github\.com/([^/]+)/([^/]+)/pull/(\d+)"
    match = re.search(url_pattern, text)
    if match:
        return PullRequestRef(
            owner=match.group(1),
            repo=match.group(2),
            pr_number=int(match.group(3)),
        )

    # Pattern 2: owner/repo#123
    full_ref_pattern = r"([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)#(\d+)"
    match = re.search(full_ref_pattern, text)
    if match:
        return PullRequestRef(
            owner=match.group(1),
            repo=match.group(2),
            pr_number=int(match.group(3)),
        )

    # Pattern 3: #123 or bare 123 (use the workflow repository)
    short_pattern = r"^\s*#?(\d+)\s*$"
    match = re.search(short_pattern, text)
    if match:
        default = _default_repository()
        if not default:
            return None
        return PullRequestRef(owner=default[0], repo=default[1], pr_number=int(match.group(1)))

    return None


def resolve_trigger(
    event_name: Optional[str],
    repository: Optional[str],
    pr_number: Optional[int],
) -> PullRequestRef:
    """Turn the workflow context into the pull request to review.

    Raises:
        UnsupportedTriggerError: For any event other than workflow_dispatch
        ConfigurationError: If the repository or PR number is missing
    """
    if event_name not in SUPPORTED_TRIGGERS:
        raise UnsupportedTriggerError(event_name)

    if not repository:
        raise ConfigurationError("GITHUB_REPOSITORY not set")
    owner, repo = split_repository(repository)

    if pr_number is None:
        raise ConfigurationError("pr_number input is required for workflow_dispatch runs")
    if pr_number <= 0:
        raise ConfigurationError(f"Invalid pr_number: {pr_number}")

    return PullRequestRef(owner=owner, repo=repo, pr_number=pr_number)
