"""Pytest configuration and fixtures for reviewer tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from src.config import Settings
from src.core.backoff import BackoffPolicy
from src.schemas.review import PullRequestRef

PY_PATCH = "\n".join([
    "@@ -1,3 +1,4 @@",
    " import os",
    "+import sys",
    " ",
    " def main():",
])

TWO_HUNK_PATCH = "\n".join([
    "@@ -1,3 +1,4 @@",
    " import os",
    "+import sys",
    " ",
    " def main():",
    "@@ -10,2 +11,3 @@ def main():",
    '     print("a")',
    '+    print("b")',
    "     return 0",
])


@pytest.fixture
def no_delay() -> BackoffPolicy:
    """Backoff policy that retries without sleeping."""
    return BackoffPolicy(base_delay=0, max_delay=0)


@pytest.fixture
def pr_ref() -> PullRequestRef:
    return PullRequestRef(owner="octo", repo="repo", pr_number=42)


def github_file(filename: str, status: str = "modified", patch: str | None = PY_PATCH):
    """Stand-in for a PyGithub File object."""
    return SimpleNamespace(filename=filename, status=status, patch=patch, additions=1, deletions=0)


def make_github(files=None, head_sha: str = "abc1234"):
    """MagicMock Github client serving a single pull request.

    Returns:
        Tuple of (github client, pull request mock)
    """
    github = MagicMock()
    pr = github.get_repo.return_value.get_pull.return_value
    pr.head.sha = head_sha
    pr.get_files.return_value = list(files or [])
    return github, pr


def make_settings(**overrides) -> Settings:
    """Settings isolated from the process environment."""
    values = {
        "_env_file": None,
        "openai_api_key": "sk-test",
        "github_token": "ghp_test",
        "azure_openai_api_key": None,
        "azure_openai_api_instance_name": None,
        "azure_openai_api_deployment_name": None,
        "azure_openai_api_version": None,
        "github_event_name": "workflow_dispatch",
        "github_repository": "octo/repo",
        "pr_number": 42,
        "exclude_files": "",
    }
    values.update(overrides)
    return Settings(**values)
