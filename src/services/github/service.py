"""GitHub service - business logic layer."""

import asyncio
from typing import Iterable

from github import Github
from wcmatch import glob

from src.core.backoff import BackoffPolicy
from src.core.exceptions import (
    CommentPostFailed,
    MalformedResponse,
    RemoteUnavailable,
    ReviewerError,
    TransientRemoteFailure,
)
from src.core.logging import get_logger
from src.schemas.review import REVIEWABLE_STATUSES, ChangedFile, PullRequestRef, ReviewCommentRequest
from src.services.github.client import (
    create_review,
    create_review_comment,
    fetch_head_sha,
    fetch_pr_files,
    fetch_pull_request,
)
from src.services.reviewer.patch_parser import split_comments_by_valid_lines

logger = get_logger("github.service")

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.MATCHBASE | glob.FORCEUNIX


def matches_pattern(filename: str, pattern: str) -> bool:
    """Match a changed file against an exclude glob.

    A slash-free pattern such as ``*.lock`` matches the base name at any
    depth. ``*`` stops at ``/``, ``**`` spans zero or more directories and
    ``{a,b}`` alternatives are expanded. Matching is case-sensitive on
    every platform.
    """
    return glob.globmatch(filename, pattern, flags=GLOB_FLAGS)


def filter_for_review(files: Iterable[ChangedFile], exclude_patterns: list[str]) -> list[ChangedFile]:
    """Keep files that have a patch, a reviewable status and match no exclude pattern.

    Order of the input is preserved.
    """
    files = list(files)
    logger.info(f"Original files for review {len(files)}: {[f.filename for f in files]}")

    filtered = [
        f
        for f in files
        if f.patch is not None
        and f.status in REVIEWABLE_STATUSES
        and not any(matches_pattern(f.filename, p) for p in exclude_patterns)
    ]

    logger.info(f"Filtered files for review {len(filtered)}: {[f.filename for f in filtered]}")
    return filtered


def _in_thread(func, *args):
    """One attempt of a blocking PyGithub call, run in a worker thread.

    Raw client errors are raised as TransientRemoteFailure; reviewer errors
    pass through unchanged.
    """

    async def _attempt():
        try:
            return await asyncio.to_thread(func, *args)
        except ReviewerError:
            raise
        except Exception as e:
            raise TransientRemoteFailure(f"GitHub API error: {e}") from e

    return _attempt


class PullRequestService:
    """Retrying wrapper around the GitHub pull request API.

    Every operation is one retry unit under the shared backoff policy. The
    underlying PyGithub client is blocking, so calls run in worker threads.
    """

    def __init__(self, client: Github, policy: BackoffPolicy | None = None):
        self.client = client
        self.policy = policy or BackoffPolicy()

    async def _call(self, description: str, func, *args):
        try:
            return await self.policy.retry(_in_thread(func, *args), description=description)
        except MalformedResponse:
            raise
        except Exception as e:
            raise RemoteUnavailable(description, e) from e

    async def get_head_commit(self, ref: PullRequestRef) -> str:
        """Get the head commit SHA of a PR."""
        logger.info(f"Fetching head commit: {ref}")
        sha = await self._call(
            f"Fetching head commit of {ref}",
            fetch_head_sha,
            self.client,
            ref.owner,
            ref.repo,
            ref.pr_number,
        )
        logger.info(f"Head commit of {ref}: {sha}")
        return sha

    async def list_changed_files(self, ref: PullRequestRef) -> list[ChangedFile]:
        """Get every changed file of a PR."""

        def _list() -> list[ChangedFile]:
            pr = fetch_pull_request(self.client, ref.owner, ref.repo, ref.pr_number)
            return fetch_pr_files(pr)

        files = await self._call(f"Listing files of {ref}", _list)
        logger.info(f"Found {len(files)} files in PR")
        return files

    def filter_for_review(self, files: Iterable[ChangedFile], exclude_patterns: list[str]) -> list[ChangedFile]:
        return filter_for_review(files, exclude_patterns)

    async def post_review_comment(self, request: ReviewCommentRequest) -> ReviewCommentRequest:
        """Post a review comment anchored to the PR's current head commit.

        The head is re-resolved inside the retried unit, so a push during the
        run never leaves the comment on a stale commit.

        Returns:
            The request as posted, stamped with the resolved commit

        Raises:
            CommentPostFailed: After the retry budget is spent
        """

        def _post() -> ReviewCommentRequest:
            pr = fetch_pull_request(self.client, request.owner, request.repo, request.pr_number)
            head_sha = pr.head.sha
            if head_sha != request.commit_id:
                logger.warning(
                    f"Head of {request.owner}/{request.repo}#{request.pr_number} moved "
                    f"{request.commit_id[:7]} -> {head_sha[:7]}, anchoring to new head"
                )
            stamped = request.model_copy(update={"commit_id": head_sha})
            create_review_comment(pr, stamped)
            return stamped

        try:
            posted = await self.policy.retry(
                _in_thread(_post),
                description=f"Posting comment on {request.path}",
            )
        except Exception as e:
            raise CommentPostFailed(request.path, e) from e

        logger.info(f"Posted review comment on {request.path}")
        return posted

    async def post_review(
        self,
        ref: PullRequestRef,
        body: str,
        comments: list[dict] | None = None,
        event: str = "COMMENT",
        commit_id: str | None = None,
        patches: dict[str, str] | None = None,
    ) -> None:
        """Submit a whole review with inline comments in one call.

        When ``patches`` is given, inline comments on lines outside the diff
        are dropped before submitting.
        """
        comments = comments or []
        if patches is not None:
            comments, dropped = split_comments_by_valid_lines(comments, patches)
            for c in dropped:
                logger.warning(f"Dropping comment on {c.get('path')}:{c.get('line')}, line not in diff")

        def _submit() -> None:
            pr = fetch_pull_request(self.client, ref.owner, ref.repo, ref.pr_number)
            create_review(pr, body, comments, event, commit_id)

        await self._call(f"Submitting review on {ref}", _submit)
        logger.info(f"Submitted review with {len(comments)} comments")
