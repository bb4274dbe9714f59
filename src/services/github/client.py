"""GitHub API client - data layer."""

from github import Auth, Github
from github.PullRequest import PullRequest
from loguru import logger
from pydantic import ValidationError

from src.core.exceptions import MalformedResponse
from src.schemas.review import ChangedFile, ReviewCommentRequest

PER_PAGE = 100


def create_github_client(token: str, base_url: str = "https://api.github.com") -> Github:
    """Create an authenticated GitHub client.

    PyGithub's own retry layer is disabled; callers retry with the shared
    backoff policy instead.
    """
    client = Github(auth=Auth.Token(token), base_url=base_url, per_page=PER_PAGE, retry=None)
    logger.info("GitHub client initialized")
    return client


def fetch_pull_request(client: Github, owner: str, repo: str, pr_number: int) -> PullRequest:
    """Fetch a pull request from GitHub API."""
    repository = client.get_repo(f"{owner}/{repo}")
    return repository.get_pull(pr_number)


def fetch_head_sha(client: Github, owner: str, repo: str, pr_number: int) -> str:
    """Fetch the current head commit SHA of a PR."""
    return fetch_pull_request(client, owner, repo, pr_number).head.sha


def fetch_pr_files(pr: PullRequest) -> list[ChangedFile]:
    """Fetch changed files from a PR, following every page."""
    files = []
    for f in pr.get_files():
        try:
            files.append(
                ChangedFile(
                    filename=f.filename,
                    status=f.status,
                    patch=f.patch,
                    additions=f.additions,
                    deletions=f.deletions,
                )
            )
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected file entry in PR: {e}") from e
    return files


def create_review_comment(pr: PullRequest, request: ReviewCommentRequest) -> None:
    """Create a single review comment on a PR at ``request.commit_id``."""
    commit = pr.base.repo.get_commit(request.commit_id)

    kwargs = {}
    if request.subject_type == "file":
        kwargs["subject_type"] = "file"
    else:
        kwargs["line"] = request.line
        if request.side:
            kwargs["side"] = request.side
        if request.start_line is not None:
            kwargs["start_line"] = request.start_line
            kwargs["start_side"] = request.start_side or request.side

    pr.create_review_comment(
        body=request.body,
        commit=commit,
        path=request.path,
        **kwargs,
    )
    logger.debug(f"Created review comment on {request.path} at {request.commit_id[:7]}")


def create_review(
    pr: PullRequest,
    body: str,
    comments: list[dict],
    event: str = "COMMENT",
    commit_id: str | None = None,
) -> None:
    """Create a review on a PR."""
    review_comments = []
    for c in comments:
        if c.get("line") and c.get("path"):
            review_comments.append({
                "path": c["path"],
                "line": c["line"],
                "side": c.get("side", "RIGHT"),
                "body": c["body"],
            })

    kwargs = {}
    if commit_id:
        kwargs["commit"] = pr.base.repo.get_commit(commit_id)

    pr.create_review(
        body=body,
        event=event,
        comments=review_comments,
        **kwargs,
    )
    logger.info(f"Created review with {len(review_comments)} comments")
