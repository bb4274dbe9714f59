"""Review-related schemas."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class PullRequestRef(BaseModel):
    """Identifies the pull request under review for the lifetime of a run."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pr_number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pr_number}"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    CHANGED = "changed"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    UNCHANGED = "unchanged"


REVIEWABLE_STATUSES = frozenset({FileStatus.ADDED, FileStatus.MODIFIED, FileStatus.CHANGED})


class ChangedFile(BaseModel):
    """A file touched by the pull request, as reported by GitHub."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus
    patch: Optional[str] = None
    additions: int = 0
    deletions: int = 0


class DiffChunk(BaseModel):
    """One hunk of a file's patch, header line included."""

    model_config = ConfigDict(frozen=True)

    content: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int


class ReviewResult(BaseModel):
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class ReviewCommentRequest(BaseModel):
    """A review comment to publish, anchored to a commit of the PR."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pr_number: int
    commit_id: str
    path: str
    body: str
    subject_type: Literal["line", "file"] = "file"
    line: Optional[int] = None
    side: Optional[Literal["LEFT", "RIGHT"]] = None
    start_line: Optional[int] = None
    start_side: Optional[Literal["LEFT", "RIGHT"]] = None
