"""Tests for the review orchestrator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from conftest import PY_PATCH, TWO_HUNK_PATCH, github_file, make_github, make_settings
from src.core.exceptions import ConfigurationError, RemoteUnavailable
from src.schemas.review import ChangedFile
from src.services.github.service import PullRequestService
from src.services.reviewer.client import CodeReviewService
from src.services.reviewer.service import ReviewOrchestrator, build_orchestrator, review_pull_request

BROKEN_PATCH = "@@ -1 +1 @@\n-x = 1\n+broken = 2"
FINE_PATCH = "@@ -1 +1 @@\n-y = 1\n+fine = 2"


def make_orchestrator(github, llm, policy, **kwargs) -> ReviewOrchestrator:
    return ReviewOrchestrator(
        PullRequestService(github, policy),
        CodeReviewService(llm, policy=policy),
        **kwargs,
    )


def make_llm(side_effect) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=side_effect)
    return llm


def posted_paths(pr) -> list[str]:
    return [c.kwargs["path"] for c in pr.create_review_comment.call_args_list]


class TestRun:
    """Tests for ReviewOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_transient_failures_then_comment(self, pr_ref, no_delay):
        """Two model timeouts then success posts one comment on the current head."""
        github, pr = make_github(files=[github_file("src/app.py")], head_sha="sha-start")
        responses = iter([TimeoutError("1"), TimeoutError("2")])

        async def generate(messages):
            error = next(responses, None)
            if error:
                raise error
            # A push lands while the review is being generated
            pr.head.sha = "sha-new"
            return AIMessage(content="Consider logging the failure.")

        llm = make_llm(generate)
        orchestrator = make_orchestrator(github, llm, no_delay)

        report = await orchestrator.run(pr_ref)

        assert report.success
        assert report.commit_id == "sha-start"
        assert report.comments_posted == 1
        assert report.failures == []
        assert llm.ainvoke.await_count == 3
        pr.base.repo.get_commit.assert_called_once_with("sha-new")
        kwargs = pr.create_review_comment.call_args.kwargs
        assert kwargs["path"] == "src/app.py"
        assert kwargs["body"] == "Consider logging the failure."
        assert kwargs["subject_type"] == "file"

    @pytest.mark.asyncio
    async def test_failed_file_is_isolated(self, pr_ref, no_delay):
        """One file exhausting its retries does not stop another."""
        github, pr = make_github(
            files=[github_file("a.py", patch=BROKEN_PATCH), github_file("b.py", patch=FINE_PATCH)]
        )

        async def generate(messages):
            if "+broken" in messages[1].content:
                raise TimeoutError("model timed out")
            return AIMessage(content="Looks fine.")

        llm = make_llm(generate)
        report = await make_orchestrator(github, llm, no_delay).run(pr_ref)

        assert report.success
        assert report.files_reviewed == 2
        assert report.comments_posted == 1
        assert posted_paths(pr) == ["b.py"]
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert (failure.path, failure.stage) == ("a.py", "review")
        assert llm.ainvoke.await_count == 4

    @pytest.mark.asyncio
    async def test_head_commit_failure_is_fatal(self, pr_ref, no_delay):
        """No head commit means no listing and no model calls."""
        github = MagicMock()
        github.get_repo.side_effect = ConnectionError("github down")
        llm = make_llm([AIMessage(content="unused")])

        with pytest.raises(RemoteUnavailable):
            await make_orchestrator(github, llm, no_delay).run(pr_ref)

        assert github.get_repo.call_count == 3
        github.get_repo.return_value.get_pull.return_value.get_files.assert_not_called()
        llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_listing_failure_is_fatal(self, pr_ref, no_delay):
        """A file listing that never succeeds ends the run."""
        github, pr = make_github()
        pr.get_files.side_effect = ConnectionError("reset")
        llm = make_llm([AIMessage(content="unused")])

        with pytest.raises(RemoteUnavailable):
            await make_orchestrator(github, llm, no_delay).run(pr_ref)

        assert pr.get_files.call_count == 3
        llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_left_after_filtering(self, pr_ref, no_delay):
        """Excluded files only: success with nothing reviewed."""
        github, pr = make_github(files=[github_file("poetry.lock"), github_file("yarn.lock")])
        llm = make_llm([AIMessage(content="unused")])
        orchestrator = make_orchestrator(github, llm, no_delay, exclude_patterns=["*.lock"])

        report = await orchestrator.run(pr_ref)

        assert report.success
        assert report.files_listed == 2
        assert report.files_reviewed == 0
        assert report.comments_posted == 0
        llm.ainvoke.assert_not_awaited()
        pr.create_review_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_chunked_file_comments_per_hunk(self, pr_ref, no_delay):
        """A large patch gets one line comment per hunk, in hunk order."""
        github, pr = make_github(files=[github_file("src/app.py", patch=TWO_HUNK_PATCH)])
        llm = make_llm([AIMessage(content="First hunk note."), AIMessage(content="Second hunk note.")])
        orchestrator = make_orchestrator(github, llm, no_delay, chunk_threshold=10)

        report = await orchestrator.run(pr_ref)

        assert report.comments_posted == 2
        calls = pr.create_review_comment.call_args_list
        assert [(c.kwargs["body"], c.kwargs["line"], c.kwargs["side"]) for c in calls] == [
            ("First hunk note.", 4, "RIGHT"),
            ("Second hunk note.", 13, "RIGHT"),
        ]
        first_prompt = llm.ainvoke.await_args_list[0].args[0][1].content
        assert "@@ -1,3 +1,4 @@" in first_prompt
        assert "@@ -10,2" not in first_prompt

    @pytest.mark.asyncio
    async def test_small_patch_reviewed_whole(self, pr_ref, no_delay):
        """At or below the threshold the whole patch is one review."""
        github, pr = make_github(files=[github_file("src/app.py", patch=TWO_HUNK_PATCH)])
        llm = make_llm([AIMessage(content="One note.")])
        orchestrator = make_orchestrator(github, llm, no_delay, chunk_threshold=len(TWO_HUNK_PATCH))

        report = await orchestrator.run(pr_ref)

        assert report.comments_posted == 1
        assert llm.ainvoke.await_count == 1
        assert pr.create_review_comment.call_args.kwargs["subject_type"] == "file"

    @pytest.mark.asyncio
    async def test_segment_failure_is_isolated(self, pr_ref, no_delay):
        """An unparseable patch skips its file only."""
        github, pr = make_github(
            files=[github_file("bad.py", patch="@@ -a +b @@\n+x"), github_file("good.py", patch=PY_PATCH)]
        )
        llm = make_llm([AIMessage(content="Note.")])
        orchestrator = make_orchestrator(github, llm, no_delay, chunk_threshold=1)

        report = await orchestrator.run(pr_ref)

        assert report.comments_posted == 1
        assert posted_paths(pr) == ["good.py"]
        assert [(f.path, f.stage) for f in report.failures] == [("bad.py", "segment")]

    @pytest.mark.asyncio
    async def test_post_failure_is_isolated(self, pr_ref, no_delay):
        """A comment that cannot be posted is recorded and the run continues."""
        github, pr = make_github(files=[github_file("a.py"), github_file("b.py")])

        def create_comment(**kwargs):
            if kwargs["path"] == "a.py":
                raise ConnectionError("502 Bad Gateway")

        pr.create_review_comment.side_effect = create_comment
        llm = make_llm(lambda messages: AIMessage(content="Note."))

        report = await make_orchestrator(github, llm, no_delay).run(pr_ref)

        assert report.success
        assert report.comments_posted == 1
        assert [(f.path, f.stage) for f in report.failures] == [("a.py", "post")]
        assert posted_paths(pr).count("a.py") == 3

    @pytest.mark.asyncio
    async def test_empty_review_not_posted(self, pr_ref, no_delay):
        """Blank model output posts nothing and is not a failure."""
        github, pr = make_github(files=[github_file("a.py")])
        llm = make_llm([AIMessage(content="   ")])

        report = await make_orchestrator(github, llm, no_delay).run(pr_ref)

        assert report.comments_posted == 0
        assert report.failures == []
        pr.create_review_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, pr_ref, no_delay):
        """No more than max_concurrency files are in flight at once."""
        github, pr = make_github(files=[github_file(f"f{n}.py") for n in range(6)])
        in_flight = 0
        peak = 0

        async def generate(messages):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return AIMessage(content="Note.")

        llm = make_llm(generate)
        orchestrator = make_orchestrator(github, llm, no_delay, max_concurrency=2)

        report = await orchestrator.run(pr_ref)

        assert report.comments_posted == 6
        assert 1 <= peak <= 2

    def test_should_chunk(self, no_delay):
        """Chunking applies above the threshold and a non-positive threshold disables it."""
        big = ChangedFile(filename="a.py", status="modified", patch="x" * 50)
        orchestrator = make_orchestrator(MagicMock(), MagicMock(), no_delay, chunk_threshold=49)
        assert orchestrator.should_chunk(big)

        orchestrator.chunk_threshold = 50
        assert not orchestrator.should_chunk(big)

        orchestrator.chunk_threshold = 0
        assert not orchestrator.should_chunk(big)


class TestReviewPullRequest:
    """Tests for wiring a run from settings."""

    def test_missing_credentials(self):
        """Construction fails before any client is created."""
        with patch("src.services.reviewer.service.create_github_client") as mock_client:
            with pytest.raises(ConfigurationError):
                build_orchestrator(make_settings(github_token=None))
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_review_pull_request(self):
        """Settings flow into the clients and the run."""
        github, pr = make_github(files=[github_file("src/app.py"), github_file("poetry.lock")])
        llm = make_llm([AIMessage(content="Note.")])
        settings = make_settings(exclude_files="*.lock, ", github_api_url="https://ghe.example.com/api/v3")

        with (
            patch("src.services.reviewer.service.create_github_client", return_value=github) as mock_client,
            patch("src.services.reviewer.service.get_chat_llm", return_value=llm),
        ):
            report = await review_pull_request("octo", "repo", 42, settings)

        mock_client.assert_called_once_with("ghp_test", "https://ghe.example.com/api/v3")
        assert report.pr == "octo/repo#42"
        assert report.files_reviewed == 1
        assert posted_paths(pr) == ["src/app.py"]
