"""Reviewer service - orchestration layer."""

import asyncio

from src.config import Settings, settings as default_settings
from src.core.backoff import BackoffPolicy
from src.core.exceptions import ReviewerError
from src.core.language import LanguageDetector
from src.core.llm import get_chat_llm
from src.core.logging import get_logger
from src.schemas.review import ChangedFile, PullRequestRef, ReviewCommentRequest
from src.services.github.client import create_github_client
from src.services.github.service import PullRequestService
from src.services.reviewer.client import CodeReviewService
from src.services.reviewer.patch_parser import comment_anchor, segment_patch
from src.services.reviewer.schemas import FileOutcome, ReviewRunReport, Stage, UnitFailure

logger = get_logger("reviewer.service")


class ReviewOrchestrator:
    """Runs one review of a pull request.

    Setup steps (head commit, file listing) are fatal: their failures
    propagate out of ``run``. Everything after that is isolated per file,
    and per chunk within a chunked file; failures are logged and collected
    in the report while the remaining units carry on.
    """

    def __init__(
        self,
        pull_requests: PullRequestService,
        reviewer: CodeReviewService,
        detector: LanguageDetector | None = None,
        exclude_patterns: list[str] | None = None,
        chunk_threshold: int = 12000,
        max_concurrency: int = 4,
    ):
        self.pull_requests = pull_requests
        self.reviewer = reviewer
        self.detector = detector or LanguageDetector()
        self.exclude_patterns = exclude_patterns or []
        self.chunk_threshold = chunk_threshold
        self.max_concurrency = max(1, max_concurrency)

    def should_chunk(self, file: ChangedFile) -> bool:
        """Large patches are reviewed hunk by hunk."""
        return self.chunk_threshold > 0 and len(file.patch or "") > self.chunk_threshold

    async def run(self, ref: PullRequestRef) -> ReviewRunReport:
        logger.info(f"Starting review: {ref}")

        commit_id = await self.pull_requests.get_head_commit(ref)
        files = await self.pull_requests.list_changed_files(ref)
        reviewable = self.pull_requests.filter_for_review(files, self.exclude_patterns)

        if not reviewable:
            logger.info("No files with patches to review")
            return ReviewRunReport(
                pr=str(ref),
                commit_id=commit_id,
                files_listed=len(files),
                files_reviewed=0,
                comments_posted=0,
            )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def review_with_semaphore(file: ChangedFile) -> FileOutcome:
            async with semaphore:
                return await self.review_file(ref, commit_id, file)

        outcomes = await asyncio.gather(*(review_with_semaphore(f) for f in reviewable))

        failures = [failure for outcome in outcomes for failure in outcome.failures]
        report = ReviewRunReport(
            pr=str(ref),
            commit_id=commit_id,
            files_listed=len(files),
            files_reviewed=len(reviewable),
            comments_posted=sum(o.comments_posted for o in outcomes),
            failures=failures,
        )

        logger.info(
            f"Review completed: {report.files_reviewed} files, "
            f"{report.comments_posted} comments, {len(failures)} failed units"
        )
        return report

    async def review_file(self, ref: PullRequestRef, commit_id: str, file: ChangedFile) -> FileOutcome:
        """Review one file and post its comment(s). Never raises ReviewerError."""
        language = self.detector.detect(file.filename)
        outcome = FileOutcome(path=file.filename, language=language, chunked=self.should_chunk(file))
        logger.info(f"Reviewing {file.filename} ({language}{', chunked' if outcome.chunked else ''})")

        if not outcome.chunked:
            await self._review_unit(ref, commit_id, file.filename, language, file.patch, outcome)
            return outcome

        try:
            chunks = segment_patch(file.patch)
        except ReviewerError as e:
            self._record(outcome, "segment", e)
            return outcome

        # Sequential so comments land in hunk order
        for index, chunk in enumerate(chunks):
            line, side = comment_anchor(chunk)
            await self._review_unit(
                ref,
                commit_id,
                file.filename,
                language,
                chunk.content,
                outcome,
                chunk=index,
                line=line,
                side=side,
            )

        return outcome

    async def _review_unit(
        self,
        ref: PullRequestRef,
        commit_id: str,
        path: str,
        language: str,
        diff_text: str,
        outcome: FileOutcome,
        chunk: int | None = None,
        line: int | None = None,
        side: str | None = None,
    ) -> None:
        stage: Stage = "review"
        try:
            result = await self.reviewer.review(language, diff_text)
            if result.is_empty:
                logger.info(f"Empty review for {path}, nothing to post")
                return

            stage = "post"
            request = ReviewCommentRequest(
                owner=ref.owner,
                repo=ref.repo,
                pr_number=ref.pr_number,
                commit_id=commit_id,
                path=path,
                body=result.text,
                subject_type="file" if line is None else "line",
                line=line,
                side=side,
            )
            await self.pull_requests.post_review_comment(request)
            outcome.comments_posted += 1
        except ReviewerError as e:
            self._record(outcome, stage, e, chunk)
        except Exception as e:
            logger.exception(f"Unexpected error at {stage} stage for {path}")
            self._record(outcome, stage, e, chunk)

    @staticmethod
    def _record(outcome: FileOutcome, stage: Stage, error: Exception, chunk: int | None = None) -> None:
        where = outcome.path if chunk is None else f"{outcome.path} (chunk {chunk + 1})"
        logger.error(f"Skipping {where}: {stage} failed: {error}")
        outcome.failures.append(UnitFailure(path=outcome.path, stage=stage, error=str(error), chunk=chunk))


def build_orchestrator(settings: Settings) -> ReviewOrchestrator:
    """Construct the clients once per run and wire them together."""
    settings.require_credentials()

    policy = BackoffPolicy()
    pull_requests = PullRequestService(
        create_github_client(settings.github_token, settings.github_api_url),
        policy,
    )
    reviewer = CodeReviewService(get_chat_llm(settings), rubric=settings.review_rubric, policy=policy)

    return ReviewOrchestrator(
        pull_requests,
        reviewer,
        LanguageDetector(),
        exclude_patterns=settings.exclude_patterns,
        chunk_threshold=settings.chunk_threshold,
        max_concurrency=settings.max_concurrency,
    )


async def review_pull_request(
    owner: str,
    repo: str,
    pr_number: int,
    settings: Settings | None = None,
) -> ReviewRunReport:
    """Review a complete pull request and post comments per file."""
    settings = settings or default_settings
    orchestrator = build_orchestrator(settings)
    return await orchestrator.run(PullRequestRef(owner=owner, repo=repo, pr_number=pr_number))
