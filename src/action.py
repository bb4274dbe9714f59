"""GitHub Action entry point.

Settings are loaded inside ``main`` rather than at import, so an invalid
input ends the step with an ``::error::`` annotation like any other
configuration failure.
"""

import asyncio
import sys

from loguru import logger

from src.core.exceptions import ReviewerError


def set_failed(message: str) -> None:
    """Mark the workflow step failed with an annotated error."""
    # Workflow commands must be single-line
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    print(f"::error::{escaped}", flush=True)


def main(settings=None) -> int:
    """Run one review; exit status reflects only fatal failures."""
    try:
        # Importing these reads the environment
        from src.config import load_settings
        from src.core.pr_parser import resolve_trigger
        from src.services.reviewer.service import review_pull_request

        settings = settings or load_settings()
        settings.require_credentials()
        ref = resolve_trigger(settings.github_event_name, settings.github_repository, settings.pr_number)
        logger.info(f"repoName: {ref.repo} pull_number: {ref.pr_number} owner: {ref.owner}")
        report = asyncio.run(review_pull_request(ref.owner, ref.repo, ref.pr_number, settings))
    except ReviewerError as e:
        logger.error(f"Review failed: {e.message}")
        set_failed(e.message)
        return 1

    for failure in report.failures:
        logger.warning(f"Skipped {failure.path} at {failure.stage}: {failure.error}")
    logger.info(
        f"Review of {report.pr} finished: {report.comments_posted} comments posted, "
        f"{len(report.failures)} units skipped"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
