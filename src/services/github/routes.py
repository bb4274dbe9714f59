"""Manual dispatch and webhook routes."""

import json

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from loguru import logger

from src.core.exceptions import ConfigurationError, ReviewerError
from src.core.pr_parser import resolve_trigger
from src.core.security import verified_body
from src.schemas.review import PullRequestRef
from src.services.github.schemas import ManualReviewRequest, PingResponse, ReviewStartedResponse
from src.services.reviewer.service import review_pull_request

router = APIRouter()


@router.post("/review", response_model=ReviewStartedResponse, status_code=202)
async def manual_review(body: ManualReviewRequest, background_tasks: BackgroundTasks):
    """Start a review of an explicit PR number."""
    ref = PullRequestRef(owner=body.owner, repo=body.repo, pr_number=body.pr_number)
    background_tasks.add_task(run_review, ref)
    return ReviewStartedResponse(pr=str(ref))


@router.post("/webhook/github")
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verified_body),
):
    """Handle GitHub webhook events; only workflow_dispatch starts a review."""
    event = request.headers.get("X-GitHub-Event")
    logger.info(f"Webhook received: event={event}, delivery={request.headers.get('X-GitHub-Delivery')}")

    payload = _parse_payload(body)

    if event == "ping":
        return PingResponse(zen=payload.get("zen", ""))

    repository = payload.get("repository") or {}
    ref = resolve_trigger(
        event,
        repository.get("full_name") if isinstance(repository, dict) else None,
        _dispatch_pr_number(payload),
    )
    background_tasks.add_task(run_review, ref)
    return ReviewStartedResponse(pr=str(ref), trigger=event)


def _parse_payload(body: bytes) -> dict:
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ConfigurationError(f"Webhook body is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Webhook body must be a JSON object, got {type(payload).__name__}")
    return payload


def _dispatch_pr_number(payload: dict) -> int | None:
    inputs = payload.get("inputs") or {}
    raw = inputs.get("pr_number") if isinstance(inputs, dict) else None
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid pr_number input: {raw!r}") from e


async def run_review(ref: PullRequestRef) -> None:
    """Run the review in background."""
    try:
        report = await review_pull_request(ref.owner, ref.repo, ref.pr_number)
        logger.info(f"Review completed: {report.model_dump()}")
    except ReviewerError as e:
        logger.error(f"Review of {ref} failed: {e}")
