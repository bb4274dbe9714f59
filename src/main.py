"""HTTP dispatch server.

Runs the same review pipeline as the Action, started by a manual request or a
``workflow_dispatch`` webhook delivery instead of a workflow step.
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import settings
from src.core.exceptions import ReviewerError
from src.core.logging import get_logger
from src.core.schemas.responses import ErrorResponse, HealthResponse
from src.services.github.routes import router as github_router

logger = get_logger("main")

VERSION = "0.1.0"


async def reviewer_exception_handler(request: Request, exc: ReviewerError) -> JSONResponse:
    """Map a reviewer error to its status code and an error envelope."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message} (status={exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, details=exc.details or None).model_dump(),
    )


async def health() -> HealthResponse:
    """Report the model and rubric reviews will run with."""
    if settings.azure_configured:
        provider, model = "azure_openai", settings.azure_openai_api_deployment_name
    else:
        provider, model = "openai", settings.model_name
    return HealthResponse(version=VERSION, provider=provider, model=model, rubric=settings.review_rubric)


def create_app() -> FastAPI:
    app = FastAPI(
        title="PR Review Action",
        description="Dispatch language-model reviews of GitHub pull requests",
        version=VERSION,
    )
    app.add_exception_handler(ReviewerError, reviewer_exception_handler)
    app.add_api_route("/health", health, methods=["GET"], response_model=HealthResponse)
    app.include_router(github_router, prefix="/api")
    return app


app = create_app()


def serve() -> None:
    """Console entry point for the dispatch server."""
    logger.info(f"Starting dispatch server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if settings.debug else "info")


if __name__ == "__main__":
    serve()
