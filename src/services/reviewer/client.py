"""Review client - model call layer."""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from src.core.backoff import BackoffPolicy
from src.core.exceptions import MalformedResponse, ReviewUnavailable, TransientRemoteFailure
from src.core.logging import get_logger
from src.core.prompts import render_code_review_prompt, render_system_prompt
from src.schemas.review import ReviewResult

logger = get_logger("reviewer.client")


def extract_text(message: BaseMessage) -> str:
    """Pull plain text out of a chat model response."""
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        if parts:
            return "".join(parts)
    raise MalformedResponse(
        f"Model returned unreadable content of type {type(content).__name__}",
    )


class CodeReviewService:
    """Asks the language model to critique a diff.

    The system instruction is the configured rubric; the user prompt embeds
    the language label and the diff text. Each call is one retry unit.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        rubric: str = "general",
        policy: BackoffPolicy | None = None,
    ):
        self.llm = llm
        self.policy = policy or BackoffPolicy()
        self.system_prompt = render_system_prompt(rubric)

    async def review(self, language: str, diff_text: str) -> ReviewResult:
        """Review a diff (a whole file patch or a single hunk).

        Raises:
            MalformedResponse: Model output could not be read; not retried
            ReviewUnavailable: Every attempt failed
        """
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=render_code_review_prompt(language, diff_text)),
        ]

        async def _generate() -> ReviewResult:
            try:
                response = await self.llm.ainvoke(messages)
            except Exception as e:
                raise TransientRemoteFailure(f"Model call failed: {e}") from e
            return ReviewResult(text=extract_text(response))

        try:
            result = await self.policy.retry(_generate, description=f"Reviewing {language} diff")
        except MalformedResponse:
            raise
        except Exception as e:
            raise ReviewUnavailable("Generating review", e) from e

        logger.debug(f"Review generated ({len(result.text)} chars)")
        return result
