"""Prompt templates using Jinja2."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from src.core.exceptions import ConfigurationError

PROMPTS_DIR = Path(__file__).parent
_env = Environment(loader=FileSystemLoader(PROMPTS_DIR), keep_trailing_newline=False)


def available_rubrics() -> list[str]:
    """Names of the shipped review rubrics."""
    return sorted(p.stem for p in (PROMPTS_DIR / "rubrics").glob("*.jinja2"))


def render_system_prompt(rubric: str) -> str:
    """Render the system instruction for a review rubric."""
    try:
        template = _env.get_template(f"rubrics/{rubric}.jinja2")
    except TemplateNotFound as e:
        raise ConfigurationError(
            f"Unknown review rubric: {rubric}",
            details={"available": available_rubrics()},
        ) from e
    return template.render()


def render_code_review_prompt(language: str, diff: str) -> str:
    """Render the code review prompt."""
    template = _env.get_template("code_review.jinja2")
    return template.render(language=language, diff=diff)
