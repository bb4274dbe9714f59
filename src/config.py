"""Configuration for the PR review action."""

from typing import Optional

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.exceptions import ConfigurationError


def _input(name: str) -> AliasChoices:
    """Accept an Action input (INPUT_<NAME>) or the bare environment variable."""
    return AliasChoices(name, f"input_{name}")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        env_ignore_empty=True,
        extra="ignore",
        protected_namespaces=(),
    )

    # App
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # LLM - OpenAI
    openai_api_key: Optional[str] = Field(default=None, validation_alias=_input("openai_api_key"))
    model_name: str = Field(default="gpt-4o-mini", validation_alias=_input("model_name"))
    model_temperature: int = Field(default=0, validation_alias=_input("model_temperature"))

    # LLM - Azure OpenAI
    azure_openai_api_key: Optional[str] = Field(
        default=None, validation_alias=_input("azure_openai_api_key")
    )
    azure_openai_api_instance_name: Optional[str] = Field(
        default=None, validation_alias=_input("azure_openai_api_instance_name")
    )
    azure_openai_api_deployment_name: Optional[str] = Field(
        default=None, validation_alias=_input("azure_openai_api_deployment_name")
    )
    azure_openai_api_version: Optional[str] = Field(
        default=None, validation_alias=_input("azure_openai_api_version")
    )

    # GitHub
    github_token: Optional[str] = Field(default=None, validation_alias=_input("github_token"))
    github_api_url: str = Field(default="https://api.github.com")
    github_webhook_secret: Optional[str] = Field(default=None)

    # Workflow context (set by the Actions runner)
    github_event_name: Optional[str] = Field(default=None)
    github_repository: Optional[str] = Field(default=None)
    pr_number: Optional[int] = Field(default=None, validation_alias=_input("pr_number"))

    # Review Configuration
    exclude_files: str = Field(default="", validation_alias=_input("exclude_files"))
    review_rubric: str = Field(default="general", validation_alias=_input("review_rubric"))
    chunk_threshold: int = Field(default=12000, validation_alias=_input("chunk_threshold"))
    max_concurrency: int = Field(default=4, ge=1, validation_alias=_input("max_concurrency"))

    @property
    def exclude_patterns(self) -> list[str]:
        """Comma-separated exclude globs, trimmed, empties dropped."""
        return [p.strip() for p in self.exclude_files.split(",") if p.strip()]

    @property
    def azure_configured(self) -> bool:
        return all([
            self.azure_openai_api_key,
            self.azure_openai_api_instance_name,
            self.azure_openai_api_deployment_name,
            self.azure_openai_api_version,
        ])

    def require_credentials(self) -> None:
        """Fail before any remote call when credentials are missing."""
        missing = []
        if not self.github_token:
            missing.append("github_token")
        if not self.openai_api_key and not self.azure_configured:
            missing.append("openai_api_key (or the azure_openai_api_* settings)")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing},
            )


def load_settings(**values) -> Settings:
    """Read settings, reporting invalid values as a ConfigurationError."""
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(problems)}",
            details={"errors": problems},
        ) from e


settings = load_settings()
