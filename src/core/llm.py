"""Chat model factory for OpenAI and Azure OpenAI."""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from src.config import Settings, settings as default_settings
from src.core.exceptions import ConfigurationError
from src.core.logging import get_logger

logger = get_logger("llm")

AZURE_ENDPOINT_TEMPLATE = "https://{instance}.openai.azure.com/"


def get_chat_llm(settings: Settings | None = None) -> BaseChatModel:
    """Get a chat LLM instance for the configured provider.

    Azure OpenAI is used when all four Azure settings are present, plain
    OpenAI otherwise. SDK-level retries are off; the review client retries
    with the shared backoff policy.
    """
    settings = settings or default_settings

    if settings.azure_configured:
        logger.info(
            f"[LLM] Using Azure OpenAI: {settings.azure_openai_api_instance_name}/"
            f"{settings.azure_openai_api_deployment_name}"
        )
        return AzureChatOpenAI(
            azure_endpoint=AZURE_ENDPOINT_TEMPLATE.format(instance=settings.azure_openai_api_instance_name),
            azure_deployment=settings.azure_openai_api_deployment_name,
            api_version=settings.azure_openai_api_version,
            api_key=settings.azure_openai_api_key,
            temperature=settings.model_temperature,
            max_retries=0,
        )

    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY not configured")

    logger.info(f"[LLM] Using OpenAI: {settings.model_name}")

    return ChatOpenAI(
        model=settings.model_name,
        api_key=settings.openai_api_key,
        temperature=settings.model_temperature,
        max_retries=0,
    )
