"""Shared library utilities."""

from src.core.backoff import DEFAULT_MAX_ATTEMPTS, BackoffPolicy
from src.core.exceptions import (
    CommentPostFailed,
    ConfigurationError,
    MalformedResponse,
    ParseError,
    RemoteUnavailable,
    ReviewerError,
    ReviewUnavailable,
    TransientRemoteFailure,
    UnsupportedTriggerError,
)
from src.core.language import UNKNOWN_LANGUAGE, LanguageDetector, detect_language

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "BackoffPolicy",
    "CommentPostFailed",
    "ConfigurationError",
    "MalformedResponse",
    "ParseError",
    "RemoteUnavailable",
    "ReviewerError",
    "ReviewUnavailable",
    "TransientRemoteFailure",
    "UnsupportedTriggerError",
    "UNKNOWN_LANGUAGE",
    "LanguageDetector",
    "detect_language",
]
