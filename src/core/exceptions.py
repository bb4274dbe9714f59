"""Error taxonomy for a review run."""


class ReviewerError(Exception):
    """Base exception for all reviewer errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ReviewerError):
    """Missing or invalid credentials or required input."""

    status_code = 422


class UnsupportedTriggerError(ConfigurationError):
    """The run was started by an event this reviewer does not handle."""

    def __init__(self, event_name: str | None) -> None:
        super().__init__(
            f"This action only works on workflow_dispatch events. Got: {event_name}",
            details={"event": event_name},
        )
        self.event_name = event_name


class TransientRemoteFailure(ReviewerError):
    """Network, timeout, rate-limit or server error from a remote call."""

    status_code = 502


class RemoteUnavailable(ReviewerError):
    """A remote operation exhausted its retry budget."""

    status_code = 502

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}", details={"operation": operation})
        self.operation = operation
        self.cause = cause


class ReviewUnavailable(RemoteUnavailable):
    """The language model could not produce a review."""


class CommentPostFailed(RemoteUnavailable):
    """A review was generated but could not be published."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Posting review comment on {path}", cause)
        self.path = path


class MalformedResponse(ReviewerError):
    """A remote call succeeded but returned data that cannot be interpreted."""

    status_code = 502


class ParseError(MalformedResponse):
    """Patch text is not valid unified diff."""


class SignatureVerificationError(ReviewerError):
    """Webhook signature verification failed."""

    status_code = 401

    def __init__(self, source: str = "webhook") -> None:
        super().__init__(f"Invalid {source} signature")
