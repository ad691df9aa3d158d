"""Application exception hierarchy.

Every failure the core can report derives from ``AppException`` so the API
layer can render it with a single handler as ``{"error": ..., "details": ...}``.
Errors are raised where they are detected and propagate unchanged to the
caller; nothing in the core retries.
"""

from typing import Any, Optional


class AppException(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        details: Any = None
    ):
        super().__init__(detail)
        self.detail = detail
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class InvalidRequest(AppException):
    """Bad caller input: empty prompt, missing creation fields."""
    status_code = 400


class UnknownStage(InvalidRequest):
    """Stage number outside the outfit stage catalog."""

    def __init__(self, stage: Any):
        super().__init__(f"Unknown outfit stage: {stage!r}", details={"stage": stage})
        self.stage = stage


class NotFound(AppException):
    """Unknown dealer (or outfit) id."""
    status_code = 404


class ConfigurationError(AppException):
    """A required provider credential is not configured."""
    status_code = 500


class GenerationInProgress(AppException):
    """A generation for the same dealer stage is already running."""
    status_code = 409

    def __init__(self, dealer_id: str, stage: int):
        super().__init__(
            f"Stage {stage} of dealer {dealer_id} is already generating",
            details={"dealer_id": dealer_id, "stage": stage}
        )
        self.dealer_id = dealer_id
        self.stage = stage


class ProviderError(AppException):
    """Base for failures reported by an image provider."""
    status_code = 502


class ProviderHttpError(ProviderError):
    """Provider answered with a non-2xx status, or could not be reached.

    ``status_code`` on the exception is the HTTP status returned to our own
    caller; the provider's status is kept in ``provider_status``. It is
    ``None`` when the request never got a response.
    """

    def __init__(self, provider: str, provider_status: Optional[int], body: str):
        if provider_status is None:
            message = f"{provider} request failed: {body}"
        else:
            message = f"{provider} API error: {provider_status} {body}"
        super().__init__(
            message,
            details={"provider": provider, "status": provider_status, "body": body}
        )
        self.provider = provider
        self.provider_status = provider_status
        self.body = body


class ProviderResponseError(ProviderError):
    """Provider returned 2xx with a payload missing the image URL."""

    def __init__(self, provider: str, payload: Any):
        super().__init__(
            f"Invalid response format from {provider}",
            details={"provider": provider, "payload": payload}
        )
        self.provider = provider
        self.payload = payload


class InvalidImageUrl(ProviderError):
    """Provider returned something that is not an absolute URL."""

    def __init__(self, url: Any):
        super().__init__("Generated image URL is invalid", details={"url": url})
        self.url = url
