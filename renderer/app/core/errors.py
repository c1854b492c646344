"""
Error taxonomy for the renderer service.

Every failure the service reports to a client is a RendererError. Each
subclass fixes the HTTP status it maps to; the exception handler in
app.main serialises them as ``{"error": <message>, ...extra}``.

    400  TemplateResolutionError, MissingPlaceholdersError
    401  UnauthorizedError
    500  ConfigurationError, UpstreamServiceError, CrmNotificationError
"""

from typing import Any, Dict, List, Sequence


class RendererError(Exception):
    """Base class for errors surfaced to HTTP clients."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class TemplateResolutionError(RendererError):
    status_code = 400

    def __init__(
        self,
        message: str = "Unable to resolve template from template_key/package_key",
    ):
        super().__init__(message)


class MissingPlaceholdersError(RendererError):
    """Raised when required placeholder paths are absent from the payload."""

    status_code = 400

    def __init__(self, missing: Sequence[str]):
        super().__init__("Missing required placeholders")
        self.missing: List[str] = list(missing)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "missing": self.missing}


class UnauthorizedError(RendererError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConfigurationError(RendererError):
    """Raised when the configuration spreadsheet holds unusable content."""


class UpstreamServiceError(RendererError):
    """
    Raised when a Google API call fails.

    The upstream message is passed through verbatim.
    """

    def __init__(self, message: str, *, operation: str, status: int | None = None):
        super().__init__(message)
        self.operation = operation
        self.upstream_status = status


class CrmNotificationError(RendererError):
    """Raised when a Zendesk Sell note cannot be created."""
