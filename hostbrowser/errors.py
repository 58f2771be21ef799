"""Exception hierarchy for remote browser orchestration."""

from __future__ import annotations


class HostBrowserError(Exception):
    """Base class for all hostbrowser errors."""


class ConfigurationError(HostBrowserError):
    """Raised when the client cannot be constructed from its configuration."""


class MissingCredentialError(ConfigurationError):
    """Raised when no remote host token is configured."""


class ValidationError(HostBrowserError, ValueError):
    """Raised when an intent is missing a required parameter or is malformed."""


class ExtractionError(HostBrowserError):
    """A single field failed to extract. Absorbed as a null value."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class ExecutionError(HostBrowserError):
    """Raised when a remote call fails, times out, or returns non-success."""

    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"

    def __init__(
        self,
        cause: str,
        message: str,
        *,
        status_code: int | None = None,
        upstream_body: str | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code
        self.upstream_body = upstream_body

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "cause": self.cause,
            "message": str(self),
        }
        if self.status_code is not None:
            payload["statusCode"] = self.status_code
        if self.upstream_body:
            payload["upstreamBody"] = self.upstream_body
        return payload
