"""Error taxonomy for the gateway.

Every failure a pipeline step can produce is a GatewayError subclass so the
HTTP layer can report it without inspecting messages. Status codes are flat:
400 for missing input, 401 for authentication, 500 for everything else.
"""


class GatewayError(Exception):
    """Base class for errors surfaced to API callers as ``{error, details}``."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(GatewayError):
    """A required request field is missing or empty."""

    status_code = 400


class Unauthorized(GatewayError):
    """The bearer credential is absent, malformed or rejected."""

    status_code = 401


class UpstreamError(GatewayError):
    """The search or completion provider failed to answer usefully."""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"{provider} provider error: {detail}", details=detail)
        self.provider = provider
        self.detail = detail


class ParseError(GatewayError):
    """An upstream payload could not be parsed at all."""


class PersistenceError(GatewayError):
    """The store rejected a write, or the write had no owner."""

    def __init__(
        self,
        message: str,
        details: str | None = None,
        missing_owner: bool = False,
    ):
        super().__init__(message, details)
        self.missing_owner = missing_owner


class SearchFailed(GatewayError):
    """The paper fetch step of a pipeline failed."""


class ReportGenerationFailed(GatewayError):
    """The synthesis step produced no report."""


class MalformedSuggestion(GatewayError):
    """Model output for a query refinement did not match the expected schema."""
