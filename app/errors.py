"""
Error taxonomy for the honeypot pipeline.
Each error carries the HTTP status it maps to and a stable `error` string;
`details` is optional free text for the caller.
"""

from typing import Optional


class HoneypotError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None, details: Optional[str] = None):
        if error:
            self.error = error
        self.details = details
        super().__init__(details or self.error)

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class AuthError(HoneypotError):
    """Missing, unknown or inactive API key."""
    status_code = 401
    error = "Invalid or inactive API key"


class ValidationError(HoneypotError):
    """Request body does not carry a usable message."""
    status_code = 400
    error = "Message is required"


class MethodError(HoneypotError):
    status_code = 405
    error = "Method not allowed"


class NotFoundError(HoneypotError):
    status_code = 404
    error = "Conversation not found"


class UpstreamError(HoneypotError):
    """Text-generation service unreachable, failing, timed out or unconfigured.
    Recovered inside the orchestrator; never returned to a client."""
    status_code = 502
    error = "Upstream generation failed"


class PersistenceError(HoneypotError):
    """A conversation store operation failed; state integrity is not guaranteed."""
    status_code = 500
    error = "Persistence failure"
