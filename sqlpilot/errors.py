"""Failure taxonomy for the query assistant.

Each class carries a short ``diagnostic`` the user can act on; the
instance message keeps whatever the failing layer reported (for the
store, the engine's own message and code).
"""

from typing import Optional

from querywire.types import ErrorCategory, WireError


class SqlPilotError(Exception):
    """Base class for every failure the assistant surfaces or absorbs."""

    diagnostic = "Unexpected failure."

    def __init__(self, message: str = ""):
        self.message = message or self.diagnostic
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        if self.message == self.diagnostic:
            return self.diagnostic
        return f"{self.diagnostic} {self.message}"


class QueryTimeout(SqlPilotError):
    diagnostic = "Request timed out. The server did not answer in time; check network/firewall."


class UpstreamError(SqlPilotError):
    diagnostic = "The server rejected the query."

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        text = f"{self.diagnostic} {self.message}"
        if self.details and self.details != self.message:
            text += f" ({self.details})"
        if self.code:
            text += f" [code {self.code}]"
        return text


class TransportError(SqlPilotError):
    diagnostic = "Network unreachable. Could not reach the query server."


class GenerationUnavailable(SqlPilotError):
    diagnostic = "AI service unavailable: no API key configured."


class GenerationError(SqlPilotError):
    diagnostic = "AI service unavailable: the request failed."


class StorageError(SqlPilotError):
    diagnostic = "Local storage problem."


class InvalidBackupFormat(SqlPilotError):
    diagnostic = "Invalid backup file."


def error_from_wire(err: WireError) -> SqlPilotError:
    """Map a transport-layer failure onto the user-facing taxonomy."""
    if err.category == ErrorCategory.TIMEOUT:
        return QueryTimeout(err.message)
    if err.category == ErrorCategory.UPSTREAM:
        return UpstreamError(err.message, code=err.code, details=err.details, status_code=err.status_code)
    if err.category == ErrorCategory.PARSE:
        return UpstreamError(f"Malformed server response: {err.message}", status_code=err.status_code)
    return TransportError(err.message)


def describe_failure(exc: BaseException) -> str:
    """Short user-visible string for any failure."""
    if isinstance(exc, WireError):
        exc = error_from_wire(exc)
    if isinstance(exc, SqlPilotError):
        return exc.user_message
    return f"{SqlPilotError.diagnostic} {exc}"
