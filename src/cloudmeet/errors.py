"""Error taxonomy for calendar operations."""

from __future__ import annotations

TRANSIENT_HTTP_CODES = {429, 500, 502, 503, 504}


class CalendarError(Exception):
    """Base class for every error raised by cloudmeet."""


class InvalidArgument(CalendarError, ValueError):
    """Caller supplied a malformed time window, draft or identifier."""


class NotConnected(CalendarError):
    """No refresh token is on file for the user."""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id!r} has not connected Google Calendar")
        self.user_id = user_id


class AuthExpired(CalendarError):
    """Upstream rejected the stored refresh token (revoked or expired)."""

    def __init__(self, user_id: str, detail: str = ""):
        message = f"Refresh token for user {user_id!r} was rejected"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.user_id = user_id
        self.detail = detail


class StorageError(CalendarError):
    """The refresh-token store failed to answer a lookup."""


class IntegrationError(CalendarError):
    """An upstream call failed or returned a non-success response.

    ``status`` is the HTTP status when the upstream answered, ``None`` for
    transport-level failures. ``body`` is the raw response text.
    """

    def __init__(self, operation: str, message: str, status: int | None = None, body: str = ""):
        text = f"{operation} failed: {message}"
        if status is not None:
            text = f"{operation} failed (HTTP {status}): {message}"
        super().__init__(text)
        self.operation = operation
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        if self.status is None:
            return True
        return self.status in TRANSIENT_HTTP_CODES


class UpstreamTimeout(IntegrationError):
    """An upstream call did not complete within the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(operation, f"timed out after {timeout:g}s")
        self.timeout = timeout


class PaginationOverrun(IntegrationError):
    """Upstream kept returning continuation tokens past the page bound."""

    def __init__(self, operation: str, max_pages: int):
        super().__init__(operation, f"still paginating after {max_pages} pages")
        self.max_pages = max_pages

    @property
    def retryable(self) -> bool:
        return False
