"""Google Calendar integration."""

from .client import GoogleCalendarClient, build_calendar_client
from .directory import CalendarDirectory, sort_calendars
from .events import EventMutationClient
from .google_auth import CredentialManager, RefreshTokenStore
from .transport import CalendarTransport

__all__ = [
    "CalendarDirectory",
    "CalendarTransport",
    "CredentialManager",
    "EventMutationClient",
    "GoogleCalendarClient",
    "RefreshTokenStore",
    "build_calendar_client",
    "sort_calendars",
]
