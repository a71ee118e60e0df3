"""Calendar client: the operations a booking workflow calls."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from ..config import Config
from ..core.availability import AvailabilityAggregator
from ..models import BusyInterval, Calendar, CalendarEvent, EventDraft, EventPatch
from .directory import CalendarDirectory, sort_calendars
from .events import EventMutationClient
from .google_auth import CredentialManager, RefreshTokenStore
from .transport import CalendarTransport

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """Google Calendar availability and booking writes.

    The token-taking methods expect an access token from
    get_valid_access_token. The ``*_for_user`` helpers fetch a fresh one
    themselves on every call.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        directory: CalendarDirectory,
        availability: AvailabilityAggregator,
        events: EventMutationClient,
    ):
        self.credentials = credentials
        self.directory = directory
        self.availability = availability
        self.events = events

    async def get_valid_access_token(self, user_id: str) -> str:
        return await self.credentials.get_valid_access_token(user_id)

    async def list_calendars(self, access_token: str) -> list[Calendar]:
        return await self.directory.list_calendars(access_token)

    async def get_busy_times(
        self,
        access_token: str,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str] | None = None,
    ) -> list[BusyInterval]:
        return await self.availability.get_busy_times(access_token, start, end, calendar_ids)

    async def create_calendar_event(
        self, access_token: str, draft: EventDraft, calendar_id: str | None = None
    ) -> CalendarEvent:
        return await self.events.create(access_token, draft, calendar_id)

    async def update_calendar_event(
        self,
        access_token: str,
        event_id: str,
        patch: EventPatch,
        calendar_id: str | None = None,
    ) -> CalendarEvent:
        return await self.events.update(access_token, event_id, patch, calendar_id)

    async def cancel_calendar_event(
        self, access_token: str, event_id: str, calendar_id: str | None = None
    ) -> None:
        await self.events.cancel(access_token, event_id, calendar_id)

    async def calendars_for_user(self, user_id: str) -> list[Calendar]:
        """Calendars visible to the user, primary first."""
        access_token = await self.get_valid_access_token(user_id)
        return sort_calendars(await self.list_calendars(access_token))

    async def busy_times_for_user(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str] | None = None,
    ) -> list[BusyInterval]:
        access_token = await self.get_valid_access_token(user_id)
        return await self.get_busy_times(access_token, start, end, calendar_ids)


def build_calendar_client(
    config: Config,
    token_store: RefreshTokenStore,
    transport: CalendarTransport | None = None,
) -> GoogleCalendarClient:
    """Wire a GoogleCalendarClient from config."""
    timeout = config.http.timeout_seconds
    transport = transport or CalendarTransport(timeout=timeout)
    directory = CalendarDirectory(
        transport,
        max_pages=config.directory.max_pages,
        min_access_role=config.directory.min_access_role,
    )
    credentials = CredentialManager(
        token_store,
        client_id=config.google.client_id,
        client_secret=config.google.client_secret,
        token_uri=config.google.token_uri,
        timeout=timeout,
    )
    logger.debug(
        "Calendar client: timeout=%.1fs max_pages=%d default_calendar=%s",
        timeout, config.directory.max_pages, config.events.default_calendar_id,
    )
    return GoogleCalendarClient(
        credentials=credentials,
        directory=directory,
        availability=AvailabilityAggregator(transport, directory),
        events=EventMutationClient(
            transport,
            default_calendar_id=config.events.default_calendar_id,
            conference_solution=config.events.conference_solution,
        ),
    )
