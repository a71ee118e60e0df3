"""Create, update and cancel events on a Google calendar."""

from __future__ import annotations

import logging

from ..errors import IntegrationError, InvalidArgument
from ..models import CalendarEvent, EventDraft, EventPatch
from .transport import CalendarTransport

logger = logging.getLogger(__name__)


class EventMutationClient:
    """Single-call wrappers around events.insert/patch/delete.

    No retries happen here; a failed write raises IntegrationError and the
    caller decides whether to try again.
    """

    def __init__(
        self,
        transport: CalendarTransport,
        default_calendar_id: str = "primary",
        conference_solution: str = "hangoutsMeet",
    ):
        self.transport = transport
        self.default_calendar_id = default_calendar_id
        self.conference_solution = conference_solution

    async def create(
        self, access_token: str, draft: EventDraft, calendar_id: str | None = None
    ) -> CalendarEvent:
        draft.validate()
        service = self.transport.service(access_token)
        created = await self.transport.execute(
            service.events().insert(
                calendarId=calendar_id or self.default_calendar_id,
                body=draft.to_api(self.conference_solution),
                conferenceDataVersion=1,
            ),
            operation="events.insert",
        )
        event = _to_event(created, "events.insert")
        logger.info("Created event: %s", event.html_link or event.id)
        return event

    async def update(
        self,
        access_token: str,
        event_id: str,
        patch: EventPatch,
        calendar_id: str | None = None,
    ) -> CalendarEvent:
        _require_event_id(event_id)
        patch.validate()
        service = self.transport.service(access_token)
        updated = await self.transport.execute(
            service.events().patch(
                calendarId=calendar_id or self.default_calendar_id,
                eventId=event_id,
                body=patch.to_api(),
            ),
            operation="events.patch",
        )
        logger.info("Updated event %s (%s)", event_id, ", ".join(patch.to_api()))
        return _to_event(updated, "events.patch")

    async def cancel(
        self, access_token: str, event_id: str, calendar_id: str | None = None
    ) -> None:
        # A second cancel of the same event is rejected upstream (410) and
        # surfaces as IntegrationError.
        _require_event_id(event_id)
        service = self.transport.service(access_token)
        await self.transport.execute(
            service.events().delete(
                calendarId=calendar_id or self.default_calendar_id,
                eventId=event_id,
            ),
            operation="events.delete",
        )
        logger.info("Cancelled event %s", event_id)


def _require_event_id(event_id: str) -> None:
    if not event_id or not event_id.strip():
        raise InvalidArgument("event_id is required")


def _to_event(data, operation: str) -> CalendarEvent:
    try:
        return CalendarEvent.from_api(data)
    except (KeyError, TypeError, ValueError) as e:
        raise IntegrationError(operation, f"malformed event in response: {e}") from e
