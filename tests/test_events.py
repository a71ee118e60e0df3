"""Tests for event create/update/cancel."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from cloudmeet.calendar.events import EventMutationClient
from cloudmeet.errors import IntegrationError, InvalidArgument
from cloudmeet.models import EventDraft, EventPatch, EventStatus, EventTime

TZ = ZoneInfo("Europe/Amsterdam")


def when(hour: int, minute: int = 0, tz: str | None = "Europe/Amsterdam") -> EventTime:
    return EventTime(date_time=datetime(2026, 3, 2, hour, minute, tzinfo=TZ), time_zone=tz)


def draft(**overrides) -> EventDraft:
    fields = {
        "summary": "Intro call with Sam",
        "start": when(10),
        "end": when(10, 30),
        "description": "Booked via cloudmeet",
        "attendees": ["sam@example.com"],
    }
    fields.update(overrides)
    return EventDraft(**fields)


@pytest.fixture
def events(transport):
    return EventMutationClient(transport)


# --- create ---


@pytest.mark.asyncio
async def test_create_sends_body_and_returns_event(events, fake_service):
    event = await events.create("t", draft())

    (call,) = fake_service.calls_to("events.insert")
    assert call["calendarId"] == "primary"
    assert call["conferenceDataVersion"] == 1
    assert call["body"] == {
        "summary": "Intro call with Sam",
        "description": "Booked via cloudmeet",
        "start": {"dateTime": "2026-03-02T10:00:00+01:00", "timeZone": "Europe/Amsterdam"},
        "end": {"dateTime": "2026-03-02T10:30:00+01:00", "timeZone": "Europe/Amsterdam"},
        "attendees": [{"email": "sam@example.com"}],
    }
    assert event.id == "evt-1"
    assert event.status is EventStatus.CONFIRMED
    assert event.start.date_time == datetime(2026, 3, 2, 10, 0, tzinfo=TZ)
    assert event.html_link.endswith("evt-1")
    assert event.raw["attendees"] == [{"email": "sam@example.com"}]


@pytest.mark.asyncio
async def test_create_logs_event_link(events, caplog):
    with caplog.at_level("INFO", logger="cloudmeet.calendar.events"):
        await events.create("t", draft())
    assert "Created event: https://calendar.google.com/event?eid=evt-1" in caplog.text


@pytest.mark.asyncio
async def test_create_with_conference_request(events, fake_service):
    event = await events.create("t", draft(conference_request_id="booking-42"))

    body = fake_service.calls_to("events.insert")[0]["body"]
    assert body["conferenceData"] == {
        "createRequest": {
            "requestId": "booking-42",
            "conferenceSolutionKey": {"type": "hangoutsMeet"},
        }
    }
    assert event.meet_link == "https://meet.google.com/abc-defg-hij"


@pytest.mark.asyncio
async def test_create_on_explicit_calendar(events, fake_service):
    await events.create("t", draft(), calendar_id="team@group.calendar.google.com")
    assert fake_service.calls_to("events.insert")[0]["calendarId"] == "team@group.calendar.google.com"


@pytest.mark.asyncio
async def test_create_dedupes_attendees(events, fake_service):
    await events.create("t", draft(attendees=["a@example.com", "a@example.com", "b@example.com"]))
    body = fake_service.calls_to("events.insert")[0]["body"]
    assert body["attendees"] == [{"email": "a@example.com"}, {"email": "b@example.com"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [
    {"summary": "  "},
    {"start": when(11), "end": when(10)},
    {"start": when(10), "end": when(10)},
    {"start": when(10, tz=None)},
    {"end": when(11, tz="Mars/Olympus_Mons")},
    {"start": EventTime(date_time=datetime(2026, 3, 2, 10), time_zone="UTC")},
    {"attendees": ["not-an-email"]},
    {"conference_request_id": " "},
])
async def test_create_rejects_malformed_draft(events, fake_service, bad):
    with pytest.raises(InvalidArgument):
        await events.create("t", draft(**bad))
    assert fake_service.calls == []


@pytest.mark.asyncio
async def test_create_failure_surfaces(events, fake_service, http_error):
    fake_service.errors["events.insert"] = http_error(400, "Invalid conference type value.")

    with pytest.raises(IntegrationError) as exc_info:
        await events.create("t", draft(conference_request_id="r-1"))

    assert exc_info.value.status == 400
    assert "Invalid conference type value." in exc_info.value.body
    assert len(fake_service.calls_to("events.insert")) == 1


# --- update ---


@pytest.mark.asyncio
async def test_update_only_title_keeps_other_fields(events, fake_service):
    created = await events.create("t", draft())

    updated = await events.update("t", created.id, EventPatch(summary="Renamed call"))

    (call,) = fake_service.calls_to("events.patch")
    assert call["body"] == {"summary": "Renamed call"}
    assert updated.summary == "Renamed call"
    assert updated.start == created.start
    assert updated.end == created.end
    assert updated.status is created.status
    assert updated.raw["description"] == "Booked via cloudmeet"


@pytest.mark.asyncio
async def test_update_reschedule(events, fake_service):
    created = await events.create("t", draft())

    updated = await events.update("t", created.id, EventPatch(start=when(14), end=when(14, 30)))

    assert updated.start.date_time == datetime(2026, 3, 2, 14, 0, tzinfo=TZ)
    assert updated.summary == "Intro call with Sam"


@pytest.mark.asyncio
async def test_update_status(events, fake_service):
    created = await events.create("t", draft())
    updated = await events.update("t", created.id, EventPatch(status=EventStatus.TENTATIVE))
    assert fake_service.calls_to("events.patch")[0]["body"] == {"status": "tentative"}
    assert updated.status is EventStatus.TENTATIVE


@pytest.mark.asyncio
async def test_update_missing_event(events, fake_service):
    with pytest.raises(IntegrationError) as exc_info:
        await events.update("t", "nope", EventPatch(summary="x"))
    assert exc_info.value.status == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("patch", [
    EventPatch(),
    EventPatch(summary=""),
    EventPatch(start=when(12), end=when(11)),
    EventPatch(start=EventTime(date_time=datetime(2026, 3, 2, 10))),
])
async def test_update_rejects_malformed_patch(events, fake_service, patch):
    with pytest.raises(InvalidArgument):
        await events.update("t", "evt-1", patch)
    assert fake_service.calls == []


@pytest.mark.asyncio
async def test_update_requires_event_id(events, fake_service):
    with pytest.raises(InvalidArgument):
        await events.update("t", "", EventPatch(summary="x"))


# --- cancel ---


@pytest.mark.asyncio
async def test_cancel_deletes_event(events, fake_service):
    created = await events.create("t", draft())

    assert await events.cancel("t", created.id) is None

    (call,) = fake_service.calls_to("events.delete")
    assert call == {"calendarId": "primary", "eventId": created.id}
    assert created.id not in fake_service.store["primary"]


@pytest.mark.asyncio
async def test_second_cancel_is_surfaced(events, fake_service):
    created = await events.create("t", draft())
    await events.cancel("t", created.id)

    with pytest.raises(IntegrationError) as exc_info:
        await events.cancel("t", created.id)
    assert exc_info.value.status == 410


@pytest.mark.asyncio
async def test_cancel_unknown_event_is_surfaced(events, fake_service):
    with pytest.raises(IntegrationError) as exc_info:
        await events.cancel("t", "wrong-id")
    assert exc_info.value.status == 404
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_default_calendar_is_configurable(transport, fake_service):
    client = EventMutationClient(transport, default_calendar_id="bookings@group.calendar.google.com")
    created = await client.create("t", draft())
    await client.cancel("t", created.id)
    assert fake_service.calls_to("events.delete")[0]["calendarId"] == "bookings@group.calendar.google.com"
