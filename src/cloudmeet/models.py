"""Core data models for cloudmeet."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidArgument

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, accepting a trailing 'Z'."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {value!r}")
    return parsed


def require_aware(value: datetime, name: str) -> None:
    if not isinstance(value, datetime):
        raise InvalidArgument(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidArgument(f"{name} must be timezone-aware")


def _require_zone(name: str, label: str) -> None:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidArgument(f"{label} has unknown time zone {name!r}") from e


class AccessRole(str, Enum):
    """Calendar access roles, weakest first."""

    FREE_BUSY_READER = "freeBusyReader"
    READER = "reader"
    WRITER = "writer"
    OWNER = "owner"


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


@dataclass
class Calendar:
    """A calendar entry visible to a credential. Never persisted."""

    id: str
    summary: str = ""
    primary: bool = False
    access_role: str = AccessRole.FREE_BUSY_READER.value
    time_zone: str | None = None

    @property
    def role(self) -> AccessRole | None:
        try:
            return AccessRole(self.access_role)
        except ValueError:
            return None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Calendar:
        return cls(
            id=item["id"],
            summary=item.get("summaryOverride") or item.get("summary", ""),
            primary=bool(item.get("primary", False)),
            access_role=item.get("accessRole", AccessRole.FREE_BUSY_READER.value),
            time_zone=item.get("timeZone"),
        )


@dataclass(frozen=True)
class BusyInterval:
    """A range of unavailability. Zero-duration markers are allowed."""

    start: datetime
    end: datetime

    def __str__(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    @classmethod
    def from_api(cls, period: dict[str, str]) -> BusyInterval:
        start = parse_timestamp(period["start"])
        end = parse_timestamp(period["end"])
        if end < start:
            raise ValueError(f"Busy interval ends before it starts: {period!r}")
        return cls(start=start, end=end)

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class EventTime:
    """Start or end of an event, with an optional per-field time zone.

    All-day events come back from upstream with a ``date`` instead of a
    ``dateTime``; that value lands in ``all_day_date``.
    """

    date_time: datetime | None = None
    time_zone: str | None = None
    all_day_date: date | None = None

    def to_api(self) -> dict[str, str]:
        body: dict[str, str] = {}
        if self.date_time is not None:
            body["dateTime"] = self.date_time.isoformat()
        elif self.all_day_date is not None:
            body["date"] = self.all_day_date.isoformat()
        if self.time_zone:
            body["timeZone"] = self.time_zone
        return body

    @classmethod
    def from_api(cls, data: dict[str, str] | None) -> EventTime:
        data = data or {}
        date_time = parse_timestamp(data["dateTime"]) if data.get("dateTime") else None
        day = date.fromisoformat(data["date"]) if data.get("date") else None
        return cls(date_time=date_time, time_zone=data.get("timeZone"), all_day_date=day)


@dataclass
class EventDraft:
    """Payload for creating a booked event.

    Setting ``conference_request_id`` asks upstream to provision a meeting
    link. Upstream deduplicates conference creation per request id, so a
    resubmitted draft with the same id does not create a second conference.
    """

    summary: str
    start: EventTime
    end: EventTime
    description: str = ""
    attendees: list[str] = field(default_factory=list)
    conference_request_id: str | None = None

    def validate(self) -> None:
        if not self.summary or not self.summary.strip():
            raise InvalidArgument("Event summary is required")
        for label, when in (("start", self.start), ("end", self.end)):
            if when.date_time is None:
                raise InvalidArgument(f"Event {label} needs a dateTime")
            require_aware(when.date_time, f"Event {label}")
            if not when.time_zone:
                raise InvalidArgument(f"Event {label} needs an explicit time zone")
            _require_zone(when.time_zone, f"Event {label}")
        if self.start.date_time >= self.end.date_time:
            raise InvalidArgument("Event start must be before its end")
        for email in self.attendees:
            if not EMAIL_RE.match(email):
                raise InvalidArgument(f"Invalid attendee email: {email!r}")
        if self.conference_request_id is not None and not self.conference_request_id.strip():
            raise InvalidArgument("Conference request id must not be blank")

    def to_api(self, conference_solution: str = "hangoutsMeet") -> dict[str, Any]:
        body: dict[str, Any] = {
            "summary": self.summary,
            "start": self.start.to_api(),
            "end": self.end.to_api(),
        }
        if self.description:
            body["description"] = self.description
        if self.attendees:
            body["attendees"] = [{"email": e} for e in dict.fromkeys(self.attendees)]
        if self.conference_request_id:
            body["conferenceData"] = {
                "createRequest": {
                    "requestId": self.conference_request_id,
                    "conferenceSolutionKey": {"type": conference_solution},
                }
            }
        return body


@dataclass
class EventPatch:
    """Partial update. Fields left as None keep their upstream values."""

    summary: str | None = None
    description: str | None = None
    start: EventTime | None = None
    end: EventTime | None = None
    status: EventStatus | None = None

    def validate(self) -> None:
        if self.status is not None:
            try:
                EventStatus(self.status)
            except ValueError as e:
                raise InvalidArgument(f"Unknown event status {self.status!r}") from e
        if not self.to_api():
            raise InvalidArgument("Event update has no fields to change")
        if self.summary is not None and not self.summary.strip():
            raise InvalidArgument("Event summary must not be blank")
        for label, when in (("start", self.start), ("end", self.end)):
            if when is None:
                continue
            if when.date_time is None:
                raise InvalidArgument(f"Event {label} needs a dateTime")
            require_aware(when.date_time, f"Event {label}")
            if when.time_zone:
                _require_zone(when.time_zone, f"Event {label}")
        if self.start is not None and self.end is not None:
            if self.start.date_time >= self.end.date_time:
                raise InvalidArgument("Event start must be before its end")

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.summary is not None:
            body["summary"] = self.summary
        if self.description is not None:
            body["description"] = self.description
        if self.start is not None:
            body["start"] = self.start.to_api()
        if self.end is not None:
            body["end"] = self.end.to_api()
        if self.status is not None:
            body["status"] = EventStatus(self.status).value
        return body


@dataclass
class CalendarEvent:
    """Upstream's canonical event representation.

    ``raw`` is the response exactly as upstream returned it; the typed
    fields are a convenience view over it.
    """

    id: str
    summary: str = ""
    start: EventTime = field(default_factory=EventTime)
    end: EventTime = field(default_factory=EventTime)
    status: EventStatus | None = None
    hangout_link: str | None = None
    html_link: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def meet_link(self) -> str | None:
        """Video entry point, falling back to hangoutLink."""
        for ep in self.raw.get("conferenceData", {}).get("entryPoints", []):
            if ep.get("entryPointType") == "video":
                return ep.get("uri")
        return self.hangout_link

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CalendarEvent:
        try:
            status = EventStatus(data.get("status", ""))
        except ValueError:
            status = None
        return cls(
            id=data["id"],
            summary=data.get("summary", ""),
            start=EventTime.from_api(data.get("start")),
            end=EventTime.from_api(data.get("end")),
            status=status,
            hangout_link=data.get("hangoutLink"),
            html_link=data.get("htmlLink"),
            raw=data,
        )
