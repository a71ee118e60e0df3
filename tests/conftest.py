"""Shared fakes for the Google Calendar v3 service."""

from __future__ import annotations

import copy
import json

import httplib2
import pytest
from googleapiclient.errors import HttpError

from cloudmeet.calendar.transport import CalendarTransport


def make_http_error(status: int, message: str = "error") -> HttpError:
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(httplib2.Response({"status": status}), content)


class FakeRequest:
    """Stands in for googleapiclient.http.HttpRequest."""

    def __init__(self, service: "FakeCalendarService", method: str, params: dict, handler):
        self.service = service
        self.method = method
        self.params = params
        self.handler = handler

    def execute(self, num_retries=0):
        self.service.calls.append((self.method, self.params))
        error = self.service.errors.get(self.method)
        if error is not None:
            raise error
        return self.handler()


class _CalendarList:
    def __init__(self, service):
        self.service = service

    def list(self, **params):
        return FakeRequest(self.service, "calendarList.list", params, self.service._next_page)


class _FreeBusy:
    def __init__(self, service):
        self.service = service

    def query(self, body):
        return FakeRequest(
            self.service, "freebusy.query", {"body": body},
            lambda: copy.deepcopy(self.service.freebusy_response),
        )


class _Events:
    def __init__(self, service):
        self.service = service

    def insert(self, calendarId, body, conferenceDataVersion=0):
        params = {"calendarId": calendarId, "body": body,
                  "conferenceDataVersion": conferenceDataVersion}
        return FakeRequest(
            self.service, "events.insert", params,
            lambda: self.service._insert(calendarId, body),
        )

    def patch(self, calendarId, eventId, body):
        params = {"calendarId": calendarId, "eventId": eventId, "body": body}
        return FakeRequest(
            self.service, "events.patch", params,
            lambda: self.service._patch(calendarId, eventId, body),
        )

    def delete(self, calendarId, eventId):
        params = {"calendarId": calendarId, "eventId": eventId}
        return FakeRequest(
            self.service, "events.delete", params,
            lambda: self.service._delete(calendarId, eventId),
        )


class FakeCalendarService:
    """In-memory Calendar v3 resource.

    Serves canned calendarList pages and a canned freebusy response, and
    keeps events per calendar so patch echoes back the merged state.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.errors: dict[str, Exception] = {}
        self.pages: list[dict] = []
        self.freebusy_response: dict = {"calendars": {}}
        self.store: dict[str, dict[str, dict]] = {}
        self.deleted: set[tuple[str, str]] = set()
        self._next_id = 0

    def calendarList(self):
        return _CalendarList(self)

    def freebusy(self):
        return _FreeBusy(self)

    def events(self):
        return _Events(self)

    def calls_to(self, method: str) -> list[dict]:
        return [params for name, params in self.calls if name == method]

    def _next_page(self):
        if not self.pages:
            raise AssertionError("calendarList.list called past the last page")
        return self.pages.pop(0)

    def _insert(self, calendar_id, body):
        self._next_id += 1
        event = copy.deepcopy(body)
        event.pop("conferenceData", None)
        event_id = f"evt-{self._next_id}"
        event.update({
            "id": event_id,
            "status": "confirmed",
            "htmlLink": f"https://calendar.google.com/event?eid={event_id}",
        })
        if "conferenceData" in body:
            event["hangoutLink"] = "https://meet.google.com/abc-defg-hij"
            event["conferenceData"] = {
                "createRequest": body["conferenceData"]["createRequest"],
                "entryPoints": [
                    {"entryPointType": "video", "uri": "https://meet.google.com/abc-defg-hij"}
                ],
            }
        self.store.setdefault(calendar_id, {})[event_id] = event
        return copy.deepcopy(event)

    def _patch(self, calendar_id, event_id, body):
        event = self.store.get(calendar_id, {}).get(event_id)
        if event is None:
            raise make_http_error(404, "Not Found")
        event.update(copy.deepcopy(body))
        return copy.deepcopy(event)

    def _delete(self, calendar_id, event_id):
        if (calendar_id, event_id) in self.deleted:
            raise make_http_error(410, "Resource has been deleted")
        if event_id not in self.store.get(calendar_id, {}):
            raise make_http_error(404, "Not Found")
        del self.store[calendar_id][event_id]
        self.deleted.add((calendar_id, event_id))
        return ""


@pytest.fixture
def http_error():
    return make_http_error


@pytest.fixture
def fake_service():
    return FakeCalendarService()


@pytest.fixture
def built_tokens():
    """Access tokens the transport built services for, in order."""
    return []


@pytest.fixture
def transport(fake_service, built_tokens):
    def builder(access_token, timeout):
        built_tokens.append(access_token)
        return fake_service

    return CalendarTransport(timeout=5.0, service_builder=builder)
