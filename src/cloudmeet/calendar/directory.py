"""Paginated enumeration of the calendars a credential can see."""

from __future__ import annotations

import logging
from enum import Enum

from ..errors import IntegrationError, PaginationOverrun
from ..models import AccessRole, Calendar
from .transport import CalendarTransport

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 50


class ListingState(str, Enum):
    """States of a calendar listing."""

    FETCHING = "fetching"
    ACCUMULATING = "accumulating"
    DONE = "done"
    OVERRUN = "overrun"


class CalendarDirectory:
    """Lists calendars with at least free/busy-read access.

    Continuation tokens are followed until upstream stops returning one.
    Asking for more than ``max_pages`` pages raises PaginationOverrun, and
    any failure discards the pages already fetched.
    """

    def __init__(
        self,
        transport: CalendarTransport,
        max_pages: int = DEFAULT_MAX_PAGES,
        min_access_role: AccessRole | str = AccessRole.FREE_BUSY_READER,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.transport = transport
        self.max_pages = max_pages
        self.min_access_role = AccessRole(min_access_role)

    async def list_calendars(self, access_token: str) -> list[Calendar]:
        service = self.transport.service(access_token)
        calendars: list[Calendar] = []
        page_token: str | None = None
        pages = 0
        state = ListingState.FETCHING

        while state is not ListingState.DONE:
            if state is ListingState.FETCHING:
                params = {"minAccessRole": self.min_access_role.value}
                if page_token:
                    params["pageToken"] = page_token
                data = await self.transport.execute(
                    service.calendarList().list(**params),
                    operation="calendarList.list",
                )
                pages += 1
                state = ListingState.ACCUMULATING

            elif state is ListingState.ACCUMULATING:
                try:
                    calendars.extend(Calendar.from_api(item) for item in data.get("items", []))
                except (KeyError, TypeError, AttributeError) as e:
                    raise IntegrationError(
                        "calendarList.list", f"malformed calendar entry: {e}"
                    ) from e
                page_token = data.get("nextPageToken")
                if not page_token:
                    state = ListingState.DONE
                elif pages >= self.max_pages:
                    state = ListingState.OVERRUN
                else:
                    state = ListingState.FETCHING

            elif state is ListingState.OVERRUN:
                logger.warning(
                    "Calendar listing still paginating after %d pages, aborting", pages
                )
                raise PaginationOverrun("calendarList.list", self.max_pages)

        logger.info("Listed %d calendar(s) across %d page(s)", len(calendars), pages)
        return calendars


def sort_calendars(calendars: list[Calendar]) -> list[Calendar]:
    """Primary calendar first, then the rest by name."""
    return sorted(calendars, key=lambda c: (not c.primary, c.summary.casefold()))
