"""Availability aggregation: one batched free/busy query across calendars."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from ..errors import IntegrationError, InvalidArgument
from ..models import BusyInterval, require_aware
from .intervals import merge_busy_intervals

if TYPE_CHECKING:
    from ..calendar.directory import CalendarDirectory
    from ..calendar.transport import CalendarTransport

logger = logging.getLogger(__name__)


class AvailabilityAggregator:
    """Computes merged busy intervals for a set of calendars.

    Always issues a single freebusy.query regardless of how many calendars
    are requested. Holds no state between calls.
    """

    def __init__(self, transport: CalendarTransport, directory: CalendarDirectory):
        self.transport = transport
        self.directory = directory

    async def get_busy_times(
        self,
        access_token: str,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str] | None = None,
    ) -> list[BusyInterval]:
        require_aware(start, "start")
        require_aware(end, "end")
        if start >= end:
            raise InvalidArgument("start must be before end")

        if calendar_ids:
            ids = list(calendar_ids)
        else:
            calendars = await self.directory.list_calendars(access_token)
            ids = [c.id for c in calendars]
            if not ids:
                logger.info("No calendars visible, nothing to query")
                return []

        body = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "items": [{"id": cal_id} for cal_id in ids],
        }
        service = self.transport.service(access_token)
        result = await self.transport.execute(
            service.freebusy().query(body=body),
            operation="freebusy.query",
        )

        per_calendar = result.get("calendars", {})
        if not isinstance(per_calendar, dict):
            raise IntegrationError("freebusy.query", "malformed response: calendars is not an object")
        all_busy: list[BusyInterval] = []
        for cal_id in dict.fromkeys(ids):
            entry = per_calendar.get(cal_id) or {}
            try:
                if entry.get("errors"):
                    reasons = ", ".join(e.get("reason", "unknown") for e in entry["errors"])
                    logger.warning("Free/busy unavailable for a calendar (%s)", reasons)
                for period in entry.get("busy") or []:
                    all_busy.append(BusyInterval.from_api(period))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise IntegrationError(
                    "freebusy.query", f"malformed busy interval: {e}"
                ) from e

        merged = merge_busy_intervals(all_busy)
        logger.info(
            "Found %d busy period(s) across %d calendar(s), %d after merge",
            len(all_busy), len(ids), len(merged),
        )
        return merged
