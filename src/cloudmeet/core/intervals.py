"""Busy-interval merging."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..models import BusyInterval


def merge_busy_intervals(intervals: Iterable[BusyInterval]) -> list[BusyInterval]:
    """Coalesce overlapping or touching intervals into a sorted disjoint list.

    Intervals whose start equals the previous end are merged, so a
    09:00-10:00 and a 10:00-10:30 block come out as 09:00-10:30. Inputs
    are never modified.
    """
    ordered = sorted(intervals, key=lambda i: i.start)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = replace(last, end=current.end)
        else:
            merged.append(current)

    return merged
