"""Availability computation."""

from .availability import AvailabilityAggregator
from .intervals import merge_busy_intervals

__all__ = ["AvailabilityAggregator", "merge_busy_intervals"]
