"""Utility modules."""

from casework.utils.datetime_utils import day_bounds, ensure_utc, utc_now

__all__ = [
    "day_bounds",
    "ensure_utc",
    "utc_now",
]
