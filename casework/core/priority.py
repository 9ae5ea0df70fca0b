"""Case priority from time spent in the current workflow stage."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from casework.db.enums import PriorityLevel
from casework.utils.datetime_utils import ensure_utc

SECONDS_PER_DAY = 86400

# Days in stage: > URGENT_AFTER_DAYS is urgent, >= ATTENTION_FROM_DAYS needs attention.
URGENT_AFTER_DAYS = 5
ATTENTION_FROM_DAYS = 3


@dataclass(frozen=True)
class Priority:
    level: PriorityLevel
    label: str
    color: str
    emoji: str
    days: int


_PRESENTATION: dict[PriorityLevel, tuple[str, str, str]] = {
    PriorityLevel.URGENT: ("URGENT", "#dc2626", "🔴"),
    PriorityLevel.ATTENTION: ("ATTENTION", "#ca8a04", "🟡"),
    PriorityLevel.ON_TRACK: ("ON TRACK", "#16a34a", "🟢"),
}


def classify_level(days: int) -> PriorityLevel:
    if days > URGENT_AFTER_DAYS:
        return PriorityLevel.URGENT
    if days >= ATTENTION_FROM_DAYS:
        return PriorityLevel.ATTENTION
    return PriorityLevel.ON_TRACK


def classify_priority(days: int) -> Priority:
    """Map whole days in stage to a priority tier with its display tokens."""
    level = classify_level(days)
    label, color, emoji = _PRESENTATION[level]
    return Priority(level=level, label=label, color=color, emoji=emoji, days=days)


def days_in_stage(stage_updated_at: datetime, now: datetime) -> int:
    """Floor of elapsed days since the stage last changed (never negative)."""
    elapsed = (ensure_utc(now) - ensure_utc(stage_updated_at)).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))
