from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .log_loader import ProcessEvent


def filter_by_case_ids(events: Iterable[ProcessEvent], case_ids: Sequence[str]) -> List[ProcessEvent]:
    wanted = set(case_ids)
    return [event for event in events if event.case_id in wanted]


def filter_by_activity(events: Iterable[ProcessEvent], activities: Sequence[str]) -> List[ProcessEvent]:
    wanted = set(activities)
    return [event for event in events if event.activity in wanted]


def filter_by_activity_substring(events: Iterable[ProcessEvent], *needles: str) -> List[ProcessEvent]:
    """Keep events whose activity name contains any of the given substrings (case-sensitive)."""
    return [event for event in events if any(needle in event.activity for needle in needles)]


def filter_by_time_range(
    events: Iterable[ProcessEvent], start: Optional[datetime] = None, end: Optional[datetime] = None
) -> List[ProcessEvent]:
    subset = list(events)
    if start:
        subset = [event for event in subset if event.timestamp >= start]
    if end:
        subset = [event for event in subset if event.timestamp <= end]
    return subset
