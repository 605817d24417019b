from datetime import datetime

from conftest import make_event
from process_map.log_filters import (
    filter_by_activity,
    filter_by_activity_substring,
    filter_by_case_ids,
    filter_by_time_range,
)

EVENTS = [
    make_event("C1", "Invoice Received", 0),
    make_event("C2", "Invoice Received", 1),
    make_event("C1", "Rejected - Missing PO", 2),
    make_event("C2", "Investigation", 3),
    make_event("C2", "Rejected - Duplicate Invoice", 4),
]


def test_filter_by_case_ids_keeps_order():
    assert [event.activity for event in filter_by_case_ids(EVENTS, ["C2"])] == [
        "Invoice Received",
        "Investigation",
        "Rejected - Duplicate Invoice",
    ]


def test_filter_by_activity_matches_exact_names():
    assert len(filter_by_activity(EVENTS, ["Invoice Received"])) == 2
    assert filter_by_activity(EVENTS, ["Invoice"]) == []


def test_filter_by_activity_substring():
    rejected = filter_by_activity_substring(EVENTS, "Rejected")
    assert [event.case_id for event in rejected] == ["C1", "C2"]
    assert len(filter_by_activity_substring(EVENTS, "Investigation", "Duplicate")) == 2
    assert filter_by_activity_substring(EVENTS, "rejected") == []


def test_filter_by_time_range_is_inclusive():
    start = datetime(2024, 1, 2, 10, 0, 0)
    end = datetime(2024, 1, 2, 12, 0, 0)
    subset = filter_by_time_range(EVENTS, start, end)
    assert [event.activity for event in subset] == [
        "Invoice Received",
        "Rejected - Missing PO",
        "Investigation",
    ]
    assert len(filter_by_time_range(EVENTS)) == len(EVENTS)
