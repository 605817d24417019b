"""
Synthetic accounts-payable event log.

Cases follow one of four invoice paths: straight-through approval, rejection for a missing PO,
duplicate invoice cancellation and director escalation for high amounts. Delays between steps are
drawn uniformly from the ranges of each step, so the log shows realistic waiting bottlenecks
(approval queues, vendor responses, director sign-off, overnight payment runs).
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from .config import LOG_HEADER, TIMESTAMP_FORMAT

VENDORS = (
    "ABC Supplies", "XYZ Corp", "Tech Solutions", "Global Partners", "Premium Vendors",
    "Office Depot Inc", "Industrial Supplies Co", "Digital Services Ltd", "Cloud Systems",
    "Enterprise Solutions", "Logistics Partners", "Manufacturing Direct", "Retail Supplies",
    "Professional Services Inc", "Consulting Group", "Software Licensing Co", "Hardware Depot",
    "Marketing Solutions", "Facilities Management", "Security Services",
)

CLERKS = ("Sarah Johnson", "John Smith", "Emily Davis", "Michael Brown", "Lisa Anderson", "David Wilson")
MANAGERS = ("Mike Chen", "Lisa Wang", "Jennifer Martinez", "Robert Taylor")
DIRECTORS = ("Robert Kim", "Patricia Lee", "James Anderson")

FIXED_RESOURCES = {
    "system": "System",
    "finance": "Finance System",
    "vendor": "Vendor Contact",
}

LOG_START = datetime(2024, 1, 1, 8, 0, 0)
SPAN_DAYS = 90
WORKDAY_HOURS = 9


class Step(NamedTuple):
    activity: str
    role: str
    # Delay until the next step: low + uniform(0, spread), in `unit`. None on the last step.
    delay: Optional[Tuple[float, float, str]] = None
    probability: float = 1.0


def _minutes(low: float, spread: float) -> Tuple[float, float, str]:
    return (low, spread, "minutes")


def _hours(low: float, spread: float) -> Tuple[float, float, str]:
    return (low, spread, "hours")


HAPPY_PATH = (
    Step("Invoice Received", "system", _minutes(15, 45)),
    Step("Manual Data Entry", "clerk", _minutes(10, 30)),
    Step("Approval Request", "system", _minutes(60, 240)),
    Step("Manager Review", "manager", _minutes(5, 20)),
    Step("Approval Granted", "manager", _minutes(15, 30)),
    Step("Payment Scheduled", "system", _hours(18, 6)),
    Step("Payment Processed", "finance"),
)

MISSING_PO_PATH = (
    Step("Invoice Received", "system", _minutes(15, 45)),
    Step("Manual Data Entry", "clerk", _minutes(10, 30)),
    Step("Approval Request", "system", _minutes(60, 240)),
    Step("Manager Review", "manager", _minutes(5, 15)),
    Step("Rejected - Missing PO", "manager", _minutes(10, 20)),
    Step("Request PO Number", "clerk", _hours(12, 36)),
    Step("PO Number Provided", "vendor", _minutes(20, 40)),
    Step("Manual Data Entry", "clerk", _minutes(10, 30)),
    Step("Approval Request", "system", _minutes(60, 240)),
    Step("Manager Review", "manager", _minutes(5, 20)),
    Step("Approval Granted", "manager", _minutes(15, 30)),
    Step("Payment Scheduled", "system", _hours(18, 6)),
    Step("Payment Processed", "finance"),
)

DUPLICATE_PATH = (
    Step("Invoice Received", "system", _minutes(15, 45)),
    Step("Manual Data Entry", "clerk", _minutes(10, 30)),
    Step("Approval Request", "system", _minutes(60, 240)),
    Step("Manager Review", "manager", _minutes(5, 15)),
    Step("Rejected - Duplicate Invoice", "manager", _minutes(10, 20)),
    Step("Investigation", "clerk", _minutes(20, 40)),
    Step("Duplicate Confirmed", "clerk", _minutes(5, 15)),
    Step("Invoice Cancelled", "system"),
)

ESCALATION_PATH = (
    Step("Invoice Received", "system", _minutes(15, 45)),
    Step("Manual Data Entry", "clerk", _minutes(15, 30)),
    # Complex invoices sometimes need a second pass.
    Step("Manual Data Entry", "clerk", _minutes(10, 20), probability=0.5),
    Step("Approval Request", "system", _minutes(60, 240)),
    Step("Manager Review", "manager", _minutes(10, 30)),
    Step("Escalation to Director", "manager", _hours(12, 24)),
    Step("Director Review", "director", _minutes(15, 45)),
    Step("Approval Granted", "director", _minutes(15, 30)),
    Step("Payment Scheduled", "system", _hours(18, 6)),
    Step("Payment Processed", "finance"),
)

# (cumulative probability, path, amount range)
PATHS = (
    (0.75, HAPPY_PATH, (500, 50000)),
    (0.87, MISSING_PO_PATH, (500, 50000)),
    (0.95, DUPLICATE_PATH, (500, 50000)),
    (1.00, ESCALATION_PATH, (20000, 50000)),
)


def _pick(rng: np.random.Generator, options: Tuple[str, ...]) -> str:
    return options[int(rng.integers(len(options)))]


def _choose_path(rng: np.random.Generator) -> Tuple[Tuple[Step, ...], Tuple[int, int]]:
    draw = rng.random()
    for threshold, path, amount_range in PATHS:
        if draw < threshold:
            return path, amount_range
    _, path, amount_range = PATHS[-1]
    return path, amount_range


def generate_sample_rows(num_cases: int = 2500, seed: Optional[int] = None) -> List[Tuple[str, ...]]:
    """Return data rows (without header) in the column order of the log format."""
    if num_cases < 0:
        raise ValueError(f"num_cases must be non-negative, got {num_cases}")
    rng = np.random.default_rng(seed)
    rows: List[Tuple[str, ...]] = []

    for index in range(1, num_cases + 1):
        case_id = f"INV{index:05d}"
        vendor = _pick(rng, VENDORS)
        path, (amount_low, amount_high) = _choose_path(rng)
        amount = int(rng.integers(amount_low, amount_high))
        resources = dict(FIXED_RESOURCES)
        resources["clerk"] = _pick(rng, CLERKS)
        resources["manager"] = _pick(rng, MANAGERS)
        resources["director"] = _pick(rng, DIRECTORS)

        day_offset = int(rng.integers(SPAN_DAYS))
        hour_offset = int(rng.integers(WORKDAY_HOURS))
        current = LOG_START.replace(hour=LOG_START.hour + hour_offset) + timedelta(days=day_offset)

        for step in path:
            if step.probability < 1.0 and rng.random() >= step.probability:
                continue
            rows.append(
                (
                    case_id,
                    step.activity,
                    current.strftime(TIMESTAMP_FORMAT),
                    resources[step.role],
                    str(amount),
                    vendor,
                )
            )
            if step.delay is not None:
                low, spread, unit = step.delay
                current += timedelta(**{unit: low + rng.random() * spread})

    return rows


def generate_sample_csv(num_cases: int = 2500, seed: Optional[int] = None) -> str:
    lines = [",".join(LOG_HEADER)]
    lines.extend(",".join(row) for row in generate_sample_rows(num_cases, seed))
    return "\n".join(lines)
