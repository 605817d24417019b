"""
Canned automation suggestions for accounts-payable logs.

Each rule counts the events it is interested in and, when they are present, emits a fixed
recommendation with an estimated weekly time saving of `count * minutes_per_event`.
"""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .log_filters import filter_by_activity, filter_by_activity_substring
from .log_loader import ProcessEvent

logger = logging.getLogger(__name__)


class Impact(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class AutomationRecommendation:
    title: str
    description: str
    impact: Impact
    time_saved: str
    affected_activities: List[str] = field(default_factory=list)
    implementation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["impact"] = self.impact.value
        return data


@dataclass(frozen=True)
class RecommendationRule:
    title: str
    description: str
    impact: Impact
    minutes_per_event: int
    affected_activities: Tuple[str, ...]
    implementation: str
    count_events: Callable[[Sequence[ProcessEvent]], int]
    always: bool = False

    def apply(self, events: Sequence[ProcessEvent]) -> Optional[AutomationRecommendation]:
        count = self.count_events(events)
        if count <= 0 and not self.always:
            return None
        return AutomationRecommendation(
            title=self.title,
            description=self.description,
            impact=self.impact,
            time_saved=format_time_saved(count, self.minutes_per_event),
            affected_activities=list(self.affected_activities),
            implementation=self.implementation,
        )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_time_saved(count: int, minutes_per_event: int) -> str:
    return f"~{_round_half_up(count * minutes_per_event / 60)} hours per week"


def _containing(*needles: str) -> Callable[[Sequence[ProcessEvent]], int]:
    return lambda events: len(filter_by_activity_substring(events, *needles))


def _named(activity: str) -> Callable[[Sequence[ProcessEvent]], int]:
    return lambda events: len(filter_by_activity(events, [activity]))


RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule(
        title="Automate Invoice Data Extraction",
        description=(
            "Implement OCR and AI-powered data extraction to automatically capture invoice details from PDFs "
            "and emails, eliminating manual data entry."
        ),
        impact=Impact.HIGH,
        minutes_per_event=15,
        affected_activities=("Manual Data Entry", "Invoice Received"),
        implementation=(
            "Use document intelligence APIs (e.g., Azure Form Recognizer, Google Document AI) to extract "
            "structured data from invoices."
        ),
        count_events=_containing("Manual Data Entry"),
    ),
    RecommendationRule(
        title="Implement Smart Validation Rules",
        description=(
            "Add automated pre-validation checks for PO numbers, duplicate invoices, and vendor information "
            "before approval routing to reduce rejections and rework."
        ),
        impact=Impact.HIGH,
        minutes_per_event=30,
        affected_activities=("Rejected - Missing PO", "Rejected - Duplicate Invoice", "Request PO Number"),
        implementation=(
            "Configure business rules engine to validate invoices against PO database and historical invoice "
            "records automatically."
        ),
        count_events=_containing("Rejected"),
    ),
    RecommendationRule(
        title="Smart Approval Routing",
        description=(
            "Implement intelligent approval routing based on amount thresholds, vendor types, and department "
            "budgets to automatically route to the correct approver."
        ),
        impact=Impact.MEDIUM,
        minutes_per_event=20,
        affected_activities=("Escalation to Director", "Approval Request"),
        implementation=(
            "Set up workflow rules that automatically determine approval hierarchy based on invoice attributes "
            "(amount, vendor, category)."
        ),
        count_events=_containing("Escalation"),
    ),
    RecommendationRule(
        title="Streamline Payment Processing",
        description=(
            "Connect approval system directly to payment systems (ERP/Banking) to automatically schedule and "
            "process payments without manual intervention."
        ),
        impact=Impact.MEDIUM,
        minutes_per_event=10,
        affected_activities=("Payment Scheduled", "Payment Processed"),
        implementation=(
            "Integrate with ERP system APIs to automatically create payment batches and transmit to banking "
            "systems upon approval."
        ),
        count_events=_named("Payment Scheduled"),
        always=True,
    ),
    RecommendationRule(
        title="AI-Powered Duplicate Detection",
        description=(
            "Use machine learning to detect potential duplicate invoices at the point of receipt by analyzing "
            "invoice numbers, amounts, dates, and vendor information."
        ),
        impact=Impact.MEDIUM,
        minutes_per_event=25,
        affected_activities=("Investigation", "Duplicate Confirmed", "Invoice Cancelled"),
        implementation=(
            "Implement fuzzy matching algorithms and ML models trained on historical invoice data to flag "
            "potential duplicates with confidence scores."
        ),
        count_events=_containing("Investigation", "Duplicate"),
    ),
)


def generate_recommendations(
    events: Sequence[ProcessEvent], rules: Sequence[RecommendationRule] = RULES
) -> List[AutomationRecommendation]:
    events = list(events)
    recommendations = []
    for rule in rules:
        recommendation = rule.apply(events)
        if recommendation is not None:
            recommendations.append(recommendation)
    logger.debug("Generated %d recommendations from %d events", len(recommendations), len(events))
    return recommendations
