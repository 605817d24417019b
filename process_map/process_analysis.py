from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import DEFAULT_SETTINGS, END_NODE_ID, SECONDS_PER_HOUR, START_NODE_ID, GraphSettings
from .log_loader import EventLogContainer, ProcessEvent

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    START = "start"
    END = "end"
    TASK = "task"
    MANUAL = "manual"
    APPROVAL = "approval"
    REJECTION = "rejection"
    SYSTEM = "system"


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda name: any(needle in name for needle in needles)


# Evaluated top to bottom, first match wins.
NODE_TYPE_RULES: Tuple[Tuple[Callable[[str], bool], NodeType], ...] = (
    (_contains("Invoice Received"), NodeType.START),
    (_contains("Payment Processed", "Cancelled"), NodeType.END),
    (_contains("Manual"), NodeType.MANUAL),
    (_contains("Approval", "Review"), NodeType.APPROVAL),
    (_contains("Rejected"), NodeType.REJECTION),
)


@dataclass
class ProcessNode:
    id: str
    name: str
    count: int
    avg_duration: float
    total_duration: float
    percentage: float
    type: NodeType
    is_bottleneck: bool


@dataclass
class ProcessFlow:
    source: str
    target: str
    count: int
    avg_duration: float
    total_duration: float
    is_bottleneck: bool
    bottleneck_score: float


@dataclass
class ProcessGraph:
    """
    Activity nodes and directly-follows flows of a log.

    `q75` and `q90` are the pooled transition-duration quantiles the flow scores were derived from,
    or None when the log has no transitions.
    """

    nodes: List[ProcessNode]
    flows: List[ProcessFlow]
    q75: Optional[float] = None
    q90: Optional[float] = None

    def node(self, node_id: str) -> Optional[ProcessNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def flow(self, source: str, target: str) -> Optional[ProcessFlow]:
        return next((flow for flow in self.flows if flow.source == source and flow.target == target), None)

    def to_dict(self) -> Dict[str, Any]:
        nodes = []
        for node in self.nodes:
            data = asdict(node)
            data["type"] = node.type.value
            nodes.append(data)
        return {
            "nodes": nodes,
            "flows": [asdict(flow) for flow in self.flows],
            "q75": self.q75,
            "q90": self.q90,
        }


def _format_timedelta(delta: timedelta) -> str:
    total_seconds = int(delta.total_seconds())
    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def _hours_between(earlier: ProcessEvent, later: ProcessEvent) -> float:
    return (later.timestamp - earlier.timestamp).total_seconds() / SECONDS_PER_HOUR


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def classify_activity(name: str) -> NodeType:
    for matches, node_type in NODE_TYPE_RULES:
        if matches(name):
            return node_type
    return NodeType.TASK


def group_events_by_case(events: Iterable[ProcessEvent]) -> Dict[str, List[ProcessEvent]]:
    """Group events by case id, in first-seen case order, each case sorted by timestamp."""
    grouped: Dict[str, List[ProcessEvent]] = defaultdict(list)
    for event in events:
        grouped[event.case_id].append(event)
    # list.sort is stable, equal timestamps keep input order.
    for case_events in grouped.values():
        case_events.sort(key=lambda event: event.timestamp)
    return dict(grouped)


def activity_counts(events: Iterable[ProcessEvent]) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for event in events:
        counts[event.activity] += 1
    return dict(counts)


def quantile(values: Sequence[float], q: float) -> float:
    """
    Linear-interpolation quantile between order statistics (R type 7).
    """
    if len(values) == 0:
        raise ValueError("Cannot compute a quantile of an empty sample.")
    return float(np.quantile(np.asarray(values, dtype=float), q, method="linear"))


def bottleneck_score(avg_duration: float, q75: float, q90: float) -> float:
    """
    Map an average duration onto 0-100 relative to the pooled q75/q90.

    Above q90 scores 90+, between q75 and q90 scores 75-90, at or below q75 scales linearly to 75.
    """
    if avg_duration > q90:
        if q90 <= 0:
            score = 100.0
        else:
            score = 90 + ((avg_duration - q90) / q90) * 10
    elif avg_duration > q75:
        # Only reachable when q90 > q75.
        score = 75 + ((avg_duration - q75) / (q90 - q75)) * 15
    elif q75 <= 0:
        score = 0.0
    else:
        score = (avg_duration / q75) * 75
    return min(100.0, max(0.0, score))


def build_graph(events: Sequence[ProcessEvent], settings: GraphSettings = DEFAULT_SETTINGS) -> ProcessGraph:
    """
    Build the statistical process graph of a log.

    Node durations are the time until the next step of the same case; the last event of a case adds no
    duration sample. Flow durations are the time between the two consecutive events.
    """
    activity_totals: Dict[str, int] = {}
    activity_durations: Dict[str, List[float]] = defaultdict(list)
    flow_totals: Dict[Tuple[str, str], int] = {}
    flow_durations: Dict[Tuple[str, str], List[float]] = defaultdict(list)

    cases = group_events_by_case(events)
    for case_events in cases.values():
        for event in case_events:
            activity_totals[event.activity] = activity_totals.get(event.activity, 0) + 1
        for current, following in zip(case_events, case_events[1:]):
            edge = (current.activity, following.activity)
            duration = _hours_between(current, following)
            flow_totals[edge] = flow_totals.get(edge, 0) + 1
            flow_durations[edge].append(duration)
            activity_durations[current.activity].append(duration)

    total_events = sum(activity_totals.values())
    nodes: List[ProcessNode] = []
    for name, count in activity_totals.items():
        durations = activity_durations.get(name, [])
        avg_duration = _mean(durations)
        nodes.append(
            ProcessNode(
                id=name,
                name=name,
                count=count,
                avg_duration=avg_duration,
                total_duration=sum(durations),
                percentage=count / total_events * 100,
                type=classify_activity(name),
                is_bottleneck=avg_duration > settings.node_bottleneck_hours,
            )
        )

    pooled = [duration for durations in flow_durations.values() for duration in durations]
    if not pooled:
        logger.debug("Built graph with %d nodes and no flows from %d cases", len(nodes), len(cases))
        return ProcessGraph(nodes=nodes, flows=[])

    q75 = quantile(pooled, settings.edge_quantile)
    q90 = quantile(pooled, settings.high_quantile)

    flows: List[ProcessFlow] = []
    for (source, target), count in flow_totals.items():
        durations = flow_durations[(source, target)]
        avg_duration = _mean(durations)
        flows.append(
            ProcessFlow(
                source=source,
                target=target,
                count=count,
                avg_duration=avg_duration,
                total_duration=sum(durations),
                is_bottleneck=avg_duration > q75,
                bottleneck_score=bottleneck_score(avg_duration, q75, q90),
            )
        )

    logger.debug(
        "Built graph with %d nodes and %d flows from %d cases (q75=%.3fh, q90=%.3fh)",
        len(nodes),
        len(flows),
        len(cases),
        q75,
        q90,
    )
    return ProcessGraph(nodes=nodes, flows=flows, q75=q75, q90=q90)


def compute_overview(log_container: EventLogContainer, graph: Optional[ProcessGraph] = None) -> Dict[str, Any]:
    df = log_container.df
    cases = df["case_id"].nunique()
    events = len(df)
    activities = df["activity"].nunique()
    first_event = df["timestamp"].min() if events else None
    last_event = df["timestamp"].max() if events else None

    durations = compute_throughput_distribution(log_container)["duration_hours"].tolist()
    events_per_case = df.groupby("case_id")["activity"].size().tolist()

    overview = {
        "cases": cases,
        "events": events,
        "activities": activities,
        "start": first_event,
        "end": last_event,
        "median_case_duration": _format_timedelta(timedelta(hours=statistics.median(durations))) if durations else "n/a",
        "avg_case_duration": _format_timedelta(timedelta(hours=statistics.mean(durations))) if durations else "n/a",
        "median_events_per_case": round(statistics.median(events_per_case), 2) if events_per_case else "n/a",
        "rejection_events": int(df["activity"].str.contains("Rejected", regex=False).sum()),
    }
    if graph is not None:
        overview["bottleneck_flows"] = sum(1 for flow in graph.flows if flow.is_bottleneck)
        overview["bottleneck_activities"] = sum(1 for node in graph.nodes if node.is_bottleneck)
    return overview


def compute_throughput_distribution(log_container: EventLogContainer) -> pd.DataFrame:
    if log_container.df.empty:
        return pd.DataFrame(columns=["Case", "duration_hours"])
    durations = (
        log_container.df.groupby("case_id")["timestamp"].agg(["min", "max"]).assign(duration=lambda g: g["max"] - g["min"])
    )
    durations["duration_hours"] = durations["duration"].dt.total_seconds() / SECONDS_PER_HOUR
    durations = durations.reset_index().rename(columns={"case_id": "Case"})
    return durations[["Case", "duration_hours"]]


def rank_connected_edges(graph: ProcessGraph, node_id: str) -> List[Dict[str, Any]]:
    """
    Rank the flows entering or leaving a node by count, most frequent first.
    """
    connected = [
        flow
        for flow in graph.flows
        if (flow.source == node_id or flow.target == node_id) and flow.count > 0
    ]
    connected.sort(key=lambda flow: flow.count, reverse=True)
    return [
        {
            "source": flow.source,
            "target": flow.target,
            "count": flow.count,
            "avg_duration": flow.avg_duration,
            "rank": rank,
        }
        for rank, flow in enumerate(connected, start=1)
    ]


def build_flow_payload(graph: ProcessGraph) -> Dict[str, Any]:
    """
    JSON-ready nodes and edges for a renderer, framed by synthetic start and end terminals.
    """
    nodes: List[Dict[str, Any]] = [{"id": START_NODE_ID, "name": "Start", "count": 0, "type": NodeType.START.value}]
    for node in graph.nodes:
        data = asdict(node)
        data["type"] = node.type.value
        nodes.append(data)
    nodes.append({"id": END_NODE_ID, "name": "End", "count": 0, "type": NodeType.END.value})

    start_edges = [
        {"source": START_NODE_ID, "target": node.id, "count": 0}
        for node in graph.nodes
        if node.type is NodeType.START
    ]
    end_edges = [
        {"source": node.id, "target": END_NODE_ID, "count": 0}
        for node in graph.nodes
        if node.type is NodeType.END
    ]
    edges = start_edges + [asdict(flow) for flow in graph.flows] + end_edges

    durations = [flow.avg_duration for flow in graph.flows]
    metadata = {
        "total_activities": len(graph.nodes),
        "total_events": sum(node.count for node in graph.nodes),
        "total_edges": len(graph.flows),
        "max_edge_weight": max((flow.count for flow in graph.flows), default=0),
        "max_edge_duration": max(durations, default=0),
        "min_edge_duration": min(durations, default=0),
        "q75": graph.q75,
        "q90": graph.q90,
        "bottleneck_edges": sum(1 for flow in graph.flows if flow.is_bottleneck),
        "bottleneck_nodes": sum(1 for node in graph.nodes if node.is_bottleneck),
    }

    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": metadata,
    }
