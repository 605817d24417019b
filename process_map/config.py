"""Settings and constants shared by the parser and the graph builder."""

from __future__ import annotations

from dataclasses import dataclass

LOG_HEADER = ("Case ID", "Activity", "Timestamp", "Resource", "Amount", "Vendor")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
SECONDS_PER_HOUR = 3600.0

START_NODE_ID = "__START__"
END_NODE_ID = "__END__"

NODE_BOTTLENECK_HOURS = 3.0


@dataclass(slots=True, frozen=True)
class GraphSettings:
    """Thresholds used when scoring bottlenecks."""

    node_bottleneck_hours: float = NODE_BOTTLENECK_HOURS
    edge_quantile: float = 0.75
    high_quantile: float = 0.90

    @classmethod
    def from_percentiles(
        cls,
        edge_percentile: float = 75.0,
        high_percentile: float = 90.0,
        node_bottleneck_hours: float | None = None,
    ) -> "GraphSettings":
        if not 0 <= edge_percentile <= high_percentile <= 100:
            raise ValueError(
                f"Percentiles must satisfy 0 <= edge <= high <= 100, got {edge_percentile} and {high_percentile}"
            )
        hours = node_bottleneck_hours if node_bottleneck_hours is not None else NODE_BOTTLENECK_HOURS
        return cls(
            node_bottleneck_hours=hours,
            edge_quantile=edge_percentile / 100,
            high_quantile=high_percentile / 100,
        )


DEFAULT_SETTINGS = GraphSettings()
