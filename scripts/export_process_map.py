#!/usr/bin/env python
"""
Export the process map of an event log as JSON for an external renderer.

Usage:
    python scripts/export_process_map.py --input data/accounts_payable.csv --output runtime/process_map.json

The resulting JSON contains nodes, edges (framed by synthetic start/end terminals), metadata,
overview statistics and automation recommendations.
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from typing import Any, Dict, Optional

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from process_map import process_analysis  # noqa: E402  pylint: disable=wrong-import-position
from process_map.log_loader import (  # noqa: E402  pylint: disable=wrong-import-position
    EventLogContainer,
    LogFormatError,
    load_log_from_csv,
)
from process_map.logging_setup import configure_logging  # noqa: E402  pylint: disable=wrong-import-position
from process_map.recommendations import generate_recommendations  # noqa: E402  pylint: disable=wrong-import-position


def _jsonable_overview(overview: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value.isoformat() if hasattr(value, "isoformat") else value for key, value in overview.items()}


def export_process_map(input_path: pathlib.Path, output_path: pathlib.Path, xes_path: Optional[pathlib.Path] = None) -> None:
    logger = logging.getLogger("process_map").getChild("export")
    suffix = input_path.suffix.lower()
    if suffix != ".csv":
        raise ValueError(f"Unsupported input format: {suffix}. Use .csv")

    logger.info("Reading event log from %s", input_path)
    events = load_log_from_csv(input_path.read_bytes())
    container = EventLogContainer.from_events(events)

    graph = process_analysis.build_graph(container.events)
    payload = process_analysis.build_flow_payload(graph)
    payload["overview"] = _jsonable_overview(process_analysis.compute_overview(container, graph))
    payload["recommendations"] = [rec.to_dict() for rec in generate_recommendations(container.events)]

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(
        "Wrote process map with %d activities and %d flows to %s",
        len(graph.nodes),
        len(graph.flows),
        output_path,
    )

    if xes_path is not None:
        xes_path.parent.mkdir(parents=True, exist_ok=True)
        xes_path.write_bytes(container.to_xes_bytes())
        logger.info("Event log exported to %s", xes_path)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the process map of an event log as JSON.")
    parser.add_argument("--input", required=True, type=pathlib.Path, help="Path to the source log (.csv).")
    parser.add_argument(
        "--output",
        required=True,
        type=pathlib.Path,
        help="Destination JSON file for the process map payload.",
    )
    parser.add_argument("--xes", type=pathlib.Path, default=None, help="Also export the parsed log as XES.")
    parser.add_argument("--log-file", type=pathlib.Path, default=None, help="Write log output to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logger = configure_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)
    try:
        export_process_map(args.input, args.output, args.xes)
    except LogFormatError as exc:
        logger.error("Failed to load log %s: %s", args.input, exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
