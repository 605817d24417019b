#!/usr/bin/env python
"""
Write a synthetic accounts-payable event log in CSV form.

Usage:
    python scripts/generate_sample_log.py --output data/accounts_payable.csv --cases 2500 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Optional

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from process_map.logging_setup import configure_logging  # noqa: E402  pylint: disable=wrong-import-position
from process_map.sample_data import generate_sample_csv  # noqa: E402  pylint: disable=wrong-import-position


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a synthetic accounts-payable event log.")
    parser.add_argument("--output", required=True, type=pathlib.Path, help="Destination CSV file.")
    parser.add_argument("--cases", type=int, default=2500, help="Number of invoice cases (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible log.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logger = configure_logging().getChild("sample")
    if args.cases < 0:
        raise SystemExit("--cases must be non-negative")
    csv_text = generate_sample_csv(args.cases, seed=args.seed)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(csv_text + "\n", encoding="utf-8")
    logger.info("Wrote %d cases to %s", args.cases, args.output)


if __name__ == "__main__":
    main()
