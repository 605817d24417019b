from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd
from pm4py.objects.conversion.log import converter as log_converter
from pm4py.objects.log.obj import EventLog
from pm4py.objects.log.util import sorting
from pm4py.objects.log.exporter.xes import exporter as xes_exporter

from .config import LOG_HEADER, TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

FIELD_COUNT = len(LOG_HEADER)
COLUMNS = ("case_id", "activity", "timestamp", "resource", "amount", "vendor")

# Only these shapes reach the datetime parser; anything looser ("now", "Jan", "2024") is rejected.
NAIVE_TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}"
OFFSET_TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})"


class LogFormatError(Exception):
    """Raised when an event log cannot be parsed or converted."""


class ParseError(LogFormatError):
    """Raised for a malformed row; `line` is the 1-based line number in the source text."""

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason


@dataclass(frozen=True, slots=True)
class ProcessEvent:
    """One row of the event log."""

    case_id: str
    activity: str
    timestamp: datetime
    resource: str
    amount: float
    vendor: str


def _parse_timestamps(raw: pd.Series) -> pd.Series:
    """
    Convert timestamp text to naive datetimes, NaT where the text is not a timestamp.

    Values with a UTC offset are converted to UTC before the offset is dropped.
    """
    naive = raw.str.fullmatch(NAIVE_TIMESTAMP_PATTERN, na=False)
    offset = raw.str.fullmatch(OFFSET_TIMESTAMP_PATTERN, na=False)
    parsed = pd.to_datetime(raw.where(naive), format=TIMESTAMP_FORMAT, errors="coerce")
    aware = pd.to_datetime(raw.where(offset), format="ISO8601", utc=True, errors="coerce").dt.tz_localize(None)
    return parsed.where(naive, aware)


def _split_rows(rows: pd.Series) -> pd.DataFrame:
    """
    Split raw rows into the fixed columns plus a `reason` column naming the first problem of each row.
    """
    values = rows.str.split(",")
    # Short rows are padded with "" and extra fields dropped here; the field-count check reports both.
    frame = pd.DataFrame(values.tolist(), index=rows.index).reindex(columns=range(FIELD_COUNT)).fillna("").astype(str)
    frame.columns = list(COLUMNS)
    frame = frame.apply(lambda column: column.str.strip())
    raw_timestamps = frame["timestamp"]
    raw_amounts = frame["amount"]
    frame["timestamp"] = _parse_timestamps(raw_timestamps)
    frame["amount"] = pd.to_numeric(raw_amounts, errors="coerce").astype(float)

    field_counts = values.str.len()
    reason = pd.Series(pd.NA, index=rows.index, dtype=object)
    # Later masks win, so checks run from lowest to highest precedence.
    reason = reason.mask(~np.isfinite(frame["amount"]), "invalid amount " + raw_amounts.map(repr))
    reason = reason.mask(frame["timestamp"].isna(), "invalid timestamp " + raw_timestamps.map(repr))
    reason = reason.mask(
        field_counts != FIELD_COUNT,
        f"expected {FIELD_COUNT} fields, got " + field_counts.astype(str),
    )
    frame["reason"] = reason
    return frame


def parse_log(text: str) -> List[ProcessEvent]:
    """
    Parse comma-separated log text into events, one per data row, in input order.

    The first non-blank line is the header. Quoted fields are not supported.
    Any malformed row aborts the whole parse with a `ParseError` for the earliest bad line.
    """
    lines = pd.Series(text.splitlines(), dtype=object)
    lines.index = lines.index + 1
    lines = lines[lines.str.strip() != ""]
    if lines.empty:
        return []

    header = tuple(column.strip() for column in lines.iloc[0].split(","))
    if header != LOG_HEADER:
        logger.warning("Unexpected log header %r; reading columns as %s", header, ", ".join(LOG_HEADER))
    rows = lines.iloc[1:]
    if rows.empty:
        return []

    frame = _split_rows(rows)
    failures = frame["reason"].dropna()
    if not failures.empty:
        raise ParseError(int(failures.index[0]), failures.iloc[0])

    events = [
        ProcessEvent(
            case_id=case_id,
            activity=activity,
            timestamp=timestamp.to_pydatetime(),
            resource=resource,
            amount=float(amount),
            vendor=vendor,
        )
        for case_id, activity, timestamp, resource, amount, vendor in frame[list(COLUMNS)].itertuples(
            index=False, name=None
        )
    ]
    logger.debug(
        "Parsed %d events across %d cases",
        len(events),
        frame["case_id"].nunique(),
    )
    return events


def load_log_from_csv(file_bytes: bytes, encoding: str = "utf-8-sig") -> List[ProcessEvent]:
    """
    Decode raw CSV bytes and parse them into events.
    """
    try:
        text = file_bytes.decode(encoding)
    except UnicodeDecodeError as exc:
        raise LogFormatError(f"Log is not valid {encoding} text.") from exc
    return parse_log(text)


@dataclass
class EventLogContainer:
    """
    Wrapper that keeps the parsed events and a pandas dataframe view in sync.

    The dataframe uses `case_id`, `activity`, `timestamp`, `resource`, `amount` and `vendor` as columns.
    """

    events: List[ProcessEvent]
    df: pd.DataFrame

    @classmethod
    def from_events(cls, events: Sequence[ProcessEvent]) -> "EventLogContainer":
        events = list(events)
        return cls(events=events, df=events_to_dataframe(events))

    @classmethod
    def from_text(cls, text: str) -> "EventLogContainer":
        return cls.from_events(parse_log(text))

    @property
    def case_ids(self) -> Iterable[str]:
        return self.df["case_id"].unique()

    @property
    def activities(self) -> Iterable[str]:
        return self.df["activity"].unique()

    def to_xes_bytes(self) -> bytes:
        """Export the current log snapshot to an XES byte string."""
        if self.df.empty:
            raise LogFormatError("Cannot export an empty log to XES.")
        event_log = _dataframe_to_event_log(self.df)
        xes_string = xes_exporter.serialize(event_log)
        if isinstance(xes_string, bytes):
            return xes_string
        return xes_string.encode("utf-8")


def events_to_dataframe(events: Sequence[ProcessEvent]) -> pd.DataFrame:
    """
    Tabulate events, sorted by case and timestamp with a stable sort so ties keep input order.
    """
    columns = [field.name for field in fields(ProcessEvent)]
    df = pd.DataFrame(
        [[getattr(event, column) for column in columns] for event in events],
        columns=columns,
    )
    df["case_id"] = df["case_id"].astype(str)
    df["activity"] = df["activity"].astype(str)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["amount"] = df["amount"].astype(float)
    return df.sort_values(["case_id", "timestamp"], kind="stable").reset_index(drop=True)


def _dataframe_to_event_log(df: pd.DataFrame) -> EventLog:
    """
    Convert the canonical dataframe into a pm4py `EventLog`.
    """
    xes_df = df.copy()
    # pm4py reads the default XES keys.
    xes_df["case:concept:name"] = xes_df["case_id"]
    xes_df["concept:name"] = xes_df["activity"]
    xes_df["time:timestamp"] = xes_df["timestamp"]
    xes_df["org:resource"] = xes_df["resource"]
    xes_df = xes_df.drop(columns=["case_id", "activity", "timestamp", "resource"])

    parameters = {
        log_converter.Variants.TO_EVENT_LOG.value.Parameters.CASE_ID_KEY: "case:concept:name",
        log_converter.Variants.TO_EVENT_LOG.value.Parameters.CASE_ATTRIBUTE_PREFIX: "case:",
    }

    event_log = log_converter.apply(xes_df, variant=log_converter.Variants.TO_EVENT_LOG, parameters=parameters)
    return sorting.sort_timestamp(event_log)
