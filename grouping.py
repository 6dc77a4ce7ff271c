"""Date and payment-tier grouping over parsed records."""

from __future__ import annotations

import datetime
import re
from typing import Iterable

import pandas as pd

from config import UNKNOWN_ITEM, ColumnMap, ENGLISH_COLUMNS
from models import PaymentTier, Record, TrendPoint

FRAME_COLUMNS = ["Date", "Tier", "Channel", "Item", "Amount", "RoleCount", "DAU"]

_TRAILING_TIME = re.compile(r"(?:T|\s+)\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$")


def canonicalize_date(value) -> str | None:
    """
    Return ``YYYY-MM-DD`` for ``D/M/YYYY``, ``YYYY/M/D`` or ``YYYY-MM-DD``.

    A slash date whose first segment has four characters is year-first,
    otherwise the last segment is the year. A trailing time (``2025/4/17 10:00``,
    ``2025-04-17T00:00:00``) is ignored. Anything else returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    text = _TRAILING_TIME.sub("", text)
    if "/" in text:
        parts = text.split("/")
        if len(parts) != 3:
            return None
        if len(parts[0].strip()) == 4:
            year, month, day = parts
        else:
            day, month, year = parts
    elif "-" in text:
        parts = text.split("-")
        if len(parts) != 3:
            return None
        year, month, day = parts
    else:
        return None
    try:
        parsed = datetime.date(int(year), int(month), int(day))
    except ValueError:
        return None
    return parsed.isoformat()


def to_amount(value) -> float:
    """Numeric cell value, 0 for strings and missing cells."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def item_name(record: Record, columns: ColumnMap = ENGLISH_COLUMNS) -> str:
    return str(record.get(columns.item, "")).strip() or UNKNOWN_ITEM


def group_by_date(records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS) -> dict[str, list[Record]]:
    """Bucket records by canonical date, ascending; undated records are dropped."""
    grouped: dict[str, list[Record]] = {}
    for record in records:
        key = canonicalize_date(record.get(columns.date))
        if key is None:
            continue
        grouped.setdefault(key, []).append(record)
    return {key: grouped[key] for key in sorted(grouped)}


def group_by_payment_tier(
    records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS
) -> dict[str, list[Record]]:
    """Bucket records by the literal tier cell, in first-seen order."""
    grouped: dict[str, list[Record]] = {}
    for record in records:
        raw = record.get(columns.tier, "")
        grouped.setdefault(str(raw).strip(), []).append(record)
    return grouped


def daily_sum(
    grouped: dict[str, list[Record]],
    field: str,
    tier: PaymentTier | None = None,
    columns: ColumnMap = ENGLISH_COLUMNS,
) -> list[TrendPoint]:
    """Per-date sum of a numeric field, optionally for one tier; one point per date."""
    points: list[TrendPoint] = []
    for date in sorted(grouped):
        rows = grouped[date]
        if tier is not None:
            rows = [row for row in rows if tier.matches(row.get(columns.tier))]
        points.append(TrendPoint(date=date, value=sum(to_amount(row.get(field)) for row in rows)))
    return points


def records_frame(records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS) -> pd.DataFrame:
    """Normalise records into a frame with canonical column names and tier enum."""
    rows = [
        {
            "Date": canonicalize_date(record.get(columns.date)),
            "TierLabel": str(record.get(columns.tier, "")).strip(),
            "Tier": PaymentTier.from_label(record.get(columns.tier)),
            "Channel": str(record.get(columns.channel, "")).strip(),
            "Item": item_name(record, columns),
            "Amount": to_amount(record.get(columns.amount)),
            "RoleCount": to_amount(record.get(columns.role_count)),
            "DAU": to_amount(record.get(columns.dau)),
        }
        for record in records
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS + ["TierLabel"])
    return pd.DataFrame(rows)
