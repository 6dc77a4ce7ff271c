"""Payment tier x consumption channel cross-tabulation."""

from __future__ import annotations

import math
from typing import Iterable

import pandas as pd

from config import OTHER_CHANNEL, TOP_CHANNEL_COUNT, ColumnMap, ENGLISH_COLUMNS
from grouping import records_frame
from models import (
    TIER_ORDER,
    ChannelAnalysis,
    ChannelConsumptionData,
    ChannelPurchaseData,
    Record,
)

UNUSED_SLOT_PREFIX = "(unused "


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def main_channels_from_frame(frame: pd.DataFrame, top_n: int = TOP_CHANNEL_COUNT) -> list[str]:
    """
    Top channels by total volume across all tiers, followed by the Other bucket.

    Always ``top_n + 1`` labels long; when fewer real channels exist the free
    slots hold ``(unused N)`` placeholders that never receive volume.
    """
    if frame.empty:
        ranked: list[str] = []
    else:
        totals = frame.groupby("Channel", sort=False)["Amount"].sum()
        totals = totals.sort_values(ascending=False, kind="mergesort")
        ranked = [str(label) for label in totals.index if str(label) != OTHER_CHANNEL][:top_n]
    while len(ranked) < top_n:
        ranked.append(f"{UNUSED_SLOT_PREFIX}{len(ranked) + 1})")
    return ranked + [OTHER_CHANNEL]


def real_channels(main_channels: list[str]) -> list[str]:
    """Main channel labels without the Other bucket and unused slots."""
    return [c for c in main_channels[:-1] if not c.startswith(UNUSED_SLOT_PREFIX)]


def displayed_channels(main_channels: list[str]) -> list[str]:
    """Labels to chart: the real main channels followed by Other."""
    return real_channels(main_channels) + [OTHER_CHANNEL]


def _bucket(channel: str, main_channels: list[str]) -> str:
    return channel if channel in main_channels[:-1] else OTHER_CHANNEL


def _tier_sums(tier_rows: pd.DataFrame, field: str, main_channels: list[str]) -> dict[str, float]:
    sums = {label: 0.0 for label in main_channels}
    if tier_rows.empty:
        return sums
    grouped = tier_rows.groupby("Bucket", sort=False)[field].sum()
    for label, value in grouped.items():
        sums[str(label)] += float(value)
    return sums


def analyze_channels(records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS) -> ChannelAnalysis:
    """Consumption and role counts per tier, bucketed into the shared main channels."""
    frame = records_frame(records, columns)
    main_channels = main_channels_from_frame(frame)
    if not frame.empty:
        frame = frame.assign(Bucket=frame["Channel"].map(lambda c: _bucket(str(c), main_channels)))

    consumption: list[ChannelConsumptionData] = []
    purchase: list[ChannelPurchaseData] = []
    for tier in TIER_ORDER:
        tier_rows = frame[frame["Tier"] == tier] if not frame.empty else frame
        channel_data = _tier_sums(tier_rows, "Amount", main_channels)
        channel_purchase = _tier_sums(tier_rows, "RoleCount", main_channels)
        total = float(sum(channel_data.values()))
        user_count = float(sum(channel_purchase.values()))
        consumption.append(
            ChannelConsumptionData(
                user_group=tier,
                channel_data=channel_data,
                channel_purchase=channel_purchase,
                total_consumption=total,
                avg_consumption=round_half_up(total / user_count) if user_count > 0 else 0,
                user_count=user_count,
                main_channels=list(main_channels),
            )
        )
        purchase.append(
            ChannelPurchaseData(
                user_group=tier,
                channel_data=dict(channel_purchase),
                total_purchase=user_count,
                main_channels=list(main_channels),
            )
        )
    return ChannelAnalysis(consumption_data=consumption, purchase_data=purchase, main_channels=main_channels)


def channel_matrix(analysis: ChannelAnalysis, field: str = "channel_data") -> pd.DataFrame:
    """Tier x channel table (rows in display order) for dashboard charts."""
    rows = {str(item.user_group): getattr(item, field) for item in analysis.consumption_data}
    return pd.DataFrame.from_dict(rows, orient="index").reindex(columns=displayed_channels(analysis.main_channels))
