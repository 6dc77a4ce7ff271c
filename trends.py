"""Trend statistics for daily jade consumption series."""

from __future__ import annotations

from typing import Iterable, Sequence

import pandas as pd

from config import ColumnMap, ENGLISH_COLUMNS
from grouping import daily_sum, group_by_date
from models import (
    TIER_ORDER,
    BuyersTrend,
    ConsumptionTrend,
    PaymentTier,
    PointDetail,
    Record,
    TrendPoint,
    TrendSummary,
)
from products import item_shares

PEAK_STD_FACTOR = 0.5
_EMPTY_POINT = TrendPoint(date="", value=0.0)


def sort_series(series: Iterable[TrendPoint]) -> list[TrendPoint]:
    return sorted(series, key=lambda point: point.date)


def linear_trend(values: Sequence[float]) -> tuple[float, float]:
    """OLS slope and intercept with x = point index."""
    n = len(values)
    if n < 2:
        return 0.0, 0.0
    x = pd.Series(range(n), dtype=float)
    y = pd.Series(list(values), dtype=float)
    x_mean = float(x.mean())
    y_mean = float(y.mean())
    num = float(((x - x_mean) * (y - y_mean)).sum())
    den = float(((x - x_mean) ** 2).sum())
    slope = num / den if den else 0.0
    return slope, y_mean - slope * x_mean


def trend_line_values(count: int, slope: float, intercept: float) -> list[float]:
    return [slope * index + intercept for index in range(count)]


def mean_value(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(pd.Series(list(values), dtype=float).mean())


def find_extrema(series: Sequence[TrendPoint]) -> tuple[TrendPoint, TrendPoint]:
    """Global max and min points; the first occurrence wins ties."""
    if not series:
        return _EMPTY_POINT, _EMPTY_POINT
    max_point = series[0]
    min_point = series[0]
    for point in series[1:]:
        if point.value > max_point.value:
            max_point = point
        if point.value < min_point.value:
            min_point = point
    return max_point, min_point


def find_peaks_and_valleys(series: Sequence[TrendPoint]) -> tuple[list[TrendPoint], list[TrendPoint]]:
    """
    Interior local extrema that deviate from the mean by more than half a
    population standard deviation.

    Series shorter than three points skip detection. Whenever data exists
    and nothing qualifies, the global max (peaks) or min (valleys) is used.
    """
    peaks: list[TrendPoint] = []
    valleys: list[TrendPoint] = []
    if not series:
        return peaks, valleys

    if len(series) >= 3:
        values = pd.Series([point.value for point in series], dtype=float)
        mean = float(values.mean())
        threshold = float(values.std(ddof=0)) * PEAK_STD_FACTOR
        for index in range(1, len(series) - 1):
            prev_value = series[index - 1].value
            current = series[index].value
            next_value = series[index + 1].value
            significant = abs(current - mean) > threshold
            if current > prev_value and current > next_value and significant:
                peaks.append(series[index])
            if current < prev_value and current < next_value and significant:
                valleys.append(series[index])

    max_point, min_point = find_extrema(series)
    if not peaks:
        peaks.append(max_point)
    if not valleys:
        valleys.append(min_point)
    return peaks, valleys


def compute_trend(
    series: Iterable[TrendPoint],
    point_details: dict[str, PointDetail] | None = None,
) -> TrendSummary:
    """Build the full trend summary for a (date, value) series."""
    ordered = sort_series(series)
    dates = [point.date for point in ordered]
    values = [float(point.value) for point in ordered]
    slope, intercept = linear_trend(values)
    max_point, min_point = find_extrema(ordered)
    peaks, valleys = find_peaks_and_valleys(ordered)
    details = {date: point_details[date] for date in dates if point_details and date in point_details}
    return TrendSummary(
        dates=dates,
        values=values,
        trend_values=trend_line_values(len(values), slope, intercept),
        slope=slope,
        intercept=intercept,
        mean=mean_value(values),
        max_point=max_point,
        min_point=min_point,
        peaks=peaks,
        valleys=valleys,
        point_details=details,
    )


def _point_details(
    grouped: dict[str, list[Record]],
    series: list[TrendPoint],
    columns: ColumnMap,
    tier: PaymentTier | None = None,
) -> dict[str, PointDetail]:
    details: dict[str, PointDetail] = {}
    for point in series:
        rows = grouped.get(point.date, [])
        if tier is not None:
            rows = [row for row in rows if tier.matches(row.get(columns.tier))]
        details[point.date] = PointDetail(date=point.date, value=point.value, items=item_shares(rows, columns))
    return details


def buyers_trend(grouped: dict[str, list[Record]], columns: ColumnMap = ENGLISH_COLUMNS) -> BuyersTrend:
    """Role counts per date, overall and per tier (unknown tiers excluded)."""
    by_tier = {
        tier: [point.value for point in daily_sum(grouped, columns.role_count, tier=tier, columns=columns)]
        for tier in TIER_ORDER
    }
    dates = sorted(grouped)
    totals = [sum(by_tier[tier][index] for tier in TIER_ORDER) for index in range(len(dates))]
    return BuyersTrend(dates=dates, total_buyers=totals, buyers_by_tier=by_tier)


def analyze_consumption_trend(
    records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS
) -> ConsumptionTrend:
    """Overall and per-tier consumption trends plus the buyer-count series."""
    grouped = group_by_date(records, columns)

    total_series = daily_sum(grouped, columns.amount, columns=columns)
    total = compute_trend(total_series, _point_details(grouped, total_series, columns))

    by_tier: dict[PaymentTier, TrendSummary] = {}
    for tier in TIER_ORDER:
        tier_series = daily_sum(grouped, columns.amount, tier=tier, columns=columns)
        by_tier[tier] = compute_trend(tier_series, _point_details(grouped, tier_series, columns, tier=tier))

    return ConsumptionTrend(total=total, by_tier=by_tier, buyers=buyers_trend(grouped, columns))
