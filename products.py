"""Item rankings, cosmetic/power split and item-by-tier breakdowns."""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from categorization import assign_spend_categories
from config import DEFAULT_RANKING_TOP_N, ColumnMap, ENGLISH_COLUMNS
from grouping import item_name, records_frame, to_amount
from models import (
    TIER_ORDER,
    CategoryDay,
    CategoryProportion,
    CategoryTotals,
    ItemShare,
    ItemTierBreakdown,
    ProductConsumptionAnalysis,
    ProductRank,
    ProductRankingData,
    Record,
    SpendCategory,
    TierShare,
)


def item_shares(records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS) -> list[ItemShare]:
    """Items ranked by summed amount with their fraction of the group total."""
    totals: dict[str, float] = {}
    for record in records:
        name = item_name(record, columns)
        totals[name] = totals.get(name, 0.0) + to_amount(record.get(columns.amount))
    grand_total = sum(totals.values())
    shares = [
        ItemShare(name=name, value=value, percentage=(value / grand_total) if grand_total > 0 else 0.0)
        for name, value in totals.items()
    ]
    return sorted(shares, key=lambda share: share.value, reverse=True)


def _ranked_items(frame: pd.DataFrame) -> pd.Series:
    if frame.empty:
        return pd.Series(dtype=float)
    summed = frame.groupby("Item", sort=False)["Amount"].sum()
    summed = summed[summed > 0]
    return summed.sort_values(ascending=False, kind="mergesort")


def rank_products(
    records: Iterable[Record],
    columns: ColumnMap = ENGLISH_COLUMNS,
    top_n: int = DEFAULT_RANKING_TOP_N,
) -> ProductRankingData:
    """Top items by consumption; ties keep first-seen order. Total covers the slice only."""
    top = _ranked_items(records_frame(records, columns)).head(max(int(top_n), 0))
    products = [ProductRank(name=str(name), value=float(value)) for name, value in top.items()]
    return ProductRankingData(products=products, total_consumption=float(sum(p.value for p in products)))


def analyze_product_consumption(
    records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS
) -> ProductConsumptionAnalysis:
    """Daily and overall cosmetic (appearance) vs power (value) spending."""
    frame = records_frame(records, columns)
    if not frame.empty:
        frame = frame[(frame["Amount"] > 0) & frame["Date"].notna()]
    if frame.empty:
        return ProductConsumptionAnalysis(
            dates=[],
            daily_data=[],
            total=CategoryTotals(appearance=0.0, value=0.0, total=0.0),
            proportion=CategoryProportion(appearance=0.0, value=0.0),
        )

    work = assign_spend_categories(frame)
    daily = (
        work.pivot_table(
            index="Date",
            columns="SpendCategory",
            values="Amount",
            aggfunc="sum",
            fill_value=0.0,
        )
        .reindex(columns=[SpendCategory.COSMETIC.value, SpendCategory.POWER.value], fill_value=0.0)
        .sort_index()
    )

    days: list[CategoryDay] = []
    for date, row in daily.iterrows():
        appearance = float(row[SpendCategory.COSMETIC.value])
        value = float(row[SpendCategory.POWER.value])
        total = appearance + value
        if total == 0:
            continue
        days.append(CategoryDay(date=str(date), appearance=appearance, value=value, total=total))

    appearance_total = float(sum(day.appearance for day in days))
    value_total = float(sum(day.value for day in days))
    grand_total = appearance_total + value_total
    return ProductConsumptionAnalysis(
        dates=[day.date for day in days],
        daily_data=days,
        total=CategoryTotals(appearance=appearance_total, value=value_total, total=grand_total),
        proportion=CategoryProportion(
            appearance=(appearance_total / grand_total) if grand_total else 0.0,
            value=(value_total / grand_total) if grand_total else 0.0,
        ),
    )


def item_tier_breakdown(
    records: Iterable[Record], columns: ColumnMap = ENGLISH_COLUMNS
) -> list[ItemTierBreakdown]:
    """Per item: total consumption and each tier's contribution (zero tiers omitted)."""
    frame = records_frame(records, columns)
    if frame.empty:
        return []

    totals = frame.groupby("Item", sort=False)["Amount"].sum().sort_values(ascending=False, kind="mergesort")
    known = frame[frame["Tier"].notna()]
    by_tier = known.groupby(["Item", "Tier"], sort=False)["Amount"].sum() if not known.empty else pd.Series(dtype=float)

    out: list[ItemTierBreakdown] = []
    for name, total in totals.items():
        total = float(total)
        shares: list[TierShare] = []
        for tier in TIER_ORDER:
            value = float(by_tier.get((name, tier), 0.0))
            if value == 0:
                continue
            shares.append(TierShare(tier=tier, value=value, percentage=(value / total * 100.0) if total else 0.0))
        shares.sort(key=lambda share: share.value, reverse=True)
        out.append(ItemTierBreakdown(name=str(name), total=total, tiers=shares))
    return out


def ranking_frame(ranking: ProductRankingData) -> pd.DataFrame:
    """Ranking as a table for dashboard charts."""
    if not ranking.products:
        return pd.DataFrame(columns=["Item", "Consumption", "SharePct"])
    out = pd.DataFrame([{"Item": p.name, "Consumption": p.value} for p in ranking.products])
    total = ranking.total_consumption
    out["SharePct"] = out["Consumption"].apply(lambda x: (x / total * 100.0) if total else 0.0)
    return out
