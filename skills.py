"""Skill-progression spending and per-tier ARPU."""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from categorization import assign_spend_categories
from config import NARRATIVE_TOP_ITEMS, ColumnMap, ENGLISH_COLUMNS
from grouping import records_frame
from models import TIER_ORDER, ProductRank, Record, SkillEconomy, SkillTierEconomy


def tier_dau(tier_rows: pd.DataFrame) -> float:
    """Sum over dates of the largest DAU reported for the tier that day."""
    dated = tier_rows[tier_rows["Date"].notna()]
    if dated.empty:
        return 0.0
    return float(dated.groupby("Date")["DAU"].max().sum())


def analyze_skill_economy(
    records: Iterable[Record],
    columns: ColumnMap = ENGLISH_COLUMNS,
    top_n: int = NARRATIVE_TOP_ITEMS,
) -> SkillEconomy:
    """Skill spending per tier with its share of tier spend, DAU and ARPU."""
    frame = assign_spend_categories(records_frame(records, columns))

    tiers: list[SkillTierEconomy] = []
    for tier in TIER_ORDER:
        tier_rows = frame[frame["Tier"] == tier] if not frame.empty else frame
        total = float(tier_rows["Amount"].sum()) if not tier_rows.empty else 0.0
        skill = float(tier_rows.loc[tier_rows["IsSkill"].astype(bool), "Amount"].sum()) if not tier_rows.empty else 0.0
        dau = tier_dau(tier_rows) if not tier_rows.empty else 0.0
        tiers.append(
            SkillTierEconomy(
                tier=tier,
                skill_consumption=skill,
                total_consumption=total,
                skill_share=(skill / total) if total else 0.0,
                dau=dau,
                arpu=(total / dau) if dau > 0 else 0.0,
            )
        )

    top_items: list[ProductRank] = []
    if not frame.empty:
        skill_rows = frame[frame["IsSkill"].astype(bool) & (frame["Amount"] > 0)]
        if not skill_rows.empty:
            ranked = (
                skill_rows.groupby("Item", sort=False)["Amount"]
                .sum()
                .sort_values(ascending=False, kind="mergesort")
                .head(max(int(top_n), 0))
            )
            top_items = [ProductRank(name=str(name), value=float(value)) for name, value in ranked.items()]

    return SkillEconomy(
        tiers=tiers,
        top_items=top_items,
        total_skill_consumption=float(sum(t.skill_consumption for t in tiers)),
    )


def skill_frame(economy: SkillEconomy) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Tier": str(row.tier),
                "SkillConsumption": row.skill_consumption,
                "TotalConsumption": row.total_consumption,
                "SkillSharePct": row.skill_share * 100.0,
                "DAU": row.dau,
                "ARPU": row.arpu,
            }
            for row in economy.tiers
        ]
    )
