"""Declarative chart options (ECharts-style dicts) built from the aggregates."""

from __future__ import annotations

from typing import Any

from channels import displayed_channels
from models import (
    TIER_ORDER,
    BuyersTrend,
    ChannelAnalysis,
    PaymentTier,
    ProductConsumptionAnalysis,
    ProductRankingData,
    SkillEconomy,
    TrendSummary,
)

TIER_COLORS = {
    PaymentTier.WHALE: "#F43F5E",
    PaymentTier.BIG_SPENDER: "#F97316",
    PaymentTier.MID_SPENDER: "#FBBF24",
    PaymentTier.SMALL_SPENDER: "#10B981",
    PaymentTier.FREE_USER: "#3B82F6",
}

TEXT_STYLE = {"color": "#F1F5F9", "fontWeight": 500}


def simplify_date_label(date_str: str) -> str:
    """'2025-04-17' -> '4/17'; other text is returned unchanged."""
    parts = str(date_str).split("-")
    if len(parts) != 3:
        return str(date_str)
    try:
        return f"{int(parts[1])}/{int(parts[2])}"
    except ValueError:
        return str(date_str)


def format_large_number(num: float) -> str:
    if num >= 10000:
        return f"{num / 10000:.2f}万"
    return f"{num:,.0f}" if float(num).is_integer() else f"{num:,.2f}"


def consumption_trend_chart(title: str, trend: TrendSummary, color: str = "#3B82F6") -> dict[str, Any]:
    """Line chart of daily values with trend line, mean line and max/min markers."""
    mark_points = []
    if trend.dates:
        mark_points = [
            {
                "name": f"max: {format_large_number(trend.max_point.value)}",
                "value": trend.max_point.value,
                "xAxis": trend.dates.index(trend.max_point.date),
                "yAxis": trend.max_point.value,
                "itemStyle": {"color": "#F43F5E"},
            },
            {
                "name": f"min: {format_large_number(trend.min_point.value)}",
                "value": trend.min_point.value,
                "xAxis": trend.dates.index(trend.min_point.date),
                "yAxis": trend.min_point.value,
                "itemStyle": {"color": "#10B981"},
            },
        ]
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis"},
        "legend": {"data": ["Consumption", "Trend"], "textStyle": TEXT_STYLE},
        "xAxis": {"type": "category", "data": [simplify_date_label(d) for d in trend.dates], "boundaryGap": False},
        "yAxis": {"type": "value", "name": "Jade"},
        "series": [
            {
                "name": "Consumption",
                "type": "line",
                "data": list(trend.values),
                "smooth": True,
                "itemStyle": {"color": color},
                "markLine": {
                    "data": [{"yAxis": trend.mean, "name": f"mean: {format_large_number(trend.mean)}"}]
                },
                "markPoint": {"data": mark_points},
            },
            {
                "name": "Trend",
                "type": "line",
                "data": list(trend.trend_values),
                "symbol": "none",
                "lineStyle": {"type": "dashed", "color": "#A855F7"},
            },
        ],
    }


def tier_trend_charts(by_tier: dict[PaymentTier, TrendSummary]) -> dict[PaymentTier, dict[str, Any]]:
    return {
        tier: consumption_trend_chart(f"{tier} consumption trend", by_tier[tier], TIER_COLORS[tier])
        for tier in TIER_ORDER
        if tier in by_tier
    }


def buyers_trend_chart(title: str, buyers: BuyersTrend) -> dict[str, Any]:
    """Stacked bars of role counts per tier; free users at the bottom of the stack."""
    series = [
        {
            "name": str(tier),
            "type": "bar",
            "stack": "total",
            "data": list(buyers.buyers_by_tier.get(tier, [])),
            "itemStyle": {"color": TIER_COLORS[tier]},
        }
        for tier in reversed(TIER_ORDER)
    ]
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis", "axisPointer": {"type": "shadow"}},
        "legend": {"data": [str(t) for t in TIER_ORDER], "textStyle": TEXT_STYLE},
        "xAxis": {"type": "category", "data": [simplify_date_label(d) for d in buyers.dates]},
        "yAxis": {"type": "value", "name": "Buyers"},
        "series": series,
    }


def channel_chart(title: str, analysis: ChannelAnalysis, field: str = "channel_data") -> dict[str, Any]:
    """Grouped bars: one series per charted channel, one category per tier."""
    tiers = [str(item.user_group) for item in analysis.consumption_data]
    channels = displayed_channels(analysis.main_channels)
    series = [
        {
            "name": channel,
            "type": "bar",
            "data": [getattr(item, field).get(channel, 0.0) for item in analysis.consumption_data],
        }
        for channel in channels
    ]
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis", "axisPointer": {"type": "shadow"}},
        "legend": {"data": channels, "textStyle": TEXT_STYLE},
        "xAxis": {"type": "category", "data": tiers},
        "yAxis": {"type": "value"},
        "series": series,
    }


def category_pie_chart(title: str, analysis: ProductConsumptionAnalysis) -> dict[str, Any]:
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "item"},
        "series": [
            {
                "name": "Spend category",
                "type": "pie",
                "radius": ["40%", "70%"],
                "data": [
                    {"name": "Cosmetic", "value": analysis.total.appearance},
                    {"name": "Power", "value": analysis.total.value},
                ],
            }
        ],
    }


def category_daily_chart(title: str, analysis: ProductConsumptionAnalysis) -> dict[str, Any]:
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis"},
        "legend": {"data": ["Cosmetic", "Power"], "textStyle": TEXT_STYLE},
        "xAxis": {"type": "category", "data": [simplify_date_label(d) for d in analysis.dates]},
        "yAxis": {"type": "value"},
        "series": [
            {"name": "Cosmetic", "type": "bar", "stack": "total", "data": [d.appearance for d in analysis.daily_data]},
            {"name": "Power", "type": "bar", "stack": "total", "data": [d.value for d in analysis.daily_data]},
        ],
    }


def ranking_chart(title: str, ranking: ProductRankingData) -> dict[str, Any]:
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis", "axisPointer": {"type": "shadow"}},
        "xAxis": {"type": "value"},
        "yAxis": {"type": "category", "data": [p.name for p in reversed(ranking.products)]},
        "series": [{"name": "Consumption", "type": "bar", "data": [p.value for p in reversed(ranking.products)]}],
    }


def skill_arpu_chart(title: str, economy: SkillEconomy) -> dict[str, Any]:
    return {
        "title": {"text": title, "textStyle": TEXT_STYLE},
        "tooltip": {"trigger": "axis"},
        "legend": {"data": ["Skill consumption", "ARPU"], "textStyle": TEXT_STYLE},
        "xAxis": {"type": "category", "data": [str(row.tier) for row in economy.tiers]},
        "yAxis": [{"type": "value", "name": "Jade"}, {"type": "value", "name": "ARPU"}],
        "series": [
            {"name": "Skill consumption", "type": "bar", "data": [row.skill_consumption for row in economy.tiers]},
            {"name": "ARPU", "type": "line", "yAxisIndex": 1, "data": [row.arpu for row in economy.tiers]},
        ],
    }
