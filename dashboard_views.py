"""Modular Streamlit page renderers."""

from __future__ import annotations

import json

import pandas as pd
import streamlit as st

from channels import channel_matrix
from charts import format_large_number
from metric_guide import METRIC_GUIDE
from models import (
    TIER_ORDER,
    AnalysisReport,
    BuyersTrend,
    ItemTierBreakdown,
    PointDetail,
    ReportSection,
    TrendSummary,
    to_plain,
)
from products import ranking_frame
from skills import skill_frame


def trend_frame(summary: TrendSummary) -> pd.DataFrame:
    """Daily values, trend line and mean indexed by date."""
    return pd.DataFrame(
        {
            "Consumption": summary.values,
            "Trend": summary.trend_values,
            "Mean": [summary.mean] * len(summary.values),
        },
        index=pd.Index(summary.dates, name="Date"),
    )


def buyers_frame(buyers: BuyersTrend) -> pd.DataFrame:
    data = {str(tier): buyers.buyers_by_tier.get(tier, []) for tier in TIER_ORDER}
    return pd.DataFrame(data, index=pd.Index(buyers.dates, name="Date"))


def point_detail_frame(detail: PointDetail) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Item": item.name, "Consumption": item.value, "SharePct": item.percentage * 100.0} for item in detail.items]
    )


def item_tier_frame(breakdown: list[ItemTierBreakdown]) -> pd.DataFrame:
    rows = []
    for item in breakdown:
        row = {"Item": item.name, "Total": item.total}
        for share in item.tiers:
            row[f"{share.tier} %"] = round(share.percentage, 1)
        rows.append(row)
    return pd.DataFrame(rows)


def _section(sections: list[ReportSection], section_id: str) -> ReportSection | None:
    for section in sections:
        if section.id == section_id:
            return section
    return None


def _render_summary_html(section: ReportSection) -> None:
    st.markdown(section.data.get("summary_html", ""), unsafe_allow_html=True)


def _render_trend_point_drilldown(section: ReportSection, key: str) -> None:
    summary: TrendSummary = section.data["raw"]
    if not summary.point_details:
        return
    selected = st.selectbox("Item details for date", summary.dates, index=len(summary.dates) - 1, key=key)
    detail = summary.point_details.get(selected)
    if detail is None or not detail.items:
        st.info("No item consumption recorded on this date.")
        return
    st.caption(f"{selected}: {format_large_number(detail.value)} jade")
    st.dataframe(point_detail_frame(detail), use_container_width=True, hide_index=True)


def render_kpis(report: AnalysisReport) -> None:
    stats = report.stats
    if stats is None:
        return
    cols = st.columns(4)
    cols[0].metric("Days", f"{stats.days:,}")
    cols[1].metric("Last day", format_large_number(stats.last_value), f"{stats.growth_rate:+.1f}%")
    cols[2].metric("Top tier", str(stats.top_tier or "-"))
    cols[3].metric("Cosmetic share", f"{stats.cosmetic_share * 100.0:.1f}%")


def render_trends(report: AnalysisReport) -> None:
    st.header("Trends")
    render_kpis(report)
    total = _section(report.trends, "trend-total")
    if total is None:
        st.info("No trend data available.")
        return

    st.markdown("### Daily jade consumption")
    st.line_chart(trend_frame(total.data["raw"]))
    _render_summary_html(total)
    _render_trend_point_drilldown(total, key="drill_total")

    st.markdown("### Consumption by payment tier")
    cols = st.columns(2)
    for index, tier in enumerate(TIER_ORDER):
        section = _section(report.trends, f"trend-{tier.value}")
        if section is None:
            continue
        with cols[index % 2]:
            st.markdown(f"#### {section.title}")
            st.line_chart(trend_frame(section.data["raw"]))
            _render_summary_html(section)

    buyers = _section(report.trends, "trend-buyers")
    if buyers is not None:
        st.markdown("### Daily buyers by tier")
        st.bar_chart(buyers_frame(buyers.data["raw"]))
        _render_summary_html(buyers)


def render_users(report: AnalysisReport) -> None:
    st.header("Users")
    st.caption("Payment tiers x main consumption channels.")
    consumption = _section(report.users, "users-channel-consumption")
    if consumption is None:
        st.info("No tier data available.")
        return
    analysis = consumption.data["raw"]

    left, right = st.columns(2)
    with left:
        st.markdown("### Consumption by channel")
        st.bar_chart(channel_matrix(analysis, "channel_data"))
    with right:
        st.markdown("### Buyers by channel")
        st.bar_chart(channel_matrix(analysis, "channel_purchase"))

    table = pd.DataFrame(
        [
            {
                "Tier": str(item.user_group),
                "Consumption": item.total_consumption,
                "Buyers": item.user_count,
                "PerBuyer": item.avg_consumption,
            }
            for item in analysis.consumption_data
        ]
    )
    st.dataframe(table, use_container_width=True, hide_index=True)
    _render_summary_html(consumption)


def render_products(report: AnalysisReport) -> None:
    st.header("Products")
    ranking = _section(report.products, "products-ranking")
    category = _section(report.products, "products-category")
    tiers = _section(report.products, "products-tiers")
    if ranking is None or category is None:
        st.info("No product data available.")
        return

    st.markdown("### Top items")
    table = ranking_frame(ranking.data["raw"])
    if not table.empty:
        st.bar_chart(table.set_index("Item")[["Consumption"]])
    _render_summary_html(ranking)

    split = category.data["raw"]
    st.markdown("### Cosmetic vs power spending")
    if split.daily_data:
        daily = pd.DataFrame(
            {
                "Cosmetic": [day.appearance for day in split.daily_data],
                "Power": [day.value for day in split.daily_data],
            },
            index=pd.Index(split.dates, name="Date"),
        )
        st.area_chart(daily)
    _render_summary_html(category)

    if tiers is not None and tiers.data["raw"]:
        st.markdown("### Item consumption by tier")
        st.dataframe(item_tier_frame(tiers.data["raw"]), use_container_width=True, hide_index=True)


def render_skills(report: AnalysisReport) -> None:
    st.header("Skill Progression")
    section = _section(report.skills, "skills-economy")
    if section is None:
        st.info("No skill data available.")
        return
    economy = section.data["raw"]
    table = skill_frame(economy)
    left, right = st.columns(2)
    with left:
        st.markdown("### Skill consumption by tier")
        st.bar_chart(table.set_index("Tier")[["SkillConsumption"]])
    with right:
        st.markdown("### ARPU by tier")
        st.bar_chart(table.set_index("Tier")[["ARPU"]])
    st.dataframe(table, use_container_width=True, hide_index=True)
    if economy.top_items:
        st.markdown("### Top skill items")
        st.dataframe(
            pd.DataFrame([{"Item": item.name, "Consumption": item.value} for item in economy.top_items]),
            use_container_width=True,
            hide_index=True,
        )
    _render_summary_html(section)


def render_summary(report: AnalysisReport, narrative: str, mode: str) -> None:
    st.header(report.summary.title)
    if mode == "offline":
        st.caption("Offline summary (no narrative endpoint configured or request failed).")
    st.markdown(narrative or report.summary.content)
    st.download_button(
        "Download report (.json)",
        data=json.dumps(to_plain(report), ensure_ascii=False, indent=2).encode("utf-8"),
        file_name="jadescope_report.json",
        mime="application/json",
    )


def render_metric_guide() -> None:
    st.header("Metric Guide")
    st.caption("Definitions and formulas behind each metric.")
    st.dataframe(pd.DataFrame(METRIC_GUIDE), use_container_width=True, height=520)
