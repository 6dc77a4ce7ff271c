"""Report assembly: runs the aggregators and merges them into one report object."""

from __future__ import annotations

import html
import logging
import threading
from typing import Any, Callable, Iterable, Tuple

from channels import analyze_channels, real_channels
from charts import (
    buyers_trend_chart,
    category_daily_chart,
    category_pie_chart,
    channel_chart,
    consumption_trend_chart,
    ranking_chart,
    skill_arpu_chart,
    tier_trend_charts,
)
from config import NARRATIVE_TOP_ITEMS, ColumnMap, NarrativeConfig, resolve_columns
from models import (
    TIER_ORDER,
    AnalysisReport,
    ChannelAnalysis,
    ConsumptionTrend,
    ItemTierBreakdown,
    NarrativeStats,
    ProductConsumptionAnalysis,
    ProductRankingData,
    Record,
    ReportSection,
    SkillEconomy,
    SummarySection,
)
from narrative import PROCESSING_ERROR_MESSAGE, build_offline_narrative, generate_narrative
from parsing import ParseError, parse_csv_chunked
from products import analyze_product_consumption, item_tier_breakdown, rank_products
from session import AnalysisSession
from skills import analyze_skill_economy
from trends import analyze_consumption_trend

logger = logging.getLogger(__name__)

REPORT_TITLE = "Jade Consumption Analysis Report"
SUMMARY_TITLE = "Summary & Recommendations"
PARSE_PROGRESS_SHARE = 60


class PipelineError(RuntimeError):
    """Analysis failed after parsing; the report returned is degenerate."""


class ProgressReporter:
    """Clamp, de-duplicate and keep progress values non-decreasing."""

    def __init__(self, callback: Callable[[int], None] | None) -> None:
        self._callback = callback
        self.last = -1

    def __call__(self, percent: float) -> None:
        value = max(0, min(100, int(percent)))
        if value <= self.last:
            return
        self.last = value
        if self._callback is not None:
            self._callback(value)

    def finish(self) -> None:
        self(100)


def trend_direction(first: float, last: float) -> str:
    if last > first:
        return "increasing"
    if last < first:
        return "decreasing"
    return "stable"


def growth_rate(first: float, last: float) -> float:
    """Percent change from first to last value; 0 when the first value is 0."""
    return ((last - first) / first * 100.0) if first else 0.0


def derive_stats(
    trend: ConsumptionTrend,
    ranking: ProductRankingData,
    categories: ProductConsumptionAnalysis,
    top_k: int = NARRATIVE_TOP_ITEMS,
) -> NarrativeStats:
    """Narrative scalars derived only from already computed aggregates."""
    values = trend.total.values
    first = values[0] if values else 0.0
    last = values[-1] if values else 0.0

    top_tier = None
    top_tier_mean = 0.0
    for tier in TIER_ORDER:
        summary = trend.by_tier.get(tier)
        if summary is not None and summary.mean > top_tier_mean:
            top_tier, top_tier_mean = tier, summary.mean

    top_items = list(ranking.products[: max(int(top_k), 0)])
    top_sum = sum(item.value for item in top_items)
    return NarrativeStats(
        direction=trend_direction(first, last),
        growth_rate=growth_rate(first, last),
        first_value=first,
        last_value=last,
        top_tier=top_tier,
        top_tier_mean=top_tier_mean,
        top_items=top_items,
        top_items_share=(top_sum / ranking.total_consumption) if ranking.total_consumption else 0.0,
        cosmetic_share=categories.proportion.appearance,
        days=len(trend.total.dates),
    )


def _html(text: str) -> str:
    return f"<p>{html.escape(text)}</p>"


def _trend_sections(trend: ConsumptionTrend, stats: NarrativeStats) -> list[ReportSection]:
    total = trend.total
    total_text = (
        f"Over {stats.days} day(s) consumption is {stats.direction} ({stats.growth_rate:+.1f}%), "
        f"averaging {total.mean:,.0f} jade per day; peak {total.max_point.value:,.0f} on "
        f"{total.max_point.date or '-'}, low {total.min_point.value:,.0f} on {total.min_point.date or '-'}."
    )
    sections = [
        ReportSection(
            id="trend-total",
            title="Overall jade consumption",
            data={
                "chart": consumption_trend_chart("Daily jade consumption", total),
                "raw": total,
                "summary_html": _html(total_text),
            },
        )
    ]
    tier_charts = tier_trend_charts(trend.by_tier)
    for tier in TIER_ORDER:
        summary = trend.by_tier[tier]
        sections.append(
            ReportSection(
                id=f"trend-{tier.value}",
                title=f"{tier} consumption",
                data={
                    "chart": tier_charts[tier],
                    "raw": summary,
                    "summary_html": _html(
                        f"{tier} averages {summary.mean:,.0f} jade per day (slope {summary.slope:+,.1f}/day)."
                    ),
                },
            )
        )
    sections.append(
        ReportSection(
            id="trend-buyers",
            title="Daily buyers by tier",
            data={
                "chart": buyers_trend_chart("Daily buyers by tier", trend.buyers),
                "raw": trend.buyers,
                "summary_html": _html(f"{sum(trend.buyers.total_buyers):,.0f} purchases by known tiers in total."),
            },
        )
    )
    return sections


def _user_sections(channels: ChannelAnalysis) -> list[ReportSection]:
    leader = max(channels.consumption_data, key=lambda item: item.avg_consumption, default=None)
    leader_text = (
        f"{leader.user_group} has the highest consumption per buyer ({leader.avg_consumption:,} jade)."
        if leader is not None and leader.avg_consumption > 0
        else "No tier has recorded buyers."
    )
    return [
        ReportSection(
            id="users-channel-consumption",
            title="Consumption by tier and channel",
            data={
                "chart": channel_chart("Consumption by tier and channel", channels, "channel_data"),
                "raw": channels,
                "summary_html": _html(
                    f"Main channels: {', '.join(real_channels(channels.main_channels)) or '-'}. {leader_text}"
                ),
            },
        ),
        ReportSection(
            id="users-channel-purchase",
            title="Buyers by tier and channel",
            data={
                "chart": channel_chart("Buyers by tier and channel", channels, "channel_purchase"),
                "raw": channels.purchase_data,
                "summary_html": _html(
                    f"{sum(item.total_purchase for item in channels.purchase_data):,.0f} buyers across all tiers."
                ),
            },
        ),
    ]


def _product_sections(
    ranking: ProductRankingData,
    categories: ProductConsumptionAnalysis,
    breakdown: list[ItemTierBreakdown],
    stats: NarrativeStats,
) -> list[ReportSection]:
    top_name = ranking.products[0].name if ranking.products else "-"
    return [
        ReportSection(
            id="products-ranking",
            title="Top items by consumption",
            data={
                "chart": ranking_chart("Top items by consumption", ranking),
                "raw": ranking,
                "summary_html": _html(
                    f"{top_name} leads the ranking; the top {len(stats.top_items)} items hold "
                    f"{stats.top_items_share * 100.0:.1f}% of ranked consumption."
                ),
            },
        ),
        ReportSection(
            id="products-category",
            title="Cosmetic vs power spending",
            data={
                "chart": category_pie_chart("Cosmetic vs power spending", categories),
                "daily_chart": category_daily_chart("Daily cosmetic vs power spending", categories),
                "raw": categories,
                "summary_html": _html(
                    f"Cosmetic {categories.proportion.appearance * 100.0:.1f}%, "
                    f"power {categories.proportion.value * 100.0:.1f}% of positive consumption."
                ),
            },
        ),
        ReportSection(
            id="products-tiers",
            title="Item consumption by tier",
            data={
                "chart": None,
                "raw": breakdown,
                "summary_html": _html(f"{len(breakdown)} distinct items analysed."),
            },
        ),
    ]


def _skill_sections(economy: SkillEconomy) -> list[ReportSection]:
    best = max(economy.tiers, key=lambda row: row.arpu, default=None)
    text = f"{economy.total_skill_consumption:,.0f} jade spent on skill progression."
    if best is not None and best.arpu > 0:
        text += f" {best.tier} has the highest ARPU ({best.arpu:,.1f})."
    return [
        ReportSection(
            id="skills-economy",
            title="Skill progression economics",
            data={
                "chart": skill_arpu_chart("Skill spending and ARPU by tier", economy),
                "raw": economy,
                "summary_html": _html(text),
            },
        )
    ]


def degenerate_report(message: str = PROCESSING_ERROR_MESSAGE, title: str = REPORT_TITLE) -> AnalysisReport:
    """Structurally valid report with empty sections and a placeholder summary."""
    return AnalysisReport(
        title=title,
        trends=[],
        users=[],
        products=[],
        skills=[],
        summary=SummarySection(id="summary", title=SUMMARY_TITLE, content=message),
        stats=None,
        ok=False,
        error=message,
    )


def assemble_report(
    records: Iterable[Record],
    columns: ColumnMap | None = None,
    title: str = REPORT_TITLE,
    narrative: str | None = None,
    progress: Callable[[float], None] | None = None,
) -> AnalysisReport:
    """Run every aggregator and merge the results; never raises."""

    def step(percent: float) -> None:
        if progress is not None:
            progress(percent)

    try:
        rows = list(records)
        if columns is None:
            columns = resolve_columns(rows[0].keys() if rows else [])

        trend = analyze_consumption_trend(rows, columns)
        step(70)
        channels = analyze_channels(rows, columns)
        step(78)
        ranking = rank_products(rows, columns)
        categories = analyze_product_consumption(rows, columns)
        breakdown = item_tier_breakdown(rows, columns)
        step(86)
        economy = analyze_skill_economy(rows, columns)
        step(92)

        stats = derive_stats(trend, ranking, categories)
        report = AnalysisReport(
            title=title,
            trends=_trend_sections(trend, stats),
            users=_user_sections(channels),
            products=_product_sections(ranking, categories, breakdown, stats),
            skills=_skill_sections(economy),
            summary=SummarySection(
                id="summary",
                title=SUMMARY_TITLE,
                content=narrative or build_offline_narrative(stats),
            ),
            stats=stats,
        )
        step(96)
        return report
    except Exception:
        logger.exception("[Report] analysis failed, returning degenerate report")
        return degenerate_report(title=title)


def run_analysis(
    text: str,
    session: AnalysisSession,
    on_progress: Callable[[int], None] | None = None,
    columns: ColumnMap | None = None,
    title: str = REPORT_TITLE,
) -> AnalysisReport:
    """
    Parse and analyse one export inside ``session``.

    Parse failures are re-raised after the session is cleared. Any later
    failure yields a degenerate report. Progress always ends at 100.
    """
    reporter = ProgressReporter(on_progress)
    reporter(0)
    try:
        records = parse_csv_chunked(
            text,
            on_progress=lambda percent: reporter(percent * PARSE_PROGRESS_SHARE / 100),
        )
    except ParseError as exc:
        logger.warning(f"[Report] input rejected: {exc}")
        session.fail(exc)
        reporter.finish()
        raise

    session.set_records(records)
    report = assemble_report(records, columns=columns, title=title, progress=reporter)
    if report.ok:
        session.publish(report)
    else:
        session.fail(PipelineError(report.error))
    reporter.finish()
    return report


def narrative_aggregates(report: AnalysisReport) -> dict[str, Any]:
    """Compact aggregate view of a report for the narrative request."""
    aggregates: dict[str, Any] = {"title": report.title}
    for section in report.trends:
        raw = section.data.get("raw")
        if hasattr(raw, "mean"):
            aggregates[section.id] = {
                "dates": raw.dates,
                "values": raw.values,
                "mean": raw.mean,
                "slope": raw.slope,
                "max": raw.max_point,
                "min": raw.min_point,
            }
    for section in report.users + report.products + report.skills:
        if section.id in ("users-channel-consumption", "products-ranking", "products-category", "skills-economy"):
            aggregates[section.id] = section.data.get("raw")
    return aggregates


def generate_report_narrative(
    session: AnalysisSession,
    config: NarrativeConfig | None = None,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
    on_token: Callable[[str], None] | None = None,
) -> Tuple[str, str]:
    """Wait for the session's report, then generate its narrative."""
    try:
        report = session.wait_report(timeout=timeout)
    except Exception as exc:
        logger.warning(f"[Report] no report available for narrative: {exc}")
        return "offline", PROCESSING_ERROR_MESSAGE
    return generate_narrative(
        report.stats,
        narrative_aggregates(report),
        config=config,
        cancel_event=cancel_event,
        on_token=on_token,
    )
