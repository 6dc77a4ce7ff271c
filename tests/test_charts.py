from charts import (
    TIER_COLORS,
    buyers_trend_chart,
    channel_chart,
    consumption_trend_chart,
    format_large_number,
    simplify_date_label,
    tier_trend_charts,
)
from channels import analyze_channels
from models import TIER_ORDER, BuyersTrend, PaymentTier, TrendPoint
from trends import compute_trend


def test_simplify_date_label() -> None:
    assert simplify_date_label("2025-04-17") == "4/17"
    assert simplify_date_label("Apr 17") == "Apr 17"


def test_format_large_number() -> None:
    assert format_large_number(12345) == "1.23万"
    assert format_large_number(950) == "950"


def test_consumption_trend_chart_marks_extrema_and_mean() -> None:
    trend = compute_trend(
        [
            TrendPoint(date="2025-04-17", value=1200.0),
            TrendPoint(date="2025-04-18", value=300.0),
        ]
    )

    chart = consumption_trend_chart("Daily", trend)

    assert chart["xAxis"]["data"] == ["4/17", "4/18"]
    line, fitted = chart["series"]
    assert line["data"] == [1200.0, 300.0]
    assert fitted["data"] == [1200.0, 300.0]
    assert line["markLine"]["data"][0]["yAxis"] == 750.0
    assert [point["xAxis"] for point in line["markPoint"]["data"]] == [0, 1]


def test_consumption_trend_chart_empty_series_has_no_markers() -> None:
    chart = consumption_trend_chart("Daily", compute_trend([]))
    assert chart["series"][0]["markPoint"]["data"] == []


def test_tier_charts_use_fixed_colors() -> None:
    empty = compute_trend([])
    charts = tier_trend_charts({tier: empty for tier in TIER_ORDER})
    assert list(charts) == list(TIER_ORDER)
    assert charts[PaymentTier.WHALE]["series"][0]["itemStyle"]["color"] == TIER_COLORS[PaymentTier.WHALE]


def test_buyers_chart_stacks_tiers_in_reverse_order() -> None:
    buyers = BuyersTrend(
        dates=["2025-04-17"],
        total_buyers=[3.0],
        buyers_by_tier={tier: [1.0] for tier in TIER_ORDER},
    )
    chart = buyers_trend_chart("Buyers", buyers)
    assert [s["name"] for s in chart["series"]] == [str(t) for t in reversed(TIER_ORDER)]
    assert all(s["stack"] == "total" for s in chart["series"])


def test_channel_chart_skips_unused_channel_slots() -> None:
    analysis = analyze_channels(
        [{"Payment Tier": "Whale", "Consumption Channel": "Mall Purchase", "Consumption Amount": 10, "Role Count": 1}]
    )
    chart = channel_chart("Channels", analysis)
    assert [series["name"] for series in chart["series"]] == ["Mall Purchase", "Other"]
    assert chart["legend"]["data"] == ["Mall Purchase", "Other"]
    assert chart["series"][0]["data"][0] == 10.0
    assert not any(series["name"].startswith("(unused") for series in chart["series"])
