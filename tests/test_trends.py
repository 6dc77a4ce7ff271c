import pytest

from models import PaymentTier, TrendPoint
from trends import (
    analyze_consumption_trend,
    compute_trend,
    find_extrema,
    find_peaks_and_valleys,
    linear_trend,
    mean_value,
)


def _series(values: list[float]) -> list[TrendPoint]:
    return [TrendPoint(date=f"2025-04-{index + 1:02d}", value=value) for index, value in enumerate(values)]


def test_linear_trend_fits_exact_line() -> None:
    slope, intercept = linear_trend([1, 2, 3, 4])
    assert slope == pytest.approx(1.0)
    assert intercept == pytest.approx(1.0)


def test_linear_trend_single_point_is_flat() -> None:
    assert linear_trend([5]) == (0.0, 0.0)
    assert linear_trend([]) == (0.0, 0.0)


def test_mean_and_extrema() -> None:
    series = _series([10, 50, 5, 30])

    max_point, min_point = find_extrema(series)

    assert mean_value([10, 50, 5, 30]) == pytest.approx(23.75)
    assert max_point.value == 50
    assert min_point.value == 5
    assert max_point.date == "2025-04-02"


def test_extrema_first_occurrence_wins() -> None:
    max_point, _ = find_extrema(_series([7, 9, 9]))
    assert max_point.date == "2025-04-02"


def test_peaks_and_valleys_detect_significant_local_extrema() -> None:
    peaks, valleys = find_peaks_and_valleys(_series([10, 50, 5, 30]))
    assert [p.value for p in peaks] == [50]
    assert [v.value for v in valleys] == [5]


def test_monotonic_series_falls_back_to_global_extrema() -> None:
    peaks, valleys = find_peaks_and_valleys(_series([1, 2, 3, 4]))
    assert [p.value for p in peaks] == [4]
    assert [v.value for v in valleys] == [1]


def test_short_series_uses_extrema_only() -> None:
    peaks, valleys = find_peaks_and_valleys(_series([3, 8]))
    assert [p.value for p in peaks] == [8]
    assert [v.value for v in valleys] == [3]
    assert find_peaks_and_valleys([]) == ([], [])


def test_compute_trend_sorts_by_date_and_builds_trend_line() -> None:
    series = list(reversed(_series([1, 2, 3])))

    summary = compute_trend(series)

    assert summary.dates == ["2025-04-01", "2025-04-02", "2025-04-03"]
    assert summary.trend_values == pytest.approx([1.0, 2.0, 3.0])
    assert summary.mean == pytest.approx(2.0)


def test_compute_trend_empty_series() -> None:
    summary = compute_trend([])
    assert summary.values == []
    assert summary.max_point == TrendPoint(date="", value=0.0)
    assert summary.mean == 0.0


def test_analyze_consumption_trend_per_tier_and_details() -> None:
    records = [
        {"Date": "2025-04-17", "Payment Tier": "Whale", "Item Name": "Skin A", "Consumption Amount": 1000, "Role Count": 1},
        {"Date": "2025-04-17", "Payment Tier": "FreeUser", "Item Name": "Potion", "Consumption Amount": 200, "Role Count": 2},
        {"Date": "2025-04-18", "Payment Tier": "Whale", "Item Name": "Potion", "Consumption Amount": 300, "Role Count": 1},
    ]

    trend = analyze_consumption_trend(records)

    assert trend.total.values == [1200.0, 300.0]
    assert trend.by_tier[PaymentTier.FREE_USER].values == [200.0, 0.0]
    assert trend.by_tier[PaymentTier.BIG_SPENDER].values == [0.0, 0.0]
    day_one = trend.total.point_details["2025-04-17"]
    assert [item.name for item in day_one.items] == ["Skin A", "Potion"]
    assert day_one.items[0].percentage == pytest.approx(1000 / 1200)
    whale_day_one = trend.by_tier[PaymentTier.WHALE].point_details["2025-04-17"]
    assert [item.name for item in whale_day_one.items] == ["Skin A"]
    assert trend.buyers.total_buyers == [3.0, 1.0]
    assert trend.buyers.buyers_by_tier[PaymentTier.WHALE] == [1.0, 1.0]
