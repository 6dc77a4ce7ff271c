from config import CHINESE_COLUMNS
from grouping import (
    canonicalize_date,
    daily_sum,
    group_by_date,
    group_by_payment_tier,
    records_frame,
    to_amount,
)
from models import PaymentTier


def _sample_records() -> list[dict]:
    return [
        {"Date": "18/4/2025", "Payment Tier": "Whale", "Consumption Amount": 300},
        {"Date": "2025/4/17", "Payment Tier": "FreeUser", "Consumption Amount": 200},
        {"Date": "2025-04-17", "Payment Tier": "Whale", "Consumption Amount": 1000},
        {"Date": "not a date", "Payment Tier": "Whale", "Consumption Amount": 50},
    ]


def test_canonicalize_date_accepts_three_layouts() -> None:
    assert canonicalize_date("17/4/2025") == "2025-04-17"
    assert canonicalize_date("2025/4/17") == "2025-04-17"
    assert canonicalize_date("2025-04-17") == "2025-04-17"


def test_canonicalize_date_ignores_trailing_time() -> None:
    assert canonicalize_date("2025/4/17 10:00") == "2025-04-17"
    assert canonicalize_date("2025-04-17T00:00:00") == "2025-04-17"
    assert canonicalize_date("17/4/2025 23:59:59") == "2025-04-17"
    assert canonicalize_date("2025-04-17T08:30:00.123+08:00") == "2025-04-17"
    assert canonicalize_date("2025-04-17 later") is None


def test_canonicalize_date_rejects_invalid_values() -> None:
    assert canonicalize_date("") is None
    assert canonicalize_date("20250417") is None
    assert canonicalize_date("2025-02-30") is None
    assert canonicalize_date(None) is None


def test_group_by_date_sorts_and_drops_undated() -> None:
    grouped = group_by_date(_sample_records())

    assert list(grouped) == ["2025-04-17", "2025-04-18"]
    assert len(grouped["2025-04-17"]) == 2


def test_group_by_payment_tier_keeps_literal_labels() -> None:
    grouped = group_by_payment_tier(_sample_records())
    assert list(grouped) == ["Whale", "FreeUser"]
    assert len(grouped["Whale"]) == 3


def test_daily_sum_has_one_point_per_date_including_zero_days() -> None:
    grouped = group_by_date(_sample_records())

    total = daily_sum(grouped, "Consumption Amount")
    free = daily_sum(grouped, "Consumption Amount", tier=PaymentTier.FREE_USER)

    assert [(p.date, p.value) for p in total] == [("2025-04-17", 1200.0), ("2025-04-18", 300.0)]
    assert [p.value for p in free] == [200.0, 0.0]


def test_to_amount_treats_text_as_zero() -> None:
    assert to_amount(12) == 12.0
    assert to_amount("") == 0.0
    assert to_amount("abc") == 0.0


def test_records_frame_maps_chinese_tier_labels() -> None:
    records = [{"日期": "2025-04-17", "付费区间": "土豪", "消耗途径": "商城购买", "物品名称": "", "天玉消耗额": 10}]

    frame = records_frame(records, CHINESE_COLUMNS)

    assert frame.loc[0, "Tier"] == PaymentTier.WHALE
    assert frame.loc[0, "Item"] == "Unknown Item"
    assert frame.loc[0, "Amount"] == 10.0
