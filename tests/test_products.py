import pytest

from categorization import classify_spend, is_skill_spend
from models import PaymentTier, SpendCategory
from products import analyze_product_consumption, item_shares, item_tier_breakdown, rank_products, ranking_frame


def _sample_records() -> list[dict]:
    return [
        {"Date": "2025-04-17", "Payment Tier": "Whale", "Consumption Channel": "Unlock Appearance", "Item Name": "Skin A", "Consumption Amount": 1000, "Role Count": 1},
        {"Date": "2025-04-17", "Payment Tier": "FreeUser", "Consumption Channel": "Mall Purchase", "Item Name": "Potion", "Consumption Amount": 200, "Role Count": 2},
        {"Date": "2025-04-18", "Payment Tier": "Whale", "Consumption Channel": "Mall Purchase", "Item Name": "Potion", "Consumption Amount": 300, "Role Count": 1},
    ]


def test_classify_spend_rules() -> None:
    assert classify_spend("Unlock Appearance", "anything") == SpendCategory.COSMETIC
    assert classify_spend("Monthly Costume Lottery", "") == SpendCategory.COSMETIC
    assert classify_spend("Passive Currency Exchange", "Dream-Weaving Voucher") == SpendCategory.COSMETIC
    assert classify_spend("Passive Currency Exchange", "Gold") == SpendCategory.POWER
    assert classify_spend("被动货币兑换", "织梦券") == SpendCategory.COSMETIC
    assert classify_spend("Mall Purchase", "Potion") == SpendCategory.POWER


def test_is_skill_spend_matches_keywords() -> None:
    assert is_skill_spend("Skill Upgrade", "Book")
    assert is_skill_spend("商城购买", "觉醒石")
    assert not is_skill_spend("Mall Purchase", "Potion")


def test_rank_products_orders_by_consumption() -> None:
    ranking = rank_products(_sample_records())

    assert [(p.name, p.value) for p in ranking.products] == [("Skin A", 1000.0), ("Potion", 500.0)]
    assert ranking.total_consumption == 1500.0


def test_rank_products_total_covers_top_slice_only() -> None:
    ranking = rank_products(_sample_records(), top_n=1)
    assert [p.name for p in ranking.products] == ["Skin A"]
    assert ranking.total_consumption == 1000.0


def test_rank_products_is_idempotent() -> None:
    records = _sample_records()
    assert rank_products(records) == rank_products(records)


def test_rank_products_drops_non_positive_items() -> None:
    records = _sample_records() + [{"Item Name": "Refund", "Consumption Amount": -50}]
    assert "Refund" not in [p.name for p in rank_products(records).products]


def test_product_consumption_split_by_day() -> None:
    analysis = analyze_product_consumption(_sample_records())

    assert analysis.dates == ["2025-04-17", "2025-04-18"]
    day_one, day_two = analysis.daily_data
    assert (day_one.appearance, day_one.value) == (1000.0, 200.0)
    assert (day_two.appearance, day_two.value) == (0.0, 300.0)
    for day in analysis.daily_data:
        assert day.appearance + day.value == day.total
    assert analysis.total.total == 1500.0
    assert analysis.proportion.appearance == pytest.approx(1000 / 1500)
    assert analysis.proportion.appearance + analysis.proportion.value == pytest.approx(1.0)


def test_product_consumption_empty_input() -> None:
    analysis = analyze_product_consumption([])
    assert analysis.daily_data == []
    assert analysis.proportion.appearance == 0.0


def test_item_shares_are_fractions_of_group_total() -> None:
    shares = item_shares(_sample_records()[:2])
    assert [s.name for s in shares] == ["Skin A", "Potion"]
    assert sum(s.percentage for s in shares) == pytest.approx(1.0)


def test_item_tier_breakdown() -> None:
    breakdown = item_tier_breakdown(_sample_records())

    assert [item.name for item in breakdown] == ["Skin A", "Potion"]
    potion = breakdown[1]
    assert potion.total == 500.0
    assert [(share.tier, share.value) for share in potion.tiers] == [
        (PaymentTier.WHALE, 300.0),
        (PaymentTier.FREE_USER, 200.0),
    ]
    assert potion.tiers[0].percentage == pytest.approx(60.0)


def test_ranking_frame_share_column() -> None:
    table = ranking_frame(rank_products(_sample_records()))
    assert list(table["Item"]) == ["Skin A", "Potion"]
    assert table["SharePct"].sum() == pytest.approx(100.0)
