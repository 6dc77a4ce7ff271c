from config import (
    CHINESE_COLUMNS,
    ENGLISH_COLUMNS,
    NarrativeConfig,
    column_map_from_dict,
    resolve_columns,
)
from models import PaymentTier


def test_resolve_columns_picks_best_preset() -> None:
    assert resolve_columns(["日期", "付费区间", "天玉消耗额", "DAU"]) == CHINESE_COLUMNS
    assert resolve_columns(["Date", "Payment Tier"]) == ENGLISH_COLUMNS
    assert resolve_columns([]) == ENGLISH_COLUMNS


def test_column_map_from_dict_keeps_fallback_for_missing_keys() -> None:
    columns = column_map_from_dict({"amount": "Jade", "date": " "})
    assert columns.amount == "Jade"
    assert columns.date == ENGLISH_COLUMNS.date
    assert column_map_from_dict(["not", "a", "dict"]) == ENGLISH_COLUMNS


def test_narrative_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LLM_API_KEY", "secret")
    monkeypatch.setenv("LLM_BASE_URL", "http://llm.local/v1")
    monkeypatch.setenv("LLM_TIMEOUT", "5")

    config = NarrativeConfig.from_env()

    assert config.enabled
    assert config.base_url == "http://llm.local/v1"
    assert config.timeout == 5.0


def test_narrative_config_disabled_without_key(monkeypatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    assert not NarrativeConfig.from_env().enabled


def test_payment_tier_matches_both_label_sets() -> None:
    assert PaymentTier.from_label("大R") == PaymentTier.BIG_SPENDER
    assert PaymentTier.from_label(" Whale ") == PaymentTier.WHALE
    assert PaymentTier.from_label("VIP") is None
    assert str(PaymentTier.FREE_USER) == "FreeUser"
