"""Spend category rules: cosmetic vs power spending, skill spending."""

import pandas as pd

from config import SKILL_KEYWORDS
from models import SpendCategory

# Appearance-only channels, English and Chinese export labels.
COSMETIC_CHANNELS = frozenset(
    {
        "Unlock Appearance",
        "Monthly Costume Lottery",
        "解锁外观",
        "月度时装抽奖",
    }
)

# Passive exchange is cosmetic only when it buys the costume voucher.
COSMETIC_EXCHANGE_RULES = frozenset(
    {
        ("Passive Currency Exchange", "Dream-Weaving Voucher"),
        ("被动货币兑换", "织梦券"),
    }
)


def classify_spend(channel, item) -> SpendCategory:
    """Cosmetic iff the channel is an appearance channel or the voucher exchange."""
    channel_text = str(channel or "").strip()
    item_text = str(item or "").strip()
    if channel_text in COSMETIC_CHANNELS:
        return SpendCategory.COSMETIC
    if (channel_text, item_text) in COSMETIC_EXCHANGE_RULES:
        return SpendCategory.COSMETIC
    return SpendCategory.POWER


def is_skill_spend(channel, item, keywords=SKILL_KEYWORDS) -> bool:
    text = f"{channel or ''} {item or ''}".lower()
    return any(str(keyword).lower() in text for keyword in keywords if str(keyword).strip())


def assign_spend_categories(df: pd.DataFrame) -> pd.DataFrame:
    """Add SpendCategory and IsSkill columns to a normalised records frame."""
    out = df.copy()
    if out.empty:
        out["SpendCategory"] = pd.Series(dtype=object)
        out["IsSkill"] = pd.Series(dtype=bool)
        return out
    out["SpendCategory"] = out.apply(
        lambda row: classify_spend(row.get("Channel"), row.get("Item")).value,
        axis=1,
    )
    out["IsSkill"] = out.apply(lambda row: is_skill_spend(row.get("Channel"), row.get("Item")), axis=1)
    return out
