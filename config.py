"""Column presets, analysis constants and narrative endpoint settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

PARSE_BATCH_SIZE = 1000
TOP_CHANNEL_COUNT = 4
OTHER_CHANNEL = "Other"
UNKNOWN_ITEM = "Unknown Item"
DEFAULT_RANKING_TOP_N = 20
NARRATIVE_TOP_ITEMS = 5
SKILL_KEYWORDS = ("技能", "觉醒", "Skill", "Awaken")


@dataclass(frozen=True)
class ColumnMap:
    """Header names of the semantic columns in an export."""

    date: str
    tier: str
    channel: str
    item: str
    amount: str
    role_count: str
    dau: str

    def names(self) -> tuple[str, ...]:
        return (self.date, self.tier, self.channel, self.item, self.amount, self.role_count, self.dau)


ENGLISH_COLUMNS = ColumnMap(
    date="Date",
    tier="Payment Tier",
    channel="Consumption Channel",
    item="Item Name",
    amount="Consumption Amount",
    role_count="Role Count",
    dau="DAU",
)

CHINESE_COLUMNS = ColumnMap(
    date="日期",
    tier="付费区间",
    channel="消耗途径",
    item="物品名称",
    amount="天玉消耗额",
    role_count="角色数",
    dau="DAU",
)

COLUMN_PRESETS = {"english": ENGLISH_COLUMNS, "chinese": CHINESE_COLUMNS}


def resolve_columns(headers: Iterable[str]) -> ColumnMap:
    """Pick the preset matching most headers; English wins ties."""
    present = {str(h).strip() for h in headers}
    best = ENGLISH_COLUMNS
    best_hits = -1
    for preset in COLUMN_PRESETS.values():
        hits = sum(1 for name in preset.names() if name in present)
        if hits > best_hits:
            best, best_hits = preset, hits
    return best


def column_map_from_dict(raw: dict, fallback: ColumnMap = ENGLISH_COLUMNS) -> ColumnMap:
    """Build a column map from sidebar JSON, keeping fallback names for missing keys."""
    values = {}
    for field in ("date", "tier", "channel", "item", "amount", "role_count", "dau"):
        text = str(raw.get(field, "")).strip() if isinstance(raw, dict) else ""
        values[field] = text or getattr(fallback, field)
    return ColumnMap(**values)


@dataclass(frozen=True)
class NarrativeConfig:
    """
    Streaming chat-completion endpoint used for the summary narrative.

    Environment variables:
    - LLM_API_KEY: API key; narrative stays offline when empty
    - LLM_BASE_URL: OpenAI-compatible base URL
    - LLM_MODEL: model name
    - LLM_TIMEOUT: request timeout in seconds
    """

    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4.1-mini"
    timeout: float = 60.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())

    @classmethod
    def from_env(cls) -> "NarrativeConfig":
        return cls(
            api_key=os.getenv("LLM_API_KEY", ""),
            base_url=os.getenv("LLM_BASE_URL", cls.base_url),
            model=os.getenv("LLM_MODEL", cls.model),
            timeout=float(os.getenv("LLM_TIMEOUT", "60")),
        )
