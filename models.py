"""Typed aggregates passed between the analysis stages and the dashboard."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

CellValue = Union[str, int, float]
Record = Mapping[str, CellValue]


class PaymentTier(str, Enum):
    """
    Player spending segment.

    Declaration order is the fixed display order used by every aggregator
    and chart. The enum value is the English name; ``label`` is the label
    used in Chinese exports.
    """

    WHALE = "Whale"
    BIG_SPENDER = "BigSpender"
    MID_SPENDER = "MidSpender"
    SMALL_SPENDER = "SmallSpender"
    FREE_USER = "FreeUser"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]

    def matches(self, raw: Any) -> bool:
        text = str(raw).strip() if raw is not None else ""
        return text == self.value or text == self.label

    @classmethod
    def from_label(cls, raw: Any) -> "PaymentTier | None":
        for tier in cls:
            if tier.matches(raw):
                return tier
        return None


_SOURCE_LABELS = {
    PaymentTier.WHALE: "土豪",
    PaymentTier.BIG_SPENDER: "大R",
    PaymentTier.MID_SPENDER: "中R",
    PaymentTier.SMALL_SPENDER: "小R",
    PaymentTier.FREE_USER: "平民",
}

TIER_ORDER: tuple[PaymentTier, ...] = tuple(PaymentTier)


class SpendCategory(str, Enum):
    COSMETIC = "appearance"
    POWER = "value"


@dataclass(frozen=True)
class TrendPoint:
    date: str
    value: float


@dataclass(frozen=True)
class ItemShare:
    name: str
    value: float
    percentage: float


@dataclass(frozen=True)
class PointDetail:
    """Drill-down for one chart point: the day's ranked items."""

    date: str
    value: float
    items: list[ItemShare] = field(default_factory=list)


@dataclass(frozen=True)
class TrendSummary:
    dates: list[str]
    values: list[float]
    trend_values: list[float]
    slope: float
    intercept: float
    mean: float
    max_point: TrendPoint
    min_point: TrendPoint
    peaks: list[TrendPoint]
    valleys: list[TrendPoint]
    point_details: dict[str, PointDetail] = field(default_factory=dict)


@dataclass(frozen=True)
class BuyersTrend:
    dates: list[str]
    total_buyers: list[float]
    buyers_by_tier: dict[PaymentTier, list[float]]


@dataclass(frozen=True)
class ConsumptionTrend:
    total: TrendSummary
    by_tier: dict[PaymentTier, TrendSummary]
    buyers: BuyersTrend


@dataclass(frozen=True)
class ChannelConsumptionData:
    user_group: PaymentTier
    channel_data: dict[str, float]
    channel_purchase: dict[str, float]
    total_consumption: float
    avg_consumption: int
    user_count: float
    main_channels: list[str]


@dataclass(frozen=True)
class ChannelPurchaseData:
    user_group: PaymentTier
    channel_data: dict[str, float]
    total_purchase: float
    main_channels: list[str]


@dataclass(frozen=True)
class ChannelAnalysis:
    consumption_data: list[ChannelConsumptionData]
    purchase_data: list[ChannelPurchaseData]
    main_channels: list[str]


@dataclass(frozen=True)
class ProductRank:
    name: str
    value: float


@dataclass(frozen=True)
class ProductRankingData:
    products: list[ProductRank]
    total_consumption: float


@dataclass(frozen=True)
class CategoryDay:
    date: str
    appearance: float
    value: float
    total: float


@dataclass(frozen=True)
class CategoryTotals:
    appearance: float
    value: float
    total: float


@dataclass(frozen=True)
class CategoryProportion:
    appearance: float
    value: float


@dataclass(frozen=True)
class ProductConsumptionAnalysis:
    dates: list[str]
    daily_data: list[CategoryDay]
    total: CategoryTotals
    proportion: CategoryProportion


@dataclass(frozen=True)
class TierShare:
    tier: PaymentTier
    value: float
    percentage: float


@dataclass(frozen=True)
class ItemTierBreakdown:
    name: str
    total: float
    tiers: list[TierShare]


@dataclass(frozen=True)
class SkillTierEconomy:
    tier: PaymentTier
    skill_consumption: float
    total_consumption: float
    skill_share: float
    dau: float
    arpu: float


@dataclass(frozen=True)
class SkillEconomy:
    tiers: list[SkillTierEconomy]
    top_items: list[ProductRank]
    total_skill_consumption: float


@dataclass(frozen=True)
class NarrativeStats:
    """Scalars the narrative text is written from."""

    direction: str
    growth_rate: float
    first_value: float
    last_value: float
    top_tier: PaymentTier | None
    top_tier_mean: float
    top_items: list[ProductRank]
    top_items_share: float
    cosmetic_share: float
    days: int


@dataclass(frozen=True)
class ReportSection:
    id: str
    title: str
    data: dict[str, Any]


@dataclass(frozen=True)
class SummarySection:
    id: str
    title: str
    content: str


@dataclass(frozen=True)
class AnalysisReport:
    title: str
    trends: list[ReportSection]
    users: list[ReportSection]
    products: list[ReportSection]
    skills: list[ReportSection]
    summary: SummarySection
    stats: NarrativeStats | None = None
    ok: bool = True
    error: str = ""


def to_plain(value: Any) -> Any:
    """Convert dataclass aggregates into JSON-friendly builtins."""
    if hasattr(value, "__dataclass_fields__"):
        return to_plain(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(to_plain(k)): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value
