"""Derived analytics value objects."""

from dataclasses import dataclass, field
from typing import Any, Literal

from ninjascope.models.market import FundingRate, Market

HealthRating = Literal["excellent", "good", "fair", "poor"]
RankingSort = Literal["health", "spread", "depth"]


@dataclass
class SpreadAnalysis:
    market_id: str
    best_bid: str | None
    best_ask: str | None
    absolute_spread: str | None
    spread_percentage: str | None
    mid_price: str | None


@dataclass
class DepthLevel:
    """Notional liquidity inside a symmetric band around mid price."""

    percentage: int
    bid_depth: str
    ask_depth: str
    total_depth: str


@dataclass
class DepthAnalysis:
    market_id: str
    levels: list[DepthLevel]


@dataclass
class VolatilityData:
    market_id: str
    volatility: str
    history_metadata: dict[str, Any] | None = None


@dataclass
class HealthComponents:
    spread_score: int
    depth_score: int
    activity_score: int


@dataclass
class MarketHealth:
    market_id: str
    ticker: str
    score: int
    components: HealthComponents
    rating: HealthRating


@dataclass
class FundingData:
    market_id: str
    funding_rates: list[FundingRate] = field(default_factory=list)


@dataclass
class MarketRanking:
    market_id: str
    ticker: str
    type: str
    health_score: int
    rating: str
    spread_percentage: str | None
    orderbook_entries: int


@dataclass
class ComparedMarket:
    market_id: str
    ticker: str
    type: str
    spread: SpreadAnalysis | None
    depth: DepthAnalysis | None
    health: MarketHealth | None
    volatility: VolatilityData | None


@dataclass
class MarketComparison:
    markets: list[ComparedMarket]


@dataclass
class WhaleTrade:
    trade_id: str
    market_id: str
    trade_direction: str
    execution_price: str
    execution_quantity: str
    human_price: str
    human_quantity: str
    notional_value: str
    executed_at: int


@dataclass
class PriceLevelPreview:
    human_price: str
    human_quantity: str


@dataclass
class OrderbookPreview:
    best_bid: str | None
    best_ask: str | None
    spread_percentage: str | None
    buy_levels: int
    sell_levels: int
    top_buys: list[PriceLevelPreview]
    top_sells: list[PriceLevelPreview]


@dataclass
class TradePreview:
    human_price: str
    human_quantity: str
    trade_direction: str
    executed_at: int


@dataclass
class MarketSnapshot:
    """All-in-one view of a single market."""

    market: Market
    orderbook: OrderbookPreview | None
    recent_trades: list[TradePreview]
    health: MarketHealth | None
    spread: SpreadAnalysis | None
