"""Analytics engine: spread, depth, volatility, health and funding per market."""

import asyncio
import math

from ninjascope.models.analytics import (
    DepthAnalysis,
    DepthLevel,
    FundingData,
    HealthComponents,
    HealthRating,
    MarketHealth,
    SpreadAnalysis,
    VolatilityData,
)
from ninjascope.models.market import FundingRate, OrderbookSnapshot
from ninjascope.services.cache import TTLCache
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.services.market_catalog import MarketCatalog, find_market
from ninjascope.services.orderbook_service import OrderbookReader
from ninjascope.services.trade_service import TradeReader
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.decimals import format_number, parse_decimal, safe_float
from ninjascope.utils.logger import StructuredLogger

DEPTH_BANDS = (1, 2, 5, 10)
VOLATILITY_SAMPLE = 100
FUNDING_HISTORY_LIMIT = 50

# Health weights
SPREAD_WEIGHT = 0.4
DEPTH_WEIGHT = 0.3
ACTIVITY_WEIGHT = 0.3


def spread_score(spread_percentage: str | None) -> int:
    """Map spread percentage to 0-100; tighter spreads score higher. Missing spread scores 0."""
    if not spread_percentage:
        return 0
    pct = safe_float(spread_percentage)
    if pct <= 0.01:
        return 100
    if pct <= 0.05:
        return 90
    if pct <= 0.1:
        return 80
    if pct <= 0.5:
        return 60
    if pct <= 1:
        return 40
    if pct <= 5:
        return 20
    return 10


def depth_score(depth: DepthAnalysis | None) -> int:
    """Map the 2% band total depth (quote notional) to 0-100. No depth data scores 0."""
    if depth is None or not depth.levels:
        return 0
    band = next((level for level in depth.levels if level.percentage == 2), None)
    total = safe_float(band.total_depth) if band else 0.0
    if total > 1_000_000:
        return 100
    if total > 100_000:
        return 80
    if total > 10_000:
        return 60
    if total > 1_000:
        return 40
    if total > 100:
        return 20
    return 10


def activity_score(orderbook: OrderbookSnapshot | None) -> int:
    """Map the total number of orderbook entries to 0-100."""
    if orderbook is None:
        return 0
    entries = orderbook.entry_count
    if entries > 100:
        return 100
    if entries > 50:
        return 80
    if entries > 20:
        return 60
    if entries > 10:
        return 40
    if entries > 0:
        return 20
    return 0


def composite_score(components: HealthComponents) -> int:
    score = round(
        SPREAD_WEIGHT * components.spread_score
        + DEPTH_WEIGHT * components.depth_score
        + ACTIVITY_WEIGHT * components.activity_score
    )
    return max(0, min(100, score))


def rate_health(score: int) -> HealthRating:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def mid_price(best_bid: str | None, best_ask: str | None) -> float | None:
    if not best_bid or not best_ask:
        return None
    return (safe_float(best_bid) + safe_float(best_ask)) / 2


def depth_levels(orderbook: OrderbookSnapshot, mid: float) -> list[DepthLevel]:
    """
    Notional depth inside each band around mid price.

    Buy levels priced at or above mid*(1-pct) and sell levels priced at or
    below mid*(1+pct) contribute price * quantity.
    """
    levels = []
    for pct in DEPTH_BANDS:
        lower = mid * (1 - pct / 100)
        upper = mid * (1 + pct / 100)

        bid_depth = 0.0
        for buy in orderbook.buys:
            price = safe_float(buy.human_price)
            if price >= lower:
                bid_depth += price * safe_float(buy.human_quantity)

        ask_depth = 0.0
        for sell in orderbook.sells:
            price = safe_float(sell.human_price)
            if price <= upper:
                ask_depth += price * safe_float(sell.human_quantity)

        levels.append(
            DepthLevel(
                percentage=pct,
                bid_depth=f"{bid_depth:.4f}",
                ask_depth=f"{ask_depth:.4f}",
                total_depth=f"{bid_depth + ask_depth:.4f}",
            )
        )
    return levels


def log_return_volatility(prices: list[float]) -> float | None:
    """
    Population standard deviation of log returns between consecutive prices.

    Prices must be in chronological order. Non-positive prices are ignored;
    fewer than 2 usable prices yields None.
    """
    usable = [p for p in prices if p > 0]
    if len(usable) < 2:
        return None
    returns = [math.log(usable[i] / usable[i - 1]) for i in range(1, len(usable))]
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return math.sqrt(variance)


class AnalyticsEngine:
    """Derives per-market analytics from orderbooks and trades, each cached independently."""

    def __init__(
        self,
        provider: MarketDataProvider,
        cache: TTLCache,
        catalog: MarketCatalog,
        orderbooks: OrderbookReader,
        trades: TradeReader,
        cache_config: CacheConfig,
    ):
        self.provider = provider
        self.cache = cache
        self.catalog = catalog
        self.orderbooks = orderbooks
        self.trades = trades
        self.cache_config = cache_config
        self.logger = StructuredLogger("AnalyticsEngine")

    async def get_spread(self, market_id: str) -> SpreadAnalysis | None:
        cache_key = f"analytics:spread:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        orderbook = await self.orderbooks.get_orderbook(market_id)
        if orderbook is None:
            return None

        mid = None
        if orderbook.best_bid and orderbook.best_ask:
            mid = format_number((parse_decimal(orderbook.best_bid) + parse_decimal(orderbook.best_ask)) / 2)

        result = SpreadAnalysis(
            market_id=market_id,
            best_bid=orderbook.best_bid,
            best_ask=orderbook.best_ask,
            absolute_spread=orderbook.spread,
            spread_percentage=orderbook.spread_percentage,
            mid_price=mid,
        )
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result

    async def get_depth(self, market_id: str) -> DepthAnalysis | None:
        """
        Bid/ask notional depth at the 1%, 2%, 5% and 10% bands.

        Returns None for unknown markets and when mid price is unavailable or zero.
        """
        cache_key = f"analytics:depth:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        orderbook = await self.orderbooks.get_orderbook(market_id)
        if orderbook is None:
            return None

        mid = mid_price(orderbook.best_bid, orderbook.best_ask)
        if not mid:
            return None

        result = DepthAnalysis(market_id=market_id, levels=depth_levels(orderbook, mid))
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result

    async def get_volatility(self, market_id: str) -> VolatilityData:
        """
        Volatility from the most recent trades.

        Best effort: unknown markets, too few trades and fetch failures all
        yield a volatility of "0" without metadata, and are not cached.
        """
        cache_key = f"analytics:volatility:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        zero = VolatilityData(market_id=market_id, volatility="0", history_metadata=None)
        try:
            page = await self.trades.get_trades(market_id, VOLATILITY_SAMPLE, 0)
        except Exception as e:
            self.logger.warning(
                "Volatility degraded to zero after trade fetch failure",
                context={"market_id": market_id},
                exception=e,
            )
            return zero

        if page is None or len(page.trades) < 2:
            return zero

        # Trades arrive newest first
        prices = [safe_float(t.execution_price) for t in reversed(page.trades)]
        stddev = log_return_volatility(prices)
        if stddev is None:
            return zero

        result = VolatilityData(
            market_id=market_id,
            volatility=f"{stddev:.8f}",
            history_metadata={
                "trade_count": sum(1 for p in prices if p > 0),
                "method": "log_return_stddev",
            },
        )
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result

    async def get_health(self, market_id: str) -> MarketHealth | None:
        """
        Composite 0-100 health score from spread, 2% depth and orderbook activity.

        Returns:
            MarketHealth, or None if the market is not in the catalog
        """
        cache_key = f"analytics:health:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        markets, orderbook = await asyncio.gather(
            self.catalog.list_all(),
            self.orderbooks.get_orderbook(market_id),
        )
        market = find_market(markets, market_id)
        if market is None:
            return None

        # Depth is derived from this same snapshot
        depth = None
        mid = mid_price(orderbook.best_bid, orderbook.best_ask) if orderbook else None
        if mid:
            depth = DepthAnalysis(market_id=market_id, levels=depth_levels(orderbook, mid))

        components = HealthComponents(
            spread_score=spread_score(orderbook.spread_percentage if orderbook else None),
            depth_score=depth_score(depth),
            activity_score=activity_score(orderbook),
        )
        score = composite_score(components)

        result = MarketHealth(
            market_id=market_id,
            ticker=market.ticker,
            score=score,
            components=components,
            rating=rate_health(score),
        )
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result

    async def get_funding(self, market_id: str) -> FundingData | None:
        """
        Recent funding rates of a derivative market.

        Returns:
            FundingData; None when the market is unknown or not a derivative;
            an empty list when the upstream fetch fails
        """
        cache_key = f"analytics:funding:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        market = find_market(await self.catalog.list_all(), market_id)
        if market is None or market.type != "derivative":
            return None

        try:
            raw_rates = await self.provider.fetch_funding_rates(market_id, FUNDING_HISTORY_LIMIT)
        except Exception as e:
            self.logger.warning(
                "Funding rates degraded to empty after fetch failure",
                context={"market_id": market_id},
                exception=e,
            )
            return FundingData(market_id=market_id, funding_rates=[])

        result = FundingData(
            market_id=market_id,
            funding_rates=[
                FundingRate(rate=str(f.get("rate") or "0"), timestamp=int(f.get("timestamp") or 0))
                for f in raw_rates
            ],
        )
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result
