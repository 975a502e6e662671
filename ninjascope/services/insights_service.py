"""Cross-market insights: rankings, comparisons, whale trades and snapshots."""

import asyncio
import math
from typing import Any, Awaitable

from ninjascope.models.analytics import (
    ComparedMarket,
    MarketComparison,
    MarketRanking,
    MarketSnapshot,
    OrderbookPreview,
    PriceLevelPreview,
    RankingSort,
    TradePreview,
    WhaleTrade,
)
from ninjascope.models.market import Market, MarketType
from ninjascope.services.analytics_engine import AnalyticsEngine
from ninjascope.services.cache import TTLCache
from ninjascope.services.market_catalog import MarketCatalog, find_market
from ninjascope.services.orderbook_service import OrderbookReader
from ninjascope.services.trade_service import TradeReader
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.decimals import safe_float
from ninjascope.utils.logger import StructuredLogger

RANKING_BATCH_SIZE = 10
DEFAULT_RANKING_LIMIT = 20
MAX_RANKING_LIMIT = 100
MAX_COMPARE_IDS = 5
WHALE_SAMPLE = 100
WHALE_TOP_FRACTION = 0.1
SNAPSHOT_LEVELS = 5
SNAPSHOT_TRADES = 5


def sort_rankings(rankings: list[MarketRanking], sort_by: RankingSort) -> list[MarketRanking]:
    """
    Order rankings by the selected key.

    health: descending score. spread: ascending spread percentage, markets
    without a spread last. depth: descending orderbook entry count.
    """
    if sort_by == "spread":
        return sorted(
            rankings,
            key=lambda r: (
                r.spread_percentage is None,
                safe_float(r.spread_percentage) if r.spread_percentage is not None else 0.0,
            ),
        )
    if sort_by == "depth":
        return sorted(rankings, key=lambda r: r.orderbook_entries, reverse=True)
    return sorted(rankings, key=lambda r: r.health_score, reverse=True)


def whale_threshold(notionals: list[float]) -> float:
    """
    Automatic whale cutoff: the notional at the 90th percentile by rank.

    At least one trade always qualifies when there are any. Ties at the
    cutoff all qualify, so more than 10% of trades can pass.
    """
    if not notionals:
        return 0.0
    ranked = sorted(notionals, reverse=True)
    top_index = max(1, math.floor(len(ranked) * WHALE_TOP_FRACTION))
    return ranked[top_index - 1]


class InsightsService:
    """Runs analytics across many markets with bounded, failure-tolerant batching."""

    def __init__(
        self,
        cache: TTLCache,
        catalog: MarketCatalog,
        orderbooks: OrderbookReader,
        trades: TradeReader,
        analytics: AnalyticsEngine,
        cache_config: CacheConfig,
    ):
        self.cache = cache
        self.catalog = catalog
        self.orderbooks = orderbooks
        self.trades = trades
        self.analytics = analytics
        self.cache_config = cache_config
        self.logger = StructuredLogger("InsightsService")

    async def _rank_market(self, market: Market) -> MarketRanking:
        health = await self.analytics.get_health(market.market_id)
        # Served from the cache entry get_health just filled
        orderbook = await self.orderbooks.get_orderbook(market.market_id)
        return MarketRanking(
            market_id=market.market_id,
            ticker=market.ticker,
            type=market.type,
            health_score=health.score if health else 0,
            rating=health.rating if health else "unknown",
            spread_percentage=orderbook.spread_percentage if orderbook else None,
            orderbook_entries=orderbook.entry_count if orderbook else 0,
        )

    async def get_rankings(
        self,
        sort_by: RankingSort = "health",
        limit: int = DEFAULT_RANKING_LIMIT,
        market_type: MarketType | None = None,
    ) -> list[MarketRanking]:
        """
        Rank markets by health, spread or depth.

        Candidates are the first 2*limit markets of the catalog (after the
        optional type filter). They are processed in sequential batches of 10;
        within a batch every market is fetched concurrently and a market whose
        fetch fails is dropped. Sorting happens over all survivors before the
        result is cut to limit.

        Args:
            sort_by: "health", "spread" or "depth"
            limit: Result size, clamped to [1, 100]
            market_type: Optional "spot" or "derivative" filter

        Returns:
            Sorted list of at most limit rankings
        """
        limit = max(1, min(MAX_RANKING_LIMIT, limit))
        cache_key = f"rankings:{sort_by}:{limit}:{market_type or 'all'}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        markets = await self.catalog.list_all(market_type)
        candidates = markets[: limit * 2]

        rankings: list[MarketRanking] = []
        for start in range(0, len(candidates), RANKING_BATCH_SIZE):
            batch = candidates[start : start + RANKING_BATCH_SIZE]
            results = await asyncio.gather(
                *(self._rank_market(m) for m in batch), return_exceptions=True
            )
            for market, result in zip(batch, results):
                if isinstance(result, Exception):
                    self.logger.warning(
                        "Dropping market from rankings",
                        context={"market_id": market.market_id},
                        exception=result,
                    )
                    continue
                if isinstance(result, BaseException):
                    raise result
                rankings.append(result)

        result = sort_rankings(rankings, sort_by)[:limit]
        self.cache.set(cache_key, result, self.cache_config.summary_ttl)
        return result

    async def _settle(self, awaitable: Awaitable[Any], market_id: str, metric: str) -> Any:
        """Await one metric, reporting a failure as None so sibling metrics are unaffected."""
        try:
            return await awaitable
        except Exception as e:
            self.logger.warning(
                "Comparison metric unavailable",
                context={"market_id": market_id, "metric": metric},
                exception=e,
            )
            return None

    async def _compare_one(self, market_id: str, markets: list[Market]) -> ComparedMarket:
        market = find_market(markets, market_id)
        # Warm the orderbook once; spread, depth and health then read it from the cache
        await self._settle(self.orderbooks.get_orderbook(market_id), market_id, "orderbook")
        spread, depth, health, volatility = await asyncio.gather(
            self._settle(self.analytics.get_spread(market_id), market_id, "spread"),
            self._settle(self.analytics.get_depth(market_id), market_id, "depth"),
            self._settle(self.analytics.get_health(market_id), market_id, "health"),
            self._settle(self.analytics.get_volatility(market_id), market_id, "volatility"),
        )
        return ComparedMarket(
            market_id=market_id,
            ticker=market.ticker if market else "unknown",
            type=market.type if market else "unknown",
            spread=spread,
            depth=depth,
            health=health,
            volatility=volatility,
        )

    async def compare(self, market_ids: list[str]) -> MarketComparison | None:
        """
        Side-by-side spread, depth, health and volatility for 1 to 5 markets.

        Unknown ids appear with ticker and type "unknown"; a failing metric
        is reported as None for that market only.

        Returns:
            MarketComparison ordered by market id, or None when the id count is out of range
        """
        if not market_ids or len(market_ids) > MAX_COMPARE_IDS:
            return None

        ordered = sorted(market_ids)
        cache_key = f"compare:{','.join(ordered)}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        markets = await self.catalog.list_all()
        compared = await asyncio.gather(*(self._compare_one(mid, markets) for mid in ordered))

        result = MarketComparison(markets=list(compared))
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result

    async def get_whale_trades(self, market_id: str, min_notional: float | None = None) -> list[WhaleTrade]:
        """
        Largest recent trades by notional value (human price * human quantity).

        Without min_notional the cutoff is chosen by whale_threshold over the
        last 100 trades. Results are sorted by descending notional.
        """
        cache_key = f"whales:{market_id}:{min_notional or 'auto'}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        page = await self.trades.get_trades(market_id, WHALE_SAMPLE, 0)
        if page is None or not page.trades:
            return []

        with_notional = [
            (trade, safe_float(trade.human_price) * safe_float(trade.human_quantity)) for trade in page.trades
        ]
        threshold = min_notional if min_notional else whale_threshold([n for _, n in with_notional])

        whales = [
            WhaleTrade(
                trade_id=trade.trade_id,
                market_id=trade.market_id,
                trade_direction=trade.trade_direction,
                execution_price=trade.execution_price,
                execution_quantity=trade.execution_quantity,
                human_price=trade.human_price,
                human_quantity=trade.human_quantity,
                notional_value=f"{notional:.4f}",
                executed_at=trade.executed_at,
            )
            for trade, notional in sorted(with_notional, key=lambda pair: pair[1], reverse=True)
            if notional >= threshold
        ]

        self.cache.set(cache_key, whales, self.cache_config.trades_ttl)
        return whales

    async def get_snapshot(self, market_id: str) -> MarketSnapshot | None:
        """Market detail, top of book, latest trades, health and spread in one object."""
        cache_key = f"snapshot:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        market = find_market(await self.catalog.list_all(), market_id)
        if market is None:
            return None

        orderbook, page = await asyncio.gather(
            self.orderbooks.get_orderbook(market_id),
            self.trades.get_trades(market_id, SNAPSHOT_TRADES, 0),
        )
        health, spread = await asyncio.gather(
            self.analytics.get_health(market_id),
            self.analytics.get_spread(market_id),
        )

        preview = None
        if orderbook is not None:
            preview = OrderbookPreview(
                best_bid=orderbook.best_bid,
                best_ask=orderbook.best_ask,
                spread_percentage=orderbook.spread_percentage,
                buy_levels=len(orderbook.buys),
                sell_levels=len(orderbook.sells),
                top_buys=[
                    PriceLevelPreview(human_price=b.human_price, human_quantity=b.human_quantity)
                    for b in orderbook.buys[:SNAPSHOT_LEVELS]
                ],
                top_sells=[
                    PriceLevelPreview(human_price=s.human_price, human_quantity=s.human_quantity)
                    for s in orderbook.sells[:SNAPSHOT_LEVELS]
                ],
            )

        result = MarketSnapshot(
            market=market,
            orderbook=preview,
            recent_trades=[
                TradePreview(
                    human_price=t.human_price,
                    human_quantity=t.human_quantity,
                    trade_direction=t.trade_direction,
                    executed_at=t.executed_at,
                )
                for t in (page.trades if page else [])
            ],
            health=health,
            spread=spread,
        )
        self.cache.set(cache_key, result, self.cache_config.analytics_ttl)
        return result
