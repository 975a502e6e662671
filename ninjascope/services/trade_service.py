"""Trade reader: cached, normalized, paginated trade history."""

from typing import Any

from ninjascope.models.market import Market, Trade, TradesPage
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.services.market_catalog import MarketCatalog, decimals_for, find_market
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.decimals import (
    human_derivative_price,
    human_derivative_quantity,
    human_spot_price,
    human_spot_quantity,
)
from ninjascope.utils.logger import StructuredLogger


def _to_trade(raw: dict[str, Any], market: Market) -> Trade:
    raw_price = str(raw.get("price") or "0")
    raw_quantity = str(raw.get("quantity") or "0")

    if market.type == "spot":
        decimals = decimals_for(market)
        human_price = human_spot_price(raw_price, decimals)
        human_quantity = human_spot_quantity(raw_quantity, decimals.base_decimals)
    else:
        human_price = human_derivative_price(raw_price)
        human_quantity = human_derivative_quantity(raw_quantity)

    return Trade(
        trade_id=raw.get("trade_id", ""),
        market_id=raw.get("market_id") or market.market_id,
        order_hash=raw.get("order_hash", ""),
        subaccount_id=raw.get("subaccount_id", ""),
        executed_at=int(raw.get("executed_at") or 0),
        trade_direction=raw.get("trade_direction", ""),
        trade_execution_type=raw.get("trade_execution_type", ""),
        execution_side=raw.get("execution_side", ""),
        execution_price=raw_price,
        execution_quantity=raw_quantity,
        human_price=human_price,
        human_quantity=human_quantity,
        fee=str(raw.get("fee") or "0"),
        fee_recipient=raw.get("fee_recipient", ""),
    )


class TradeReader:
    """Reads trade pages through the cache."""

    def __init__(
        self,
        provider: MarketDataProvider,
        cache: TTLCache,
        catalog: MarketCatalog,
        cache_config: CacheConfig,
    ):
        self.provider = provider
        self.cache = cache
        self.catalog = catalog
        self.cache_config = cache_config
        self.logger = StructuredLogger("TradeReader")

    async def get_trades(self, market_id: str, limit: int = 20, skip: int = 0) -> TradesPage | None:
        """
        A page of trades for a market, newest first.

        Args:
            market_id: Market identifier
            limit: Page size
            skip: Number of newest trades to skip

        Returns:
            TradesPage, or None if the market is unknown

        Raises:
            UpstreamError: If the market list or the trades cannot be fetched
        """
        cache_key = f"trades:{market_id}:{limit}:{skip}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        market = find_market(await self.catalog.list_all(), market_id)
        if market is None:
            return None

        try:
            raw = await self.provider.fetch_trades(market_id, market.type, limit, skip)
        except Exception as e:
            self.logger.error(
                "Trades fetch failed",
                context={"market_id": market_id, "limit": limit, "skip": skip},
                exception=e,
            )
            raise UpstreamError(ErrorCode.TRADES_ERROR, f"Failed to fetch trades for {market_id}: {e}") from e

        trades = [_to_trade(t, market) for t in raw.get("trades") or []]
        page = TradesPage(market_id=market_id, trades=trades, total=int(raw.get("total") or len(trades)))
        self.cache.set(cache_key, page, self.cache_config.trades_ttl)
        return page
