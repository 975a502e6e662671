"""Orderbook reader: cached, normalized point-in-time orderbook snapshots."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from ninjascope.models.market import OrderbookLevel, OrderbookSnapshot
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.services.market_catalog import MarketCatalog, decimals_for, find_market
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.decimals import (
    format_number,
    human_derivative_price,
    human_derivative_quantity,
    human_spot_price,
    human_spot_quantity,
    parse_decimal,
)
from ninjascope.utils.logger import StructuredLogger

FOUR_PLACES = Decimal("0.0001")


def compute_spread(best_bid: str | None, best_ask: str | None) -> tuple[str | None, str | None]:
    """
    Absolute spread and spread percentage relative to mid price.

    Both are None unless best bid and best ask are present and positive.
    The percentage is rounded to 4 decimal places.
    """
    if best_bid is None or best_ask is None:
        return None, None
    bid = parse_decimal(best_bid)
    ask = parse_decimal(best_ask)
    if bid <= 0 or ask <= 0:
        return None, None

    spread = ask - bid
    mid = (ask + bid) / 2
    percentage = (spread / mid * 100).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)
    return format_number(spread), format(percentage, "f")


def _to_levels(
    raw_levels: list[dict[str, Any]],
    convert_price: Callable[[str], str],
    convert_quantity: Callable[[str], str],
) -> list[OrderbookLevel]:
    levels = []
    for raw in raw_levels:
        price = str(raw.get("price", "0"))
        quantity = str(raw.get("quantity", "0"))
        levels.append(
            OrderbookLevel(
                price=price,
                quantity=quantity,
                human_price=convert_price(price),
                human_quantity=convert_quantity(quantity),
                timestamp=int(raw.get("timestamp") or 0),
            )
        )
    return levels


class OrderbookReader:
    """Reads orderbooks through the cache, normalizing levels per market type."""

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
        self.logger = StructuredLogger("OrderbookReader")

    async def get_orderbook(self, market_id: str) -> OrderbookSnapshot | None:
        """
        Current orderbook for a market.

        Best bid and ask are the first buy and sell levels, which the provider
        returns sorted best first.

        Args:
            market_id: Market identifier

        Returns:
            OrderbookSnapshot, or None if the market is unknown

        Raises:
            UpstreamError: If the market list or the orderbook cannot be fetched
        """
        cache_key = f"orderbook:{market_id}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        market = find_market(await self.catalog.list_all(), market_id)
        if market is None:
            return None

        try:
            raw = await self.provider.fetch_orderbook(market_id, market.type)
        except Exception as e:
            self.logger.error("Orderbook fetch failed", context={"market_id": market_id}, exception=e)
            raise UpstreamError(ErrorCode.ORDERBOOK_ERROR, f"Failed to fetch orderbook for {market_id}: {e}") from e

        if market.type == "spot":
            decimals = decimals_for(market)

            def convert_price(value: str) -> str:
                return human_spot_price(value, decimals)

            def convert_quantity(value: str) -> str:
                return human_spot_quantity(value, decimals.base_decimals)

        else:
            convert_price = human_derivative_price
            convert_quantity = human_derivative_quantity

        buys = _to_levels(raw.get("buys") or [], convert_price, convert_quantity)
        sells = _to_levels(raw.get("sells") or [], convert_price, convert_quantity)

        best_bid = buys[0].human_price if buys else None
        best_ask = sells[0].human_price if sells else None
        spread, spread_percentage = compute_spread(best_bid, best_ask)

        snapshot = OrderbookSnapshot(
            market_id=market_id,
            buys=buys,
            sells=sells,
            best_bid=best_bid,
            best_ask=best_ask,
            spread=spread,
            spread_percentage=spread_percentage,
            updated_at=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        )
        self.cache.set(cache_key, snapshot, self.cache_config.orderbook_ttl)
        return snapshot
