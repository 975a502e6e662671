"""Oracle price feeds."""

from ninjascope.models.market import OraclePrice
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.logger import StructuredLogger


class OracleService:
    """Serves the normalized oracle price list, cached as a whole."""

    CACHE_KEY = "oracle:prices"

    def __init__(self, provider: MarketDataProvider, cache: TTLCache, cache_config: CacheConfig):
        self.provider = provider
        self.cache = cache
        self.cache_config = cache_config
        self.logger = StructuredLogger("OracleService")

    async def get_prices(self, symbol: str | None = None) -> list[OraclePrice]:
        """
        All oracle feeds, optionally filtered.

        Args:
            symbol: Case-insensitive substring matched against symbol and base symbol

        Raises:
            UpstreamError: If the oracle list cannot be fetched
        """
        cached = self.cache.lookup(self.CACHE_KEY)
        if cached.hit:
            prices = cached.value
        else:
            try:
                raw_prices = await self.provider.fetch_oracle_prices()
            except Exception as e:
                self.logger.error("Oracle price fetch failed", exception=e)
                raise UpstreamError(ErrorCode.ORACLE_ERROR, f"Failed to fetch oracle prices: {e}") from e

            prices = [
                OraclePrice(
                    symbol=o.get("symbol") or f"{o.get('base_symbol', '')}/{o.get('quote_symbol', '')}",
                    base_symbol=o.get("base_symbol") or "",
                    quote_symbol=o.get("quote_symbol") or "",
                    oracle_type=o.get("oracle_type") or "",
                    price=str(o.get("price") or "0"),
                )
                for o in raw_prices
            ]
            self.cache.set(self.CACHE_KEY, prices, self.cache_config.oracle_ttl)

        if symbol:
            query = symbol.lower()
            prices = [p for p in prices if query in p.symbol.lower() or query in p.base_symbol.lower()]
        return prices
