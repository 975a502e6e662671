"""Market catalog: cached spot and derivative market listings and lookups."""

import asyncio
from typing import Any, Awaitable, Callable

from ninjascope.models.market import (
    Market,
    MarketBrief,
    MarketsSummary,
    MarketType,
    TokenMeta,
)
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.decimals import DEFAULT_BASE_DECIMALS, DEFAULT_QUOTE_DECIMALS, TokenDecimals
from ninjascope.utils.logger import StructuredLogger


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _token_meta(raw: dict[str, Any] | None) -> TokenMeta | None:
    if not raw:
        return None
    return TokenMeta(
        name=raw.get("name", ""),
        symbol=raw.get("symbol", ""),
        decimals=_optional_int(raw.get("decimals")),
    )


def _to_market(raw: dict[str, Any], market_type: MarketType) -> Market:
    return Market(
        market_id=raw["market_id"],
        ticker=raw.get("ticker", ""),
        type=market_type,
        base_denom=raw.get("base_denom", ""),
        quote_denom=raw.get("quote_denom", ""),
        maker_fee_rate=str(raw.get("maker_fee_rate", "0")),
        taker_fee_rate=str(raw.get("taker_fee_rate", "0")),
        min_price_tick_size=str(raw.get("min_price_tick_size", "0")),
        min_quantity_tick_size=str(raw.get("min_quantity_tick_size", "0")),
        service_provider_fee=str(raw.get("service_provider_fee", "0")),
        base_token_meta=_token_meta(raw.get("base_token_meta")) if market_type == "spot" else None,
        quote_token_meta=_token_meta(raw.get("quote_token_meta")),
    )


def find_market(markets: list[Market], market_id: str) -> Market | None:
    return next((m for m in markets if m.market_id == market_id), None)


def decimals_for(market: Market) -> TokenDecimals:
    """Token precision of a market, defaulting to 18 base / 6 quote decimals when metadata is missing."""
    base = market.base_token_meta.decimals if market.base_token_meta else None
    quote = market.quote_token_meta.decimals if market.quote_token_meta else None
    return TokenDecimals(
        base_decimals=DEFAULT_BASE_DECIMALS if base is None else base,
        quote_decimals=DEFAULT_QUOTE_DECIMALS if quote is None else quote,
    )


def normalize_ticker(ticker: str) -> str:
    """Uppercase a ticker and use '/' as its separator (INJ-usdt -> INJ/USDT)."""
    return ticker.replace("-", "/").replace("_", "/").upper()


class MarketCatalog:
    """Fetches and caches the full market list; answers lookups over it."""

    SPOT_CACHE_KEY = "markets:spot"
    DERIVATIVE_CACHE_KEY = "markets:derivative"

    def __init__(self, provider: MarketDataProvider, cache: TTLCache, cache_config: CacheConfig):
        self.provider = provider
        self.cache = cache
        self.cache_config = cache_config
        self.logger = StructuredLogger("MarketCatalog")

    async def _load(
        self,
        cache_key: str,
        market_type: MarketType,
        fetch: Callable[[], Awaitable[list[dict[str, Any]]]],
    ) -> list[Market]:
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        self.logger.info("Fetching markets", context={"type": market_type})
        try:
            raw_markets = await fetch()
        except Exception as e:
            self.logger.error("Market fetch failed", context={"type": market_type}, exception=e)
            raise UpstreamError(ErrorCode.MARKETS_ERROR, f"Failed to fetch {market_type} markets: {e}") from e

        markets = [_to_market(m, market_type) for m in raw_markets]
        self.cache.set(cache_key, markets, self.cache_config.markets_ttl)
        return markets

    async def spot_markets(self) -> list[Market]:
        return await self._load(self.SPOT_CACHE_KEY, "spot", self.provider.fetch_spot_markets)

    async def derivative_markets(self) -> list[Market]:
        return await self._load(self.DERIVATIVE_CACHE_KEY, "derivative", self.provider.fetch_derivative_markets)

    async def list_all(self, market_type: MarketType | None = None) -> list[Market]:
        """
        All markets, spot first then derivative.

        Both listings are fetched concurrently and cached independently.

        Args:
            market_type: Optional filter, "spot" or "derivative"

        Raises:
            UpstreamError: If either listing cannot be fetched
        """
        spot, derivative = await asyncio.gather(self.spot_markets(), self.derivative_markets())
        markets = spot + derivative
        if market_type:
            markets = [m for m in markets if m.type == market_type]
        return markets

    async def by_id(self, market_id: str) -> Market | None:
        return find_market(await self.list_all(), market_id)

    async def by_ticker(self, ticker: str, market_type: MarketType | None = None) -> Market | None:
        """
        Look up a market by ticker.

        Separators '-' and '_' are read as '/', matching is case-insensitive,
        and a ticker followed by a suffix (such as "BTC/USDT PERP") matches its
        prefix. An exact match wins over a prefix match.

        Args:
            ticker: Ticker such as "INJ-USDT" or "btc/usdt"
            market_type: Optional type filter to disambiguate spot and derivative

        Returns:
            The matching Market or None
        """
        normalized = normalize_ticker(ticker)
        candidates = [
            m
            for m in await self.list_all(market_type)
            if m.ticker.upper() == normalized or m.ticker.upper().startswith(normalized + " ")
        ]
        exact = next((m for m in candidates if m.ticker.upper() == normalized), None)
        if exact:
            return exact
        return candidates[0] if candidates else None

    async def search(self, query: str) -> list[Market]:
        """Case-insensitive substring search over ticker, denoms and token symbols."""
        needle = query.lower()

        def matches(market: Market) -> bool:
            fields = [market.ticker, market.base_denom, market.quote_denom]
            if market.base_token_meta:
                fields.append(market.base_token_meta.symbol)
            if market.quote_token_meta:
                fields.append(market.quote_token_meta.symbol)
            return any(needle in f.lower() for f in fields)

        return [m for m in await self.list_all() if matches(m)]

    async def summary(self, market_type: MarketType | None = None) -> MarketsSummary:
        markets = await self.list_all(market_type)
        return MarketsSummary(
            total_markets=len(markets),
            spot_markets=sum(1 for m in markets if m.type == "spot"),
            derivative_markets=sum(1 for m in markets if m.type == "derivative"),
            markets=[MarketBrief(market_id=m.market_id, ticker=m.ticker, type=m.type) for m in markets],
        )
