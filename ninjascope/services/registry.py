"""Wiring of the service graph around one cache and one data provider."""

from dataclasses import dataclass

from ninjascope.services.account_service import AccountService
from ninjascope.services.analytics_engine import AnalyticsEngine
from ninjascope.services.cache import TTLCache
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.services.insights_service import InsightsService
from ninjascope.services.market_catalog import MarketCatalog
from ninjascope.services.oracle_service import OracleService
from ninjascope.services.orderbook_service import OrderbookReader
from ninjascope.services.status_service import StatusService
from ninjascope.services.trade_service import TradeReader
from ninjascope.utils.config import CacheConfig


@dataclass
class Services:
    cache: TTLCache
    catalog: MarketCatalog
    orderbooks: OrderbookReader
    trades: TradeReader
    analytics: AnalyticsEngine
    insights: InsightsService
    oracle: OracleService
    accounts: AccountService
    status: StatusService


def build_services(
    provider: MarketDataProvider,
    cache: TTLCache,
    cache_config: CacheConfig,
    network: str = "mainnet",
) -> Services:
    """Construct every service, sharing the given cache and provider."""
    catalog = MarketCatalog(provider, cache, cache_config)
    orderbooks = OrderbookReader(provider, cache, catalog, cache_config)
    trades = TradeReader(provider, cache, catalog, cache_config)
    analytics = AnalyticsEngine(provider, cache, catalog, orderbooks, trades, cache_config)
    return Services(
        cache=cache,
        catalog=catalog,
        orderbooks=orderbooks,
        trades=trades,
        analytics=analytics,
        insights=InsightsService(cache, catalog, orderbooks, trades, analytics, cache_config),
        oracle=OracleService(provider, cache, cache_config),
        accounts=AccountService(provider, cache, cache_config),
        status=StatusService(cache, network),
    )
