"""Configuration management for the application."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Indexer HTTP gateway per network
NETWORK_ENDPOINTS = {
    "mainnet": "https://sentry.exchange.grpc-web.injective.network",
    "testnet": "https://testnet.sentry.exchange.grpc-web.injective.network",
}


@dataclass
class CacheConfig:
    """Cache time-to-live settings, in seconds, per data category."""

    markets_ttl: int = 60
    orderbook_ttl: int = 5  # fast-moving data
    trades_ttl: int = 10
    oracle_ttl: int = 15
    analytics_ttl: int = 30
    summary_ttl: int = 60
    account_ttl: int = 30
    positions_ttl: int = 15
    sweep_interval: int = 30


@dataclass
class NetworkConfig:
    """Data provider network selection."""

    name: str = "mainnet"
    indexer_url: str | None = None
    request_timeout: float = 10.0

    def __post_init__(self):
        if self.indexer_url is None:
            self.indexer_url = NETWORK_ENDPOINTS.get(self.name, NETWORK_ENDPOINTS["mainnet"])


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


class Config:
    """Main application configuration."""

    def __init__(self):
        self.cache = CacheConfig(
            markets_ttl=int(os.getenv("CACHE_MARKETS_TTL", "60")),
            orderbook_ttl=int(os.getenv("CACHE_ORDERBOOK_TTL", "5")),
            trades_ttl=int(os.getenv("CACHE_TRADES_TTL", "10")),
            oracle_ttl=int(os.getenv("CACHE_ORACLE_TTL", "15")),
            analytics_ttl=int(os.getenv("CACHE_ANALYTICS_TTL", "30")),
            summary_ttl=int(os.getenv("CACHE_SUMMARY_TTL", "60")),
            account_ttl=int(os.getenv("CACHE_ACCOUNT_TTL", "30")),
            positions_ttl=int(os.getenv("CACHE_POSITIONS_TTL", "15")),
            sweep_interval=int(os.getenv("CACHE_SWEEP_INTERVAL", "30")),
        )

        self.network = NetworkConfig(
            name=os.getenv("NETWORK", "mainnet").lower(),
            indexer_url=os.getenv("INDEXER_URL") or None,
            request_timeout=float(os.getenv("INDEXER_TIMEOUT", "10")),
        )

        self.server = ServerConfig(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
        )

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ValueError if configuration is invalid
        """
        if self.network.name not in NETWORK_ENDPOINTS:
            raise ValueError(
                f"Unknown NETWORK: {self.network.name}. Use one of {sorted(NETWORK_ENDPOINTS)}"
            )

        for field_name in (
            "markets_ttl",
            "orderbook_ttl",
            "trades_ttl",
            "oracle_ttl",
            "analytics_ttl",
            "summary_ttl",
            "account_ttl",
            "positions_ttl",
        ):
            if getattr(self.cache, field_name) < 0:
                raise ValueError(f"Cache TTL {field_name} must not be negative")

        if self.cache.sweep_interval <= 0:
            raise ValueError("CACHE_SWEEP_INTERVAL must be positive")

        return True


# Global config instance
config = Config()
