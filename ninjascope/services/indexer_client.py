"""Read-only access to the exchange indexer: the data provider behind every service."""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from ninjascope.models.market import MarketType
from ninjascope.utils.logger import StructuredLogger


class IndexerError(Exception):
    """The indexer could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MarketDataProvider(ABC):
    """
    Narrow query interface over the indexer.

    Implementations return plain dicts in the flattened snake_case shapes
    documented on each method; all decimal normalization happens downstream.
    """

    @abstractmethod
    async def fetch_spot_markets(self) -> list[dict[str, Any]]:
        """Markets with market_id, ticker, base/quote denom, token metas, fees and tick sizes."""

    @abstractmethod
    async def fetch_derivative_markets(self) -> list[dict[str, Any]]:
        """Same shape as spot markets; base_denom carries the oracle base symbol."""

    @abstractmethod
    async def fetch_orderbook(self, market_id: str, market_type: MarketType) -> dict[str, Any]:
        """{"buys": [...], "sells": [...]}, levels {price, quantity, timestamp}, best first."""

    @abstractmethod
    async def fetch_trades(
        self, market_id: str, market_type: MarketType, limit: int, skip: int
    ) -> dict[str, Any]:
        """{"trades": [...], "total": int}, newest first."""

    @abstractmethod
    async def fetch_oracle_prices(self) -> list[dict[str, Any]]:
        """Oracle feeds with symbol, base_symbol, quote_symbol, oracle_type, price."""

    @abstractmethod
    async def fetch_funding_rates(self, market_id: str, limit: int) -> list[dict[str, Any]]:
        """Funding observations {rate, timestamp}, newest first."""

    @abstractmethod
    async def fetch_portfolio(self, address: str) -> dict[str, Any]:
        """{"bank_balances": [...], "subaccounts": [...], "positions_with_upnl": [...]}."""

    @abstractmethod
    async def fetch_positions(self, subaccount_id: str) -> list[dict[str, Any]]:
        """Open derivative positions of one subaccount."""


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _token_meta(raw: dict[str, Any] | None) -> dict[str, Any] | None:
    if not raw:
        return None
    return {
        "name": raw.get("name", ""),
        "symbol": raw.get("symbol", ""),
        "decimals": _optional_int(raw.get("decimals")),
    }


def _flatten_market(raw: dict[str, Any], market_type: MarketType) -> dict[str, Any]:
    base_denom = raw.get("base_denom") if market_type == "spot" else raw.get("oracle_base")
    return {
        "market_id": raw.get("market_id", ""),
        "ticker": raw.get("ticker", ""),
        "base_denom": base_denom or "",
        "quote_denom": raw.get("quote_denom", ""),
        "base_token_meta": _token_meta(raw.get("base_token_meta")) if market_type == "spot" else None,
        "quote_token_meta": _token_meta(raw.get("quote_token_meta")),
        "maker_fee_rate": raw.get("maker_fee_rate", "0"),
        "taker_fee_rate": raw.get("taker_fee_rate", "0"),
        "min_price_tick_size": raw.get("min_price_tick_size", "0"),
        "min_quantity_tick_size": raw.get("min_quantity_tick_size", "0"),
        "service_provider_fee": raw.get("service_provider_fee", "0"),
    }


def _flatten_trade(raw: dict[str, Any], market_type: MarketType) -> dict[str, Any]:
    if market_type == "spot":
        price = raw.get("price") or {}
        execution_price = price.get("price", "0")
        execution_quantity = price.get("quantity", "0")
        direction = raw.get("trade_direction", "")
    else:
        delta = raw.get("position_delta") or {}
        execution_price = delta.get("execution_price", "0")
        execution_quantity = delta.get("execution_quantity", "0")
        direction = delta.get("trade_direction", "")
    return {
        "order_hash": raw.get("order_hash", ""),
        "trade_id": raw.get("trade_id", ""),
        "subaccount_id": raw.get("subaccount_id", ""),
        "market_id": raw.get("market_id", ""),
        "executed_at": int(raw.get("executed_at") or 0),
        "trade_direction": direction,
        "trade_execution_type": raw.get("trade_execution_type", ""),
        "execution_side": raw.get("execution_side", ""),
        "price": execution_price,
        "quantity": execution_quantity,
        "fee": raw.get("fee", "0"),
        "fee_recipient": raw.get("fee_recipient", ""),
    }


class IndexerClient(MarketDataProvider):
    """MarketDataProvider over the indexer's HTTP gateway."""

    SPOT_MARKETS_PATH = "/api/exchange/spot/v1/markets"
    DERIVATIVE_MARKETS_PATH = "/api/exchange/derivative/v1/markets"
    ORDERBOOK_PATH = "/api/exchange/{kind}/v2/orderbook/{market_id}"
    TRADES_PATH = "/api/exchange/{kind}/v2/trades"
    ORACLE_LIST_PATH = "/api/exchange/oracle/v1/oracle_list"
    FUNDING_RATES_PATH = "/api/exchange/derivative/v1/funding_rates"
    PORTFOLIO_PATH = "/api/exchange/portfolio/v1/portfolio/{address}"
    POSITIONS_PATH = "/api/exchange/derivative/v2/positions"

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.AsyncClient | None = None):
        """
        Initialize the client.

        Args:
            base_url: Indexer gateway URL for the selected network
            timeout: Per-request timeout in seconds
            client: Optional preconfigured AsyncClient (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.logger = StructuredLogger("IndexerClient")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.logger.debug("Indexer request", context={"path": path, "params": params or {}})
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise IndexerError(
                f"Indexer returned {e.response.status_code} for {path}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise IndexerError(f"Indexer request to {path} failed: {e}") from e

    async def fetch_spot_markets(self) -> list[dict[str, Any]]:
        data = await self._get(self.SPOT_MARKETS_PATH)
        return [_flatten_market(m, "spot") for m in data.get("markets") or []]

    async def fetch_derivative_markets(self) -> list[dict[str, Any]]:
        data = await self._get(self.DERIVATIVE_MARKETS_PATH)
        return [_flatten_market(m, "derivative") for m in data.get("markets") or []]

    async def fetch_orderbook(self, market_id: str, market_type: MarketType) -> dict[str, Any]:
        data = await self._get(self.ORDERBOOK_PATH.format(kind=market_type, market_id=market_id))
        orderbook = data.get("orderbook") or {}
        return {"buys": orderbook.get("buys") or [], "sells": orderbook.get("sells") or []}

    async def fetch_trades(
        self, market_id: str, market_type: MarketType, limit: int, skip: int
    ) -> dict[str, Any]:
        data = await self._get(
            self.TRADES_PATH.format(kind=market_type),
            params={"market_ids": market_id, "limit": limit, "skip": skip},
        )
        trades = [_flatten_trade(t, market_type) for t in data.get("trades") or []]
        paging = data.get("paging") or {}
        return {"trades": trades, "total": int(paging.get("total") or len(trades))}

    async def fetch_oracle_prices(self) -> list[dict[str, Any]]:
        data = await self._get(self.ORACLE_LIST_PATH)
        return data.get("oracles") or []

    async def fetch_funding_rates(self, market_id: str, limit: int) -> list[dict[str, Any]]:
        data = await self._get(self.FUNDING_RATES_PATH, params={"market_id": market_id, "limit": limit})
        return data.get("funding_rates") or []

    async def fetch_portfolio(self, address: str) -> dict[str, Any]:
        data = await self._get(self.PORTFOLIO_PATH.format(address=address))
        portfolio = data.get("portfolio") or {}
        return {
            "bank_balances": portfolio.get("bank_balances") or [],
            "subaccounts": portfolio.get("subaccounts") or [],
            "positions_with_upnl": portfolio.get("positions_with_upnl") or [],
        }

    async def fetch_positions(self, subaccount_id: str) -> list[dict[str, Any]]:
        data = await self._get(self.POSITIONS_PATH, params={"subaccount_id": subaccount_id})
        return data.get("positions") or []
