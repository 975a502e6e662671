"""In-memory data provider and helpers shared by the test suite."""

from typing import Any

from ninjascope.services.indexer_client import MarketDataProvider

SPOT_INJ = "0xspot01"
SPOT_ATOM = "0xspot02"
PERP_INJ = "0xperp01"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def spot_market(market_id: str, ticker: str, base_decimals: int | None = 18, quote_decimals: int | None = 6) -> dict:
    base, quote = ticker.split(" ")[0].split("/")
    return {
        "market_id": market_id,
        "ticker": ticker,
        "base_denom": f"factory/{base.lower()}",
        "quote_denom": f"peggy/{quote.lower()}",
        "base_token_meta": (
            {"name": base, "symbol": base, "decimals": base_decimals} if base_decimals is not None else None
        ),
        "quote_token_meta": (
            {"name": quote, "symbol": quote, "decimals": quote_decimals} if quote_decimals is not None else None
        ),
        "maker_fee_rate": "-0.0001",
        "taker_fee_rate": "0.001",
        "min_price_tick_size": "0.000000000000001",
        "min_quantity_tick_size": "1000000000000000",
        "service_provider_fee": "0.4",
    }


def derivative_market(market_id: str, ticker: str) -> dict:
    base, quote = ticker.split(" ")[0].split("/")
    return {
        "market_id": market_id,
        "ticker": ticker,
        "base_denom": base,
        "quote_denom": f"peggy/{quote.lower()}",
        "base_token_meta": None,
        "quote_token_meta": {"name": quote, "symbol": quote, "decimals": 6},
        "maker_fee_rate": "-0.0001",
        "taker_fee_rate": "0.001",
        "min_price_tick_size": "0.001",
        "min_quantity_tick_size": "0.0001",
        "service_provider_fee": "0.4",
    }


def level(price: str, quantity: str, timestamp: int = 1700000000000) -> dict:
    return {"price": price, "quantity": quantity, "timestamp": timestamp}


def book(buys: list[tuple[str, str]], sells: list[tuple[str, str]]) -> dict:
    return {"buys": [level(p, q) for p, q in buys], "sells": [level(p, q) for p, q in sells]}


def raw_trade(trade_id: str, price: str, quantity: str, executed_at: int = 0, direction: str = "buy") -> dict:
    return {
        "order_hash": f"0xorder{trade_id}",
        "trade_id": trade_id,
        "subaccount_id": "0xsub",
        "market_id": "",
        "executed_at": executed_at,
        "trade_direction": direction,
        "trade_execution_type": "limitMatchNewOrder",
        "execution_side": "taker",
        "price": price,
        "quantity": quantity,
        "fee": "0.1",
        "fee_recipient": "inj1feerecipient",
    }


class FakeProvider(MarketDataProvider):
    """
    MarketDataProvider backed by dicts.

    Every call is recorded in `calls`. Adding a method name (or a
    (method, key) pair) to `failures` makes that call raise RuntimeError.
    """

    def __init__(self):
        self.spot: list[dict[str, Any]] = []
        self.derivatives: list[dict[str, Any]] = []
        self.orderbooks: dict[str, dict[str, Any]] = {}
        self.trades: dict[str, list[dict[str, Any]]] = {}
        self.oracles: list[dict[str, Any]] = []
        self.funding: dict[str, list[dict[str, Any]]] = {}
        self.portfolios: dict[str, dict[str, Any]] = {}
        self.positions: dict[str, list[dict[str, Any]]] = {}
        self.failures: set = set()
        self.calls: list[tuple] = []

    @classmethod
    def with_default_markets(cls) -> "FakeProvider":
        provider = cls()
        provider.spot = [
            spot_market(SPOT_INJ, "INJ/USDT", 18, 6),
            spot_market(SPOT_ATOM, "ATOM/USDT", 6, 6),
        ]
        provider.derivatives = [derivative_market(PERP_INJ, "INJ/USDT PERP")]
        return provider

    def _record(self, method: str, key: Any = None) -> None:
        self.calls.append((method, key))
        if method in self.failures or (method, key) in self.failures:
            raise RuntimeError(f"{method} unavailable")

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def fetch_spot_markets(self):
        self._record("fetch_spot_markets")
        return list(self.spot)

    async def fetch_derivative_markets(self):
        self._record("fetch_derivative_markets")
        return list(self.derivatives)

    async def fetch_orderbook(self, market_id, market_type):
        self._record("fetch_orderbook", market_id)
        return self.orderbooks.get(market_id, {"buys": [], "sells": []})

    async def fetch_trades(self, market_id, market_type, limit, skip):
        self._record("fetch_trades", market_id)
        trades = self.trades.get(market_id, [])
        return {"trades": trades[skip : skip + limit], "total": len(trades)}

    async def fetch_oracle_prices(self):
        self._record("fetch_oracle_prices")
        return list(self.oracles)

    async def fetch_funding_rates(self, market_id, limit):
        self._record("fetch_funding_rates", market_id)
        return self.funding.get(market_id, [])[:limit]

    async def fetch_portfolio(self, address):
        self._record("fetch_portfolio", address)
        return self.portfolios.get(address, {"bank_balances": [], "subaccounts": [], "positions_with_upnl": []})

    async def fetch_positions(self, subaccount_id):
        self._record("fetch_positions", subaccount_id)
        return self.positions.get(subaccount_id, [])
