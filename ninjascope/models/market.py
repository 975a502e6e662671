"""Market data models: catalog entries, orderbooks, trades, oracle and account data."""

from dataclasses import dataclass, field
from typing import Literal

MarketType = Literal["spot", "derivative"]


@dataclass
class TokenMeta:
    """Token metadata attached to a market denomination."""

    name: str
    symbol: str
    decimals: int | None = None


@dataclass
class Market:
    """A tradable market as listed by the indexer."""

    market_id: str
    ticker: str
    type: MarketType
    base_denom: str
    quote_denom: str
    maker_fee_rate: str
    taker_fee_rate: str
    min_price_tick_size: str
    min_quantity_tick_size: str
    service_provider_fee: str
    base_token_meta: TokenMeta | None = None
    quote_token_meta: TokenMeta | None = None


@dataclass
class OrderbookLevel:
    """One price level of an orderbook, raw and human-readable."""

    price: str
    quantity: str
    human_price: str
    human_quantity: str
    timestamp: int


@dataclass
class OrderbookSnapshot:
    """
    Point-in-time orderbook for one market.

    Buys are ordered by descending price, sells by ascending price. Spread
    fields are None unless both best bid and best ask exist and are positive.
    """

    market_id: str
    buys: list[OrderbookLevel] = field(default_factory=list)
    sells: list[OrderbookLevel] = field(default_factory=list)
    best_bid: str | None = None
    best_ask: str | None = None
    spread: str | None = None
    spread_percentage: str | None = None
    updated_at: str = ""

    @property
    def entry_count(self) -> int:
        return len(self.buys) + len(self.sells)


@dataclass
class Trade:
    """An executed trade, newest-first as returned by the indexer."""

    trade_id: str
    market_id: str
    order_hash: str
    subaccount_id: str
    executed_at: int
    trade_direction: str
    trade_execution_type: str
    execution_side: str
    execution_price: str
    execution_quantity: str
    human_price: str
    human_quantity: str
    fee: str
    fee_recipient: str


@dataclass
class TradesPage:
    """A page of trades for one market."""

    market_id: str
    trades: list[Trade]
    total: int


@dataclass
class OraclePrice:
    """A normalized oracle price feed."""

    symbol: str
    base_symbol: str
    quote_symbol: str
    oracle_type: str
    price: str


@dataclass
class FundingRate:
    """A single funding rate observation for a derivative market."""

    rate: str
    timestamp: int


@dataclass
class BankBalance:
    denom: str
    amount: str


@dataclass
class SubaccountDeposit:
    total_balance: str
    available_balance: str


@dataclass
class SubaccountBalance:
    subaccount_id: str
    denom: str
    deposit: SubaccountDeposit


@dataclass
class Position:
    """An open derivative position."""

    market_id: str
    ticker: str
    direction: str
    quantity: str
    entry_price: str
    mark_price: str
    margin: str
    unrealized_pnl: str
    subaccount_id: str


@dataclass
class PortfolioSummary:
    address: str
    bank_balances: list[BankBalance]
    subaccounts: list[SubaccountBalance]
    positions_count: int


@dataclass
class PositionsResult:
    address: str
    positions: list[Position]
    total: int


@dataclass
class MarketBrief:
    market_id: str
    ticker: str
    type: MarketType


@dataclass
class MarketsSummary:
    """Aggregated counts across the catalog."""

    total_markets: int
    spot_markets: int
    derivative_markets: int
    markets: list[MarketBrief]
