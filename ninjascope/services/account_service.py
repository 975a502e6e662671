"""Wallet portfolio and open positions."""

import asyncio

from ninjascope.models.market import (
    BankBalance,
    PortfolioSummary,
    Position,
    PositionsResult,
    SubaccountBalance,
    SubaccountDeposit,
)
from ninjascope.services.cache import TTLCache
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.indexer_client import MarketDataProvider
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.logger import StructuredLogger

ADDRESS_PREFIX = "inj1"


def is_valid_address(address: str) -> bool:
    return bool(address) and address.startswith(ADDRESS_PREFIX)


class AccountService:
    """Reads wallet balances and derivative positions."""

    def __init__(self, provider: MarketDataProvider, cache: TTLCache, cache_config: CacheConfig):
        self.provider = provider
        self.cache = cache
        self.cache_config = cache_config
        self.logger = StructuredLogger("AccountService")

    async def get_portfolio(self, address: str) -> PortfolioSummary | None:
        """
        Bank balances, subaccount deposits and open position count of a wallet.

        Returns:
            PortfolioSummary, or None when the address is malformed

        Raises:
            UpstreamError: If the portfolio cannot be fetched
        """
        if not is_valid_address(address):
            return None

        cache_key = f"account:portfolio:{address}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        try:
            raw = await self.provider.fetch_portfolio(address)
        except Exception as e:
            self.logger.error("Portfolio fetch failed", context={"address": address}, exception=e)
            raise UpstreamError(ErrorCode.PORTFOLIO_ERROR, f"Failed to fetch portfolio for {address}: {e}") from e

        subaccounts = []
        for sub in raw.get("subaccounts") or []:
            deposit = sub.get("deposit") or {}
            subaccounts.append(
                SubaccountBalance(
                    subaccount_id=sub.get("subaccount_id") or "",
                    denom=sub.get("denom") or "",
                    deposit=SubaccountDeposit(
                        total_balance=str(deposit.get("total_balance") or "0"),
                        available_balance=str(deposit.get("available_balance") or "0"),
                    ),
                )
            )

        result = PortfolioSummary(
            address=address,
            bank_balances=[
                BankBalance(denom=b.get("denom") or "", amount=str(b.get("amount") or "0"))
                for b in raw.get("bank_balances") or []
            ],
            subaccounts=subaccounts,
            positions_count=len(raw.get("positions_with_upnl") or []),
        )
        self.cache.set(cache_key, result, self.cache_config.account_ttl)
        return result

    async def get_positions(self, address: str) -> PositionsResult | None:
        """
        Open derivative positions across every subaccount of a wallet.

        Returns:
            PositionsResult, or None when the address is malformed

        Raises:
            UpstreamError: If the portfolio or any subaccount's positions cannot be fetched
        """
        if not is_valid_address(address):
            return None

        cache_key = f"account:positions:{address}"
        cached = self.cache.lookup(cache_key)
        if cached.hit:
            return cached.value

        portfolio = await self.get_portfolio(address)
        subaccount_ids = list(dict.fromkeys(s.subaccount_id for s in portfolio.subaccounts if s.subaccount_id))

        try:
            per_subaccount = await asyncio.gather(*(self.provider.fetch_positions(sid) for sid in subaccount_ids))
        except Exception as e:
            self.logger.error("Positions fetch failed", context={"address": address}, exception=e)
            raise UpstreamError(ErrorCode.POSITIONS_ERROR, f"Failed to fetch positions for {address}: {e}") from e

        positions = [
            Position(
                market_id=p.get("market_id") or "",
                ticker=p.get("ticker") or "",
                direction=p.get("direction") or "",
                quantity=str(p.get("quantity") or "0"),
                entry_price=str(p.get("entry_price") or "0"),
                mark_price=str(p.get("mark_price") or "0"),
                margin=str(p.get("margin") or "0"),
                unrealized_pnl=str(p.get("unrealized_pnl") or "0"),
                subaccount_id=p.get("subaccount_id") or sid,
            )
            for sid, raw_positions in zip(subaccount_ids, per_subaccount)
            for p in raw_positions
        ]

        result = PositionsResult(address=address, positions=positions, total=len(positions))
        self.cache.set(cache_key, result, self.cache_config.positions_ttl)
        return result
