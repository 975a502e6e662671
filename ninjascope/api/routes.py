"""API routes for markets, analytics, oracle prices, accounts and status."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ninjascope.api.dependencies import get_services
from ninjascope.api.error_handlers import ApiError, bad_request, not_found, success_response
from ninjascope.services.account_service import is_valid_address
from ninjascope.services.insights_service import MAX_COMPARE_IDS
from ninjascope.services.registry import Services

router = APIRouter()

MarketTypeParam = Literal["spot", "derivative"]


# ===== Markets =====


@router.get("/markets", tags=["Markets"])
async def list_markets(
    market_type: Optional[MarketTypeParam] = Query(None, alias="type"),
    services: Services = Depends(get_services),
):
    """List all spot and derivative markets."""
    return success_response(await services.catalog.list_all(market_type))


@router.get("/markets/summary", tags=["Utility"])
async def markets_summary(
    market_type: Optional[MarketTypeParam] = Query(None, alias="type"),
    services: Services = Depends(get_services),
):
    """Aggregated overview across all markets."""
    return success_response(await services.catalog.summary(market_type))


@router.get("/markets/search", tags=["Utility"])
async def search_markets(
    q: str = Query(..., min_length=1, description="Search query"),
    services: Services = Depends(get_services),
):
    """Search markets by ticker, denom or token symbol."""
    return success_response(await services.catalog.search(q))


@router.get("/markets/rankings", tags=["Rankings"])
async def market_rankings(
    sort: Literal["health", "spread", "depth"] = Query("health"),
    limit: int = Query(20, ge=1, le=100),
    market_type: Optional[MarketTypeParam] = Query(None, alias="type"),
    services: Services = Depends(get_services),
):
    """Rank markets by health score, spread or depth."""
    return success_response(await services.insights.get_rankings(sort, limit, market_type))


@router.get("/markets/compare", tags=["Rankings"])
async def compare_markets(
    ids: str = Query(..., description="Comma-separated market IDs (max 5)"),
    services: Services = Depends(get_services),
):
    """Compare up to five markets side by side."""
    market_ids = [market_id.strip() for market_id in ids.split(",") if market_id.strip()]
    if not market_ids:
        return bad_request(ApiError.INVALID_IDS, "Provide at least one market ID via ?ids=")
    if len(market_ids) > MAX_COMPARE_IDS:
        return bad_request(ApiError.TOO_MANY_IDS, f"Maximum {MAX_COMPARE_IDS} markets can be compared at once")
    return success_response(await services.insights.compare(market_ids))


@router.get("/markets/ticker/{ticker}", tags=["Markets"])
async def market_by_ticker(
    ticker: str,
    market_type: Optional[MarketTypeParam] = Query(None, alias="type"),
    services: Services = Depends(get_services),
):
    """Look up a market by ticker such as INJ-USDT or BTC-USDT."""
    market = await services.catalog.by_ticker(ticker, market_type)
    if market is None:
        return not_found(f'Market with ticker "{ticker}" not found. Try /markets/search?q={ticker}')
    return success_response(market)


@router.get("/markets/{market_id}", tags=["Markets"])
async def market_detail(market_id: str, services: Services = Depends(get_services)):
    market = await services.catalog.by_id(market_id)
    if market is None:
        return not_found(f"Market {market_id} not found")
    return success_response(market)


@router.get("/markets/{market_id}/orderbook", tags=["Markets"])
async def market_orderbook(market_id: str, services: Services = Depends(get_services)):
    orderbook = await services.orderbooks.get_orderbook(market_id)
    if orderbook is None:
        return not_found(f"Orderbook for market {market_id} not found")
    return success_response(orderbook)


@router.get("/markets/{market_id}/trades", tags=["Markets"])
async def market_trades(
    market_id: str,
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    services: Services = Depends(get_services),
):
    page = await services.trades.get_trades(market_id, limit, skip)
    if page is None:
        return not_found(f"Trades for market {market_id} not found")
    return success_response(page)


# ===== Analytics =====


@router.get("/markets/{market_id}/spread", tags=["Analytics"])
async def market_spread(market_id: str, services: Services = Depends(get_services)):
    spread = await services.analytics.get_spread(market_id)
    if spread is None:
        return not_found(f"Spread data for market {market_id} not found")
    return success_response(spread)


@router.get("/markets/{market_id}/depth", tags=["Analytics"])
async def market_depth(market_id: str, services: Services = Depends(get_services)):
    depth = await services.analytics.get_depth(market_id)
    if depth is None:
        return not_found(f"Depth data for market {market_id} not found")
    return success_response(depth)


@router.get("/markets/{market_id}/volatility", tags=["Analytics"])
async def market_volatility(market_id: str, services: Services = Depends(get_services)):
    return success_response(await services.analytics.get_volatility(market_id))


@router.get("/markets/{market_id}/health", tags=["Analytics"])
async def market_health(market_id: str, services: Services = Depends(get_services)):
    health = await services.analytics.get_health(market_id)
    if health is None:
        return not_found(f"Health data for market {market_id} not found")
    return success_response(health)


@router.get("/markets/{market_id}/funding", tags=["Analytics"])
async def market_funding(market_id: str, services: Services = Depends(get_services)):
    """Funding rates; derivative markets only."""
    funding = await services.analytics.get_funding(market_id)
    if funding is not None:
        return success_response(funding)

    if await services.catalog.by_id(market_id) is None:
        return not_found(f"Market {market_id} not found")
    return bad_request(ApiError.NOT_DERIVATIVE, "Funding rates are only available for derivative markets")


@router.get("/markets/{market_id}/whales", tags=["Rankings"])
async def market_whales(
    market_id: str,
    min_value: Optional[float] = Query(None, alias="minValue", ge=0, description="Minimum notional value"),
    services: Services = Depends(get_services),
):
    """Large trades by notional value; top 10% when no minimum is given."""
    return success_response(await services.insights.get_whale_trades(market_id, min_value))


@router.get("/markets/{market_id}/snapshot", tags=["Rankings"])
async def market_snapshot(market_id: str, services: Services = Depends(get_services)):
    snapshot = await services.insights.get_snapshot(market_id)
    if snapshot is None:
        return not_found(f"Market {market_id} not found")
    return success_response(snapshot)


# ===== Oracle =====


@router.get("/oracle/prices", tags=["Oracle"])
async def oracle_prices(
    symbol: Optional[str] = Query(None, description="Filter by symbol (case-insensitive)"),
    services: Services = Depends(get_services),
):
    return success_response(await services.oracle.get_prices(symbol))


# ===== Wallet =====


@router.get("/accounts/{address}/portfolio", tags=["Wallet"])
async def account_portfolio(address: str, services: Services = Depends(get_services)):
    if not is_valid_address(address):
        return bad_request(ApiError.INVALID_ADDRESS, "Address must start with inj1")
    return success_response(await services.accounts.get_portfolio(address))


@router.get("/accounts/{address}/positions", tags=["Wallet"])
async def account_positions(address: str, services: Services = Depends(get_services)):
    if not is_valid_address(address):
        return bad_request(ApiError.INVALID_ADDRESS, "Address must start with inj1")
    return success_response(await services.accounts.get_positions(address))


# ===== Status =====


@router.get("/status", tags=["Utility"])
async def service_status(services: Services = Depends(get_services)):
    """API health check, cache stats and uptime."""
    response = success_response(services.status.status().to_dict())
    response["meta"]["cached"] = False
    return response
