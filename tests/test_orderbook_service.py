"""Tests for the orderbook reader."""

import pytest
from hypothesis import given, strategies as st

from fakes import PERP_INJ, SPOT_ATOM, SPOT_INJ, book
from ninjascope.services.errors import ErrorCode, UpstreamError
from ninjascope.services.orderbook_service import compute_spread


class TestComputeSpread:
    def test_spread_and_percentage(self):
        assert compute_spread("100", "102") == ("2", "1.9802")

    def test_missing_side_yields_none(self):
        assert compute_spread(None, "102") == (None, None)
        assert compute_spread("100", None) == (None, None)

    def test_non_positive_prices_yield_none(self):
        assert compute_spread("0", "102") == (None, None)
        assert compute_spread("100", "garbage") == (None, None)

    @given(
        bid=st.decimals(min_value="0.0001", max_value="1000000", places=4),
        gap=st.decimals(min_value="0", max_value="1000", places=4),
    )
    def test_percentage_has_four_decimal_places(self, bid, gap):
        """
        **Feature: orderbook, Property: Spread percentage precision**

        For any positive bid at or below the ask, the spread percentage is
        non-negative and carries exactly 4 decimal places.
        """
        _, percentage = compute_spread(str(bid), str(bid + gap))

        assert percentage is not None
        assert len(percentage.split(".")[1]) == 4
        assert float(percentage) >= 0


class TestOrderbookReader:
    """Test suite for OrderbookReader."""

    @pytest.mark.asyncio
    async def test_derivative_orderbook_best_prices_and_spread(self, services, provider):
        provider.orderbooks[PERP_INJ] = book(
            buys=[("100", "1.5"), ("99", "2")],
            sells=[("102", "1"), ("103", "4")],
        )

        snapshot = await services.orderbooks.get_orderbook(PERP_INJ)

        assert snapshot.best_bid == "100"
        assert snapshot.best_ask == "102"
        assert snapshot.spread == "2"
        assert snapshot.spread_percentage == "1.9802"
        assert snapshot.entry_count == 4
        assert snapshot.updated_at.endswith("Z")

    @pytest.mark.asyncio
    async def test_spot_levels_are_normalized(self, services, provider):
        provider.orderbooks[SPOT_INJ] = book(
            buys=[("0.00000000002", "10000000000000000000")],
            sells=[("0.000000000021", "500000000000000000")],
        )

        snapshot = await services.orderbooks.get_orderbook(SPOT_INJ)

        level = snapshot.buys[0]
        assert level.price == "0.00000000002"
        assert level.human_price == "20"
        assert level.human_quantity == "10"
        assert snapshot.sells[0].human_quantity == "0.5"
        assert snapshot.best_bid == "20"
        assert snapshot.best_ask == "21"
        assert snapshot.spread == "1"

    @pytest.mark.asyncio
    async def test_one_sided_book_has_no_spread(self, services, provider):
        provider.orderbooks[SPOT_ATOM] = book(buys=[("9.5", "1000000")], sells=[])

        snapshot = await services.orderbooks.get_orderbook(SPOT_ATOM)

        assert snapshot.best_bid == "9.5"
        assert snapshot.best_ask is None
        assert snapshot.spread is None
        assert snapshot.spread_percentage is None

    @pytest.mark.asyncio
    async def test_empty_book(self, services):
        snapshot = await services.orderbooks.get_orderbook(PERP_INJ)

        assert snapshot.buys == []
        assert snapshot.sells == []
        assert snapshot.best_bid is None
        assert snapshot.entry_count == 0

    @pytest.mark.asyncio
    async def test_unknown_market(self, services, provider):
        assert await services.orderbooks.get_orderbook("0xunknown") is None
        assert provider.count("fetch_orderbook") == 0

    @pytest.mark.asyncio
    async def test_orderbook_is_cached_for_its_ttl(self, services, provider, clock, cache_config):
        await services.orderbooks.get_orderbook(PERP_INJ)
        await services.orderbooks.get_orderbook(PERP_INJ)
        assert provider.count("fetch_orderbook") == 1

        clock.advance(cache_config.orderbook_ttl)
        await services.orderbooks.get_orderbook(PERP_INJ)
        assert provider.count("fetch_orderbook") == 2

    @pytest.mark.asyncio
    async def test_fetch_failure_raises_orderbook_error(self, services, provider):
        provider.failures.add(("fetch_orderbook", PERP_INJ))

        with pytest.raises(UpstreamError) as exc_info:
            await services.orderbooks.get_orderbook(PERP_INJ)

        assert exc_info.value.code == ErrorCode.ORDERBOOK_ERROR
