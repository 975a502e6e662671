"""Integration tests for the HTTP API."""

from fakes import PERP_INJ, SPOT_ATOM, SPOT_INJ, book, raw_trade

API = "/api/v1"


def assert_error(response, status_code: int, code: str):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert body["meta"]["timestamp"].endswith("Z")


class TestEnvelope:
    """Tests for the response envelope and request metadata."""

    def test_success_envelope(self, test_client):
        response = test_client.get(f"{API}/markets")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [m["market_id"] for m in body["data"]] == [SPOT_INJ, SPOT_ATOM, PERP_INJ]
        assert body["meta"]["cached"] is False
        assert body["meta"]["took_ms"] >= 0
        assert body["meta"]["timestamp"].endswith("Z")

    def test_repeated_request_is_served_from_cache(self, test_client):
        test_client.get(f"{API}/markets")

        body = test_client.get(f"{API}/markets").json()

        assert body["meta"]["cached"] is True

    def test_request_id_is_generated_or_echoed(self, test_client):
        generated = test_client.get(f"{API}/status")
        echoed = test_client.get(f"{API}/status", headers={"X-Request-ID": "req-123"})

        assert generated.headers["X-Request-ID"]
        assert echoed.headers["X-Request-ID"] == "req-123"

    def test_upstream_failure_maps_to_502(self, test_client, provider):
        provider.failures.add("fetch_spot_markets")

        response = test_client.get(f"{API}/markets")

        assert_error(response, 502, "MARKETS_ERROR")

    def test_validation_error(self, test_client):
        response = test_client.get(f"{API}/markets/rankings", params={"limit": 0})

        assert_error(response, 400, "VALIDATION_ERROR")
        assert response.json()["error"]["details"]


class TestMarketRoutes:
    """Tests for market listing and lookup endpoints."""

    def test_type_filter(self, test_client):
        body = test_client.get(f"{API}/markets", params={"type": "derivative"}).json()

        assert [m["market_id"] for m in body["data"]] == [PERP_INJ]

    def test_summary_with_type(self, test_client):
        data = test_client.get(f"{API}/markets/summary", params={"type": "spot"}).json()["data"]

        assert data["total_markets"] == 2
        assert data["spot_markets"] == 2
        assert data["derivative_markets"] == 0

    def test_search(self, test_client):
        data = test_client.get(f"{API}/markets/search", params={"q": "atom"}).json()["data"]

        assert [m["market_id"] for m in data] == [SPOT_ATOM]

    def test_ticker_lookup(self, test_client):
        data = test_client.get(f"{API}/markets/ticker/inj-usdt").json()["data"]

        assert data["market_id"] == SPOT_INJ
        assert data["base_token_meta"]["decimals"] == 18

    def test_unknown_ticker(self, test_client):
        assert_error(test_client.get(f"{API}/markets/ticker/btc-usdt"), 404, "NOT_FOUND")

    def test_market_detail(self, test_client):
        assert test_client.get(f"{API}/markets/{PERP_INJ}").json()["data"]["type"] == "derivative"
        assert_error(test_client.get(f"{API}/markets/0xunknown"), 404, "NOT_FOUND")

    def test_orderbook(self, test_client, provider):
        provider.orderbooks[PERP_INJ] = book(buys=[("100", "1")], sells=[("102", "1")])

        data = test_client.get(f"{API}/markets/{PERP_INJ}/orderbook").json()["data"]

        assert data["best_bid"] == "100"
        assert data["spread_percentage"] == "1.9802"

    def test_trades(self, test_client, provider):
        provider.trades[PERP_INJ] = [raw_trade(f"t{i}", "10", "1") for i in range(5)]

        data = test_client.get(f"{API}/markets/{PERP_INJ}/trades", params={"limit": 2, "skip": 1}).json()["data"]

        assert [t["trade_id"] for t in data["trades"]] == ["t1", "t2"]
        assert data["total"] == 5


class TestAnalyticsRoutes:
    def test_spread(self, test_client, provider):
        provider.orderbooks[PERP_INJ] = book(buys=[("100", "1")], sells=[("102", "1")])

        data = test_client.get(f"{API}/markets/{PERP_INJ}/spread").json()["data"]

        assert data["absolute_spread"] == "2"
        assert data["mid_price"] == "101"

    def test_depth_missing_side_is_not_found(self, test_client):
        assert_error(test_client.get(f"{API}/markets/{PERP_INJ}/depth"), 404, "NOT_FOUND")

    def test_volatility_always_answers(self, test_client):
        data = test_client.get(f"{API}/markets/0xunknown/volatility").json()["data"]

        assert data["volatility"] == "0"
        assert data["history_metadata"] is None

    def test_health(self, test_client, provider):
        provider.orderbooks[PERP_INJ] = book(buys=[("100", "10")], sells=[("102", "10")])

        data = test_client.get(f"{API}/markets/{PERP_INJ}/health").json()["data"]

        assert data["score"] == 26
        assert data["rating"] == "poor"
        assert data["components"] == {"spread_score": 20, "depth_score": 40, "activity_score": 20}

    def test_funding(self, test_client, provider):
        provider.funding[PERP_INJ] = [{"rate": "0.0001", "timestamp": 1}]

        data = test_client.get(f"{API}/markets/{PERP_INJ}/funding").json()["data"]

        assert data["funding_rates"] == [{"rate": "0.0001", "timestamp": 1}]

    def test_funding_cached_flag_follows_the_funding_entry(self, test_client, provider):
        provider.funding[PERP_INJ] = [{"rate": "0.0001", "timestamp": 1}]
        test_client.get(f"{API}/markets")

        first = test_client.get(f"{API}/markets/{PERP_INJ}/funding").json()
        second = test_client.get(f"{API}/markets/{PERP_INJ}/funding").json()

        assert first["meta"]["cached"] is False
        assert second["meta"]["cached"] is True
        assert provider.count("fetch_funding_rates") == 1

    def test_funding_on_spot_market(self, test_client):
        assert_error(test_client.get(f"{API}/markets/{SPOT_ATOM}/funding"), 400, "NOT_DERIVATIVE")

    def test_funding_on_unknown_market(self, test_client):
        assert_error(test_client.get(f"{API}/markets/0xunknown/funding"), 404, "NOT_FOUND")


class TestRankingRoutes:
    def test_rankings(self, test_client, provider):
        provider.orderbooks[PERP_INJ] = book(buys=[("100", "1")], sells=[("102", "1")])

        data = test_client.get(f"{API}/markets/rankings", params={"sort": "spread", "limit": 2}).json()["data"]

        assert len(data) == 2
        assert data[0]["market_id"] == PERP_INJ

    def test_compare(self, test_client):
        data = test_client.get(f"{API}/markets/compare", params={"ids": f"{PERP_INJ},0xunknown"}).json()["data"]

        assert {m["market_id"] for m in data["markets"]} == {PERP_INJ, "0xunknown"}

    def test_compare_too_many_ids(self, test_client):
        ids = ",".join(f"0x{i}" for i in range(6))

        assert_error(test_client.get(f"{API}/markets/compare", params={"ids": ids}), 400, "TOO_MANY_IDS")

    def test_compare_without_ids(self, test_client):
        assert_error(test_client.get(f"{API}/markets/compare", params={"ids": " , "}), 400, "INVALID_IDS")

    def test_whales_with_minimum(self, test_client, provider):
        provider.trades[PERP_INJ] = [raw_trade("big", "10", "50"), raw_trade("small", "10", "1")]

        data = test_client.get(f"{API}/markets/{PERP_INJ}/whales", params={"minValue": 100}).json()["data"]

        assert [w["trade_id"] for w in data] == ["big"]

    def test_snapshot(self, test_client):
        data = test_client.get(f"{API}/markets/{SPOT_INJ}/snapshot").json()["data"]

        assert data["market"]["ticker"] == "INJ/USDT"
        assert data["recent_trades"] == []

    def test_snapshot_unknown_market(self, test_client):
        assert_error(test_client.get(f"{API}/markets/0xunknown/snapshot"), 404, "NOT_FOUND")


class TestUtilityRoutes:
    def test_oracle_prices(self, test_client, provider):
        provider.oracles = [
            {"symbol": "INJ", "base_symbol": "INJ", "quote_symbol": "USD", "oracle_type": "pyth", "price": "24.5"},
            {"symbol": "ATOM", "base_symbol": "ATOM", "quote_symbol": "USD", "oracle_type": "pyth", "price": "9"},
        ]

        data = test_client.get(f"{API}/oracle/prices", params={"symbol": "INJ"}).json()["data"]

        assert [p["symbol"] for p in data] == ["INJ"]

    def test_invalid_address(self, test_client):
        assert_error(test_client.get(f"{API}/accounts/cosmos1xyz/portfolio"), 400, "INVALID_ADDRESS")
        assert_error(test_client.get(f"{API}/accounts/cosmos1xyz/positions"), 400, "INVALID_ADDRESS")

    def test_positions_of_empty_wallet(self, test_client):
        data = test_client.get(f"{API}/accounts/inj1emptywallet/positions").json()["data"]

        assert data == {"address": "inj1emptywallet", "positions": [], "total": 0}

    def test_status(self, test_client):
        body = test_client.get(f"{API}/status").json()

        assert body["data"]["status"] == "healthy"
        assert body["data"]["network"] == "mainnet"
        assert body["meta"]["cached"] is False
