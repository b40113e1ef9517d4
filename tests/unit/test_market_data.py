"""
Tests for the market-hours aware quote cache, driven by a fake clock.
"""

from datetime import datetime, time, timedelta, timezone

import pytest

from risk_analytics.exceptions import DomainError
from risk_analytics.market_data import MarketDataCache, RefreshPolicy

MONDAY_MORNING = datetime(2024, 1, 8, 10, 0)
MONDAY_EVENING = datetime(2024, 1, 8, 18, 0)
SATURDAY_NOON = datetime(2024, 1, 6, 12, 0)


class FakeClock:

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class CountingProvider:

    def __init__(self, price=100.0):
        self.price = price
        self.calls = []

    def __call__(self, symbol):
        self.calls.append(symbol)
        return self.price


class FailingProvider:

    def __call__(self, symbol):
        raise ConnectionError(f"quote service unavailable for {symbol}")


@pytest.fixture
def provider():
    return CountingProvider()


class TestRefreshPolicy:

    @pytest.mark.parametrize(
        "moment,is_open",
        [
            (MONDAY_MORNING, True),
            (MONDAY_EVENING, False),
            (SATURDAY_NOON, False),
            (datetime(2024, 1, 7, 12, 0), False),
            (datetime(2024, 1, 8, 9, 30), True),
            (datetime(2024, 1, 8, 9, 29, 59), False),
            (datetime(2024, 1, 8, 15, 59, 59), True),
            (datetime(2024, 1, 8, 16, 0), False),
        ],
    )
    def test_market_hours(self, moment, is_open):
        assert RefreshPolicy().is_market_open(moment) is is_open

    def test_aware_datetime_converted_to_exchange_time(self):
        # 15:00 UTC is 10:00 in New York in January
        moment = datetime(2024, 1, 8, 15, 0, tzinfo=timezone.utc)
        assert RefreshPolicy().is_market_open(moment)
        assert not RefreshPolicy().is_market_open(moment.replace(hour=22))

    def test_ttl(self):
        policy = RefreshPolicy()
        assert policy.ttl(MONDAY_MORNING) == 5.0
        assert policy.ttl(MONDAY_EVENING) == 60.0

    def test_invalid_policy(self):
        with pytest.raises(DomainError):
            RefreshPolicy(market_hours_ttl=-1.0)
        with pytest.raises(DomainError):
            RefreshPolicy(market_open=time(16, 0), market_close=time(9, 30))


class TestMarketDataCache:

    def test_market_hours_window(self, provider):
        clock = FakeClock(MONDAY_MORNING)
        cache = MarketDataCache(provider, clock=clock)

        assert cache.get_price("AAPL") == 100.0
        clock.advance(4)
        cache.get_price("AAPL")
        assert provider.calls == ["AAPL"]

        clock.advance(1)
        cache.get_price("AAPL")
        assert provider.calls == ["AAPL", "AAPL"]

    def test_after_hours_window(self, provider):
        clock = FakeClock(MONDAY_EVENING)
        cache = MarketDataCache(provider, clock=clock)

        cache.get_price("MSFT")
        clock.advance(59)
        cache.get_price("MSFT")
        assert len(provider.calls) == 1

        clock.advance(1)
        cache.get_price("MSFT")
        assert len(provider.calls) == 2

    def test_weekend_uses_after_hours_window(self, provider):
        clock = FakeClock(SATURDAY_NOON)
        cache = MarketDataCache(provider, clock=clock)
        cache.get_price("SPY")
        clock.advance(30)
        cache.get_price("SPY")
        assert len(provider.calls) == 1
        assert not cache.is_market_open()

    def test_clock_moving_backwards_refetches(self, provider):
        clock = FakeClock(MONDAY_EVENING)
        cache = MarketDataCache(provider, clock=clock)
        cache.get_price("TLT")
        clock.advance(-10)
        cache.get_price("TLT")
        assert len(provider.calls) == 2

    def test_symbols_cached_independently(self, provider):
        cache = MarketDataCache(provider, clock=FakeClock(MONDAY_MORNING))
        prices = cache.get_prices(["AAPL", "MSFT", "AAPL"])
        assert prices == {"AAPL": 100.0, "MSFT": 100.0}
        assert provider.calls == ["AAPL", "MSFT"]

    def test_provider_error_propagates(self):
        clock = FakeClock(MONDAY_MORNING)
        cache = MarketDataCache(FailingProvider(), clock=clock)
        cache.prime("AAPL", 175.0)
        assert cache.get_price("AAPL") == 175.0

        clock.advance(10)
        with pytest.raises(ConnectionError):
            cache.get_price("AAPL")
        assert cache.snapshot() == {"AAPL": 175.0}

    def test_invalidate(self, provider):
        cache = MarketDataCache(provider, clock=FakeClock(MONDAY_EVENING))
        cache.get_prices(["AAPL", "MSFT"])
        cache.invalidate("AAPL")
        assert "AAPL" not in cache
        assert "MSFT" in cache
        cache.get_price("AAPL")
        assert provider.calls.count("AAPL") == 2

        cache.invalidate()
        assert len(cache) == 0

    def test_snapshot_is_a_copy(self, provider):
        cache = MarketDataCache(provider, clock=FakeClock(MONDAY_MORNING))
        cache.prime("SPY", 500.0)
        snap = cache.snapshot()
        snap["SPY"] = 0.0
        assert cache.snapshot() == {"SPY": 500.0}

    def test_custom_policy(self, provider):
        clock = FakeClock(MONDAY_MORNING)
        cache = MarketDataCache(provider, clock=clock, policy=RefreshPolicy(market_hours_ttl=0.0))
        cache.get_price("AAPL")
        cache.get_price("AAPL")
        assert len(provider.calls) == 2
        assert cache.policy.market_hours_ttl == 0.0
