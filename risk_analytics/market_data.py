"""
Market Data Cache
=================
Quote cache with a market-hours dependent freshness window.

The cache is an ordinary object owned by the caller. Both the quote
provider and the clock are injected, so the network stays outside the
library and freshness can be tested with a fake clock.

Freshness Policy:
    Market open (Mon-Fri, 09:30-16:00 exchange time):  5 s
    Otherwise:                                         60 s
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable, Dict, Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from risk_analytics.exceptions import DomainError

logger = logging.getLogger(__name__)

PriceProvider = Callable[[str], float]
Clock = Callable[[], datetime]


@dataclass(frozen=True)
class RefreshPolicy:
    """
    Quote time-to-live rules.

    Naive datetimes from the clock are taken as exchange-local time;
    aware ones are converted to `timezone` first.
    """
    market_hours_ttl: float = 5.0
    after_hours_ttl: float = 60.0
    market_open: time = time(9, 30)
    market_close: time = time(16, 0)
    timezone: str = "America/New_York"

    def __post_init__(self) -> None:
        if self.market_hours_ttl < 0:
            raise DomainError("market_hours_ttl", self.market_hours_ttl, "must be non-negative")
        if self.after_hours_ttl < 0:
            raise DomainError("after_hours_ttl", self.after_hours_ttl, "must be non-negative")
        if self.market_open >= self.market_close:
            raise DomainError("market_open", self.market_open, "must precede market_close")

    def _local(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment
        return moment.astimezone(ZoneInfo(self.timezone))

    def is_market_open(self, moment: datetime) -> bool:
        """Weekday and inside [open, close)."""
        local = self._local(moment)
        if local.weekday() >= 5:
            return False
        return self.market_open <= local.time() < self.market_close

    def ttl(self, moment: datetime) -> float:
        """Seconds a quote fetched at `moment` stays fresh."""
        return self.market_hours_ttl if self.is_market_open(moment) else self.after_hours_ttl


class MarketDataCache:
    """
    Caches the last quote per symbol and refetches once it goes stale.

    Parameters
    ----------
    provider : callable
        ``provider(symbol) -> price``. Exceptions propagate to the caller.
    clock : callable
        Returns the current datetime. Defaults to ``datetime.now``.
    policy : RefreshPolicy
        Freshness rules.
    """

    def __init__(
        self,
        provider: PriceProvider,
        clock: Clock = datetime.now,
        policy: Optional[RefreshPolicy] = None,
    ):
        self._provider = provider
        self._clock = clock
        self._policy = policy if policy is not None else RefreshPolicy()
        self._quotes: Dict[str, Tuple[float, datetime]] = {}

    @property
    def policy(self) -> RefreshPolicy:
        return self._policy

    def is_market_open(self) -> bool:
        return self._policy.is_market_open(self._clock())

    def _is_fresh(self, fetched_at: datetime, now: datetime) -> bool:
        age = (now - fetched_at).total_seconds()
        return 0 <= age < self._policy.ttl(now)

    def get_price(self, symbol: str) -> float:
        """
        Return a fresh quote for `symbol`, calling the provider if needed.

        A stale quote is never returned; if the provider fails, its
        exception propagates and the stale entry stays untouched.
        """
        now = self._clock()
        cached = self._quotes.get(symbol)
        if cached is not None and self._is_fresh(cached[1], now):
            return cached[0]

        price = float(self._provider(symbol))
        logger.debug("Fetched quote %s=%.4f", symbol, price)
        self._quotes[symbol] = (price, now)
        return price

    def get_prices(self, symbols: Iterable[str]) -> Dict[str, float]:
        """Fresh quotes for several symbols, keyed by symbol."""
        return {symbol: self.get_price(symbol) for symbol in symbols}

    def prime(self, symbol: str, price: float) -> None:
        """Store a quote as if it had just been fetched."""
        self._quotes[symbol] = (float(price), self._clock())

    def invalidate(self, symbol: Optional[str] = None) -> None:
        """Drop one symbol, or every symbol when none is given."""
        if symbol is None:
            self._quotes.clear()
        else:
            self._quotes.pop(symbol, None)

    def snapshot(self) -> Dict[str, float]:
        """Copy of every cached price, fresh or not."""
        return {symbol: price for symbol, (price, _) in self._quotes.items()}

    def __len__(self) -> int:
        return len(self._quotes)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._quotes
