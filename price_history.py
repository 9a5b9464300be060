"""
price_history.py — simulated per-store price history for saved products.

There is no real price feed: each store gets a 30-day random walk starting
from a base price between $30 and $80, moving up to ±$5 a day and never
dropping below $10. Histories are kept in memory per search term.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_STORES = ("Amazon", "Walmart", "Target")
HISTORY_DAYS   = 30
BASE_PRICE     = (30.0, 80.0)
DAILY_SWING    = 5.0
PRICE_FLOOR    = 10.0


@dataclass(frozen=True)
class PricePoint:
    day: date
    price: float
    store: str


class PriceTracker:

    def __init__(
        self,
        stores: tuple[str, ...] = DEFAULT_STORES,
        days: int = HISTORY_DAYS,
        rng: Optional[random.Random] = None,
    ):
        self.stores = stores
        self.days = days
        self._rng = rng or random.Random()
        self._histories: dict[str, list[PricePoint]] = {}

    def _generate(self, today: date) -> list[PricePoint]:
        points = []
        for store in self.stores:
            price = self._rng.uniform(*BASE_PRICE)
            # walks backwards in time: day 0 is today
            for offset in range(self.days):
                price = max(price + self._rng.uniform(-DAILY_SWING, DAILY_SWING), PRICE_FLOOR)
                points.append(PricePoint(today - timedelta(days=offset), round(price, 2), store))
        return points

    def record(self, term: str, today: Optional[date] = None) -> list[PricePoint]:
        """(Re)generate the history for a term and return it."""
        history = self._generate(today or date.today())
        self._histories[term] = history
        logger.debug("Simulated %d price points for %r", len(history), term)
        return history

    def history(self, term: str) -> list[PricePoint]:
        return list(self._histories.get(term, []))

    def current_prices(self, term: str) -> list[tuple[str, float]]:
        """Latest price per store, in store order. Empty when nothing was recorded."""
        latest: dict[str, PricePoint] = {}
        for point in self._histories.get(term, []):
            best = latest.get(point.store)
            if best is None or point.day > best.day:
                latest[point.store] = point
        return [(store, latest[store].price) for store in self.stores if store in latest]
