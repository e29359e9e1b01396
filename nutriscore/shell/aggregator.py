"""Daily Aggregator - Cached daily totals backed by a document store.

The aggregator is the only part of the engine that writes. It never updates
a running total in place: every computation sums the full food list for the
day and overwrites the stored record. Two concurrent cache misses for the
same day may both compute and store; the later write wins. No locking.
"""

import logging
from datetime import date, datetime
from typing import Callable, Protocol, Sequence

from ..core.daily import compute_daily_total
from ..core.models import DailyTotal, FoodRecord


logger = logging.getLogger(__name__)

FoodLoader = Callable[[], Sequence[FoodRecord]]


class MissingIdentifierError(ValueError):
    """Raised when a daily total is requested without a user ID or date."""


class DailyTotalStore(Protocol):
    """Persistence interface for daily totals."""

    def get_daily_total(self, user_id: str, log_date: date) -> DailyTotal | None:
        """Return the stored total, or None."""

    def save_daily_total(self, total: DailyTotal) -> bool:
        """Store the total, replacing any existing record."""


class DailyAggregator:
    """Returns cached daily totals, computing and storing them on a miss."""

    def __init__(
        self,
        store: DailyTotalStore,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        """Initialize the aggregator.

        Args:
            store: Where daily totals are read from and written to
            clock: Source of timestamps for stored records
        """
        self.store = store
        self.clock = clock

    def get_or_compute(
        self, user_id: str, log_date: date, load_foods_for_date: FoodLoader
    ) -> DailyTotal:
        """Return the stored total for a day, computing it if absent.

        Args:
            user_id: The user's ID
            log_date: Calendar day
            load_foods_for_date: Called only on a cache miss

        Returns:
            The stored or freshly computed DailyTotal

        Raises:
            MissingIdentifierError: If user_id or log_date is missing
        """
        _require_identifiers(user_id, log_date)

        cached = self.store.get_daily_total(user_id, log_date)
        if cached is not None:
            logger.debug("Daily total cache hit for %s on %s", user_id[:8], log_date)
            return cached

        logger.info("Daily total cache miss for %s on %s", user_id[:8], log_date)
        return self._compute_and_store(user_id, log_date, load_foods_for_date, None)

    def recompute(
        self, user_id: str, log_date: date, load_foods_for_date: FoodLoader
    ) -> DailyTotal:
        """Compute a day's total from scratch and overwrite the stored record.

        Call this after a food for that day was added, edited or deleted.
        The creation time of an existing record is kept.

        Raises:
            MissingIdentifierError: If user_id or log_date is missing
        """
        _require_identifiers(user_id, log_date)

        existing = self.store.get_daily_total(user_id, log_date)
        created_at = existing.created_at if existing is not None else None
        return self._compute_and_store(user_id, log_date, load_foods_for_date, created_at)

    def _compute_and_store(
        self,
        user_id: str,
        log_date: date,
        load_foods_for_date: FoodLoader,
        created_at: datetime | None,
    ) -> DailyTotal:
        foods = list(load_foods_for_date())
        total = compute_daily_total(user_id, log_date, foods, self.clock(), created_at)
        logger.info(
            "Computed daily total for %s on %s from %d foods: %s kcal",
            user_id[:8],
            log_date,
            len(foods),
            total.calories,
        )

        if not self.store.save_daily_total(total):
            # The total is still correct; the next read recomputes it
            logger.warning("Daily total for %s on %s was not stored", user_id[:8], log_date)

        return total


def _require_identifiers(user_id: str, log_date: date) -> None:
    if not user_id:
        raise MissingIdentifierError("user_id is required")
    if log_date is None:
        raise MissingIdentifierError("log_date is required")
