# -*- coding: utf-8 -*-
"""
Bootstrap/Backfill of daily counter records.

``seed_range`` overwrites a range of days with supplied (or demo) counters and is
used to populate fresh installations. ``fill_gaps`` only inserts zeroed records
for missing days so that reports never see a hole in a date range. Both are
idempotent thanks to the unique ``date`` index and upsert semantics.
"""
import logging
import random
from datetime import datetime, timedelta

from .counter_store import CounterStore
from .models import DailyCounterRecord, iter_days, start_of_day

logger = logging.getLogger(__name__)


class Backfill:

    def __init__(self, counter_store: CounterStore, clock=datetime.now, rng: random.Random | None = None):
        self.counter_store = counter_store
        self.clock = clock
        self.rng = rng or random.Random()

    def demo_values(self, day: datetime) -> dict:
        """Plausible demo counters for one day."""
        return {
            'totalViews': self.rng.randint(50, 149),
            'articleViews': {'sample_article': self.rng.randint(10, 29)},
            'categoryViews': {'football': self.rng.randint(15, 44)},
        }

    def seed_range(self, start_date: datetime, days: int, values_factory=None) -> list[DailyCounterRecord]:
        """
        Upsert ``days`` consecutive day records ending at ``start_date``.

        Args:
            start_date: The most recent day of the range.
            days: Number of days, counting ``start_date`` itself.
            values_factory: ``callable(day) -> dict`` of counter values; defaults to demo data.

        Returns:
            list[DailyCounterRecord]: The stored records, oldest first.
        """
        if days < 1:
            return []
        values_factory = values_factory or self.demo_values
        last = start_of_day(start_date)
        first = last - timedelta(days=days - 1)

        records = [self.counter_store.upsert_day(day, values_factory(day)) for day in iter_days(first, last)]
        logger.info(f"Seeded {len(records)} analytics records from {first:%Y-%m-%d} to {last:%Y-%m-%d}")
        return records

    def fill_gaps(self, start: datetime, end: datetime | None = None) -> int:
        """Create zeroed records for missing days in ``[start, end]``; returns how many were created."""
        end = end or self.clock()
        if start_of_day(start) > start_of_day(end):
            return 0
        created = sum(1 for day in iter_days(start, end) if self.counter_store.ensure_day(day))
        logger.info(f"Backfill created {created} missing analytics records between {start:%Y-%m-%d} and {end:%Y-%m-%d}")
        return created

    def rollover(self, gap_days: int = 30) -> dict:
        """Daily job: make sure today's record exists and the recent past has no holes."""
        today = self.counter_store.get_or_create_today()
        created = self.fill_gaps(today.date - timedelta(days=gap_days), today.date)
        return {'today': today.date, 'gaps_filled': created}
