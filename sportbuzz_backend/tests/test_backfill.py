import random
from datetime import datetime, timedelta

import pytest

from sportbuzz_backend.analytics import Backfill, CounterStore


@pytest.fixture
def store(mongo_db, clock):
    return CounterStore(mongo_db, clock=clock)


@pytest.fixture
def backfill(store, clock):
    return Backfill(store, clock=clock, rng=random.Random(7))


def test_seed_range_twice_does_not_duplicate(backfill, mongo_db, clock):
    backfill.seed_range(clock(), 30)
    backfill.seed_range(clock(), 30)

    assert mongo_db.analytics.count_documents({}) == 30


def test_seed_range_covers_days_ending_at_start_date(backfill):
    records = backfill.seed_range(datetime(2024, 3, 20, 9, 15), 3)

    assert [record.date for record in records] == [
        datetime(2024, 3, 18), datetime(2024, 3, 19), datetime(2024, 3, 20)
    ]


def test_seed_range_overwrites_with_supplied_values(backfill, store):
    store.upsert_day(datetime(2024, 3, 20), {'totalViews': 1})

    backfill.seed_range(datetime(2024, 3, 20), 2, values_factory=lambda day: {'totalViews': day.day})

    assert store.find_by_date(datetime(2024, 3, 20)).total_views == 20
    assert store.find_by_date(datetime(2024, 3, 19)).total_views == 19


def test_seed_range_with_no_days(backfill, mongo_db):
    assert backfill.seed_range(datetime(2024, 3, 20), 0) == []
    assert mongo_db.analytics.count_documents({}) == 0


def test_demo_values_are_in_range(backfill):
    for _ in range(20):
        values = backfill.demo_values(datetime(2024, 3, 20))
        assert 50 <= values['totalViews'] <= 149
        assert 10 <= values['articleViews']['sample_article'] <= 29
        assert 15 <= values['categoryViews']['football'] <= 44


def test_fill_gaps_does_not_overwrite(backfill, store, mongo_db):
    store.upsert_day(datetime(2024, 3, 3), {'totalViews': 99})

    created = backfill.fill_gaps(datetime(2024, 3, 1), datetime(2024, 3, 5))

    assert created == 4
    assert mongo_db.analytics.count_documents({}) == 5
    assert store.find_by_date(datetime(2024, 3, 3)).total_views == 99
    assert store.find_by_date(datetime(2024, 3, 4)).total_views == 0


def test_fill_gaps_is_idempotent(backfill):
    assert backfill.fill_gaps(datetime(2024, 3, 1), datetime(2024, 3, 5)) == 5
    assert backfill.fill_gaps(datetime(2024, 3, 1), datetime(2024, 3, 5)) == 0


def test_fill_gaps_defaults_end_to_today(backfill, store, clock):
    created = backfill.fill_gaps(clock() - timedelta(days=2))

    assert created == 3
    assert store.find_by_date(clock()) is not None


def test_fill_gaps_with_reversed_range(backfill):
    assert backfill.fill_gaps(datetime(2024, 3, 5), datetime(2024, 3, 1)) == 0


def test_rollover_creates_today_and_fills_recent_gaps(backfill, mongo_db):
    result = backfill.rollover(gap_days=7)

    assert result == {'today': datetime(2024, 3, 20), 'gaps_filled': 7}
    assert mongo_db.analytics.count_documents({}) == 8
    assert backfill.rollover(gap_days=7)['gaps_filled'] == 0
