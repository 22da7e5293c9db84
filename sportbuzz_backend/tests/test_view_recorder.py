from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from sportbuzz_backend.analytics import CounterStore, NotFoundError, TransientStoreError, ViewRecorder


@pytest.fixture
def recorder(mongo_db, clock):
    return ViewRecorder(mongo_db, clock=clock)


def test_three_views_on_one_article(recorder, mongo_db, make_article, clock):
    article_id = make_article(category='football')

    for _ in range(3):
        article = recorder.record_view(article_id, 'football')

    assert article['views'] == 3
    assert article['viewHistory'] == [{'date': datetime(2024, 3, 20), 'views': 3}]

    record = CounterStore(mongo_db, clock=clock).find_by_date(clock())
    assert record.total_views == 3
    assert record.article_views == {str(article_id): 3}
    assert record.category_views == {'football': 3}


def test_views_across_days_keep_history_consistent(recorder, mongo_db, make_article, clock):
    article_id = make_article()

    recorder.record_view(article_id, 'football')
    clock.now = clock.now + timedelta(days=1)
    recorder.record_view(article_id, 'football')
    article = recorder.record_view(str(article_id), 'football')

    assert article['views'] == 3
    assert [entry['views'] for entry in article['viewHistory']] == [1, 2]
    assert article['views'] == sum(entry['views'] for entry in article['viewHistory'])
    assert mongo_db.analytics.count_documents({}) == 2


def test_unknown_article_raises_not_found(recorder, mongo_db):
    with pytest.raises(NotFoundError):
        recorder.record_view(ObjectId(), 'football')
    assert mongo_db.analytics.count_documents({}) == 0


def test_unpublished_article_raises_not_found(recorder, make_article):
    article_id = make_article(published=False)
    with pytest.raises(NotFoundError):
        recorder.record_view(article_id, 'football')


def test_invalid_id_raises_not_found(recorder):
    with pytest.raises(NotFoundError):
        recorder.record_view('not-an-object-id', 'football')


def test_counter_failure_does_not_fail_the_view(mongo_db, make_article, clock):
    article_id = make_article()
    counter_store = MagicMock()
    counter_store.get_or_create_today.side_effect = TransientStoreError('analytics down')

    article = ViewRecorder(mongo_db, counter_store=counter_store, clock=clock).record_view(article_id, 'football')

    assert article['views'] == 1
    counter_store.increment_view.assert_not_called()


def test_article_update_failure_is_transient(clock):
    articles = MagicMock()
    articles.update_one.side_effect = AutoReconnect('connection reset')
    counter_store = MagicMock()

    recorder = ViewRecorder({'articles': articles}, counter_store=counter_store, clock=clock)
    with pytest.raises(TransientStoreError):
        recorder.record_view(ObjectId(), 'football')

    counter_store.get_or_create_today.assert_not_called()


def test_view_bumps_todays_entry_not_the_first_one(recorder, make_article, clock):
    yesterday = datetime(2024, 3, 19)
    today = datetime(2024, 3, 20)
    article_id = make_article(
        views=7,
        viewHistory=[{'date': yesterday, 'views': 5}, {'date': today, 'views': 2}]
    )

    article = recorder.record_view(article_id, 'football')

    assert article['viewHistory'] == [{'date': yesterday, 'views': 5}, {'date': today, 'views': 3}]
    assert article['views'] == 8
