# -*- coding: utf-8 -*-
"""
Analytics Aggregator: read-only dashboard queries.

Combines the per-day counter records with the article collection and the
collaborator collections (subscribers, comments, contacts). Every query
tolerates empty collections and returns zeros / empty lists instead of failing.

Failure policy for ``overview()``: counter-store reads are fundamental and
raise ``TransientStoreError``; the enrichment sections (top articles,
category stats, totals) degrade to an empty value and log a warning.
"""
import logging
from datetime import datetime, timedelta

import pymongo
from pymongo.errors import PyMongoError

from .counter_store import CounterStore
from .errors import TransientStoreError
from .models import (
    PerformancePeriod,
    ViewPeriod,
    iso_day,
    start_of_day,
    start_of_month,
    start_of_week,
)

logger = logging.getLogger(__name__)

ARTICLE_SUMMARY_PROJECTION = {'title': 1, 'views': 1, 'category': 1, 'createdAt': 1, 'featured': 1}
MAX_PERFORMANCE_LIMIT = 100


class AnalyticsAggregator:

    def __init__(self, db, counter_store: CounterStore | None = None, clock=datetime.now,
                 top_articles_limit: int = 10, daily_window_days: int = 30):
        self.db = db
        self.counter_store = counter_store or CounterStore(db, clock=clock)
        self.analytics = db['analytics']
        self.articles = db['articles']
        self.clock = clock
        self.top_articles_limit = top_articles_limit
        self.daily_window_days = daily_window_days

    # --- Public queries ---
    def overview(self, now: datetime | None = None) -> dict:
        """
        Dashboard overview: today/week/month totals, top articles, category
        distribution, the daily views series and collection totals.
        """
        now = now or self.clock()
        today = start_of_day(now)

        today_record = self.counter_store.find_by_date(today)
        daily_start = start_of_day(now - timedelta(days=self.daily_window_days))

        return {
            'today': {
                'views': today_record.total_views if today_record else 0,
                'articleCount': len(today_record.article_views) if today_record else 0,
            },
            'week': self._range_summary(start_of_week(now), now),
            'month': self._range_summary(start_of_month(now), now),
            'topArticles': self._optional_section('topArticles', self.top_articles, []),
            'categoryStats': self._optional_section('categoryStats', self.category_stats, []),
            'dailyViews': [
                {'date': iso_day(record.date), 'views': record.total_views}
                for record in self.counter_store.find_by_date_range(daily_start, now)
            ],
            'totals': self._optional_section('totals', self.totals, self._empty_totals()),
        }

    def views_for_period(self, period) -> list[dict]:
        """``{date, totalViews}`` per recorded day in the period's lookback window."""
        period = period if isinstance(period, ViewPeriod) else ViewPeriod.parse(period)
        now = self.clock()
        start = start_of_day(now - timedelta(days=period.lookback_days))
        return [
            {'date': iso_day(record.date), 'totalViews': record.total_views}
            for record in self.counter_store.find_by_date_range(start, now)
        ]

    def article_performance(self, limit=20, period='all') -> list[dict]:
        """Most viewed published articles, optionally limited to recently created ones."""
        period = period if isinstance(period, PerformancePeriod) else PerformancePeriod.parse(period)
        limit = self._clamp_limit(limit)

        query = {'published': True}
        if period.lookback_days is not None:
            query['createdAt'] = {'$gte': start_of_day(self.clock() - timedelta(days=period.lookback_days))}
        return self._find_article_summaries(query, limit)

    def top_articles(self, limit: int | None = None) -> list[dict]:
        return self._find_article_summaries({'published': True}, limit or self.top_articles_limit)

    def category_stats(self) -> list[dict]:
        pipeline = [
            {'$match': {'published': True}},
            {'$group': {
                '_id': '$category',
                'count': {'$sum': 1},
                'totalViews': {'$sum': '$views'}
            }},
            {'$sort': {'totalViews': -1}}
        ]
        try:
            groups = list(self.articles.aggregate(pipeline))
        except PyMongoError as e:
            raise TransientStoreError("Category aggregation failed", e) from e
        return [
            {'category': group['_id'], 'count': group['count'], 'totalViews': group.get('totalViews') or 0}
            for group in groups
        ]

    def totals(self) -> dict:
        try:
            return {
                'articles': self.articles.count_documents({'published': True}),
                'subscribers': self.db['subscribers'].count_documents({'active': True}),
                'comments': self.db['comments'].count_documents({}),
                'contacts': self.db['contacts'].count_documents({}),
            }
        except PyMongoError as e:
            raise TransientStoreError("Failed to count collections", e) from e

    # --- Helpers ---
    def _range_summary(self, start: datetime, end: datetime) -> dict:
        """Sum of ``totalViews`` over ``[start, end]`` plus the ordered per-day list."""
        pipeline = [
            {'$match': {'date': {'$gte': start, '$lte': end}}},
            {'$sort': {'date': 1}},
            {'$group': {
                '_id': None,
                'totalViews': {'$sum': '$totalViews'},
                'days': {'$push': {'date': '$date', 'views': '$totalViews'}}
            }}
        ]
        try:
            result = list(self.analytics.aggregate(pipeline))
        except PyMongoError as e:
            raise TransientStoreError("Failed to aggregate analytics range", e) from e
        if not result:
            return {'views': 0, 'days': []}
        summary = result[0]
        return {
            'views': summary.get('totalViews') or 0,
            'days': [
                {'date': iso_day(day['date']), 'views': day.get('views') or 0}
                for day in summary.get('days', [])
            ],
        }

    def _find_article_summaries(self, query: dict, limit: int) -> list[dict]:
        try:
            cursor = self.articles.find(query, ARTICLE_SUMMARY_PROJECTION) \
                .sort('views', pymongo.DESCENDING) \
                .limit(limit)
            articles = list(cursor)
        except PyMongoError as e:
            raise TransientStoreError("Failed to load article summaries", e) from e
        return [
            {
                'id': str(article['_id']),
                'title': article.get('title'),
                'views': article.get('views', 0),
                'category': article.get('category'),
                'createdAt': article.get('createdAt'),
                'featured': article.get('featured', False),
            }
            for article in articles
        ]

    def _optional_section(self, name: str, query, default):
        try:
            return query()
        except TransientStoreError as e:
            logger.warning(f"Analytics overview section '{name}' unavailable, using empty value: {e}")
            return default

    @staticmethod
    def _empty_totals() -> dict:
        return {'articles': 0, 'subscribers': 0, 'comments': 0, 'contacts': 0}

    @staticmethod
    def _clamp_limit(limit) -> int:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            return 20
        return max(1, min(limit, MAX_PERFORMANCE_LIMIT))
