# -*- coding: utf-8 -*-
"""
View-recording and analytics-aggregation core.

Components accept a pymongo ``Database`` handle; nothing here reaches for the
Flask application's global connection.
"""
from .aggregator import AnalyticsAggregator
from .backfill import Backfill
from .counter_store import CounterStore
from .errors import AnalyticsError, NotFoundError, TransientStoreError
from .models import Category, DailyCounterRecord, PerformancePeriod, ViewHistoryEntry, ViewPeriod
from .view_recorder import ViewRecorder

__all__ = [
    'AnalyticsAggregator',
    'AnalyticsError',
    'Backfill',
    'Category',
    'CounterStore',
    'DailyCounterRecord',
    'NotFoundError',
    'PerformancePeriod',
    'TransientStoreError',
    'ViewHistoryEntry',
    'ViewPeriod',
    'ViewRecorder',
]
