# -*- coding: utf-8 -*-
"""
Data shapes and calendar helpers for the analytics core.

Daily counter records are stored in the ``analytics`` collection with
camelCase field names; the pydantic models below map them to Python
attribute names while keeping the stored aliases for round-tripping.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# datetime.weekday() value of the first day of a reporting week (Sunday).
WEEK_START_WEEKDAY = 6

COUNTER_FIELDS = ('totalViews', 'articleViews', 'categoryViews', 'newSubscribers', 'newComments')


class Category(str, Enum):
    FOOTBALL = 'football'
    CRICKET = 'cricket'
    RUGBY = 'rugby'
    ATHLETICS = 'athletics'
    WOMEN = 'women'
    BASKETBALL = 'basketball'
    TENNIS = 'tennis'

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class ViewPeriod(str, Enum):
    """Lookback windows for the per-period views chart."""
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

    @property
    def lookback_days(self) -> int:
        return {'daily': 30, 'weekly': 90, 'monthly': 365}[self.value]

    @classmethod
    def parse(cls, value: Optional[str]) -> 'ViewPeriod':
        """Unrecognised values fall back to the 30-day window."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.DAILY


class PerformancePeriod(str, Enum):
    """Creation-date windows for the article performance table."""
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'
    ALL = 'all'

    @property
    def lookback_days(self) -> Optional[int]:
        return {'week': 7, 'month': 30, 'year': 365, 'all': None}[self.value]

    @classmethod
    def parse(cls, value: Optional[str]) -> 'PerformancePeriod':
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.ALL


class ViewHistoryEntry(BaseModel):
    """One per-day entry of ``Article.viewHistory``."""
    date: datetime
    views: int = Field(default=0, ge=0)


class DailyCounterRecord(BaseModel):
    """One document of the ``analytics`` collection (one per calendar day)."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Any] = Field(default=None, alias='_id')
    date: datetime
    total_views: int = Field(default=0, ge=0, alias='totalViews')
    article_views: dict[str, int] = Field(default_factory=dict, alias='articleViews')
    category_views: dict[str, int] = Field(default_factory=dict, alias='categoryViews')
    new_subscribers: int = Field(default=0, ge=0, alias='newSubscribers')
    new_comments: int = Field(default=0, ge=0, alias='newComments')

    @classmethod
    def from_document(cls, doc: Optional[dict]) -> Optional['DailyCounterRecord']:
        if doc is None:
            return None
        return cls.model_validate(doc)

    @classmethod
    def empty(cls, day: datetime) -> 'DailyCounterRecord':
        return cls(date=start_of_day(day))

    def to_document(self) -> dict:
        """Stored form, without ``_id`` (MongoDB assigns it on insert)."""
        return self.model_dump(by_alias=True, exclude={'id'})


# --- Calendar helpers ---
def start_of_day(moment: datetime) -> datetime:
    """Truncate a timestamp to local midnight of its date."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    today = start_of_day(moment)
    return today - timedelta(days=(today.weekday() - WEEK_START_WEEKDAY) % 7)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def iso_day(moment: datetime) -> str:
    return moment.date().isoformat()


def iter_days(start: datetime, end: datetime):
    """Yield every local midnight from ``start`` to ``end`` inclusive."""
    day = start_of_day(start)
    last = start_of_day(end)
    while day <= last:
        yield day
        day = day + timedelta(days=1)


def validate_counter_key(key) -> str:
    """
    Counter-map keys become part of a dotted update path, so they may not
    contain '.' or start with '$'.
    """
    key = str(key)
    if not key or '.' in key or key.startswith('$'):
        raise ValueError(f"Invalid counter key: {key!r}")
    return key
