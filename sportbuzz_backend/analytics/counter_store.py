# -*- coding: utf-8 -*-
"""
Counter Store: per-day aggregate records in the ``analytics`` collection.

Each document holds the counters for one calendar day (local midnight, unique
index on ``date``). All counter mutations are single ``$inc`` updates so that
concurrent view events on the same day never lose increments; record creation
relies on the unique index, with a duplicate-key insert treated as "someone
else created it first".
"""
import logging
from datetime import datetime

import pymongo
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import TransientStoreError
from .models import COUNTER_FIELDS, DailyCounterRecord, start_of_day, validate_counter_key

logger = logging.getLogger(__name__)

ANALYTICS_COLLECTION = 'analytics'
EVENT_COUNTERS = ('newSubscribers', 'newComments')


class CounterStore:
    """Reads and mutates DailyCounterRecord documents."""

    def __init__(self, db, clock=datetime.now):
        """
        Args:
            db: A pymongo ``Database`` (or any object exposing ``db['analytics']``).
            clock: Callable returning the current local time.
        """
        self.collection = db[ANALYTICS_COLLECTION]
        self.clock = clock

    def today(self) -> datetime:
        return start_of_day(self.clock())

    # --- Reads ---
    def find_by_date(self, day: datetime) -> DailyCounterRecord | None:
        try:
            doc = self.collection.find_one({'date': start_of_day(day)})
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to load analytics for {day:%Y-%m-%d}", e) from e
        return DailyCounterRecord.from_document(doc)

    def find_by_date_range(self, start: datetime, end: datetime) -> list[DailyCounterRecord]:
        """Records with ``start <= date <= end``, oldest first."""
        try:
            cursor = self.collection.find(
                {'date': {'$gte': start, '$lte': end}}
            ).sort('date', pymongo.ASCENDING)
            docs = list(cursor)
        except PyMongoError as e:
            raise TransientStoreError("Failed to load analytics date range", e) from e
        return [DailyCounterRecord.from_document(doc) for doc in docs]

    # --- Creation ---
    def get_or_create_today(self) -> DailyCounterRecord:
        """
        Return today's record, inserting a zeroed one if it does not exist yet.

        Safe under concurrent callers: the unique ``date`` index rejects a second
        insert for the same day, in which case the winner's record is re-fetched.
        """
        today = self.today()
        record = self.find_by_date(today)
        if record is not None:
            return record

        now = self.clock()
        doc = DailyCounterRecord.empty(today).to_document()
        doc.update({'createdAt': now, 'updatedAt': now})
        try:
            result = self.collection.insert_one(doc)
            doc['_id'] = result.inserted_id
            logger.info(f"Created analytics record for {today:%Y-%m-%d}")
            return DailyCounterRecord.from_document(doc)
        except DuplicateKeyError:
            logger.debug(f"Analytics record for {today:%Y-%m-%d} created concurrently, re-fetching.")
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to create analytics record for {today:%Y-%m-%d}", e) from e

        record = self.find_by_date(today)
        if record is None:
            # Only reachable if the record was removed between insert and re-fetch.
            raise TransientStoreError(f"Analytics record for {today:%Y-%m-%d} vanished after duplicate insert")
        return record

    def ensure_day(self, day: datetime) -> bool:
        """Insert a zeroed record for ``day`` unless one exists. Returns True if created."""
        day = start_of_day(day)
        now = self.clock()
        defaults = DailyCounterRecord.empty(day).to_document()
        defaults.pop('date')
        defaults.update({'createdAt': now, 'updatedAt': now})
        try:
            result = self.collection.update_one(
                {'date': day},
                {'$setOnInsert': defaults},
                upsert=True
            )
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to ensure analytics record for {day:%Y-%m-%d}", e) from e
        return result.upserted_id is not None

    # --- Mutations ---
    def increment_view(self, record: DailyCounterRecord, article_id, category) -> None:
        """Count one view of ``article_id`` (in ``category``) on ``record``'s day."""
        article_key = validate_counter_key(article_id)
        category_key = validate_counter_key(category)
        selector = {'_id': record.id} if record.id is not None else {'date': start_of_day(record.date)}
        try:
            self.collection.update_one(
                selector,
                {
                    '$inc': {
                        'totalViews': 1,
                        f'articleViews.{article_key}': 1,
                        f'categoryViews.{category_key}': 1,
                    },
                    '$set': {'updatedAt': self.clock()},
                }
            )
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to record view for article {article_key}", e) from e

    def increment_counter(self, field: str, amount: int = 1) -> None:
        """Bump one of the collaborator counters (``newSubscribers``/``newComments``) for today."""
        if field not in EVENT_COUNTERS:
            raise ValueError(f"Unknown event counter: {field}")
        record = self.get_or_create_today()
        try:
            self.collection.update_one(
                {'_id': record.id},
                {'$inc': {field: amount}, '$set': {'updatedAt': self.clock()}}
            )
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to increment {field}", e) from e

    def upsert_day(self, day: datetime, values: dict) -> DailyCounterRecord:
        """
        Create or replace the counters of ``day``.

        Counter fields present in ``values`` overwrite the stored ones; counters
        missing from ``values`` are zeroed only when the record is new.
        """
        day = start_of_day(day)
        now = self.clock()
        unknown = set(values) - set(COUNTER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown counter fields: {sorted(unknown)}")

        replacement = DailyCounterRecord(date=day, **values).to_document()
        to_set = {field: replacement[field] for field in values}
        to_set['updatedAt'] = now
        on_insert = {field: replacement[field] for field in COUNTER_FIELDS if field not in values}
        on_insert['createdAt'] = now

        try:
            doc = self.collection.find_one_and_update(
                {'date': day},
                {'$set': to_set, '$setOnInsert': on_insert},
                upsert=True,
                return_document=pymongo.ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # Lost an upsert race for a new day; the record now exists, so plain update.
            doc = self._replace_counters(day, to_set)
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to upsert analytics for {day:%Y-%m-%d}", e) from e
        return DailyCounterRecord.from_document(doc)

    def _replace_counters(self, day: datetime, to_set: dict) -> dict:
        try:
            return self.collection.find_one_and_update(
                {'date': day},
                {'$set': to_set},
                return_document=pymongo.ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to upsert analytics for {day:%Y-%m-%d}", e) from e
