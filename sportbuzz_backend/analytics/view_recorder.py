# -*- coding: utf-8 -*-
"""
View Recorder: the single entry point for a content-view event.

Recording a view touches two independent documents:

1. The article itself: ``views`` and today's ``viewHistory`` entry. Both
   counters move in one conditional update, so ``views`` always equals the sum
   of the history entries.
2. Today's DailyCounterRecord in the Counter Store.

There is no transaction across the two. A failure in step 1 is fatal to the
call; a failure in step 2 is logged and swallowed so that serving content is
never blocked by analytics.
"""
import logging
from datetime import datetime

from bson import ObjectId
from pymongo.errors import PyMongoError

from .counter_store import CounterStore
from .errors import NotFoundError, TransientStoreError
from .models import ViewHistoryEntry, start_of_day

logger = logging.getLogger(__name__)

ARTICLES_COLLECTION = 'articles'
# Conditional update attempts before giving up; a second round only happens when a
# concurrent request pushed today's history entry between our two updates.
MAX_HISTORY_ATTEMPTS = 2


class ViewRecorder:

    def __init__(self, db, counter_store: CounterStore | None = None, clock=datetime.now):
        self.articles = db[ARTICLES_COLLECTION]
        self.counter_store = counter_store or CounterStore(db, clock=clock)
        self.clock = clock

    def record_view(self, article_id, category) -> dict:
        """
        Record one view of a published article.

        Args:
            article_id: The article's ObjectId (or its hex string).
            category: The article's category, used as the daily counter key.

        Returns:
            dict: The article document after the increment.

        Raises:
            NotFoundError: Invalid id, or no published article with that id.
            TransientStoreError: The article update itself failed.
        """
        oid = self._parse_id(article_id)
        article = self._increment_article(oid)

        try:
            record = self.counter_store.get_or_create_today()
            self.counter_store.increment_view(record, str(oid), category)
        except (TransientStoreError, ValueError) as e:
            logger.warning(f"Daily analytics not updated for article {oid}: {e}", exc_info=True)

        return article

    @staticmethod
    def _parse_id(article_id) -> ObjectId:
        if isinstance(article_id, ObjectId):
            return article_id
        if not ObjectId.is_valid(str(article_id)):
            raise NotFoundError(f"Article {article_id} not found")
        return ObjectId(str(article_id))

    def _increment_article(self, oid: ObjectId) -> dict:
        today = start_of_day(self.clock())
        try:
            for _ in range(MAX_HISTORY_ATTEMPTS):
                # Today's entry exists: bump it together with the lifetime counter.
                # update_one keeps the 'viewHistory.date' match that the positional '$' resolves against.
                result = self.articles.update_one(
                    {'_id': oid, 'published': True, 'viewHistory.date': today},
                    {'$inc': {'views': 1, 'viewHistory.$.views': 1}}
                )
                if result.matched_count:
                    return self._load_article(oid)

                # First view today: start a new entry in the same update.
                result = self.articles.update_one(
                    {'_id': oid, 'published': True, 'viewHistory.date': {'$ne': today}},
                    {
                        '$inc': {'views': 1},
                        '$push': {'viewHistory': ViewHistoryEntry(date=today, views=1).model_dump()},
                    }
                )
                if result.matched_count:
                    return self._load_article(oid)
        except PyMongoError as e:
            raise TransientStoreError(f"Failed to record view for article {oid}", e) from e

        raise NotFoundError(f"Article {oid} not found")

    def _load_article(self, oid: ObjectId) -> dict:
        article = self.articles.find_one({'_id': oid})
        if article is None:
            raise NotFoundError(f"Article {oid} not found")
        return article
