#!/usr/bin/env python3
"""
SportBuzz Analytics Seeding Script
Populates the analytics collection with demo counters, or fills missing days
with zeroed records.

Usage:
    python scripts/seed_analytics.py [days] [mode]

    days: number of days ending today (default: 30)
    mode: 'seed' overwrites the range with demo data, 'gaps' only creates
          missing days (default: seed)
"""

import os
import sys
import logging
from datetime import datetime, timedelta

import pymongo
from dotenv import load_dotenv

from sportbuzz_backend.analytics import Backfill, CounterStore

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), '..', 'sportbuzz_backend', '.env'))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

MODES = ('seed', 'gaps')


def get_database():
    mongo_uri = os.getenv('MONGODB_URI')
    if not mongo_uri:
        raise ValueError("MONGODB_URI environment variable not set")
    client = pymongo.MongoClient(mongo_uri)
    db = client.get_default_database(default='sportbuzz')
    # Seeding relies on one record per day.
    db.analytics.create_index([('date', pymongo.ASCENDING)], unique=True, name='uniq_date')
    return db


def run(days, mode):
    backfill = Backfill(CounterStore(get_database()))
    now = datetime.now()
    if mode == 'gaps':
        created = backfill.fill_gaps(now - timedelta(days=days - 1), now)
        logger.info(f"Created {created} missing analytics records for the last {days} days")
        return created

    records = backfill.seed_range(now, days)
    logger.info(f"Seeded {len(records)} days of demo analytics data")
    return len(records)


if __name__ == "__main__":
    # Parse command line arguments
    days = 30
    mode = 'seed'

    if len(sys.argv) > 1:
        try:
            days = max(1, int(sys.argv[1]))
        except ValueError:
            logger.error(f"Invalid days value: {sys.argv[1]}. Using default: 30")

    if len(sys.argv) > 2:
        if sys.argv[2].lower() in MODES:
            mode = sys.argv[2].lower()
        else:
            logger.error(f"Invalid mode: {sys.argv[2]}. Expected one of {MODES}. Using default: seed")

    run(days, mode)
