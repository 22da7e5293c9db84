import os
import tempfile
from datetime import datetime

import mongomock
import pymongo
import pytest

# app.py reads these on import
os.environ['FLASK_ENV'] = 'testing'
os.environ.setdefault('MONGODB_URI', 'mongodb://localhost:27017/test_sportbuzz_db')
os.environ.setdefault('ADMIN_API_TOKEN', 'test-admin-token')
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'sportbuzz_test_logs'))

ADMIN_TOKEN = os.environ['ADMIN_API_TOKEN']


class FakeClock:
    """Settable replacement for ``datetime.now`` in analytics components."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 3, 20, 14, 30)

    def __call__(self):
        return self.now


@pytest.fixture(scope='session')
def app():
    """
    Session-wide test Flask application.
    This ensures the app is created once per test session.
    """
    # Dynamically import app after env vars are set
    from sportbuzz_backend.app import app as actual_app

    actual_app.config.update({
        "TESTING": True,
        "DEBUG": False,
        "ADMIN_API_TOKEN": ADMIN_TOKEN,
    })
    return actual_app


@pytest.fixture()
def client(app):
    """A new test client for each test function."""
    return app.test_client()


@pytest.fixture
def mongo_db():
    """
    In-memory MongoDB database with the indexes the analytics core depends on.
    """
    db = mongomock.MongoClient().db
    db.analytics.create_index([('date', pymongo.ASCENDING)], unique=True, name='uniq_date')
    db.subscribers.create_index([('email', pymongo.ASCENDING)], unique=True, name='uniq_email')
    return db


@pytest.fixture
def app_db(app, mongo_db, mocker):
    """Makes ``get_db()`` return the in-memory database for the duration of a test."""
    from sportbuzz_backend.db import mongo

    mocker.patch.object(mongo, 'db', mongo_db)
    return mongo_db


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {ADMIN_TOKEN}'}


@pytest.fixture
def make_article(mongo_db):
    """Inserts an article and returns its id."""
    def _make_article(**fields):
        now = datetime.now()
        doc = {
            'title': 'Derby day drama',
            'content': 'A late winner settled the derby in front of a sold-out crowd on Saturday.',
            'category': 'football',
            'published': True,
            'featured': False,
            'views': 0,
            'viewHistory': [],
            'createdAt': now,
            'updatedAt': now,
        }
        doc.update(fields)
        return mongo_db.articles.insert_one(doc).inserted_id
    return _make_article


# To ensure routes use the application context and its configured logger
@pytest.fixture(autouse=True)
def app_context(app):
    """
    Ensures that tests run within the Flask application context.
    This makes `current_app` available.
    """
    with app.app_context():
        yield
