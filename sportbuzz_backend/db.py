# -*- coding: utf-8 -*-
"""
Database initialization and configuration for the Flask application.

This module initializes the Flask-PyMongo extension, exposes the application
database through ``get_db()``, and creates the MongoDB indexes the API relies
on. The analytics collection's unique ``date`` index is what keeps concurrent
"create today's record" attempts from producing duplicates, so index creation
is part of startup.
"""
from flask_pymongo import PyMongo
import pymongo # For pymongo.ASCENDING, pymongo.DESCENDING, and error handling

# Global PyMongo instance.
# This will be initialized with the Flask app context.
mongo = PyMongo()


def init_db(app):
    """
    Initializes the PyMongo extension from ``app.config["MONGO_URI"]``.

    The client connects lazily, so this does not touch the network; the first
    query (or ``ensure_indexes``) does.

    Args:
        app (Flask): The Flask application instance.

    Raises:
        ValueError: If MONGO_URI is not found in the app configuration.
        RuntimeError: If the URI does not name a database.
    """
    mongo_uri = app.config.get("MONGO_URI")
    if not mongo_uri:
        app.logger.error("MONGO_URI not found in Flask app config during init_db.")
        raise ValueError("MONGO_URI not found in Flask app config. Please set it.")

    mongo.init_app(
        app,
        serverSelectionTimeoutMS=app.config.get("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000),
        socketTimeoutMS=app.config.get("MONGO_SOCKET_TIMEOUT_MS", 45000),
    )
    app.logger.info("Flask-PyMongo extension initialized.")

    if mongo.db is None:
        app.logger.critical("MongoDB database object (mongo.db) is None after init_app. MONGODB_URI must include a database name.")
        raise RuntimeError("MONGODB_URI must include a database name, e.g. mongodb://localhost:27017/sportbuzz")

    app.logger.info(f"MongoDB database object: {mongo.db.name}")
    return mongo.db


def get_db():
    """Returns the application database. Components take it as their storage handle."""
    return mongo.db


def ensure_indexes(app):
    """
    Creates the indexes used by the API and the analytics core.

    ``create_index`` is idempotent. Connection and operation failures are logged
    rather than raised so the app can still start (DB-dependent routes will fail
    until MongoDB is reachable).
    """
    app.logger.info("Attempting to ensure MongoDB indexes...")
    try:
        with app.app_context():
            db = get_db()

            # One analytics document per calendar day.
            db.analytics.create_index([("date", pymongo.ASCENDING)], unique=True, name="uniq_date")

            db.articles.create_index(
                [("category", pymongo.ASCENDING), ("published", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)],
                name="idx_category_published_created"
            )
            db.articles.create_index([("featured", pymongo.ASCENDING), ("published", pymongo.ASCENDING)], name="idx_featured_published")
            db.articles.create_index([("views", pymongo.DESCENDING)], name="idx_views_desc")

            db.comments.create_index(
                [("article", pymongo.ASCENDING), ("approved", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)],
                name="idx_article_approved_created"
            )
            db.subscribers.create_index([("email", pymongo.ASCENDING)], unique=True, name="uniq_email")
            db.subscribers.create_index([("active", pymongo.ASCENDING)], name="idx_active")
            db.contacts.create_index([("read", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)], name="idx_read_created")

            app.logger.info("Successfully ensured MongoDB indexes.")
    except pymongo.errors.ConnectionFailure as cf_err:
        app.logger.error(f"MongoDB ConnectionFailure during index creation: {cf_err}", exc_info=True)
    except pymongo.errors.OperationFailure as op_err:
        app.logger.error(f"MongoDB OperationFailure during index creation: {op_err}", exc_info=True)
