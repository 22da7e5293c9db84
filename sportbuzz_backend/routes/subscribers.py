# -*- coding: utf-8 -*-
"""
API Endpoints for Newsletter Subscribers.

Unsubscribing is a soft delete (``active: false``); subscribing again
reactivates the same document. New (or reactivated) subscriptions bump
today's ``newSubscribers`` counter.
"""
from datetime import datetime

import pymongo
from flask import Blueprint, current_app, request
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..analytics import CounterStore, TransientStoreError
from ..db import get_db
from ..schemas import normalize_email
from ..utils import error_response, make_json_response, require_admin

subscribers_bp = Blueprint('subscribers_bp', __name__)


def _count_new_subscriber(db):
    try:
        CounterStore(db).increment_counter('newSubscribers')
    except TransientStoreError as e:
        current_app.logger.warning(f"Daily subscriber counter not updated: {e}")


@subscribers_bp.route('', methods=['GET'])
@require_admin
def list_subscribers():
    try:
        subscribers = list(
            get_db().subscribers.find({}, {'email': 1, 'active': 1, 'createdAt': 1}).sort('createdAt', pymongo.DESCENDING)
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error listing subscribers: {e}", exc_info=True)
        return error_response("Failed to fetch subscribers.", 500)
    return make_json_response({'subscribers': subscribers, 'total': len(subscribers)})


@subscribers_bp.route('', methods=['POST'])
def subscribe():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)
    email = data.get('email')
    if not isinstance(email, str) or not email.strip():
        return error_response("Email is required.", 400)
    email = normalize_email(email)
    if email is None:
        return error_response("Invalid email address.", 400)

    db = get_db()
    now = datetime.now()
    try:
        existing = db.subscribers.find_one({'email': email})
        if existing and existing.get('active'):
            return error_response("Email already subscribed.", 400)
        if existing:
            db.subscribers.update_one(
                {'_id': existing['_id']},
                {'$set': {'active': True, 'updatedAt': now}, '$unset': {'unsubscribedAt': ''}}
            )
        else:
            db.subscribers.insert_one({
                'email': email,
                'active': True,
                'subscriptionSource': data.get('source', 'website'),
                'createdAt': now,
                'updatedAt': now,
            })
    except DuplicateKeyError:
        return error_response("Email already subscribed.", 400)
    except PyMongoError as e:
        current_app.logger.error(f"Error subscribing {email}: {e}", exc_info=True)
        return error_response("Failed to subscribe.", 500)

    _count_new_subscriber(db)
    current_app.logger.info(f"New newsletter subscription: {email}")
    return make_json_response({'message': 'Successfully subscribed to newsletter!'}, 201)


@subscribers_bp.route('/<string:email>', methods=['DELETE'])
def unsubscribe(email):
    try:
        subscriber = get_db().subscribers.find_one_and_update(
            {'email': email.strip().lower()},
            {'$set': {'active': False, 'unsubscribedAt': datetime.now(), 'updatedAt': datetime.now()}},
            return_document=pymongo.ReturnDocument.AFTER
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error unsubscribing {email}: {e}", exc_info=True)
        return error_response("Failed to unsubscribe.", 500)
    if subscriber is None:
        return error_response("Subscriber not found.", 404)
    return make_json_response({'message': 'Successfully unsubscribed from newsletter.'})
