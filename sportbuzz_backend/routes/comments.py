# -*- coding: utf-8 -*-
"""
API Endpoints for Reader Comments.

Comments are created unapproved and shown publicly only after an admin
approves them. Each new comment bumps today's ``newComments`` counter.
"""
from datetime import datetime

import pymongo
from flask import Blueprint, current_app, request
from pymongo.errors import PyMongoError

from ..analytics import CounterStore, TransientStoreError
from ..db import get_db
from ..schemas import normalize_email
from ..utils import (
    error_response,
    get_pagination_params,
    make_json_response,
    paginate_query,
    pagination_info,
    parse_object_id,
    require_admin,
)

comments_bp = Blueprint('comments_bp', __name__)


def validate_comment_data(data: dict) -> dict:
    errors = {}
    for field in ('article', 'user', 'email', 'text'):
        if not isinstance(data.get(field), str) or not data[field].strip():
            errors[field] = f"Field '{field}' is required and must be a string."
    if errors:
        return errors
    if parse_object_id(data['article']) is None:
        errors['article'] = "Field 'article' must be a valid article id."
    if data.get('user') and len(data['user'].strip()) > 50:
        errors['user'] = "User name cannot exceed 50 characters."
    if normalize_email(data['email']) is None:
        errors['email'] = "Please enter a valid email."
    if data.get('text') and len(data['text'].strip()) > 1000:
        errors['text'] = "Comment cannot exceed 1000 characters."
    return errors


@comments_bp.route('/article/<string:article_id>', methods=['GET'])
def list_article_comments(article_id):
    oid = parse_object_id(article_id)
    if oid is None:
        return make_json_response({'comments': []})
    try:
        comments = list(
            get_db().comments.find({'article': oid, 'approved': True}).sort('createdAt', pymongo.DESCENDING)
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching comments for {article_id}: {e}", exc_info=True)
        return error_response("Failed to fetch comments.", 500)
    return make_json_response({'comments': comments})


@comments_bp.route('', methods=['POST'])
def create_comment():
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)

    validation_errors = validate_comment_data(data)
    if validation_errors:
        return error_response(validation_errors, 400)

    db = get_db()
    now = datetime.now()
    comment = {
        'article': parse_object_id(data['article']),
        'user': data['user'].strip(),
        'email': normalize_email(data['email']),
        'text': data['text'].strip(),
        'approved': False,
        'ipAddress': request.remote_addr,
        'userAgent': request.headers.get('User-Agent'),
        'createdAt': now,
        'updatedAt': now,
    }
    try:
        if db.articles.count_documents({'_id': comment['article']}, limit=1) == 0:
            return error_response("Article not found.", 404)
        result = db.comments.insert_one(comment)
        comment['_id'] = result.inserted_id
    except PyMongoError as e:
        current_app.logger.error(f"Error creating comment: {e}", exc_info=True)
        return error_response("Failed to create comment.", 500)

    try:
        CounterStore(db).increment_counter('newComments')
    except TransientStoreError as e:
        current_app.logger.warning(f"Daily comment counter not updated: {e}")

    return make_json_response({'comment': comment, 'message': 'Comment submitted for review.'}, 201)


@comments_bp.route('', methods=['GET'])
@require_admin
def list_comments():
    page, per_page = get_pagination_params(request.args, default_per_page=20)
    query = {}
    if 'approved' in request.args:
        query['approved'] = request.args['approved'] == 'true'
    try:
        comments, total = paginate_query(
            get_db().comments, page, per_page,
            filter_criteria=query,
            sort_criteria=[('createdAt', pymongo.DESCENDING)]
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error listing comments: {e}", exc_info=True)
        return error_response("Failed to fetch comments.", 500)
    pagination = pagination_info(page, per_page, total)
    pagination['totalComments'] = pagination.pop('totalItems')
    return make_json_response({'comments': comments, 'pagination': pagination})


@comments_bp.route('/<string:comment_id>/approve', methods=['PATCH'])
@require_admin
def approve_comment(comment_id):
    oid = parse_object_id(comment_id)
    if oid is None:
        return error_response("Comment not found.", 404)
    try:
        comment = get_db().comments.find_one_and_update(
            {'_id': oid},
            {'$set': {'approved': True, 'updatedAt': datetime.now()}},
            return_document=pymongo.ReturnDocument.AFTER
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error approving comment {comment_id}: {e}", exc_info=True)
        return error_response("Failed to approve comment.", 500)
    if comment is None:
        return error_response("Comment not found.", 404)
    return make_json_response({'comment': comment, 'message': 'Comment approved successfully.'})


@comments_bp.route('/<string:comment_id>', methods=['DELETE'])
@require_admin
def delete_comment(comment_id):
    oid = parse_object_id(comment_id)
    if oid is None:
        return error_response("Comment not found.", 404)
    try:
        result = get_db().comments.delete_one({'_id': oid})
    except PyMongoError as e:
        current_app.logger.error(f"Error deleting comment {comment_id}: {e}", exc_info=True)
        return error_response("Failed to delete comment.", 500)
    if result.deleted_count == 0:
        return error_response("Comment not found.", 404)
    return make_json_response({'message': 'Comment deleted successfully.'})
