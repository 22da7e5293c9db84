# -*- coding: utf-8 -*-
"""
API Endpoints for Article Management.

This module defines the Blueprint for article-related operations: the public
listing and single-article reads (the latter records a view), plus the
admin-only create/update/delete endpoints.
"""
from datetime import datetime

import pymongo
from flask import Blueprint, current_app, request
from pymongo.errors import PyMongoError

from ..analytics import Category, NotFoundError, TransientStoreError, ViewRecorder
from ..db import get_db
from ..utils import (
    error_response,
    get_pagination_params,
    make_json_response,
    paginate_query,
    pagination_info,
    parse_object_id,
    require_admin,
)

articles_bp = Blueprint('articles_bp', __name__)

# Fields that only the view recorder may change.
SERVER_MANAGED_FIELDS = {'_id', 'views', 'viewHistory', 'createdAt', 'updatedAt'}
EDITABLE_FIELDS = {'title', 'content', 'category', 'image', 'author', 'published', 'featured', 'tags'}
ADMIN_LIST_PROJECTION = {'title': 1, 'category': 1, 'views': 1, 'createdAt': 1, 'published': 1, 'featured': 1}


# --- Helper for Article Data Validation ---
def validate_article_data(data: dict, is_update: bool = False) -> dict:
    """
    Validates incoming article data for POST (create) and PUT (update) requests.

    Args:
        data (dict): The JSON data received in the request.
        is_update (bool): If True, only the fields present are checked.

    Returns:
        dict: A dictionary of validation errors. Empty if data is valid.
    """
    errors = {}

    if not is_update:
        for field in ('title', 'content', 'category'):
            if not data.get(field):
                errors[field] = f"Field '{field}' is required and cannot be empty."

    if data.get('title') and len(str(data['title']).strip()) > 1000:
        errors['title'] = "Title cannot exceed 1000 characters."
    if 'content' in data and data.get('content') and len(str(data['content'])) < 50:
        errors['content'] = "Content must be at least 50 characters long."
    if data.get('category') and data['category'] not in Category.values():
        errors['category'] = f"Invalid category. Allowed: {', '.join(Category.values())}."
    for flag in ('published', 'featured'):
        if flag in data and not isinstance(data[flag], bool):
            errors[flag] = f"Field '{flag}' must be a boolean."
    if 'tags' in data and not isinstance(data['tags'], list):
        errors['tags'] = "Field 'tags' must be a list of strings."

    read_only = SERVER_MANAGED_FIELDS & set(data)
    if read_only:
        errors['read_only'] = f"Fields cannot be set by clients: {', '.join(sorted(read_only))}."
    return errors


def _published_list(query, default_per_page=12):
    page, per_page = get_pagination_params(request.args, default_per_page=default_per_page)
    articles, total = paginate_query(
        get_db().articles, page, per_page,
        filter_criteria=query,
        sort_criteria=[('createdAt', pymongo.DESCENDING)]
    )
    pagination = pagination_info(page, per_page, total)
    pagination['totalArticles'] = pagination.pop('totalItems')
    return make_json_response({'articles': articles, 'pagination': pagination})


# --- API Route Definitions ---
@articles_bp.route('', methods=['GET'])
def list_articles():
    """
    Retrieve published articles, newest first.

    Query Parameters:
        category (str, optional): Category filter, 'all' for none. Default: 'all'.
        featured (str, optional): 'true' to return only featured articles.
        search (str, optional): Case-insensitive match on title, content or tags.
        page (int, optional): Page number. Default: 1.
        limit (int, optional): Page size. Default: 12. Max: 100.
    """
    current_app.logger.info("API: GET /articles called with args: %s", request.args)
    try:
        query = {'published': True}
        category = request.args.get('category', 'all')
        if category and category != 'all':
            query['category'] = category
        if request.args.get('featured') == 'true':
            query['featured'] = True
        search = request.args.get('search')
        if search:
            search_regex = {'$regex': search, '$options': 'i'}
            query['$or'] = [{'title': search_regex}, {'content': search_regex}, {'tags': search_regex}]
        return _published_list(query)
    except PyMongoError as e:
        current_app.logger.error(f"Error listing articles: {e}", exc_info=True)
        return error_response("Failed to fetch articles.", 500)


@articles_bp.route('/featured', methods=['GET'])
def list_featured_articles():
    try:
        articles = list(
            get_db().articles.find(
                {'published': True, 'featured': True},
                {'title': 1, 'image': 1, 'category': 1, 'createdAt': 1, 'views': 1}
            ).sort('createdAt', pymongo.DESCENDING).limit(6)
        )
        return make_json_response({'articles': articles})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching featured articles: {e}", exc_info=True)
        return error_response("Failed to fetch featured articles.", 500)


@articles_bp.route('/category/<string:category>', methods=['GET'])
def list_articles_by_category(category):
    try:
        return _published_list({'category': category, 'published': True})
    except PyMongoError as e:
        current_app.logger.error(f"Error listing articles for category {category}: {e}", exc_info=True)
        return error_response("Failed to fetch articles.", 500)


@articles_bp.route('/<string:article_id>', methods=['GET'])
def get_article(article_id):
    """
    Retrieve a single published article and record one view of it.

    View recording never fails the response: if the store is unavailable the
    article is returned without the increment.
    """
    oid = parse_object_id(article_id)
    if oid is None:
        return error_response("Article not found.", 404)

    db = get_db()
    try:
        article = db.articles.find_one({'_id': oid})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching article {article_id}: {e}", exc_info=True)
        return error_response("Failed to fetch article.", 500)

    if not article or not article.get('published'):
        return error_response("Article not found.", 404)

    try:
        article = ViewRecorder(db).record_view(oid, article['category'])
    except NotFoundError:
        return error_response("Article not found.", 404)
    except TransientStoreError as e:
        current_app.logger.warning(f"View not recorded for article {article_id}: {e}")

    return make_json_response({'article': article})


@articles_bp.route('/<string:article_id>/comments', methods=['GET'])
def get_article_comments(article_id):
    oid = parse_object_id(article_id)
    if oid is None:
        return make_json_response({'comments': []})
    try:
        comments = list(
            get_db().comments.find(
                {'article': oid, 'approved': True},
                {'user': 1, 'text': 1, 'createdAt': 1}
            ).sort('createdAt', pymongo.DESCENDING)
        )
        return make_json_response({'comments': comments})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching comments for article {article_id}: {e}", exc_info=True)
        return error_response("Failed to fetch comments.", 500)


@articles_bp.route('', methods=['POST'])
@require_admin
def create_article():
    """Create (publish) a new article. Expects JSON data in the request body."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)

    validation_errors = validate_article_data(data)
    if validation_errors:
        return error_response(validation_errors, 400)

    now = datetime.now()
    article_doc = {
        'title': data['title'].strip(),
        'content': data['content'],
        'category': data['category'],
        'image': data.get('image', ''),
        'author': (data.get('author') or 'Admin').strip(),
        'published': data.get('published', True),
        'featured': data.get('featured', False),
        'tags': [str(tag).strip() for tag in data.get('tags', [])],
        'views': 0,
        'viewHistory': [],
        'createdAt': now,
        'updatedAt': now,
    }
    try:
        result = get_db().articles.insert_one(article_doc)
        article_doc['_id'] = result.inserted_id
    except PyMongoError as e:
        current_app.logger.error(f"Error creating article: {e}", exc_info=True)
        return error_response("Failed to create article.", 500)

    current_app.logger.info(f"Article {result.inserted_id} published in '{article_doc['category']}'.")
    return make_json_response({'article': article_doc, 'message': 'Article published successfully.'}, 201)


@articles_bp.route('/<string:article_id>', methods=['PUT'])
@require_admin
def update_article(article_id):
    oid = parse_object_id(article_id)
    if oid is None:
        return error_response("Article not found.", 404)

    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)

    validation_errors = validate_article_data(data, is_update=True)
    if validation_errors:
        return error_response(validation_errors, 400)

    updates = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    if not updates:
        return error_response("No valid fields provided for update.", 400)
    updates['updatedAt'] = datetime.now()

    try:
        article = get_db().articles.find_one_and_update(
            {'_id': oid},
            {'$set': updates},
            return_document=pymongo.ReturnDocument.AFTER
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error updating article {article_id}: {e}", exc_info=True)
        return error_response("Failed to update article.", 500)

    if article is None:
        return error_response("Article not found.", 404)
    return make_json_response({'article': article, 'message': 'Article updated successfully.'})


@articles_bp.route('/<string:article_id>', methods=['DELETE'])
@require_admin
def delete_article(article_id):
    oid = parse_object_id(article_id)
    if oid is None:
        return error_response("Article not found.", 404)
    try:
        result = get_db().articles.delete_one({'_id': oid})
    except PyMongoError as e:
        current_app.logger.error(f"Error deleting article {article_id}: {e}", exc_info=True)
        return error_response("Failed to delete article.", 500)

    if result.deleted_count == 0:
        return error_response("Article not found.", 404)
    return make_json_response({'message': 'Article deleted successfully.'})


@articles_bp.route('/admin/all', methods=['GET'])
@require_admin
def list_all_articles():
    """All articles (published or not) with their view counts, for the admin table."""
    try:
        page, per_page = get_pagination_params(request.args)
        query = {}
        search = request.args.get('search')
        if search:
            search_regex = {'$regex': search, '$options': 'i'}
            query['$or'] = [{'title': search_regex}, {'content': search_regex}]
        articles, total = paginate_query(
            get_db().articles, page, per_page,
            filter_criteria=query,
            sort_criteria=[('createdAt', pymongo.DESCENDING)],
            projection=ADMIN_LIST_PROJECTION
        )
        pagination = pagination_info(page, per_page, total)
        pagination['totalArticles'] = pagination.pop('totalItems')
        return make_json_response({'articles': articles, 'pagination': pagination})
    except PyMongoError as e:
        current_app.logger.error(f"Error listing admin articles: {e}", exc_info=True)
        return error_response("Failed to fetch articles.", 500)
