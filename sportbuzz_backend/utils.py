import hmac
import json
import math
from datetime import datetime, date
from functools import wraps

from bson import ObjectId


class CustomJSONEncoder(json.JSONEncoder):
    """
    Custom JSON Encoder that handles MongoDB ObjectId and datetime objects.
    """
    def default(self, obj):
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def serialize_mongo_doc(doc):
    """
    Serializes a MongoDB document (or a list of documents) using the CustomJSONEncoder.
    This converts ObjectId and datetime objects to strings.
    """
    if doc is None:
        return None
    if isinstance(doc, list):
        return [json.loads(json.dumps(item, cls=CustomJSONEncoder)) for item in doc]
    return json.loads(json.dumps(doc, cls=CustomJSONEncoder))


def make_json_response(data, status_code=200):
    """
    Creates a Flask JSON response, automatically serializing MongoDB documents.
    :param data: The data to be JSONified. Can be a single MongoDB doc or a list.
    :param status_code: HTTP status code for the response.
    :return: Flask Response object.
    """
    from flask import jsonify  # Local import to avoid circular dependency issues at module level

    if isinstance(data, dict) and data.get("status") == "error":
        return jsonify(data), status_code

    return jsonify(serialize_mongo_doc(data)), status_code


def error_response(message, status_code):
    """
    Creates a standardized JSON error response.
    :param message: Error message string (or dict of field errors).
    :param status_code: HTTP status code.
    :return: Flask Response object.
    """
    from flask import jsonify
    return jsonify({"status": "error", "message": message}), status_code


def parse_object_id(value):
    """Returns an ObjectId for a valid 24-hex string, otherwise None."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(str(value)):
        return ObjectId(str(value))
    return None


# --- Pagination Helpers ---
def get_pagination_params(request_args, default_per_page=10, per_page_key='limit'):
    """
    Extracts and validates pagination parameters (page, limit) from request arguments.
    """
    try:
        page = int(request_args.get('page', 1))
        per_page = int(request_args.get(per_page_key, default_per_page))
        if page < 1: page = 1
        if per_page < 1: per_page = default_per_page
        if per_page > 100: per_page = 100
    except (TypeError, ValueError):
        page = 1
        per_page = default_per_page
    return page, per_page


def paginate_query(collection, page, per_page, filter_criteria=None, sort_criteria=None, projection=None):
    """
    Paginates a MongoDB query.
    Args:
        collection: The PyMongo collection object.
        page: Current page number.
        per_page: Items per page.
        filter_criteria: Dictionary for MongoDB find() method.
        sort_criteria: List of tuples for MongoDB sort() method, e.g., [('createdAt', -1)].
        projection: Optional projection for find().
    Returns:
        A tuple: (paginated_results_list, total_items_count)
    """
    if filter_criteria is None:
        filter_criteria = {}

    total_items = collection.count_documents(filter_criteria)

    if projection is None:
        find_query = collection.find(filter_criteria)
    else:
        find_query = collection.find(filter_criteria, projection)

    if sort_criteria:
        find_query = find_query.sort(sort_criteria)

    items = list(find_query.skip((page - 1) * per_page).limit(per_page))

    return items, total_items


def pagination_info(page, per_page, total_items):
    """Pagination block returned alongside paginated lists."""
    total_pages = math.ceil(total_items / per_page) if per_page else 0
    return {
        'currentPage': page,
        'totalPages': total_pages,
        'totalItems': total_items,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


# --- Admin Authorization ---
def require_admin(view):
    """
    Rejects requests without ``Authorization: Bearer <ADMIN_API_TOKEN>``.
    When no token is configured, every admin request is rejected.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        from flask import current_app, request

        expected = current_app.config.get("ADMIN_API_TOKEN")
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if not expected or scheme.lower() != "bearer" or not hmac.compare_digest(token.strip().encode(), expected.encode()):
            current_app.logger.warning(f"Rejected admin request to {request.path}: missing or invalid token.")
            return error_response("Admin authorization required.", 401)
        return view(*args, **kwargs)
    return wrapper
