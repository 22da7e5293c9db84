# -*- coding: utf-8 -*-
"""
API Endpoints for Contact-Form Messages.
"""
from datetime import datetime

import pymongo
from flask import Blueprint, current_app, request
from pymongo.errors import PyMongoError

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

contacts_bp = Blueprint('contacts_bp', __name__)


def validate_contact_data(data: dict) -> dict:
    errors = {}
    for field in ('name', 'email', 'message'):
        if not isinstance(data.get(field), str) or not data[field].strip():
            errors[field] = f"Field '{field}' is required."
    if 'email' not in errors and normalize_email(data['email']) is None:
        errors['email'] = "Please enter a valid email."
    if data.get('subject') is not None and not isinstance(data['subject'], str):
        errors['subject'] = "Field 'subject' must be a string."
    return errors


@contacts_bp.route('', methods=['POST'])
def submit_contact():
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)

    validation_errors = validate_contact_data(data)
    if validation_errors:
        return error_response(validation_errors, 400)

    now = datetime.now()
    try:
        get_db().contacts.insert_one({
            'name': data['name'].strip(),
            'email': normalize_email(data['email']),
            'subject': (data.get('subject') or '').strip() or 'No subject',
            'message': data['message'].strip(),
            'read': False,
            'replied': False,
            'ipAddress': request.remote_addr,
            'createdAt': now,
            'updatedAt': now,
        })
    except PyMongoError as e:
        current_app.logger.error(f"Error saving contact message: {e}", exc_info=True)
        return error_response("Failed to send message.", 500)
    return make_json_response({'message': 'Message sent successfully. We will get back to you soon!'}, 201)


@contacts_bp.route('', methods=['GET'])
@require_admin
def list_contacts():
    page, per_page = get_pagination_params(request.args, default_per_page=20)
    query = {}
    for flag in ('read', 'replied'):
        if flag in request.args:
            query[flag] = request.args[flag] == 'true'
    try:
        contacts_collection = get_db().contacts
        contacts, total = paginate_query(
            contacts_collection, page, per_page,
            filter_criteria=query,
            sort_criteria=[('createdAt', pymongo.DESCENDING)]
        )
        unread = contacts_collection.count_documents({'read': False})
    except PyMongoError as e:
        current_app.logger.error(f"Error listing contact messages: {e}", exc_info=True)
        return error_response("Failed to fetch contacts.", 500)

    pagination = pagination_info(page, per_page, total)
    pagination['totalContacts'] = pagination.pop('totalItems')
    return make_json_response({
        'contacts': contacts,
        'statistics': {'total': total, 'unread': unread},
        'pagination': pagination,
    })


def _set_contact_flag(contact_id, flag):
    oid = parse_object_id(contact_id)
    if oid is None:
        return error_response("Contact message not found.", 404)
    try:
        contact = get_db().contacts.find_one_and_update(
            {'_id': oid},
            {'$set': {flag: True, 'updatedAt': datetime.now()}},
            return_document=pymongo.ReturnDocument.AFTER
        )
    except PyMongoError as e:
        current_app.logger.error(f"Error updating contact {contact_id}: {e}", exc_info=True)
        return error_response("Failed to update contact.", 500)
    if contact is None:
        return error_response("Contact message not found.", 404)
    return make_json_response({'contact': contact, 'message': f'Contact marked as {flag}.'})


@contacts_bp.route('/<string:contact_id>/read', methods=['PATCH'])
@require_admin
def mark_contact_read(contact_id):
    return _set_contact_flag(contact_id, 'read')


@contacts_bp.route('/<string:contact_id>/replied', methods=['PATCH'])
@require_admin
def mark_contact_replied(contact_id):
    return _set_contact_flag(contact_id, 'replied')


@contacts_bp.route('/<string:contact_id>', methods=['DELETE'])
@require_admin
def delete_contact(contact_id):
    oid = parse_object_id(contact_id)
    if oid is None:
        return error_response("Contact message not found.", 404)
    try:
        result = get_db().contacts.delete_one({'_id': oid})
    except PyMongoError as e:
        current_app.logger.error(f"Error deleting contact {contact_id}: {e}", exc_info=True)
        return error_response("Failed to delete contact message.", 500)
    if result.deleted_count == 0:
        return error_response("Contact message not found.", 404)
    return make_json_response({'message': 'Contact message deleted successfully.'})
