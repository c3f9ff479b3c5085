"""
Admin JSON API: login/logout and book/review mutations behind the session gate.

Bodies may be JSON or multipart form data; book create/update take an optional
``coverImage`` file part.
"""

import logging

from flask import Blueprint, g, jsonify, make_response, request

from bookshelf.api.auth import (
    api_login_required,
    clear_session_cookie,
    get_session_gate,
    set_session_cookie,
)
from bookshelf.core.errors import InvalidArgumentError
from bookshelf.services import catalog, library_store

logger = logging.getLogger(__name__)

admin_api_bp = Blueprint('admin_api', __name__, url_prefix='/api/admin')


def request_fields():
    """Submitted fields as a plain dict, from JSON or form data."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise InvalidArgumentError("Malformed JSON body")
        if not isinstance(data, dict):
            raise InvalidArgumentError("Request body must be an object")
        return data
    fields = {}
    for key in request.form:
        values = request.form.getlist(key)
        fields[key] = values if key == 'tags' and len(values) > 1 else values[0]
    return fields


@admin_api_bp.route('/login', methods=['POST'])
def login():
    fields = request_fields()
    session = get_session_gate().login(fields.get('password'))
    response = make_response(jsonify({
        'message': 'Logged in',
        'token': session.token,
        'expiresAt': session.to_dict()['expiresAt'],
    }))
    return set_session_cookie(response, session)


@admin_api_bp.route('/logout', methods=['POST'])
@api_login_required
def logout():
    get_session_gate().logout(g.admin_session.token)
    return clear_session_cookie(make_response(jsonify({'message': 'Logged out'})))


@admin_api_bp.route('/session', methods=['GET'])
@api_login_required
def session_status():
    return jsonify({'authenticated': True, **g.admin_session.to_dict()})


@admin_api_bp.route('/books', methods=['POST'])
@api_login_required
def create_book():
    fields = request_fields()
    review = fields.pop('review', None)
    book = catalog.create_book(fields, cover=request.files.get('coverImage'), review=review)
    return jsonify(book.to_dict(include_reviews=True)), 201


@admin_api_bp.route('/books/<book_id>', methods=['PUT', 'PATCH', 'POST'])
@api_login_required
def update_book(book_id):
    book = catalog.update_book(book_id, request_fields(), cover=request.files.get('coverImage'))
    return jsonify(book.to_dict(include_reviews=True))


@admin_api_bp.route('/books/<book_id>', methods=['DELETE'])
@admin_api_bp.route('/books/<book_id>/delete', methods=['POST'])
@api_login_required
def delete_book(book_id):
    catalog.delete_book(book_id)
    return jsonify({'message': 'Book deleted', 'id': book_id})


@admin_api_bp.route('/reviews', methods=['POST'])
@api_login_required
def create_review():
    review = library_store.create_review(request_fields())
    return jsonify(review.to_dict()), 201


@admin_api_bp.route('/reviews/<review_id>', methods=['PUT', 'PATCH', 'POST'])
@api_login_required
def update_review(review_id):
    review = library_store.update_review(review_id, request_fields())
    return jsonify(review.to_dict())


@admin_api_bp.route('/reviews/<review_id>', methods=['DELETE'])
@admin_api_bp.route('/reviews/<review_id>/delete', methods=['POST'])
@api_login_required
def delete_review(review_id):
    library_store.delete_review(review_id)
    return jsonify({'message': 'Review deleted', 'id': review_id})
