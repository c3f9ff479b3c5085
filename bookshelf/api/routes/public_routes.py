"""
Public read API: books, reviews and search. No authentication, no side effects.
"""

import logging

from flask import Blueprint, jsonify, request

from bookshelf.core.config import REVIEWS_PAGE_SIZE
from bookshelf.core.errors import StoreUnavailableError
from bookshelf.services import library_store

logger = logging.getLogger(__name__)

public_bp = Blueprint('public', __name__, url_prefix='/api')


@public_bp.route('/books', methods=['GET'])
def list_books():
    """List all books, newest first"""
    books = library_store.list_books()
    return jsonify([book.to_dict() for book in books])


@public_bp.route('/books/<book_id>', methods=['GET'])
def get_book(book_id):
    """Get one book with its reviews"""
    book = library_store.get_book(book_id)
    return jsonify(book.to_dict(include_reviews=True))


@public_bp.route('/reviews', methods=['GET'])
def list_reviews():
    """List the latest reviews"""
    reviews = library_store.list_reviews(limit=REVIEWS_PAGE_SIZE)
    return jsonify([review.to_dict() for review in reviews])


@public_bp.route('/reviews/<review_id>', methods=['GET'])
def get_review(review_id):
    review = library_store.get_review(review_id)
    return jsonify(review.to_dict())


@public_bp.route('/search', methods=['GET'])
def search():
    """Search books by title, author or notes"""
    query = request.args.get('q')
    books = library_store.search_books(query)
    logger.info(f"Search for '{query.strip()}' returned {len(books)} book(s)")
    return jsonify([book.to_dict() for book in books])


@public_bp.route('/health', methods=['GET'])
def health_check():
    """Check that the store answers"""
    try:
        library_store.ping()
    except StoreUnavailableError as e:
        logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'message': e.message
        }), 503
    return jsonify({'status': 'ok'})
