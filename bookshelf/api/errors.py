"""
Error handlers turning library errors into HTTP responses.
"""

import logging

from flask import jsonify, render_template, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from bookshelf.core.errors import InvalidArgumentError, LibraryError

logger = logging.getLogger(__name__)


def _wants_html() -> bool:
    return request.path.startswith('/admin')


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def handle_library_error(error):
        if _wants_html():
            return render_template('admin/error.html', message=error.message), error.status_code
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error):
        logger.warning(f"Rejected oversized request to {request.path}")
        return handle_library_error(InvalidArgumentError("Upload is too large"))

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        if isinstance(error, HTTPException):
            if _wants_html():
                return error
            return jsonify({'error': error.description, 'retryable': False}), error.code
        logger.error(f"Unhandled error on {request.method} {request.path}: {error}", exc_info=True)
        if _wants_html():
            return render_template('admin/error.html', message="An unexpected error occurred."), 500
        return jsonify({'error': 'An unexpected error occurred. Please try again.', 'retryable': False}), 500
