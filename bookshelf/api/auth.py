"""
Route decorators presenting the session gate to JSON and browser callers.
"""

from functools import wraps
from typing import Callable, Optional

from flask import current_app, g, jsonify, redirect, request, url_for

from bookshelf.core.errors import UnauthorizedError
from bookshelf.services.auth_gate import SessionGate


def get_session_gate() -> SessionGate:
    return current_app.extensions['session_gate']


def request_token() -> Optional[str]:
    """Session token from a Bearer header, falling back to the cookie."""
    header = request.headers.get('Authorization', '')
    scheme, _, credentials = header.partition(' ')
    if scheme.lower() == 'bearer' and credentials.strip():
        return credentials.strip()
    return request.cookies.get(current_app.config['ADMIN_SESSION_COOKIE'])


def set_session_cookie(response, session):
    response.set_cookie(
        current_app.config['ADMIN_SESSION_COOKIE'],
        session.token,
        httponly=True,
        secure=current_app.config['ADMIN_SESSION_COOKIE_SECURE'],
        samesite='Lax',
        max_age=int(current_app.config['ADMIN_SESSION_TTL'].total_seconds()),
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(current_app.config['ADMIN_SESSION_COOKIE'])
    return response


def api_login_required(f: Callable) -> Callable:
    """Reject anonymous JSON callers with 401."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.admin_session = get_session_gate().require(request_token())
        except UnauthorizedError:
            return jsonify({'error': 'Authentication required', 'retryable': False}), 401
        return f(*args, **kwargs)
    return decorated_function


def page_login_required(f: Callable) -> Callable:
    """Send anonymous browser callers to the login page."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.admin_session = get_session_gate().require(request_token())
        except UnauthorizedError:
            return redirect(url_for('admin_pages.login', next=request.full_path.rstrip('?')))
        return f(*args, **kwargs)
    return decorated_function
