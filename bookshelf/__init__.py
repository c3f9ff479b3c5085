"""
Flask application package.
"""

import logging
import logging.config

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash

from bookshelf.core.config import DATABASE, UPLOADS, LOGGING, get_auth_settings

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def _engine_options(url, timeout):
    """Connection and statement timeouts for the store."""
    if url.startswith('postgresql'):
        return {
            'pool_pre_ping': True,
            'pool_timeout': timeout,
            'connect_args': {
                'connect_timeout': timeout,
                'options': f'-c statement_timeout={timeout * 1000}',
            },
        }
    if url.startswith('sqlite'):
        return {'connect_args': {'timeout': timeout}}
    return {'pool_pre_ping': True}


def create_app(overrides=None):
    app = Flask(__name__)
    logging.config.dictConfig(LOGGING)

    auth = get_auth_settings()

    # Configure the Flask application
    app.config['SQLALCHEMY_DATABASE_URI'] = DATABASE['default']['URL']
    app.config['SQLALCHEMY_ECHO'] = DATABASE['default']['ECHO']
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['STORE_TIMEOUT_SECONDS'] = DATABASE['default']['TIMEOUT']
    app.config['SECRET_KEY'] = auth.secret_key
    app.config['ADMIN_PASSWORD_HASH'] = auth.password_hash
    app.config['ADMIN_SESSION_TTL'] = auth.session_ttl
    app.config['ADMIN_SESSION_COOKIE'] = auth.cookie_name
    app.config['ADMIN_SESSION_COOKIE_SECURE'] = auth.cookie_secure
    app.config['UPLOAD_FOLDER'] = UPLOADS['FOLDER']
    app.config['UPLOAD_URL_PREFIX'] = UPLOADS['URL_PREFIX']
    app.config['MAX_COVER_BYTES'] = UPLOADS['MAX_COVER_BYTES']
    app.config['ALLOWED_COVER_EXTENSIONS'] = UPLOADS['ALLOWED_EXTENSIONS']
    app.config['MAX_CONTENT_LENGTH'] = UPLOADS['MAX_CONTENT_LENGTH']

    if overrides:
        overrides = dict(overrides)
        password = overrides.pop('ADMIN_PASSWORD', None)
        if password:
            overrides.setdefault('ADMIN_PASSWORD_HASH', generate_password_hash(password))
        app.config.update(overrides)

    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', _engine_options(
        app.config['SQLALCHEMY_DATABASE_URI'], app.config['STORE_TIMEOUT_SECONDS']))

    # Initialize extensions
    db.init_app(app)

    from bookshelf.services import SessionGate, CoverStorage

    app.extensions['session_gate'] = SessionGate(
        password_hash=app.config['ADMIN_PASSWORD_HASH'],
        session_ttl=app.config['ADMIN_SESSION_TTL'],
    )
    app.extensions['cover_storage'] = CoverStorage(
        folder=app.config['UPLOAD_FOLDER'],
        url_prefix=app.config['UPLOAD_URL_PREFIX'],
        max_bytes=app.config['MAX_COVER_BYTES'],
        allowed_extensions=app.config['ALLOWED_COVER_EXTENSIONS'],
    )

    # Register blueprints
    from bookshelf.api.routes.public_routes import public_bp
    from bookshelf.api.routes.admin_routes import admin_api_bp
    from bookshelf.api.routes.admin_pages import admin_pages_bp
    from bookshelf.api.routes.upload_routes import uploads_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(admin_api_bp)
    app.register_blueprint(admin_pages_bp)
    app.register_blueprint(uploads_bp, url_prefix=app.config['UPLOAD_URL_PREFIX'])

    from bookshelf.api.errors import register_error_handlers
    register_error_handlers(app)

    from bookshelf.models.database import init_db, shutdown_session
    app.teardown_appcontext(shutdown_session)

    with app.app_context():
        init_db()

    logger.info("Application created")
    return app
