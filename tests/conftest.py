"""
Pytest configuration and fixtures.
"""

import io

import pytest

from bookshelf import create_app, db

ADMIN_PASSWORD = 'correct horse battery staple'


@pytest.fixture
def app(tmp_path):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'library.db'}",
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'SECRET_KEY': 'test-secret',
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def auth_headers(app):
    """Bearer headers for a logged-in admin.

    The login runs on its own client so ``client`` carries no session cookie.
    """
    response = app.test_client().post('/api/admin/login', json={'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.get_json()['token']}"}


def image_upload(size=1024, filename='cover.png', content_type='image/png'):
    return (io.BytesIO(b'\x89PNG' + b'\0' * (size - 4)), filename, content_type)
