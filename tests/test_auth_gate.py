"""
Tests for the admin session gate.
"""

from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from bookshelf import db
from bookshelf.core.errors import UnauthorizedError
from bookshelf.models import AdminSession
from bookshelf.services import SessionGate

from conftest import ADMIN_PASSWORD

pytestmark = pytest.mark.usefixtures('app_ctx')


@pytest.fixture
def gate():
    return SessionGate(generate_password_hash('hunter2'), session_ttl=timedelta(hours=24))


def test_login_issues_token_with_configured_expiry(gate):
    session = gate.login('hunter2')

    assert session.token
    assert session.expires_at - session.created_at == timedelta(hours=24)
    assert gate.authenticate(session.token).token == session.token


@pytest.mark.parametrize('credential', ['wrong', '', None, 'HUNTER2'])
def test_login_rejects_bad_credentials(gate, credential):
    with pytest.raises(UnauthorizedError):
        gate.login(credential)
    assert AdminSession.query.count() == 0


def test_login_disabled_without_configured_secret():
    with pytest.raises(UnauthorizedError):
        SessionGate(None).login('anything')


def test_logout_invalidates_token_immediately(gate):
    session = gate.login('hunter2')
    token = session.token

    assert gate.logout(token) is True
    assert gate.authenticate(token) is None
    assert gate.logout(token) is False
    with pytest.raises(UnauthorizedError):
        gate.require(token)


def test_expired_token_is_anonymous_and_removed(gate):
    token = gate.login('hunter2').token
    session = db.session.get(AdminSession, token)
    session.expires_at = session.created_at - timedelta(seconds=1)
    db.session.commit()

    assert gate.authenticate(token) is None
    assert db.session.get(AdminSession, token) is None


def test_unknown_or_missing_token_is_anonymous(gate):
    assert gate.authenticate(None) is None
    assert gate.authenticate('not-a-token') is None


def test_purge_expired_keeps_live_sessions(gate):
    live = gate.login('hunter2').token
    stale = gate.login('hunter2').token
    session = db.session.get(AdminSession, stale)
    session.expires_at = session.created_at - timedelta(minutes=5)
    db.session.commit()

    assert gate.purge_expired() == 1
    assert gate.authenticate(live) is not None


def test_app_gate_uses_configured_password(app):
    gate = app.extensions['session_gate']
    assert gate.verify_credential(ADMIN_PASSWORD)
    assert not gate.verify_credential('nope')
