"""
Session gate for the admin surface.

One shared credential, compared against a Werkzeug password hash, unlocks the
admin area. A successful login issues a random token persisted in the
``admin_sessions`` table with a fixed expiry. The gate only reports whether a
token is live; routes decide how to present a refusal (JSON 401 or a redirect
to the login page).
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from werkzeug.security import check_password_hash

from bookshelf import db
from bookshelf.core.errors import UnauthorizedError
from bookshelf.models import AdminSession
from bookshelf.models.database import utcnow
from bookshelf.services.library_store import store_operation

logger = logging.getLogger(__name__)


class SessionGate:
    """Issues, checks and revokes admin session tokens."""

    TOKEN_BYTES = 48

    def __init__(self, password_hash: Optional[str], session_ttl: timedelta = timedelta(hours=24)):
        self.password_hash = password_hash
        self.session_ttl = session_ttl

    def verify_credential(self, credential) -> bool:
        if not self.password_hash or not isinstance(credential, str) or not credential:
            return False
        return check_password_hash(self.password_hash, credential)

    @store_operation
    def login(self, credential) -> AdminSession:
        """Exchange the shared credential for a new session."""
        if not self.verify_credential(credential):
            logger.warning("Rejected admin login attempt")
            raise UnauthorizedError("Invalid credentials")

        now = utcnow()
        self._purge_expired(now)
        session = AdminSession(
            token=secrets.token_urlsafe(self.TOKEN_BYTES),
            created_at=now,
            expires_at=now + self.session_ttl,
        )
        db.session.add(session)
        db.session.commit()
        logger.info(f"Admin logged in, session expires at {session.expires_at}")
        return session

    @store_operation
    def authenticate(self, token: Optional[str]) -> Optional[AdminSession]:
        """Return the live session for ``token``, or None when anonymous.

        Expired tokens are deleted on the way out.
        """
        if not token:
            return None
        session = db.session.get(AdminSession, token)
        if session is None:
            return None
        if session.is_expired(utcnow()):
            logger.info("Admin session expired")
            db.session.delete(session)
            db.session.commit()
            return None
        return session

    def require(self, token: Optional[str]) -> AdminSession:
        session = self.authenticate(token)
        if session is None:
            raise UnauthorizedError()
        return session

    @store_operation
    def logout(self, token: Optional[str]) -> bool:
        """Invalidate ``token`` immediately. Returns False if it was not live."""
        if not token:
            return False
        deleted = AdminSession.query.filter(AdminSession.token == token).delete()
        db.session.commit()
        if deleted:
            logger.info("Admin logged out")
        return bool(deleted)

    @store_operation
    def purge_expired(self) -> int:
        removed = self._purge_expired(utcnow())
        db.session.commit()
        return removed

    def _purge_expired(self, now) -> int:
        removed = AdminSession.query.filter(AdminSession.expires_at <= now).delete()
        if removed:
            logger.info(f"Purged {removed} expired admin session(s)")
        return removed
