"""
Admin account and admin session models.

``AdminUser`` rows are kept for a future multi-admin login; the session gate
checks the single configured credential and never reads this table.
"""

from bookshelf import db
from bookshelf.models.book import _isoformat
from bookshelf.models.database import new_id, utcnow


class AdminUser(db.Model):
    __tablename__ = 'admin_users'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email='{self.email}')>"

    def to_dict(self):
        # The password hash never leaves the model.
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }


class AdminSession(db.Model):
    """A server-side login issued by the session gate."""

    __tablename__ = 'admin_sessions'

    token = db.Column(db.String(128), primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<AdminSession(expires_at={self.expires_at})>"

    def is_expired(self, now) -> bool:
        return self.expires_at <= now

    def to_dict(self):
        return {
            'createdAt': _isoformat(self.created_at),
            'expiresAt': _isoformat(self.expires_at),
        }
