"""
Database configuration and session management
"""

import sqlite3
import uuid
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.engine import Engine

from bookshelf import db


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite leaves foreign keys unenforced unless asked per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the way the store keeps it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


def init_db(drop: bool = False):
    """Initialize the database, creating all tables"""
    import bookshelf.models  # noqa: F401  registers the tables

    if drop:
        db.drop_all()
    db.create_all()


def shutdown_session(exception=None):
    """Remove the session at the end of request"""
    db.session.remove()
