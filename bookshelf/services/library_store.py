"""
Data-access layer for books, reviews and admin accounts.

Every public function here runs inside a Flask application context and talks
to the store through ``db.session``. Validation happens before anything is
added to the session, so a rejected call never leaves a partial write behind.
Store failures are translated into the library error taxonomy:

- unique constraint violations become ``ConflictError``
- connection, transport and timeout failures become ``StoreUnavailableError``
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import or_, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import joinedload, selectinload
from werkzeug.security import generate_password_hash

from bookshelf import db
from bookshelf.core.config import REVIEWS_PAGE_SIZE
from bookshelf.core.errors import (
    ConflictError,
    InvalidArgumentError,
    LibraryError,
    NotFoundError,
    StoreUnavailableError,
)
from bookshelf.models import AdminUser, Book, Review, DEFAULT_REVIEW_AUTHOR
from bookshelf.models.database import new_id, utcnow

logger = logging.getLogger(__name__)

# Wire spellings accepted alongside the column names.
FIELD_ALIASES = {
    'coverUrl': 'cover_url',
    'startedReadingAt': 'started_reading_at',
    'finishedReadingAt': 'finished_reading_at',
    'bookId': 'book_id',
}

BOOK_FIELDS = (
    'title', 'author', 'isbn', 'cover_url', 'tags', 'notes', 'rating',
    'started_reading_at', 'finished_reading_at',
)
REVIEW_FIELDS = ('book_id', 'title', 'body', 'author', 'rating')

MIN_RATING = 1
MAX_RATING = 5


def _is_foreign_key_violation(error: IntegrityError) -> bool:
    # psycopg2 reports SQLSTATE 23503, sqlite only the message
    if getattr(error.orig, 'pgcode', None) == '23503':
        return True
    return 'foreign key' in str(error.orig).lower()


def store_operation(func):
    """Translate store failures raised by ``func`` into library errors."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LibraryError:
            db.session.rollback()
            raise
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f"{func.__name__} hit a constraint violation: {e.orig}")
            if _is_foreign_key_violation(e):
                raise InvalidArgumentError("Referenced record does not exist") from e
            raise ConflictError("A record with the same unique value already exists") from e
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            db.session.rollback()
            logger.error(f"{func.__name__} failed, store unavailable: {e}")
            raise StoreUnavailableError() from e
    return wrapper


# ---------------------------------------------------------------------------
# Field cleaning

def _normalize_fields(fields: Optional[Mapping[str, Any]], allowed: Iterable[str]) -> Dict[str, Any]:
    if fields is None:
        return {}
    if not isinstance(fields, Mapping):
        raise InvalidArgumentError("Request body must be an object")
    allowed = set(allowed)
    result = {}
    for key, value in fields.items():
        name = FIELD_ALIASES.get(key, key)
        if name in allowed:
            result[name] = value
    return result


def _clean_text(value, name: str, required: bool = False) -> Optional[str]:
    if value is None:
        cleaned = None
    elif isinstance(value, str):
        cleaned = value.strip() or None
    else:
        raise InvalidArgumentError(f"{name} must be a string")
    if required and cleaned is None:
        raise InvalidArgumentError(f"{name} is required")
    return cleaned


def _clean_rating(value) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidArgumentError("rating must be an integer between 1 and 5")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidArgumentError("rating must be an integer between 1 and 5")
        value = int(value)
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError("rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidArgumentError("rating must be an integer between 1 and 5")
    return rating


def _clean_tags(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple, set)):
        raise InvalidArgumentError("tags must be a list of strings")
    tags = []
    for tag in value:
        if not isinstance(tag, str):
            raise InvalidArgumentError("tags must be a list of strings")
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _clean_timestamp(value, name: str) -> Optional[datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(('Z', 'z')):
            raw = raw[:-1] + '+00:00'
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidArgumentError(f"{name} must be an ISO 8601 timestamp")
    if not isinstance(value, datetime):
        raise InvalidArgumentError(f"{name} must be an ISO 8601 timestamp")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _check_reading_order(started: Optional[datetime], finished: Optional[datetime]):
    if started is not None and finished is not None and finished < started:
        raise InvalidArgumentError("finishedReadingAt cannot be earlier than startedReadingAt")


def _book_values(fields, partial: bool) -> Dict[str, Any]:
    raw = _normalize_fields(fields, BOOK_FIELDS)
    if not partial:
        raw.setdefault('title', None)
        raw.setdefault('author', None)
    values = {}
    for name, value in raw.items():
        if name in ('title', 'author'):
            values[name] = _clean_text(value, name, required=True)
        elif name in ('isbn', 'cover_url', 'notes'):
            values[name] = _clean_text(value, name)
        elif name == 'tags':
            values[name] = _clean_tags(value)
        elif name == 'rating':
            values[name] = _clean_rating(value)
        else:
            values[name] = _clean_timestamp(value, name)
    if not partial:
        values.setdefault('tags', [])
    return values


def _review_values(fields, partial: bool) -> Dict[str, Any]:
    raw = _normalize_fields(fields, REVIEW_FIELDS)
    if not partial:
        raw.setdefault('title', None)
        raw.setdefault('body', None)
    values = {}
    for name, value in raw.items():
        if name in ('title', 'body'):
            values[name] = _clean_text(value, name, required=True)
        elif name == 'author':
            values[name] = _clean_text(value, name) or DEFAULT_REVIEW_AUTHOR
        elif name == 'book_id':
            values[name] = _clean_text(value, 'bookId')
        else:
            values[name] = _clean_rating(value)
    if not partial:
        values.setdefault('author', DEFAULT_REVIEW_AUTHOR)
    return values


def _next_timestamp(previous: Optional[datetime]) -> datetime:
    """A fresh ``updated_at`` that is strictly later than ``previous``."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _ensure_isbn_available(isbn: str, exclude_id: Optional[str] = None):
    query = Book.query.filter(Book.isbn == isbn)
    if exclude_id is not None:
        query = query.filter(Book.id != exclude_id)
    if db.session.query(query.exists()).scalar():
        raise ConflictError(f"A book with ISBN {isbn} already exists")


def _require_book_reference(book_id: Optional[str]):
    if book_id is not None and db.session.get(Book, book_id) is None:
        raise InvalidArgumentError(f"bookId {book_id} does not reference an existing book")


def _get_or_raise(model, object_id, label: str):
    obj = db.session.get(model, object_id) if object_id else None
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


# ---------------------------------------------------------------------------
# Books

@store_operation
def list_books() -> List[Book]:
    """All books, newest first, with their review ids loaded."""
    return (
        Book.query
        .options(selectinload(Book.reviews))
        .order_by(Book.created_at.desc(), Book.id.desc())
        .all()
    )


@store_operation
def get_book(book_id: str) -> Book:
    book = (
        Book.query
        .options(selectinload(Book.reviews))
        .filter(Book.id == book_id)
        .first()
    )
    if book is None:
        raise NotFoundError("Book not found")
    return book


@store_operation
def search_books(query: Optional[str]) -> List[Book]:
    """Case-insensitive substring search over title, author and notes."""
    if query is None or not isinstance(query, str) or not query.strip():
        raise InvalidArgumentError("Search query is required")
    pattern = f"%{_escape_like(query.strip())}%"
    return (
        Book.query
        .options(selectinload(Book.reviews))
        .filter(or_(
            Book.title.ilike(pattern, escape='\\'),
            Book.author.ilike(pattern, escape='\\'),
            Book.notes.ilike(pattern, escape='\\'),
        ))
        .order_by(Book.created_at.desc(), Book.id.desc())
        .all()
    )


@store_operation
def create_book(fields: Mapping[str, Any], review: Optional[Mapping[str, Any]] = None) -> Book:
    """Create a book, and optionally its first review in the same transaction."""
    values = _book_values(fields, partial=False)
    _check_reading_order(values.get('started_reading_at'), values.get('finished_reading_at'))
    review_values = None
    if review is not None:
        review_values = _review_values(review, partial=False)
        review_values.pop('book_id', None)
    if values.get('isbn'):
        _ensure_isbn_available(values['isbn'])

    now = utcnow()
    book = Book(id=new_id(), created_at=now, updated_at=now, **values)
    db.session.add(book)
    if review_values is not None:
        db.session.add(Review(id=new_id(), book=book, created_at=now, updated_at=now, **review_values))
    db.session.commit()
    logger.info(f"Created book {book.id} ('{book.title}')")
    return book


@store_operation
def update_book(book_id: str, fields: Mapping[str, Any]) -> Book:
    """Apply a partial update; ``updated_at`` is refreshed even if nothing changed."""
    book = _get_or_raise(Book, book_id, "Book")
    values = _book_values(fields, partial=True)
    _check_reading_order(
        values.get('started_reading_at', book.started_reading_at),
        values.get('finished_reading_at', book.finished_reading_at),
    )
    if values.get('isbn') and values['isbn'] != book.isbn:
        _ensure_isbn_available(values['isbn'], exclude_id=book.id)

    for name, value in values.items():
        setattr(book, name, value)
    book.updated_at = _next_timestamp(book.updated_at)
    db.session.commit()
    logger.info(f"Updated book {book.id} ({', '.join(sorted(values)) or 'no fields'})")
    return book


@store_operation
def delete_book(book_id: str) -> Dict[str, Any]:
    """Delete a book; its reviews stay and lose their book reference.

    Returns a snapshot of the deleted book.
    """
    book = _get_or_raise(Book, book_id, "Book")
    snapshot = book.to_dict()
    db.session.delete(book)
    db.session.commit()
    logger.info(f"Deleted book {book_id}, detached {len(snapshot['reviews'])} review(s)")
    return snapshot


# ---------------------------------------------------------------------------
# Reviews

@store_operation
def list_reviews(limit: int = REVIEWS_PAGE_SIZE) -> List[Review]:
    return (
        Review.query
        .options(joinedload(Review.book))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
        .all()
    )


@store_operation
def get_review(review_id: str) -> Review:
    return _get_or_raise(Review, review_id, "Review")


@store_operation
def create_review(fields: Mapping[str, Any]) -> Review:
    values = _review_values(fields, partial=False)
    _require_book_reference(values.get('book_id'))

    now = utcnow()
    review = Review(id=new_id(), created_at=now, updated_at=now, **values)
    db.session.add(review)
    db.session.commit()
    logger.info(f"Created review {review.id} for book {review.book_id}")
    return review


@store_operation
def update_review(review_id: str, fields: Mapping[str, Any]) -> Review:
    review = _get_or_raise(Review, review_id, "Review")
    values = _review_values(fields, partial=True)
    if 'book_id' in values:
        _require_book_reference(values['book_id'])

    for name, value in values.items():
        setattr(review, name, value)
    review.updated_at = _next_timestamp(review.updated_at)
    db.session.commit()
    logger.info(f"Updated review {review.id}")
    return review


@store_operation
def delete_review(review_id: str) -> None:
    review = _get_or_raise(Review, review_id, "Review")
    db.session.delete(review)
    db.session.commit()
    logger.info(f"Deleted review {review_id}")


# ---------------------------------------------------------------------------
# Admin accounts

@store_operation
def create_admin_user(email: str, password: str, name: Optional[str] = None) -> AdminUser:
    email = _clean_text(email, 'email', required=True).lower()
    if '@' not in email:
        raise InvalidArgumentError("email must be a valid address")
    if not isinstance(password, str) or not password:
        raise InvalidArgumentError("password is required")
    if AdminUser.query.filter_by(email=email).first() is not None:
        raise ConflictError(f"An admin with email {email} already exists")

    now = utcnow()
    user = AdminUser(
        id=new_id(),
        email=email,
        password_hash=generate_password_hash(password),
        name=_clean_text(name, 'name'),
        created_at=now,
        updated_at=now,
    )
    db.session.add(user)
    db.session.commit()
    logger.info(f"Created admin user {user.id}")
    return user


@store_operation
def get_admin_user_by_email(email: str) -> AdminUser:
    user = AdminUser.query.filter_by(email=(email or '').strip().lower()).first()
    if user is None:
        raise NotFoundError("Admin user not found")
    return user


@store_operation
def ping():
    """Round-trip to the store; raises StoreUnavailableError when it is down."""
    db.session.execute(text("SELECT 1"))
    return True
