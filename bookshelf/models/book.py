"""
Book model definition using SQLAlchemy ORM.
"""

from bookshelf import db
from bookshelf.models.database import new_id, utcnow


def _isoformat(value):
    return value.isoformat(timespec='microseconds') + 'Z' if value is not None else None


class Book(db.Model):
    """Book model representing a book in the library."""

    __tablename__ = 'books'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.Text, nullable=False)
    author = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String(32), unique=True)
    cover_url = db.Column(db.Text)
    tags = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.Text)
    rating = db.Column(db.SmallInteger)
    started_reading_at = db.Column(db.DateTime)
    finished_reading_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Deleting a book leaves its reviews in place with book_id cleared.
    reviews = db.relationship(
        'Review',
        back_populates='book',
        order_by='Review.created_at.desc()',
    )

    __table_args__ = (
        db.CheckConstraint('rating IS NULL OR (rating BETWEEN 1 AND 5)', name='books_rating_range'),
    )

    def __repr__(self):
        """String representation of the book."""
        return f"<Book(id={self.id}, title='{self.title}')>"

    def to_dict(self, include_reviews=False):
        """Convert book to dictionary.

        By default only review ids are listed; ``include_reviews`` embeds the
        full reviews, newest first.
        """
        data = {
            'id': self.id,
            'title': self.title,
            'author': self.author,
            'isbn': self.isbn,
            'coverUrl': self.cover_url,
            'tags': list(self.tags or []),
            'notes': self.notes,
            'rating': self.rating,
            'startedReadingAt': _isoformat(self.started_reading_at),
            'finishedReadingAt': _isoformat(self.finished_reading_at),
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
        if include_reviews:
            data['reviews'] = [review.to_dict(include_book=False) for review in self.reviews]
        else:
            data['reviews'] = [{'id': review.id} for review in self.reviews]
        return data
