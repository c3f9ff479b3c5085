"""
Review model definition using SQLAlchemy ORM.
"""

from bookshelf import db
from bookshelf.models.book import _isoformat
from bookshelf.models.database import new_id, utcnow

DEFAULT_REVIEW_AUTHOR = 'Anonymous'


class Review(db.Model):
    """A review, optionally attached to a book (many reviews per book)."""

    __tablename__ = 'reviews'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    book_id = db.Column(db.String(32), db.ForeignKey('books.id', ondelete='SET NULL'), index=True)
    title = db.Column(db.Text, nullable=False)
    body = db.Column(db.Text, nullable=False)
    author = db.Column(db.Text, nullable=False, default=DEFAULT_REVIEW_AUTHOR)
    rating = db.Column(db.SmallInteger)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    book = db.relationship('Book', back_populates='reviews')

    __table_args__ = (
        db.CheckConstraint('rating IS NULL OR (rating BETWEEN 1 AND 5)', name='reviews_rating_range'),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, title='{self.title}')>"

    def to_dict(self, include_book=True):
        data = {
            'id': self.id,
            'bookId': self.book_id,
            'title': self.title,
            'body': self.body,
            'author': self.author,
            'rating': self.rating,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
        if include_book:
            book = self.book
            data['book'] = {
                'id': book.id,
                'title': book.title,
                'author': book.author,
            } if book is not None else None
        return data
