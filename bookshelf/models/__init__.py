"""
ORM models for books, reviews and admin accounts.
"""

from .book import Book
from .review import Review, DEFAULT_REVIEW_AUTHOR
from .admin import AdminUser, AdminSession

__all__ = ['Book', 'Review', 'DEFAULT_REVIEW_AUTHOR', 'AdminUser', 'AdminSession']
