"""
Seed the library with a few sample books and reviews.
"""

import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from bookshelf import create_app
from bookshelf.services import library_store

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    {
        'title': 'The Great Gatsby',
        'author': 'F. Scott Fitzgerald',
        'tags': ['fiction', 'classic', 'american'],
        'rating': 4,
        'coverUrl': 'https://covers.openlibrary.org/b/isbn/9780743273565-L.jpg',
        'review': {
            'title': 'A Timeless Classic',
            'body': "Fitzgerald's prose is beautiful and the story remains relevant today. "
                    "The exploration of the American Dream and its corruption is masterfully done.",
            'rating': 5,
        },
    },
    {
        'title': '1984',
        'author': 'George Orwell',
        'tags': ['fiction', 'dystopian', 'classic'],
        'rating': 4,
        'coverUrl': 'https://covers.openlibrary.org/b/isbn/9780452284234-L.jpg',
        'review': {
            'title': 'Eerily Prophetic',
            'body': "Orwell's vision of totalitarianism is more relevant now than ever. "
                    "The concepts of doublethink and newspeak are particularly chilling.",
            'rating': 5,
        },
    },
    {
        'title': 'To Kill a Mockingbird',
        'author': 'Harper Lee',
        'tags': ['fiction', 'classic', 'southern'],
        'rating': 4,
        'coverUrl': 'https://covers.openlibrary.org/b/isbn/9780061120084-L.jpg',
    },
]


def seed():
    app = create_app()
    with app.app_context():
        reviews = 0
        for entry in SAMPLE_BOOKS:
            fields = dict(entry)
            review = fields.pop('review', None)
            book = library_store.create_book(fields, review=review)
            reviews += 1 if review else 0
            logger.info(f"Seeded '{book.title}'")
        logger.info(f"Created {len(SAMPLE_BOOKS)} books and {reviews} reviews")


def main():
    try:
        seed()
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
