"""
Database initialization script.
This script creates the database tables, optionally dropping existing ones first.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the parent directory to the Python path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from bookshelf import create_app
from bookshelf.models.database import init_db

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create the library tables")
    parser.add_argument('--drop', action='store_true', help="drop existing tables first")
    args = parser.parse_args()

    try:
        app = create_app()
        with app.app_context():
            init_db(drop=args.drop)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
