"""
Book mutations that carry a cover image attachment.

The attachment is validated and stored first, then the row is written with
the stored URL. If the row write fails the stored file is removed again, so a
rejected request leaves neither a row change nor an orphaned file behind.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from flask import current_app
from werkzeug.datastructures import FileStorage

from bookshelf.services import library_store
from bookshelf.services.uploads import CoverStorage

logger = logging.getLogger(__name__)


def get_cover_storage() -> CoverStorage:
    return current_app.extensions['cover_storage']


def _has_file(cover: Optional[FileStorage]) -> bool:
    return cover is not None and bool(cover.filename)


def _with_cover(fields: Optional[Mapping[str, Any]], cover_url: str) -> Dict[str, Any]:
    merged = {key: value for key, value in (fields or {}).items() if key != 'coverUrl'}
    merged['cover_url'] = cover_url
    return merged


def create_book(fields: Mapping[str, Any], cover: Optional[FileStorage] = None,
                review: Optional[Mapping[str, Any]] = None):
    storage = get_cover_storage()
    cover_url = None
    if _has_file(cover):
        cover_url = storage.save(cover)
        fields = _with_cover(fields, cover_url)
    try:
        return library_store.create_book(fields, review=review)
    except Exception:
        if cover_url:
            logger.warning(f"Book creation failed, discarding stored cover {cover_url}")
            storage.remove(cover_url)
        raise


def update_book(book_id: str, fields: Mapping[str, Any], cover: Optional[FileStorage] = None):
    storage = get_cover_storage()
    previous_url = library_store.get_book(book_id).cover_url
    cover_url = None
    if _has_file(cover):
        cover_url = storage.save(cover)
        fields = _with_cover(fields, cover_url)
    try:
        book = library_store.update_book(book_id, fields)
    except Exception:
        if cover_url:
            logger.warning(f"Book update failed, discarding stored cover {cover_url}")
            storage.remove(cover_url)
        raise
    if previous_url and previous_url != book.cover_url:
        storage.remove(previous_url)
    return book


def delete_book(book_id: str) -> Dict[str, Any]:
    snapshot = library_store.delete_book(book_id)
    get_cover_storage().remove(snapshot.get('coverUrl'))
    return snapshot
