"""
Cover image storage on local disk.
"""

import logging
import os
import secrets
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from bookshelf.core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class CoverStorage:
    """Validates uploaded cover images and stores them under ``folder``.

    Stored files are reachable at ``<url_prefix>/<name>``; that URL is what
    ends up in ``Book.cover_url``.
    """

    def __init__(self, folder, url_prefix: str = '/uploads',
                 max_bytes: int = 5 * 1024 * 1024,
                 allowed_extensions: Iterable[str] = ('png', 'jpg', 'jpeg', 'gif', 'webp')):
        self.folder = Path(folder)
        self.url_prefix = url_prefix.rstrip('/')
        self.max_bytes = max_bytes
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}

    def read_validated(self, file_obj: FileStorage) -> bytes:
        """Check type and size of an upload and return its bytes.

        Nothing is written here, so a rejection leaves no trace on disk.
        """
        filename = file_obj.filename or ''
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if extension not in self.allowed_extensions:
            raise InvalidArgumentError(
                f"Cover image must be one of: {', '.join(sorted(self.allowed_extensions))}"
            )
        mimetype = (file_obj.mimetype or '').lower()
        if not mimetype.startswith('image/'):
            raise InvalidArgumentError("Cover image must have an image content type")

        data = file_obj.stream.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            logger.warning(f"Rejected cover '{filename}': larger than {self.max_bytes} bytes")
            raise InvalidArgumentError(
                f"Cover image exceeds the {self.max_bytes // (1024 * 1024)} MiB limit"
            )
        if not data:
            raise InvalidArgumentError("Cover image is empty")
        return data

    def save(self, file_obj: FileStorage) -> str:
        """Validate and write an upload, returning its public URL."""
        data = self.read_validated(file_obj)
        safe_name = secure_filename(file_obj.filename) or 'cover'
        unique_name = f"{secrets.token_hex(10)}-{safe_name}"
        self.folder.mkdir(parents=True, exist_ok=True)
        with open(self.folder / unique_name, 'wb') as f:
            f.write(data)
        logger.info(f"Stored cover image {unique_name} ({len(data)} bytes)")
        return f"{self.url_prefix}/{unique_name}"

    def owns(self, url: Optional[str]) -> bool:
        return bool(url) and url.startswith(self.url_prefix + '/')

    def remove(self, url: Optional[str]) -> bool:
        """Delete a file previously returned by ``save``; other URLs are left alone."""
        if not self.owns(url):
            return False
        name = os.path.basename(url[len(self.url_prefix) + 1:])
        path = self.folder / name
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Removed cover image {name}")
        return True
