"""
Core configuration settings for the application.
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_flag(name: str, default: str = 'False') -> bool:
    return os.getenv(name, default).lower() == 'true'


@dataclass
class AuthSettings:
    """Settings for the shared admin credential and its sessions"""
    password_hash: Optional[str]
    secret_key: str
    session_ttl: timedelta = field(default_factory=lambda: timedelta(hours=24))
    cookie_name: str = "session_token"
    cookie_secure: bool = False


def get_auth_settings() -> AuthSettings:
    """Build auth settings from environment variables.

    ``ADMIN_PASSWORD_HASH`` wins over ``ADMIN_PASSWORD``; a plain password is
    hashed here so the gate only ever holds a hash.
    """
    password_hash = os.getenv('ADMIN_PASSWORD_HASH')
    if not password_hash:
        password = os.getenv('ADMIN_PASSWORD')
        if password:
            password_hash = generate_password_hash(password)
        else:
            logger.warning("Neither ADMIN_PASSWORD_HASH nor ADMIN_PASSWORD is set; admin login is disabled")

    return AuthSettings(
        password_hash=password_hash,
        secret_key=os.getenv('SECRET_KEY', 'dev-secret-change-me'),
        session_ttl=timedelta(hours=float(os.getenv('SESSION_TTL_HOURS', '24'))),
        cookie_secure=_env_flag('SESSION_COOKIE_SECURE'),
    )


# Database settings
DATABASE = {
    'default': {
        'URL': os.getenv('DATABASE_URL', f'sqlite:///{os.path.join(BASE_DIR, "data", "library.db")}'),
        'ECHO': _env_flag('SQL_ECHO'),
        'TIMEOUT': int(os.getenv('STORE_TIMEOUT_SECONDS', '10')),
    }
}

# Cover image uploads
UPLOADS = {
    'FOLDER': os.getenv('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'data', 'uploads')),
    'URL_PREFIX': '/uploads',
    'MAX_COVER_BYTES': 5 * 1024 * 1024,
    'MAX_CONTENT_LENGTH': 16 * 1024 * 1024,
    'ALLOWED_EXTENSIONS': {'png', 'jpg', 'jpeg', 'gif', 'webp'},
}

# Public listings
REVIEWS_PAGE_SIZE = 20

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE')

# Logging configuration
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s [%(levelname)s][%(name)s:%(lineno)d] %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'detailed': {
            'format': '%(asctime)s [%(levelname)s][%(name)s:%(funcName)s:%(lineno)d] %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
    },
    'handlers': {
        'console': {
            'level': LOG_LEVEL,
            'formatter': 'standard',
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stdout'
        }
    },
    'loggers': {
        '': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': True
        },
        'bookshelf': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False
        },
        'sqlalchemy': {'level': 'WARNING'},
        'werkzeug': {'level': 'INFO'}
    }
}

if LOG_FILE:
    LOGGING['handlers']['file'] = {
        'level': 'DEBUG',
        'formatter': 'detailed',
        'class': 'logging.FileHandler',
        'filename': LOG_FILE,
        'delay': True
    }
    for _name in ('', 'bookshelf'):
        LOGGING['loggers'][_name]['handlers'].append('file')
