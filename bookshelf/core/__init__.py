"""
Core package initialization.
"""

from .config import DATABASE, UPLOADS, LOGGING, AuthSettings, get_auth_settings

__all__ = ['DATABASE', 'UPLOADS', 'LOGGING', 'AuthSettings', 'get_auth_settings']
