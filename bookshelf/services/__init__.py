"""
Services package containing the data-access layer, the admin session gate
and cover image storage.
"""

from .auth_gate import SessionGate
from .uploads import CoverStorage

__all__ = ['SessionGate', 'CoverStorage']
