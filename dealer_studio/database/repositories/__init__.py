"""
Data access layer implementation. Provides:
- CRUD operations
- Custom queries
"""

from .base import BaseRepository
from .dealers import DealerRecordRepository

__all__ = [
    'BaseRepository',
    'DealerRecordRepository'
]
