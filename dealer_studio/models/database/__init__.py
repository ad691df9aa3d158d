# dealer_studio/models/database/__init__.py
"""Database models initialization."""

from .base import Base
from .dealer import DealerRecord

# This makes imports cleaner elsewhere in the application
__all__ = [
    'Base',
    'DealerRecord'
]
