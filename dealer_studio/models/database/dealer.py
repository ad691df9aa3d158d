# dealer_studio/models/database/dealer.py
"""Dealer table."""

from typing import Any, Dict

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class DealerRecord(TimestampMixin, Base):
    """A dealer stored as its serialized document.

    The outfit collection lives inside ``payload``; the timestamp columns
    mirror the payload so listings can be ordered in SQL.
    """
    __tablename__ = 'dealers'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
