# dealer_studio/database/repositories/dealers.py
"""Repository for dealer table operations."""

from typing import List

from dealer_studio.models.database.dealer import DealerRecord
from .base import BaseRepository


class DealerRecordRepository(BaseRepository[DealerRecord]):
    """Row-level access to serialized dealer documents."""

    def __init__(self, session):
        super().__init__(DealerRecord, session)

    async def list_oldest_first(self) -> List[DealerRecord]:
        return await self.get_multi(order_by=[("created_at", "asc"), "id"])
