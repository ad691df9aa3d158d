"""Dealer document stores.

A store persists whole serialized ``Dealer`` records addressed by id. The
repository reads a record, changes it and writes it back, so stores only need
get/put/delete (plus list for the roster).

- ``SqlDealerStore``: durable, one row per dealer.
- ``RedisDealerStore``: ephemeral, for draft dealers; entries expire.
- ``RoutingDealerStore``: draft ids (``new-`` prefix) go to the ephemeral
  store, everything else to the durable one.
"""

from typing import List, Optional, Protocol

from redis import asyncio as aioredis

from dealer_studio.core.logging import get_logger
from dealer_studio.database.repositories.dealers import DealerRecordRepository
from dealer_studio.database.session import SessionManager, with_tracing
from dealer_studio.models.domain.dealer import Dealer

logger = get_logger(__name__)


class DealerStore(Protocol):
    async def get(self, dealer_id: str) -> Optional[Dealer]: ...

    async def put(self, dealer: Dealer) -> None: ...

    async def delete(self, dealer_id: str) -> bool: ...

    async def list(self) -> List[Dealer]: ...


class SqlDealerStore:
    """Durable store backed by the ``dealers`` table."""

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager

    @with_tracing
    async def get(self, dealer_id: str) -> Optional[Dealer]:
        async with self.session_manager.session() as session:
            record = await DealerRecordRepository(session).get(dealer_id)
            if record is None:
                return None
            return Dealer.model_validate(record.payload)

    @with_tracing
    async def put(self, dealer: Dealer) -> None:
        async with self.session_manager.transaction() as session:
            await DealerRecordRepository(session).upsert(
                dealer.id,
                payload=dealer.model_dump(mode="json"),
                created_at=dealer.created_at,
                updated_at=dealer.updated_at
            )

    @with_tracing
    async def delete(self, dealer_id: str) -> bool:
        async with self.session_manager.transaction() as session:
            return await DealerRecordRepository(session).delete(dealer_id)

    @with_tracing
    async def list(self) -> List[Dealer]:
        async with self.session_manager.session() as session:
            records = await DealerRecordRepository(session).list_oldest_first()
            return [Dealer.model_validate(r.payload) for r in records]


class RedisDealerStore:
    """Ephemeral store; each dealer is a JSON string under ``dealer:<id>``."""

    key_prefix = "dealer:"

    def __init__(self, client: aioredis.Redis, ttl_seconds: Optional[int] = None):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def _key(self, dealer_id: str) -> str:
        return f"{self.key_prefix}{dealer_id}"

    async def get(self, dealer_id: str) -> Optional[Dealer]:
        raw = await self.client.get(self._key(dealer_id))
        if raw is None:
            return None
        return Dealer.model_validate_json(raw)

    async def put(self, dealer: Dealer) -> None:
        await self.client.set(
            self._key(dealer.id),
            dealer.model_dump_json(),
            ex=self.ttl_seconds
        )

    async def delete(self, dealer_id: str) -> bool:
        return bool(await self.client.delete(self._key(dealer_id)))

    async def list(self) -> List[Dealer]:
        dealers = []
        async for key in self.client.scan_iter(match=f"{self.key_prefix}*"):
            raw = await self.client.get(key)
            # expired between scan and get
            if raw is None:
                continue
            dealers.append(Dealer.model_validate_json(raw))
        dealers.sort(key=lambda d: (d.created_at, d.id))
        return dealers

    async def close(self) -> None:
        await self.client.aclose()


class RoutingDealerStore:
    """Route draft dealers to an ephemeral store and the rest to a durable one."""

    def __init__(
        self,
        durable: DealerStore,
        ephemeral: Optional[DealerStore] = None,
        draft_prefix: str = "new-"
    ):
        self.durable = durable
        self.ephemeral = ephemeral
        self.draft_prefix = draft_prefix

    def _route(self, dealer_id: str) -> DealerStore:
        if self.ephemeral is not None and dealer_id.startswith(self.draft_prefix):
            return self.ephemeral
        return self.durable

    async def get(self, dealer_id: str) -> Optional[Dealer]:
        return await self._route(dealer_id).get(dealer_id)

    async def put(self, dealer: Dealer) -> None:
        await self._route(dealer.id).put(dealer)

    async def delete(self, dealer_id: str) -> bool:
        # Clear both so no ephemeral copy outlives the dealer
        removed = await self.durable.delete(dealer_id)
        if self.ephemeral is not None:
            removed = await self.ephemeral.delete(dealer_id) or removed
        return removed

    async def list(self) -> List[Dealer]:
        dealers = await self.durable.list()
        if self.ephemeral is not None:
            dealers.extend(await self.ephemeral.list())
            dealers.sort(key=lambda d: (d.created_at, d.id))
        return dealers
