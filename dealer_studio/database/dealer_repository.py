"""Dealer and outfit repository.

The repository is the only writer of dealer state. Every mutation reads the
whole dealer from the store, applies the change and writes it back. Mutations
of the same dealer are serialized by a per-dealer lock held in this process,
so concurrent writers do not lose each other's changes. Separate processes
sharing a store get no such guarantee.

``upsert_outfit`` is the single place that enforces "at most one outfit per
stage".
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Union

from pydantic import ValidationError

from dealer_studio.core.exceptions import InvalidRequest, NotFound
from dealer_studio.core.logging import get_logger
from dealer_studio.database.stores import DealerStore
from dealer_studio.models.domain.dealer import (
    Dealer,
    DealerCreate,
    DealerUpdate,
    Outfit,
    OutfitCreate
)
from dealer_studio.models.domain.stages import resolve_stage, stage_name

logger = get_logger(__name__)

# Fields an update may clear by sending null
NULLABLE_FIELDS = {"custom_prompt"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _validate(schema, fields: Union[Mapping[str, Any], Any]):
    if isinstance(fields, schema):
        return fields
    try:
        return schema.model_validate(fields)
    except ValidationError as e:
        raise InvalidRequest(
            f"Invalid {schema.__name__} fields",
            details=e.errors(include_url=False, include_context=False)
        ) from None


class DealerRepository:
    """Create, read, update and delete dealers and their outfits."""

    def __init__(self, store: DealerStore, draft_prefix: str = "new-"):
        self.store = store
        self.draft_prefix = draft_prefix
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def create(
        self,
        fields: Union[DealerCreate, Mapping[str, Any]],
        draft: bool = False
    ) -> Dealer:
        """Create a dealer with a fresh id and an empty outfit collection.

        Draft dealers get an id carrying the draft prefix, which routes them
        to the ephemeral store when one is configured.
        """
        data = _validate(DealerCreate, fields)
        now = _utcnow()
        dealer_id = _new_id()
        if draft:
            dealer_id = f"{self.draft_prefix}{dealer_id}"

        dealer = Dealer(
            id=dealer_id,
            created_at=now,
            updated_at=now,
            outfits=[],
            **data.model_dump()
        )
        await self.store.put(dealer)
        logger.info("Dealer created", dealer_id=dealer.id, draft=draft)
        return dealer

    async def get(self, dealer_id: str) -> Dealer:
        dealer = await self.store.get(dealer_id)
        if dealer is None:
            raise NotFound(f"Dealer {dealer_id} not found", details={"dealer_id": dealer_id})
        return dealer

    async def list(self) -> List[Dealer]:
        return await self.store.list()

    async def update(
        self,
        dealer_id: str,
        partial: Union[DealerUpdate, Mapping[str, Any]]
    ) -> Dealer:
        """Merge the explicitly provided fields over the stored dealer."""
        changes = _validate(DealerUpdate, partial).model_dump(exclude_unset=True)
        changes = {
            k: v for k, v in changes.items()
            if v is not None or k in NULLABLE_FIELDS
        }
        async with self._locked(dealer_id):
            dealer = await self.get(dealer_id)
            return await self._save(dealer, changes)

    async def delete(self, dealer_id: str) -> bool:
        """Remove the dealer; False if there was nothing to remove."""
        async with self._locked(dealer_id):
            removed = await self.store.delete(dealer_id)
        logger.info("Dealer deleted", dealer_id=dealer_id, removed=removed)
        return removed

    async def upsert_outfit(
        self,
        dealer_id: str,
        outfit: Union[OutfitCreate, Mapping[str, Any]]
    ) -> Outfit:
        """Store ``outfit`` as the dealer's outfit for its stage.

        Any previous outfit for that stage is discarded; other stages are
        left untouched. The new outfit always gets a fresh id.
        """
        if isinstance(outfit, Mapping) and "stage" in outfit:
            resolve_stage(outfit["stage"])
        data = _validate(OutfitCreate, outfit)

        new_outfit = Outfit(
            id=_new_id(),
            stage=data.stage,
            name=data.name or stage_name(data.stage),
            image_url=data.image_url,
            approved=data.approved
        )

        async with self._locked(dealer_id):
            dealer = await self.get(dealer_id)
            replaced = dealer.outfit_for_stage(new_outfit.stage)
            outfits = [o for o in dealer.outfits if o.stage != new_outfit.stage]
            outfits.append(new_outfit)
            outfits.sort(key=lambda o: o.stage)

            await self._save(dealer, {"outfits": outfits})
        logger.info(
            "Outfit stored",
            dealer_id=dealer_id,
            stage=new_outfit.stage,
            outfit_id=new_outfit.id,
            replaced_outfit_id=replaced.id if replaced else None
        )
        return new_outfit

    async def approve_outfit(self, dealer_id: str, outfit_id: str) -> bool:
        """Mark the outfit approved.

        Unknown outfit ids are a no-op returning False. Approving an already
        approved outfit returns True without writing.
        """
        async with self._locked(dealer_id):
            dealer = await self.get(dealer_id)
            target = next((o for o in dealer.outfits if o.id == outfit_id), None)
            if target is None:
                logger.warning(
                    "Approve skipped, outfit not found",
                    dealer_id=dealer_id,
                    outfit_id=outfit_id
                )
                return False
            if target.approved:
                return True

            outfits = [
                o.model_copy(update={"approved": True}) if o.id == outfit_id else o
                for o in dealer.outfits
            ]
            await self._save(dealer, {"outfits": outfits})
        logger.info("Outfit approved", dealer_id=dealer_id, outfit_id=outfit_id)
        return True

    @asynccontextmanager
    async def _locked(self, dealer_id: str) -> AsyncIterator[None]:
        """Hold the dealer's lock; the entry is dropped once nobody uses it."""
        lock = self._locks.setdefault(dealer_id, asyncio.Lock())
        self._lock_users[dealer_id] = self._lock_users.get(dealer_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[dealer_id] -= 1
            if not self._lock_users[dealer_id]:
                del self._lock_users[dealer_id]
                del self._locks[dealer_id]

    async def _save(self, dealer: Dealer, changes: Dict[str, Any]) -> Dealer:
        updated = dealer.model_copy(update={**changes, "updated_at": _utcnow()})
        await self.store.put(updated)
        return updated
