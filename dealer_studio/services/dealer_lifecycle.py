"""Dealer lifecycle service.

Sequences image generation and persistence for dealer outfit stages, and
exposes the approve, toggle and delete operations used by the API.

A stage generation moves Idle -> Generating -> Committed | Failed -> Idle.
Nothing is written unless the provider call succeeded, so a failed
generation leaves the stage's previous outfit in place. At most one
generation per (dealer, stage) runs at a time in this process; a duplicate
request is rejected with ``GenerationInProgress`` rather than queued.
"""

from enum import Enum
from typing import Any, List, Mapping, Set, Tuple, Union

from dealer_studio.core.exceptions import GenerationInProgress
from dealer_studio.core.logging import get_logger, monitor_performance
from dealer_studio.database.dealer_repository import DealerRepository
from dealer_studio.models.domain.dealer import Dealer, DealerCreate, DealerUpdate, Outfit, OutfitCreate
from dealer_studio.models.domain.stages import resolve_stage, stage_name
from dealer_studio.services.image_generation import ImageGenerationService

logger = get_logger(__name__)

PROMPT_QUALIFIERS = (
    "high quality, detailed, professional, casino setting, "
    "blackjack table, clear face, good lighting"
)


class GenerationState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMMITTED = "committed"
    FAILED = "failed"


def build_stage_prompt(dealer: Dealer, stage: int) -> str:
    """Compose the generation prompt for one stage of a dealer."""
    prompt = f"{dealer.personality} dealer in {stage_name(stage)} outfit, {PROMPT_QUALIFIERS}"
    if dealer.custom_prompt and dealer.custom_prompt.strip():
        prompt = f"{prompt}, {dealer.custom_prompt.strip()}"
    return prompt


class DealerLifecycleService:
    """Operation-level workflows over the repository and the dispatcher."""

    def __init__(self, repository: DealerRepository, dispatcher: ImageGenerationService):
        self.repository = repository
        self.dispatcher = dispatcher
        self._in_flight: Set[Tuple[str, int]] = set()

    async def create_dealer(self, fields: Union[DealerCreate, Mapping[str, Any]], draft: bool = False) -> Dealer:
        return await self.repository.create(fields, draft=draft)

    async def get_dealer(self, dealer_id: str) -> Dealer:
        return await self.repository.get(dealer_id)

    async def list_dealers(self) -> List[Dealer]:
        return await self.repository.list()

    async def update_dealer(self, dealer_id: str, partial: Union[DealerUpdate, Mapping[str, Any]]) -> Dealer:
        return await self.repository.update(dealer_id, partial)

    async def delete_dealer(self, dealer_id: str) -> bool:
        return await self.repository.delete(dealer_id)

    def generation_state(self, dealer_id: str, stage: int) -> GenerationState:
        if (dealer_id, stage) in self._in_flight:
            return GenerationState.GENERATING
        return GenerationState.IDLE

    def generating_stages(self, dealer_id: str) -> List[int]:
        """Stages of ``dealer_id`` with a generation currently running."""
        return sorted(stage for d, stage in self._in_flight if d == dealer_id)

    @monitor_performance("generate_outfit")
    async def generate_outfit(self, dealer_id: str, stage: int) -> Outfit:
        """Generate the image for ``stage`` and store it as the stage's outfit.

        Raises:
            UnknownStage: stage outside 1..5
            NotFound: unknown dealer
            GenerationInProgress: the same stage is already generating
            ProviderError, ConfigurationError: dispatch failed; nothing stored
        """
        stage = int(resolve_stage(stage))
        key = (dealer_id, stage)
        # Check and claim without an await in between
        if key in self._in_flight:
            raise GenerationInProgress(dealer_id, stage)
        self._in_flight.add(key)
        logger.info(
            "Stage generation started",
            dealer_id=dealer_id,
            stage=stage,
            state=GenerationState.GENERATING.value
        )

        try:
            dealer = await self.repository.get(dealer_id)
            image_url = await self.dispatcher.generate(
                build_stage_prompt(dealer, stage),
                dealer.model
            )
            outfit = await self.repository.upsert_outfit(
                dealer_id,
                OutfitCreate(stage=stage, name=stage_name(stage), image_url=image_url, approved=False)
            )
        except Exception as e:
            logger.warning(
                "Stage generation failed",
                dealer_id=dealer_id,
                stage=stage,
                state=GenerationState.FAILED.value,
                error_type=e.__class__.__name__,
                error_message=str(e)
            )
            raise
        finally:
            self._in_flight.discard(key)

        logger.info(
            "Stage generation committed",
            dealer_id=dealer_id,
            stage=stage,
            outfit_id=outfit.id,
            state=GenerationState.COMMITTED.value
        )
        return outfit

    async def approve_outfit(self, dealer_id: str, outfit_id: str) -> bool:
        return await self.repository.approve_outfit(dealer_id, outfit_id)

    async def set_active(self, view: Dealer, value: bool) -> Dealer:
        return await self._set_flag(view, "is_active", value)

    async def set_premium(self, view: Dealer, value: bool) -> Dealer:
        return await self._set_flag(view, "is_premium", value)

    async def _set_flag(self, view: Dealer, field: str, value: bool) -> Dealer:
        """Optimistically flip ``field`` on the caller's view, then persist.

        The view shows the new value while the update is in flight. If the
        update fails the view is restored to its previous value and the
        error is re-raised.
        """
        previous = getattr(view, field)
        setattr(view, field, value)
        try:
            updated = await self.repository.update(view.id, {field: value})
        except Exception as e:
            setattr(view, field, previous)
            logger.warning(
                "Flag update reverted",
                dealer_id=view.id,
                field=field,
                requested=value,
                restored=previous,
                error_type=e.__class__.__name__
            )
            raise
        view.updated_at = updated.updated_at
        return updated
