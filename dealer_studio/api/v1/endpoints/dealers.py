"""FastAPI endpoints for dealer management.

This module implements the operations the dealer screens call:
- CRUD operations for dealers
- Per-stage outfit generation and approval
- Active/premium toggles
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from dealer_studio.api.dependencies import get_lifecycle
from dealer_studio.core.logging import monitor_performance
from dealer_studio.models.domain.dealer import Dealer, DealerCreate, DealerUpdate, FlagUpdate, Outfit
from dealer_studio.services.dealer_lifecycle import DealerLifecycleService

# Initialize router
router = APIRouter()


@router.get("", response_model=List[Dealer])
async def list_dealers(
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """List all dealers, oldest first."""
    return await lifecycle.list_dealers()


@router.post("", response_model=Dealer, status_code=status.HTTP_201_CREATED)
@monitor_performance("create_dealer")
async def create_dealer(
    dealer_data: DealerCreate,
    draft: bool = Query(False, description="Keep the dealer in the ephemeral draft store"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Create a new dealer with no outfits."""
    return await lifecycle.create_dealer(dealer_data, draft=draft)


@router.get("/{dealer_id}", response_model=Dealer)
async def get_dealer(
    dealer_id: str = Path(..., description="The ID of the dealer to retrieve"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Retrieve a dealer with its outfits."""
    return await lifecycle.get_dealer(dealer_id)


@router.patch("/{dealer_id}", response_model=Dealer)
async def update_dealer(
    updates: DealerUpdate,
    dealer_id: str = Path(..., description="The ID of the dealer to update"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Apply a partial update; omitted fields are unchanged."""
    return await lifecycle.update_dealer(dealer_id, updates)


@router.delete("/{dealer_id}")
@monitor_performance("delete_dealer")
async def delete_dealer(
    dealer_id: str = Path(..., description="The ID of the dealer to delete"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Delete a dealer. Deleting an unknown id is not an error."""
    deleted = await lifecycle.delete_dealer(dealer_id)
    return {"deleted": deleted}


@router.post("/{dealer_id}/stages/{stage}/generate", response_model=Outfit)
@monitor_performance("generate_stage")
async def generate_stage(
    dealer_id: str = Path(..., description="The dealer to generate for"),
    stage: int = Path(..., description="Outfit stage, 1 through 5"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Generate the stage image and store it, replacing the stage's outfit."""
    return await lifecycle.generate_outfit(dealer_id, stage)


@router.get("/{dealer_id}/generating", response_model=List[int])
async def generating_stages(
    dealer_id: str = Path(..., description="The dealer to inspect"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Stages with a generation currently running."""
    return lifecycle.generating_stages(dealer_id)


@router.post("/{dealer_id}/outfits/{outfit_id}/approve")
async def approve_outfit(
    dealer_id: str = Path(..., description="The dealer owning the outfit"),
    outfit_id: str = Path(..., description="The outfit to approve"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Approve an outfit. Unknown outfit ids report ``approved: false``."""
    approved = await lifecycle.approve_outfit(dealer_id, outfit_id)
    return {"approved": approved}


@router.put("/{dealer_id}/active", response_model=Dealer)
async def set_active(
    flag: FlagUpdate,
    dealer_id: str = Path(..., description="The dealer to update"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Set whether the dealer is active."""
    view = await lifecycle.get_dealer(dealer_id)
    return await lifecycle.set_active(view, flag.value)


@router.put("/{dealer_id}/premium", response_model=Dealer)
async def set_premium(
    flag: FlagUpdate,
    dealer_id: str = Path(..., description="The dealer to update"),
    lifecycle: DealerLifecycleService = Depends(get_lifecycle)
):
    """Set whether the dealer is premium."""
    view = await lifecycle.get_dealer(dealer_id)
    return await lifecycle.set_premium(view, flag.value)
