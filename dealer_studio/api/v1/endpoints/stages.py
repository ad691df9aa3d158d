"""Outfit stage catalog endpoint."""

from typing import List

from fastapi import APIRouter

from dealer_studio.models.domain.stages import StageInfo, list_stages

router = APIRouter()


@router.get("", response_model=List[StageInfo])
async def get_stages():
    """List the outfit stages in display order."""
    return list_stages()
