"""Outfit stage catalog.

A dealer progresses through five fixed outfit stages. The set is closed and
ordered; anything that enumerates stages must do so in ascending order.
"""

from enum import IntEnum
from typing import Any, List

from pydantic import BaseModel

from dealer_studio.core.exceptions import UnknownStage


class OutfitStage(IntEnum):
    CASINO_UNIFORM = 1
    RELAXED_ATTIRE = 2
    CASUAL_FORMAL = 3
    COCKTAIL_ATTIRE = 4
    SWIMSUIT_LINGERIE = 5


STAGE_NAMES = {
    OutfitStage.CASINO_UNIFORM: "Casino Uniform",
    OutfitStage.RELAXED_ATTIRE: "Relaxed Attire",
    OutfitStage.CASUAL_FORMAL: "Casual/Formal",
    OutfitStage.COCKTAIL_ATTIRE: "Cocktail Attire",
    OutfitStage.SWIMSUIT_LINGERIE: "Swimsuit/Lingerie",
}


class StageInfo(BaseModel):
    """Stage number and display name, as listed to the UI."""
    stage: int
    name: str


def resolve_stage(stage: Any) -> OutfitStage:
    """Return the catalog member for ``stage`` or raise ``UnknownStage``."""
    # bool is an int subclass; True must not pass as stage 1
    if isinstance(stage, bool) or not isinstance(stage, int):
        raise UnknownStage(stage)
    try:
        return OutfitStage(stage)
    except ValueError:
        raise UnknownStage(stage) from None


def stage_name(stage: Any) -> str:
    return STAGE_NAMES[resolve_stage(stage)]


def list_stages() -> List[StageInfo]:
    """All stages, ascending by stage number."""
    return [
        StageInfo(stage=int(stage), name=STAGE_NAMES[stage])
        for stage in sorted(OutfitStage)
    ]
