"""Pydantic models for dealers and their outfits.

Field names are snake_case in Python; the JSON shape served to the
presentation layer uses camelCase aliases (``isActive``, ``imageUrl``, ...).
Input accepts either form.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dealer_studio.core.exceptions import UnknownStage
from dealer_studio.models.domain.stages import resolve_stage
from dealer_studio.utils.url_helpers import validate_image_url


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=()
    )


def _check_stage(value: int) -> int:
    try:
        return int(resolve_stage(value))
    except UnknownStage as e:
        raise ValueError(e.detail) from None


StageNumber = Annotated[int, AfterValidator(_check_stage)]
ImageUrl = Annotated[str, AfterValidator(validate_image_url)]


class OutfitCreate(CamelModel):
    """An outfit produced by a generation, before an id is assigned.

    ``name`` defaults to the stage's catalog name when left empty.
    """
    stage: StageNumber
    name: Optional[str] = None
    image_url: ImageUrl
    approved: bool = False


class Outfit(CamelModel):
    """One generated image for one stage of a dealer."""
    id: str
    stage: StageNumber
    name: str
    image_url: ImageUrl
    approved: bool = False


class DealerBase(CamelModel):
    """Fields an operator chooses when creating a dealer."""
    name: str = Field(..., min_length=1, max_length=200)
    personality: str = Field(..., min_length=1, max_length=200)
    model: str = Field(..., min_length=1, description="Image generation model label")
    is_active: bool = True
    is_premium: bool = False
    custom_prompt: Optional[str] = Field(
        None,
        max_length=1000,
        description="Extra appearance details appended to every stage prompt"
    )

    @field_validator('name', 'personality', 'model')
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class DealerCreate(DealerBase):
    """Schema for creating a new dealer."""
    pass


class DealerUpdate(CamelModel):
    """Partial update; only fields explicitly set are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    personality: Optional[str] = Field(None, min_length=1, max_length=200)
    model: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    is_premium: Optional[bool] = None
    custom_prompt: Optional[str] = Field(None, max_length=1000)

    @field_validator('name', 'personality', 'model')
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class Dealer(DealerBase):
    """A persisted dealer with its outfit collection."""
    id: str
    created_at: datetime
    updated_at: datetime
    outfits: List[Outfit] = Field(default_factory=list)

    def outfit_for_stage(self, stage: int) -> Optional[Outfit]:
        return next((o for o in self.outfits if o.stage == stage), None)


class FlagUpdate(BaseModel):
    """Body for the active/premium toggle endpoints."""
    value: bool
