"""Schemas for image generation requests."""

from typing import Optional

from pydantic import Field

from dealer_studio.models.domain.dealer import CamelModel


class GenerationRequest(CamelModel):
    """A single dispatch to an image provider. Never persisted."""
    prompt: str = ""
    model: str = ""
    reference_image_url: Optional[str] = None
    api_key: Optional[str] = Field(
        None,
        repr=False,
        description="Overrides the configured credential for this call only"
    )


class GenerateImageResponse(CamelModel):
    image_url: str
