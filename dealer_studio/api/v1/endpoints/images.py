"""Standalone image generation endpoint.

``POST /images/generate`` takes ``{prompt, model}`` and answers
``{imageUrl}``. Failures use the application-wide ``{error, details}``
envelope; CORS preflight is answered by the CORS middleware.
"""

from fastapi import APIRouter, Depends

from dealer_studio.api.dependencies import get_image_service
from dealer_studio.core.logging import monitor_performance
from dealer_studio.models.domain.generation import GenerateImageResponse, GenerationRequest
from dealer_studio.services.image_generation import ImageGenerationService

router = APIRouter()


@router.post("/generate", response_model=GenerateImageResponse)
@monitor_performance("generate_image")
async def generate_image(
    request: GenerationRequest,
    image_service: ImageGenerationService = Depends(get_image_service)
):
    """Generate one image with the provider resolved from ``model``."""
    image_url = await image_service.dispatch(request)
    return GenerateImageResponse(image_url=image_url)
