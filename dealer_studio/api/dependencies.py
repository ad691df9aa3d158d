"""Dependencies for FastAPI application.

Services are built once at startup (see ``dealer_studio.main``) and kept on
``app.state``; these dependencies hand them to endpoints.
"""

from fastapi import HTTPException, Request, status

from dealer_studio.services.dealer_lifecycle import DealerLifecycleService
from dealer_studio.services.image_generation import ImageGenerationService


def _state_attr(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not initialized"
        )
    return service


def get_lifecycle(request: Request) -> DealerLifecycleService:
    """Dependency for the dealer lifecycle service."""
    return _state_attr(request, "lifecycle")


def get_image_service(request: Request) -> ImageGenerationService:
    """Dependency for the image generation dispatcher."""
    return _state_attr(request, "image_service")
