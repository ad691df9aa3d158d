"""Router configuration for the Dealer Studio application.

This module combines the endpoint routers into the versioned API.
"""

from fastapi import APIRouter

from dealer_studio.api.v1.endpoints import dealers, images, stages

# Create main router
api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(dealers.router, prefix="/dealers", tags=["dealers"])
api_router.include_router(images.router, prefix="/images", tags=["images"])
api_router.include_router(stages.router, prefix="/stages", tags=["stages"])
