"""Health check endpoints."""

from typing import Dict

from fastapi import APIRouter

from ...infrastructure.dependencies import get_service_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> Dict[str, Dict[str, bool]]:
    """Check the health of all service components.

    Returns:
        Availability of the inference, search and corpus providers
    """
    return get_service_container().provider_status
