"""API routers for the EKKO work order service."""
from fastapi import APIRouter

from . import (
    admin,
    applications,
    apikeys,
    deliveries,
    health,
    milestones,
    notifications,
    projects,
    users,
    work_orders,
)


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(users.router)
    api_router.include_router(apikeys.router)
    api_router.include_router(projects.router)
    api_router.include_router(applications.router)
    api_router.include_router(work_orders.router)
    api_router.include_router(milestones.router)
    api_router.include_router(deliveries.router)
    api_router.include_router(notifications.router)
    api_router.include_router(admin.router)
    return api_router
