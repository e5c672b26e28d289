"""
API v1 Router

Every route acts as the authenticated caller within their active company.
"""

from fastapi import APIRouter
from . import account, companies, connections, notifications, projects

router = APIRouter()

router.include_router(account.router, prefix="/account", tags=["Account"])
router.include_router(companies.router, prefix="/companies", tags=["Companies"])
router.include_router(connections.router, prefix="/connections", tags=["Connections"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@router.get("/", tags=["API"])
async def api_root():
    """API root - returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/account",
            "/companies",
            "/connections",
            "/projects",
            "/notifications",
        ],
    }
