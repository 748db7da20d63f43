"""
API v1 router configuration.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    analytics,
    auth,
    certificates,
    health,
    manager,
    users,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(manager.router, prefix="/manager", tags=["manager"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
