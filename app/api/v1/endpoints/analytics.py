"""
Analytics endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_principal
from app.domain.schemas.analytics import AnalyticsOverview, CountItem, TimelineItem, UnitShare
from app.domain.schemas.auth import Principal
from app.infrastructure.database.base import get_db
from app.services.analytics import AnalyticsService

router = APIRouter()


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/overview", response_model=AnalyticsOverview)
async def overview(
    principal: Principal = Depends(get_current_principal),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsOverview:
    return await service.overview()


@router.get("/categories", response_model=List[CountItem])
async def categories(
    principal: Principal = Depends(get_current_principal),
    service: AnalyticsService = Depends(get_analytics_service),
) -> List[CountItem]:
    return await service.categories()


@router.get("/issuers", response_model=List[CountItem])
async def issuers(
    principal: Principal = Depends(get_current_principal),
    service: AnalyticsService = Depends(get_analytics_service),
) -> List[CountItem]:
    """Top issuers by certificate count."""
    return await service.issuers()


@router.get("/timeline", response_model=List[TimelineItem])
async def timeline(
    principal: Principal = Depends(get_current_principal),
    service: AnalyticsService = Depends(get_analytics_service),
) -> List[TimelineItem]:
    return await service.timeline()


@router.get("/units", response_model=List[UnitShare])
async def units(
    principal: Principal = Depends(get_current_principal),
    service: AnalyticsService = Depends(get_analytics_service),
) -> List[UnitShare]:
    return await service.units()
