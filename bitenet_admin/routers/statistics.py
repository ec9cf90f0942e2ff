"""
Dashboard statistics endpoints.
"""

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.database import get_db
from bitenet_admin.models import Brand, Restaurant
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import require_session
from bitenet_admin.schemas import StatisticsCountResponse

router = APIRouter(
    prefix="/api/statistics",
    tags=["Statistics"],
    dependencies=[Depends(require_session)],
)


async def created_totals(db: AsyncSession, model, since: datetime) -> tuple:
    """``(live rows, live rows created within one day from since)``."""
    repo = SoftDeleteRepository(db, model)
    total = await repo.count()
    today = await repo.count(model.created_at >= since, model.created_at < since + timedelta(days=1))
    return total, today


@router.get("/counts", response_model=StatisticsCountResponse)
async def get_statistics_counts(db: AsyncSession = Depends(get_db)) -> StatisticsCountResponse:
    """Live restaurants and brands, in total and created today."""
    midnight = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)

    restaurant_count, daily_new_restaurants = await created_totals(db, Restaurant, midnight)
    brand_count, daily_new_brands = await created_totals(db, Brand, midnight)

    return StatisticsCountResponse(
        restaurant_count=restaurant_count,
        daily_new_restaurants=daily_new_restaurants,
        brand_count=brand_count,
        daily_new_brands=daily_new_brands,
    )
