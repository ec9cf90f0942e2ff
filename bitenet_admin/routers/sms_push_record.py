"""
SMS push record browsing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.database import get_db
from bitenet_admin.models import Brand, Restaurant, SmsPushRecord
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    page_params,
    require_session,
)
from bitenet_admin.schemas import PagedResult, SmsPushRecordResponse

router = APIRouter(
    prefix="/api/sms-push-records",
    tags=["SMS Push Records"],
    dependencies=[Depends(require_session)],
)


@router.get("", response_model=PagedResult[SmsPushRecordResponse])
async def query_sms_push_records(
    brand_id: Optional[int] = Query(None),
    restaurant_id: Optional[int] = Query(None),
    phone_area_code: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    context: Optional[str] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Newest first, with brand and restaurant names attached."""
    where = criteria(
        contains(SmsPushRecord.phone_area_code, phone_area_code),
        contains(SmsPushRecord.phone, phone),
        contains(SmsPushRecord.context, context),
    )
    page = await SoftDeleteRepository(db, SmsPushRecord).paginate(
        paging.page,
        paging.page_size,
        *where,
        order_by=[SmsPushRecord.created_at.desc(), SmsPushRecord.id.desc()],
        brand_id=brand_id,
        restaurant_id=restaurant_id,
    )

    brand_names, restaurant_names = {}, {}
    if page.record:
        brands = await SoftDeleteRepository(db, Brand).find_many(
            Brand.id.in_({r.brand_id for r in page.record})
        )
        restaurants = await SoftDeleteRepository(db, Restaurant).find_many(
            Restaurant.id.in_({r.restaurant_id for r in page.record})
        )
        brand_names = {b.id: b.name for b in brands}
        restaurant_names = {r.id: r.name for r in restaurants}

    def convert(record: SmsPushRecord) -> SmsPushRecordResponse:
        item = SmsPushRecordResponse.model_validate(record)
        item.brand_name = brand_names.get(record.brand_id)
        item.restaurant_name = restaurant_names.get(record.restaurant_id)
        return item

    return as_paged(page, SmsPushRecordResponse, convert)
