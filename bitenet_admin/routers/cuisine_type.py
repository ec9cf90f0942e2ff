"""
Cuisine type endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.exceptions import ConflictError
from bitenet_admin.database import get_db
from bitenet_admin.models import CuisineType, Restaurant
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    page_params,
    require_session,
)
from bitenet_admin.schemas import (
    CuisineTypeCreate,
    CuisineTypeResponse,
    DeletedResponse,
    PagedResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/cuisine-types",
    tags=["Cuisine Types"],
    dependencies=[Depends(require_session)],
)

NEWEST_FIRST = [CuisineType.created_at.desc(), CuisineType.id.desc()]


@router.post("", response_model=CuisineTypeResponse, status_code=201)
async def create_cuisine_type(body: CuisineTypeCreate, db: AsyncSession = Depends(get_db)) -> CuisineType:
    cuisine_type = await SoftDeleteRepository(db, CuisineType).create(**body.model_dump())
    await db.commit()
    logger.info(f"Cuisine type #{cuisine_type.id} ({cuisine_type.cuisine_type_name_en}) created")
    return cuisine_type


@router.put("/{cuisine_type_id}", response_model=CuisineTypeResponse)
async def update_cuisine_type(
    cuisine_type_id: int,
    body: CuisineTypeCreate,
    db: AsyncSession = Depends(get_db),
) -> CuisineType:
    cuisine_types = SoftDeleteRepository(db, CuisineType)
    cuisine_type = await cuisine_types.find_unique_or_raise(id=cuisine_type_id)
    cuisine_type = await cuisine_types.update(cuisine_type, **body.model_dump())
    await db.commit()
    return cuisine_type


@router.delete("/{cuisine_type_id}", response_model=DeletedResponse)
async def delete_cuisine_type(cuisine_type_id: int, db: AsyncSession = Depends(get_db)) -> DeletedResponse:
    """Refused with 409 while live restaurants use the cuisine type."""
    cuisine_types = SoftDeleteRepository(db, CuisineType)
    await cuisine_types.find_unique_or_raise(id=cuisine_type_id)

    used_by = await SoftDeleteRepository(db, Restaurant).count(cuisine_type_id=cuisine_type_id)
    if used_by:
        raise ConflictError(f"Cuisine type used by {used_by} restaurant(s), can not delete")

    cuisine_type = await cuisine_types.delete(id=cuisine_type_id)
    await db.commit()
    return DeletedResponse(id=cuisine_type.id, delete_at=cuisine_type.delete_at)


@router.get("/all", response_model=List[CuisineTypeResponse])
async def list_cuisine_types(db: AsyncSession = Depends(get_db)) -> List[CuisineType]:
    return await SoftDeleteRepository(db, CuisineType).find_many(order_by=NEWEST_FIRST)


@router.get("/{cuisine_type_id}", response_model=CuisineTypeResponse)
async def get_cuisine_type(cuisine_type_id: int, db: AsyncSession = Depends(get_db)) -> CuisineType:
    return await SoftDeleteRepository(db, CuisineType).find_unique_or_raise(id=cuisine_type_id)


@router.get("", response_model=PagedResult[CuisineTypeResponse])
async def query_cuisine_types(
    cuisine_type_name: Optional[str] = Query(None),
    cuisine_type_name_en: Optional[str] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    page = await SoftDeleteRepository(db, CuisineType).paginate(
        paging.page,
        paging.page_size,
        *criteria(
            contains(CuisineType.cuisine_type_name, cuisine_type_name),
            contains(CuisineType.cuisine_type_name_en, cuisine_type_name_en),
        ),
        order_by=NEWEST_FIRST,
    )
    return as_paged(page, CuisineTypeResponse)
