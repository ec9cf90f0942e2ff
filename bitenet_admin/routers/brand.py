"""
Brand endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.exceptions import ConflictError, ParameterError
from bitenet_admin.database import get_db
from bitenet_admin.models import Brand, BrandLevelType, Restaurant
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    page_params,
    require_session,
)
from bitenet_admin.schemas import BrandCreate, BrandResponse, DeletedResponse, PagedResult

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/brands",
    tags=["Brands"],
    dependencies=[Depends(require_session)],
)


async def _check_name(brands: SoftDeleteRepository, name: str, exclude_id: Optional[int] = None) -> None:
    exclude = [Brand.id != exclude_id] if exclude_id else []
    if name and await brands.find_first(*exclude, name=name):
        raise ConflictError(f"Brand with name {name} already exists")


@router.post("", response_model=BrandResponse, status_code=201)
async def create_brand(body: BrandCreate, db: AsyncSession = Depends(get_db)) -> Brand:
    brands = SoftDeleteRepository(db, Brand)
    await _check_name(brands, body.name)

    brand = await brands.create(**body.model_dump())
    await db.commit()
    logger.info(f"Brand #{brand.id} ({brand.name}) created")
    return brand


@router.put("/{brand_id}", response_model=BrandResponse)
async def update_brand(brand_id: int, body: BrandCreate, db: AsyncSession = Depends(get_db)) -> Brand:
    brands = SoftDeleteRepository(db, Brand)
    brand = await brands.find_unique_or_raise(id=brand_id)
    await _check_name(brands, body.name, exclude_id=brand_id)

    brand = await brands.update(brand, **body.model_dump())
    await db.commit()
    return brand


@router.delete("/{brand_id}", response_model=DeletedResponse)
async def delete_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> DeletedResponse:
    """A brand can only be deleted once all of its restaurants are deleted."""
    brands = SoftDeleteRepository(db, Brand)
    await brands.find_unique_or_raise(id=brand_id)

    if await SoftDeleteRepository(db, Restaurant).count(brand_id=brand_id):
        raise ParameterError(
            "The brand cannot be deleted. Please delete the restaurants under the brand first."
        )

    brand = await brands.delete(id=brand_id)
    await db.commit()
    return DeletedResponse(id=brand.id, delete_at=brand.delete_at)


@router.get("/all", response_model=List[BrandResponse])
async def list_brands(
    name: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[Brand]:
    return await SoftDeleteRepository(db, Brand).find_many(name=name)


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Brand:
    return await SoftDeleteRepository(db, Brand).find_unique_or_raise(id=brand_id)


@router.get("", response_model=PagedResult[BrandResponse])
async def query_brands(
    name: Optional[str] = Query(None),
    level_type: Optional[BrandLevelType] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    page = await SoftDeleteRepository(db, Brand).paginate(
        paging.page,
        paging.page_size,
        *criteria(contains(Brand.name, name)),
        level_type=level_type,
    )
    return as_paged(page, BrandResponse)
