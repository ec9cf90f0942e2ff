"""
Restaurant endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.exceptions import ConflictError, ParameterError
from bitenet_admin.core.security import generate_index_code, generate_unique_string
from bitenet_admin.database import get_db
from bitenet_admin.models import Brand, Restaurant, RestaurantUser
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
    DeletedResponse,
    PagedResult,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantWithBrandResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/restaurants",
    tags=["Restaurants"],
    dependencies=[Depends(require_session)],
)

# Default map position (Hong Kong) until the address is geocoded
DEFAULT_LAT = "22.3194068"
DEFAULT_LNG = "114.1692081"


async def _check_name(
    restaurants: SoftDeleteRepository,
    name: str,
    exclude_id: Optional[int] = None,
) -> None:
    exclude = [Restaurant.id != exclude_id] if exclude_id else []
    if name and await restaurants.find_first(*exclude, name=name):
        raise ConflictError(f"Restaurant with name {name} already exists")


@router.post("", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(body: RestaurantCreate, db: AsyncSession = Depends(get_db)) -> Restaurant:
    restaurants = SoftDeleteRepository(db, Restaurant)
    await SoftDeleteRepository(db, Brand).find_unique_or_raise(id=body.brand_id)
    await _check_name(restaurants, body.name)

    data = body.model_dump()
    data["lat"] = data["lat"] or DEFAULT_LAT
    data["lng"] = data["lng"] or DEFAULT_LNG
    restaurant = await restaurants.create(
        **data,
        code=generate_unique_string(),
        index_code=generate_index_code(),
    )
    await db.commit()
    logger.info(f"Restaurant #{restaurant.id} ({restaurant.name}) created, index code {restaurant.index_code}")
    return restaurant


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: int,
    body: RestaurantCreate,
    db: AsyncSession = Depends(get_db),
) -> Restaurant:
    """Coordinates are kept unless new ones are given."""
    restaurants = SoftDeleteRepository(db, Restaurant)
    restaurant = await restaurants.find_unique_or_raise(id=restaurant_id)
    await _check_name(restaurants, body.name, exclude_id=restaurant_id)

    data = body.model_dump()
    data["lat"] = data["lat"] or restaurant.lat
    data["lng"] = data["lng"] or restaurant.lng
    restaurant = await restaurants.update(restaurant, **data)
    await db.commit()
    return restaurant


@router.delete("/{restaurant_id}", response_model=DeletedResponse)
async def delete_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)) -> DeletedResponse:
    """A restaurant can only be deleted once all of its users are deleted."""
    restaurants = SoftDeleteRepository(db, Restaurant)
    await restaurants.find_unique_or_raise(id=restaurant_id)

    if await SoftDeleteRepository(db, RestaurantUser).count(restaurant_id=restaurant_id):
        raise ParameterError(
            "Cannot delete the restaurant. Please delete the associated restaurant users first."
        )

    restaurant = await restaurants.delete(id=restaurant_id)
    await db.commit()
    return DeletedResponse(id=restaurant.id, delete_at=restaurant.delete_at)


@router.get("/all", response_model=List[RestaurantResponse])
async def list_restaurants(
    name: Optional[str] = Query(None),
    brand_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[Restaurant]:
    return await SoftDeleteRepository(db, Restaurant).find_many(name=name, brand_id=brand_id)


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)) -> Restaurant:
    return await SoftDeleteRepository(db, Restaurant).find_unique_or_raise(id=restaurant_id)


@router.get("", response_model=PagedResult[RestaurantWithBrandResponse])
async def query_restaurants(
    name: Optional[str] = Query(None),
    brand_id: Optional[int] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    page = await SoftDeleteRepository(db, Restaurant).paginate(
        paging.page,
        paging.page_size,
        *criteria(contains(Restaurant.name, name)),
        brand_id=brand_id,
    )

    brand_names = {}
    if page.record:
        brand_ids = {r.brand_id for r in page.record}
        brands = await SoftDeleteRepository(db, Brand).find_many(Brand.id.in_(brand_ids))
        brand_names = {b.id: b.name for b in brands}

    def convert(restaurant: Restaurant) -> RestaurantWithBrandResponse:
        item = RestaurantWithBrandResponse.model_validate(restaurant)
        item.brand_name = brand_names.get(restaurant.brand_id)
        return item

    return as_paged(page, RestaurantWithBrandResponse, convert)
