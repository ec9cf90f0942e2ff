"""
Restaurant user (staff account) endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.config import Settings
from bitenet_admin.core.exceptions import ConflictError
from bitenet_admin.core.security import as_account, encode_password
from bitenet_admin.database import get_db
from bitenet_admin.models import Restaurant, RestaurantUser
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    get_app_settings,
    page_params,
    require_session,
)
from bitenet_admin.schemas import (
    DeletedResponse,
    PagedResult,
    RestaurantUserCreate,
    RestaurantUserResponse,
    RestaurantUserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/restaurant-users",
    tags=["Restaurant Users"],
    dependencies=[Depends(require_session)],
)


async def _check_duplicates(
    users: SoftDeleteRepository,
    account: str,
    phone_area_code: str,
    phone: str,
    exclude_id: Optional[int] = None,
) -> None:
    exclude = [RestaurantUser.id != exclude_id] if exclude_id else []
    if await users.find_first(*exclude, account=account):
        raise ConflictError(f"Restaurant user with account {account} already exists")
    if await users.find_first(*exclude, phone_area_code=phone_area_code, phone=phone):
        raise ConflictError(f"Restaurant user with phone {phone_area_code}-{phone} already exists")


@router.post("", response_model=RestaurantUserResponse, status_code=201)
async def create_restaurant_user(
    body: RestaurantUserCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RestaurantUser:
    """Create a staff account with the default password."""
    users = SoftDeleteRepository(db, RestaurantUser)
    await SoftDeleteRepository(db, Restaurant).find_unique_or_raise(
        id=body.restaurant_id,
        brand_id=body.brand_id,
    )

    data = body.model_dump()
    data["account"] = body.account or as_account(body.phone_area_code, body.phone)
    await _check_duplicates(users, data["account"], body.phone_area_code, body.phone)

    user = await users.create(
        **data,
        password=encode_password(settings.restaurant_user_default_password),
        is_brand_main=True,
    )
    await db.commit()
    logger.info(f"Restaurant user #{user.id} ({user.account}) created for restaurant #{user.restaurant_id}")
    return user


@router.put("/{user_id}", response_model=RestaurantUserResponse)
async def update_restaurant_user(
    user_id: int,
    body: RestaurantUserUpdate,
    db: AsyncSession = Depends(get_db),
) -> RestaurantUser:
    """Password and brand-main flag keep their stored values."""
    users = SoftDeleteRepository(db, RestaurantUser)
    user = await users.find_unique_or_raise(id=user_id)

    data = body.model_dump()
    data["account"] = body.account or as_account(body.phone_area_code, body.phone)
    await _check_duplicates(users, data["account"], body.phone_area_code, body.phone, exclude_id=user_id)

    user = await users.update(user, **data)
    await db.commit()
    return user


@router.delete("/{user_id}", response_model=DeletedResponse)
async def delete_restaurant_user(user_id: int, db: AsyncSession = Depends(get_db)) -> DeletedResponse:
    user = await SoftDeleteRepository(db, RestaurantUser).delete(id=user_id)
    await db.commit()
    return DeletedResponse(id=user.id, delete_at=user.delete_at)


@router.get("/{user_id}", response_model=RestaurantUserResponse)
async def get_restaurant_user(user_id: int, db: AsyncSession = Depends(get_db)) -> RestaurantUser:
    return await SoftDeleteRepository(db, RestaurantUser).find_unique_or_raise(id=user_id)


@router.get("", response_model=PagedResult[RestaurantUserResponse])
async def query_restaurant_users(
    account: Optional[str] = Query(None),
    user_name: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    restaurant_id: Optional[int] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    where = criteria(
        contains(RestaurantUser.account, account),
        contains(RestaurantUser.user_name, user_name),
        contains(RestaurantUser.phone, phone),
    )
    page = await SoftDeleteRepository(db, RestaurantUser).paginate(
        paging.page,
        paging.page_size,
        *where,
        restaurant_id=restaurant_id,
    )
    return as_paged(page, RestaurantUserResponse)
