"""
Global configuration endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.exceptions import NotFoundError
from bitenet_admin.database import get_db
from bitenet_admin.routers.deps import require_session
from bitenet_admin.schemas import GlobalConfigResponse, GlobalConfigUpdate
from bitenet_admin.services.global_config import find_global_config, update_global_config
from bitenet_admin.services.session import UserSession

router = APIRouter(prefix="/api/global-config", tags=["Global Config"])


@router.get("", response_model=GlobalConfigResponse)
async def get_global_config(
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    config = await find_global_config(db)
    if config is None:
        raise NotFoundError("Global config has not been initialized")
    return config


@router.put("", response_model=GlobalConfigResponse)
async def put_global_config(
    body: GlobalConfigUpdate,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    config = await update_global_config(db, body.model_dump(), operator_id=session.user_id)
    await db.commit()
    return config
