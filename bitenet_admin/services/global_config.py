"""
Global Configuration Service

The platform keeps one configuration row (id 1). Point and fee values are
stored multiplied by 100; this module converts at the boundary so callers
always see and send display values.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.scaling import down_scale, up_scale
from bitenet_admin.models import GlobalConfig
from bitenet_admin.repositories import SoftDeleteRepository

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_ID = 1

SCALED_FIELDS = (
    "bonus_points_range_start",
    "bonus_points_range_end",
    "app_sign_in_bonus",
    "invite_bonus",
    "push_fee_sms",
    "push_fee_app",
    "lucky_draw_cost",
)


def to_display(config: GlobalConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": config.id}
    for name in SCALED_FIELDS:
        data[name] = up_scale(getattr(config, name))
    data["update_by"] = config.update_by
    data["updated_at"] = config.updated_at
    return data


async def find_global_config(session: AsyncSession) -> Optional[Dict[str, Any]]:
    """Display values of the configuration row, or None if it was never created."""
    config = await SoftDeleteRepository(session, GlobalConfig).find_unique(id=GLOBAL_CONFIG_ID)
    if config is None:
        return None
    return to_display(config)


async def update_global_config(
    session: AsyncSession,
    values: Dict[str, Any],
    operator_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Store display values, creating the row on first use.

    Fields missing from ``values`` (or None) are left unchanged.
    """
    repo = SoftDeleteRepository(session, GlobalConfig)
    scaled = {
        name: down_scale(values[name])
        for name in SCALED_FIELDS
        if values.get(name) is not None
    }

    config = await repo.find_unique(id=GLOBAL_CONFIG_ID)
    if config is None:
        config = await repo.create(
            id=GLOBAL_CONFIG_ID,
            create_by=operator_id,
            update_by=operator_id,
            **scaled,
        )
        logger.info(f"Global config created by sys user #{operator_id}")
    else:
        config = await repo.update(config, update_by=operator_id, **scaled)
        logger.info(f"Global config updated by sys user #{operator_id}: {sorted(scaled)}")

    return to_display(config)
