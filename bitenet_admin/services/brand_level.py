"""
Brand Level Expiry

Daily reclassification of brands whose paid tier has run out.

Brands are visited in id order. A brand whose ``expired_date`` has passed
and whose level is not ``EXPIRED`` is moved to ``EXPIRED``.

The sweep STOPS at the first brand that has no ``expired_date`` or is
already ``EXPIRED``; brands after it wait for a later run. Pass
``skip_unqualified=True`` (setting ``BRAND_SWEEP_SKIP_UNQUALIFIED``) to
skip such brands and keep going instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.models import Brand, BrandLevelType
from bitenet_admin.repositories import SoftDeleteRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    visited: int = 0
    expired_ids: List[int] = field(default_factory=list)
    stopped_at: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "visited": self.visited,
            "expired_ids": self.expired_ids,
            "stopped_at": self.stopped_at,
        }


async def expire_brand_levels(
    session: AsyncSession,
    now: Optional[datetime] = None,
    skip_unqualified: bool = False,
) -> SweepResult:
    """
    Move brands past their expiry date to ``BrandLevelType.EXPIRED``.

    Each expired brand is committed on its own, so a failure part way
    through keeps the brands already moved.

    Args:
        session: Database session
        now: Reference time (defaults to the current local time)
        skip_unqualified: Skip brands without an expiry or already expired
            instead of stopping the sweep

    Returns:
        SweepResult with the ids that were expired
    """
    now = now or datetime.now()
    brands = SoftDeleteRepository(session, Brand)
    result = SweepResult()

    for brand in await brands.find_many(order_by=[Brand.id]):
        result.visited += 1

        if brand.expired_date is None or brand.level_type == BrandLevelType.EXPIRED:
            if skip_unqualified:
                continue
            result.stopped_at = brand.id
            logger.info(f"Brand sweep stopped at brand #{brand.id}")
            break

        if now > brand.expired_date:
            await brands.update(brand, level_type=BrandLevelType.EXPIRED)
            await session.commit()
            result.expired_ids.append(brand.id)
            logger.info(f"Brand #{brand.id} ({brand.name}) level expired")

    return result
