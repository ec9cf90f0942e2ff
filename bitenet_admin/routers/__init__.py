"""
API routers, all mounted under ``/api``.
"""

from bitenet_admin.routers import (
    brand,
    cuisine_type,
    global_config,
    restaurant,
    restaurant_user,
    sms_push_record,
    statistics,
    sys_user,
    wallet,
)

ROUTERS = [
    sys_user.router,
    brand.router,
    restaurant.router,
    cuisine_type.router,
    restaurant_user.router,
    statistics.router,
    global_config.router,
    sms_push_record.router,
    wallet.router,
    wallet.points_router,
]

__all__ = ["ROUTERS"]
