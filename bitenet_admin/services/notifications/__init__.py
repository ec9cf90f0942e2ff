"""
Notification Service Factory

Returns Mock or Real notification service based on ENV_MODE. The instance is
built once in the application lifespan and kept on ``app.state``.
"""

import logging

from fastapi import Request

from bitenet_admin.core.config import Settings
from bitenet_admin.services.notifications.base import (
    BaseNotificationService,
    DeliveryResult,
    MessageKind,
    OutboundMessage,
)
from bitenet_admin.services.notifications.mock import MockNotificationService
from bitenet_admin.services.notifications.real import RealNotificationService

logger = logging.getLogger(__name__)


def create_notification_service(settings: Settings) -> BaseNotificationService:
    """Build the notification service for the configured environment."""
    if settings.is_development:
        logger.info("Notification Service: Using MockNotificationService (development mode)")
        return MockNotificationService(failure_rate=0.05)

    logger.info(f"Notification Service: Using RealNotificationService ({settings.env_mode.value} mode)")
    return RealNotificationService(settings)


def get_notification_service(request: Request) -> BaseNotificationService:
    """FastAPI dependency returning the application's notification service."""
    return request.app.state.notifier


__all__ = [
    "create_notification_service",
    "get_notification_service",
    "BaseNotificationService",
    "DeliveryResult",
    "MessageKind",
    "OutboundMessage",
    "MockNotificationService",
    "RealNotificationService",
]
