"""
Mock Notification Service

Development stand-in for Twilio and SendGrid. Nothing leaves the process:
messages are logged and appended to ``outbox``. A configurable share of
deliveries fails so callers see the failure path too.
"""

import asyncio
import logging
import random
import uuid
from typing import List

from bitenet_admin.services.notifications.base import (
    BaseNotificationService,
    DeliveryResult,
    MessageKind,
    OutboundMessage,
)

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.3,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.outbox: List[OutboundMessage] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _record(self, message: OutboundMessage) -> DeliveryResult:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

        if random.random() < self.failure_rate:
            logger.warning(f"Mock {message.kind.value} to {message.receiver} failed (simulated)")
            return DeliveryResult(success=False, provider="mock", error="Simulated delivery failure")

        self.outbox.append(message)
        message_id = f"{message.kind.value}_mock_{uuid.uuid4().hex[:12]}"
        logger.info(f"Mock {message.kind.value} to {message.receiver}: {message.body} (ID: {message_id})")
        return DeliveryResult(success=True, provider="mock", message_id=message_id)

    async def send_sms(self, phone: str, text: str) -> DeliveryResult:
        return await self._record(OutboundMessage(MessageKind.SMS, phone, text))

    async def send_email(self, mail: str, subject: str, text: str) -> DeliveryResult:
        return await self._record(OutboundMessage(MessageKind.EMAIL, mail, text, subject))

    async def health_check(self) -> bool:
        return True
