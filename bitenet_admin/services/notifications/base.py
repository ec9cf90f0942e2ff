"""
Notification Service Abstract Base Class

Outbound delivery of short text messages (verification codes) by SMS or
email. ``deliver`` routes an ``OutboundMessage`` to the channel-specific
sender implemented by the Mock (development) and Real (Twilio/SendGrid)
services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MessageKind(str, Enum):
    SMS = "sms"
    EMAIL = "email"


@dataclass
class OutboundMessage:
    kind: MessageKind
    receiver: str
    body: str
    subject: Optional[str] = None


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt. Failures are reported, never raised."""
    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None


class BaseNotificationService(ABC):

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    async def deliver(self, message: OutboundMessage) -> DeliveryResult:
        if message.kind == MessageKind.SMS:
            return await self.send_sms(message.receiver, message.body)
        return await self.send_email(message.receiver, message.subject or "", message.body)

    @abstractmethod
    async def send_sms(self, phone: str, text: str) -> DeliveryResult:
        pass

    @abstractmethod
    async def send_email(self, mail: str, subject: str, text: str) -> DeliveryResult:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        """Release provider resources; called on application shutdown."""
        return None
