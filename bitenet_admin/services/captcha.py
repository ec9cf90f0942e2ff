"""
Captcha / Verification Issuer

Generates and verifies short-lived one-time codes scoped by
(application, scene, channel, receiver). Codes live in Redis under
``CAPTCHA:{app}:{scene}:{channel}:{receiver}`` for 600 seconds.

``verify`` only compares; the code stays usable until it expires or
``clean`` is called. ``consume`` compares and deletes atomically and is what
request handlers should use when a code must be single-use.

Constant mode (``CONST_CAPTCHA=1``) issues ``000000`` and skips delivery.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

import redis.asyncio as redis
from redis.exceptions import WatchError

from bitenet_admin.services.notifications.base import (
    BaseNotificationService,
    MessageKind,
    OutboundMessage,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600
CONSTANT_CODE = "000000"


class CaptchaApp(str, Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    RESTAURANT = "RESTAURANT"


class CaptchaScene(str, Enum):
    SIGN_UP = "SIGN_UP"
    SIGN_IN = "SIGN_IN"
    MODIFY_PASSWORD = "MODIFY_PASSWORD"
    FORGOT_PASSWORD = "FORGOT_PASSWORD"
    BIND_PHONE = "BIND_PHONE"


class CaptchaChannel(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"


@dataclass
class CaptchaTicket:
    """What was issued; the code itself is never returned."""
    app: CaptchaApp
    scene: CaptchaScene
    channel: CaptchaChannel
    receiver: str
    expire_at: datetime


def generate_code() -> str:
    """Uniform 6-digit code, zero padded."""
    return f"{secrets.randbelow(1_000_000):06d}"


class CaptchaIssuer:
    """Issue, check and invalidate codes for one (app, scene, channel)."""

    def __init__(
        self,
        client: redis.Redis,
        notifier: BaseNotificationService,
        app: CaptchaApp,
        scene: CaptchaScene,
        channel: CaptchaChannel,
        constant_code: bool = False,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        brand_name: str = "BITENET",
    ):
        self._redis = client
        self._notifier = notifier
        self.app = app
        self.scene = scene
        self.channel = channel
        self.constant_code = constant_code
        self.ttl_seconds = ttl_seconds
        self.brand_name = brand_name

    def key(self, receiver: str) -> str:
        return f"CAPTCHA:{self.app.value}:{self.scene.value}:{self.channel.value}:{receiver}"

    async def send(self, receiver: str) -> CaptchaTicket:
        """
        Issue a new code for ``receiver`` and deliver it.

        A previous code for the same receiver is replaced. Delivery failures
        are logged; the stored code stays valid.
        """
        code = CONSTANT_CODE if self.constant_code else generate_code()
        await self._redis.set(self.key(receiver), code, ex=self.ttl_seconds)

        if not self.constant_code:
            await self._deliver(receiver, code)

        return CaptchaTicket(
            app=self.app,
            scene=self.scene,
            channel=self.channel,
            receiver=receiver,
            expire_at=datetime.now() + timedelta(seconds=self.ttl_seconds),
        )

    async def verify(self, receiver: str, code: str) -> bool:
        """Exact comparison with the stored code. Does not consume it."""
        stored = await self._redis.get(self.key(receiver))
        return stored is not None and stored == code

    async def consume(self, receiver: str, code: str) -> bool:
        """
        Compare and delete in one transaction.

        Returns:
            True for exactly one caller presenting the right code
        """
        key = self.key(receiver)
        async with self._redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    stored = await pipe.get(key)
                    if stored is None or stored != code:
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.delete(key)
                    await pipe.execute()
                    return True
                except WatchError:
                    # Key changed between WATCH and EXEC; read it again
                    continue

    async def clean(self, receiver: str) -> int:
        """Delete the stored code. Returns the number of keys removed."""
        return await self._redis.delete(self.key(receiver))

    async def _deliver(self, receiver: str, code: str) -> None:
        minutes = self.ttl_seconds // 60
        text = (
            f"[{self.brand_name}] {code} is your {self.brand_name} verification code. "
            f"This code will expire in {minutes} minutes."
        )
        kind = MessageKind.SMS if self.channel == CaptchaChannel.SMS else MessageKind.EMAIL
        result = await self._notifier.deliver(
            OutboundMessage(kind, receiver, text, subject=f"{self.brand_name} verification code")
        )

        if result.success:
            logger.info(f"Captcha {self.scene.value} delivered to {receiver} via {result.provider}")
        else:
            logger.warning(f"Captcha {self.scene.value} delivery to {receiver} failed: {result.error}")
