"""
Unit tests for the captcha issuer.
"""

import asyncio
import re

import pytest

from bitenet_admin.services.captcha import (
    CaptchaApp,
    CaptchaChannel,
    CaptchaIssuer,
    CaptchaScene,
    generate_code,
)
from bitenet_admin.services.notifications import MessageKind

RECEIVER = "+85291234567"


def make_issuer(redis_client, notifier, **kwargs) -> CaptchaIssuer:
    return CaptchaIssuer(
        redis_client,
        notifier,
        CaptchaApp.ADMIN,
        CaptchaScene.BIND_PHONE,
        CaptchaChannel.SMS,
        **kwargs,
    )


@pytest.fixture
def issuer(redis_client, notifier) -> CaptchaIssuer:
    return make_issuer(redis_client, notifier)


async def issued_code(redis_client, issuer: CaptchaIssuer) -> str:
    return await redis_client.get(issuer.key(RECEIVER))


class TestSend:

    async def test_stores_code_with_ttl(self, issuer, redis_client):
        ticket = await issuer.send(RECEIVER)

        key = "CAPTCHA:ADMIN:BIND_PHONE:SMS:" + RECEIVER
        assert re.fullmatch(r"\d{6}", await redis_client.get(key))
        assert 0 < await redis_client.ttl(key) <= 600
        assert ticket.receiver == RECEIVER
        assert ticket.scene == CaptchaScene.BIND_PHONE

    async def test_delivers_by_sms(self, issuer, redis_client, notifier):
        await issuer.send(RECEIVER)

        code = await issued_code(redis_client, issuer)
        message = notifier.outbox[-1]
        assert message.kind == MessageKind.SMS
        assert message.receiver == RECEIVER
        assert code in message.body
        assert "10 minutes" in message.body

    async def test_email_channel(self, redis_client, notifier):
        issuer = CaptchaIssuer(
            redis_client, notifier, CaptchaApp.CUSTOMER,
            CaptchaScene.SIGN_UP, CaptchaChannel.EMAIL,
        )

        await issuer.send("user@example.com")

        message = notifier.outbox[-1]
        assert message.kind == MessageKind.EMAIL
        assert message.receiver == "user@example.com"
        assert message.subject == "BITENET verification code"

    async def test_constant_mode(self, redis_client, notifier):
        issuer = make_issuer(redis_client, notifier, constant_code=True)

        await issuer.send(RECEIVER)

        assert await issued_code(redis_client, issuer) == "000000"
        assert notifier.outbox == []

    async def test_failed_delivery_keeps_code(self, redis_client):
        from bitenet_admin.services.notifications import MockNotificationService

        failing = MockNotificationService(failure_rate=1.0, min_latency=0, max_latency=0)
        issuer = make_issuer(redis_client, failing)

        await issuer.send(RECEIVER)

        code = await issued_code(redis_client, issuer)
        assert await issuer.verify(RECEIVER, code)


class TestVerify:

    async def test_round_trip(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"

        assert await issuer.verify(RECEIVER, code)
        assert not await issuer.verify(RECEIVER, wrong)

    async def test_verify_does_not_consume(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)

        assert await issuer.verify(RECEIVER, code)
        assert await issuer.verify(RECEIVER, code)

    async def test_clean_invalidates(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)

        assert await issuer.clean(RECEIVER) == 1
        assert not await issuer.verify(RECEIVER, code)

    async def test_scenes_are_isolated(self, redis_client, notifier):
        bind = make_issuer(redis_client, notifier, constant_code=True)
        sign_in = CaptchaIssuer(
            redis_client, notifier, CaptchaApp.ADMIN,
            CaptchaScene.SIGN_IN, CaptchaChannel.SMS, constant_code=True,
        )

        await bind.send(RECEIVER)

        assert not await sign_in.verify(RECEIVER, "000000")


class TestConsume:

    async def test_consume_once(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)

        assert await issuer.consume(RECEIVER, code)
        assert not await issuer.consume(RECEIVER, code)
        assert not await issuer.verify(RECEIVER, code)

    async def test_wrong_code_is_not_consumed(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"

        assert not await issuer.consume(RECEIVER, wrong)
        assert await issuer.consume(RECEIVER, code)

    async def test_concurrent_consume_single_winner(self, issuer, redis_client):
        await issuer.send(RECEIVER)
        code = await issued_code(redis_client, issuer)

        results = await asyncio.gather(*[issuer.consume(RECEIVER, code) for _ in range(5)])

        assert results.count(True) == 1


class TestGenerateCode:

    def test_six_digits(self):
        for _ in range(200):
            assert re.fullmatch(r"\d{6}", generate_code())
