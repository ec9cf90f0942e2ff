"""
Real Notification Service

SMS through Twilio, email through SendGrid. Both SDKs are blocking, so
each call runs in a worker thread. A channel without credentials, a
provider error or a network failure reports a failed delivery instead of
raising.
"""

import asyncio
import html
import logging

import requests
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from bitenet_admin.core.config import Settings
from bitenet_admin.services.notifications.base import (
    BaseNotificationService,
    DeliveryResult,
)

logger = logging.getLogger(__name__)

SENDGRID_ACCEPTED = (200, 201, 202)


class RealNotificationService(BaseNotificationService):

    def __init__(self, settings: Settings):
        self.twilio_client = None
        self.sendgrid_client = None
        self.sms_sender = settings.twilio_phone_number
        self.mail_sender = settings.sendgrid_from_email

        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.twilio_client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
        else:
            logger.warning("Twilio credentials not configured; SMS captchas will not be delivered")

        if settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
        else:
            logger.warning("SendGrid credentials not configured; email captchas will not be delivered")

    @property
    def provider_name(self) -> str:
        return "twilio/sendgrid"

    async def send_sms(self, phone: str, text: str) -> DeliveryResult:
        if self.twilio_client is None:
            return DeliveryResult(success=False, provider="twilio", error="Twilio not configured")

        try:
            sent = await asyncio.to_thread(
                self.twilio_client.messages.create,
                body=text,
                from_=self.sms_sender,
                to=phone,
            )
        except (TwilioException, requests.exceptions.RequestException) as e:
            logger.error(f"Twilio error for {phone}: {e}")
            return DeliveryResult(success=False, provider="twilio", error=str(e))

        logger.info(f"SMS sent to {phone}: {sent.sid}")
        return DeliveryResult(success=True, provider="twilio", message_id=sent.sid)

    async def send_email(self, mail: str, subject: str, text: str) -> DeliveryResult:
        if self.sendgrid_client is None:
            return DeliveryResult(success=False, provider="sendgrid", error="SendGrid not configured")

        message = Mail(
            from_email=self.mail_sender,
            to_emails=mail,
            subject=subject,
            html_content=f"<p>{html.escape(text)}</p>",
            plain_text_content=text,
        )
        try:
            response = await asyncio.to_thread(self.sendgrid_client.send, message)
        except Exception as e:
            # python-http-client raises one HTTPError subclass per status code
            logger.error(f"SendGrid error for {mail}: {e}")
            return DeliveryResult(success=False, provider="sendgrid", error=str(e))

        accepted = response.status_code in SENDGRID_ACCEPTED
        logger.info(f"Email to {mail}: HTTP {response.status_code}")
        return DeliveryResult(
            success=accepted,
            provider="sendgrid",
            message_id=response.headers.get("X-Message-Id"),
            error=None if accepted else f"HTTP {response.status_code}",
        )

    async def health_check(self) -> bool:
        """Captchas go out by SMS, so Twilio must be reachable."""
        if self.twilio_client is None:
            return False
        try:
            await asyncio.to_thread(
                self.twilio_client.api.accounts(self.twilio_client.username).fetch
            )
            return True
        except (TwilioException, requests.exceptions.RequestException) as e:
            logger.error(f"Twilio health check failed: {e}")
            return False
