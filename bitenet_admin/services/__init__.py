"""
                        Services Module

Business logic used by the routers and the Celery worker.

Services:
    - session: Redis-backed user sessions
    - captcha: One-time verification codes (SMS / email)
    - notifications: Mock (development) and Twilio/SendGrid (production) delivery
    - wallet: Scaled-points wallets and ledger
    - global_config: Platform configuration row
    - brand_level: Daily brand tier expiry
"""

from bitenet_admin.services.captcha import CaptchaIssuer
from bitenet_admin.services.session import SessionStore
from bitenet_admin.services.wallet import WalletService

__all__ = ["CaptchaIssuer", "SessionStore", "WalletService"]
