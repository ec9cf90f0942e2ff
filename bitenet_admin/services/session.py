"""
Session Store

Maps an opaque token to a user's identity and expiry. Each session is a
Redis hash stored at ``USER_SESSION:{app}:{id}`` whose key TTL matches the
session lifetime:

    id, userId, account, brandId, restaurantId,
    createAt, updateAt, expireAt   (YYYY-MM-DD HH:mm:ss)
    store                          (JSON object)

Every ``update`` call pushes ``expireAt`` (and the key TTL) forward by the
configured lifetime. Concurrent updates of the same id are last-write-wins
per hash field.

Usage:
    store = SessionStore(redis_client, SessionApp.ADMIN, ttl_seconds=604800)

    session = await store.update(user_id=1, account="admin")
    token = session.id
    ...
    session = await store.find(token)
    if not store.is_valid(session):
        raise UnauthorizedError()
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60


class SessionApp(str, Enum):
    """Applications that issue sessions; each has its own key space."""
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    RESTAURANT = "RESTAURANT"


@dataclass
class UserSession:
    """A decoded session hash."""
    id: str
    user_id: int
    account: str
    create_at: datetime
    update_at: datetime
    expire_at: datetime
    brand_id: Optional[int] = None
    restaurant_id: Optional[int] = None
    store: Dict[str, Any] = field(default_factory=dict)


_UPDATABLE_FIELDS = ("user_id", "account", "brand_id", "restaurant_id", "store")


def _now() -> datetime:
    # Stored with second precision
    return datetime.now().replace(microsecond=0)


def _format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def _parse_date(value: str) -> datetime:
    return datetime.strptime(value, DATE_FORMAT)


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class SessionStore:
    """Issue, refresh, look up and invalidate sessions of one application."""

    def __init__(
        self,
        client: redis.Redis,
        app: SessionApp,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self._redis = client
        self.app = app
        self.ttl_seconds = ttl_seconds

    def key(self, session_id: str) -> str:
        return f"USER_SESSION:{self.app.value}:{session_id}"

    async def find(self, session_id: str) -> Optional[UserSession]:
        """
        Load a session.

        Returns:
            The decoded session, or ``None`` when the key does not exist
        """
        data = await self._redis.hgetall(self.key(session_id))
        if not data:
            return None

        return UserSession(
            id=data["id"],
            user_id=int(data["userId"]),
            account=data["account"],
            brand_id=_optional_int(data.get("brandId")),
            restaurant_id=_optional_int(data.get("restaurantId")),
            create_at=_parse_date(data["createAt"]),
            update_at=_parse_date(data["updateAt"]),
            expire_at=_parse_date(data["expireAt"]),
            store=json.loads(data.get("store") or "{}"),
        )

    async def update(self, session_id: Optional[str] = None, **fields: Any) -> UserSession:
        """
        Create or refresh a session.

        Args:
            session_id: Existing token; a new uuid4 token is generated when omitted
            **fields: Any of user_id, account, brand_id, restaurant_id, store.
                Supplied fields override the stored ones, the rest are kept.

        Returns:
            The session as persisted
        """
        unknown = set(fields) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown session fields: {sorted(unknown)}")

        now = _now()
        session_id = session_id or str(uuid.uuid4())
        key = self.key(session_id)

        existed = await self.find(session_id)
        merged: Dict[str, Any] = {}
        if existed:
            merged = {name: getattr(existed, name) for name in _UPDATABLE_FIELDS}
        merged.update(fields)

        if merged.get("user_id") is None or merged.get("account") is None:
            raise ValueError("user_id and account are required to create a session")

        create_at = existed.create_at if existed else now
        expire_at = now + timedelta(seconds=self.ttl_seconds)

        mapping = {
            "id": session_id,
            "userId": str(merged["user_id"]),
            "account": merged["account"],
            "brandId": "" if merged.get("brand_id") is None else str(merged["brand_id"]),
            "restaurantId": "" if merged.get("restaurant_id") is None else str(merged["restaurant_id"]),
            "createAt": _format_date(create_at),
            "updateAt": _format_date(now),
            "expireAt": _format_date(expire_at),
            "store": json.dumps(merged.get("store") or {}),
        }

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping=mapping)
            pipe.expire(key, self.ttl_seconds)
            await pipe.execute()

        logger.debug(f"Session {self.app.value}:{session_id} refreshed until {mapping['expireAt']}")
        return await self.find(session_id)

    async def remove(self, session_id: str) -> Optional[UserSession]:
        """
        Delete a session.

        Returns:
            The session as it was before deletion, if any
        """
        existed = await self.find(session_id)
        await self._redis.delete(self.key(session_id))
        if existed:
            logger.info(f"Session {self.app.value}:{session_id} removed (user #{existed.user_id})")
        return existed

    @staticmethod
    def is_valid(session: Optional[UserSession]) -> bool:
        """True when the session exists and has not expired yet."""
        return session is not None and session.expire_at > datetime.now()
