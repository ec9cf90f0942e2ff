"""
Redis Client

Builds the async Redis client shared by the session store and the captcha
issuer. The client is created in the application lifespan, kept on
``app.state.redis`` and closed on shutdown.

Errors are NOT swallowed here: an unreachable Redis surfaces as
``redis.exceptions.RedisError`` to the caller.
"""

import logging

import redis.asyncio as redis
from fastapi import Request

logger = logging.getLogger(__name__)


def create_redis(
    url: str,
    socket_timeout: float = 5.0,
    max_connections: int = 20,
) -> redis.Redis:
    """
    Create an async Redis client with string responses.

    Args:
        url: Redis URL (``redis://host:port/db``)
        socket_timeout: Seconds before a command times out
        max_connections: Connection pool size
    """
    client = redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        max_connections=max_connections,
        health_check_interval=30,
    )
    logger.info(f"Redis client created for {url.rsplit('@', 1)[-1]}")
    return client


async def close_redis(client: redis.Redis) -> None:
    await client.aclose()
    logger.info("Redis client closed")


def get_redis(request: Request) -> redis.Redis:
    """FastAPI dependency returning the application's Redis client."""
    return request.app.state.redis
