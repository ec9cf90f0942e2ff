"""
Shared FastAPI dependencies: settings, session authentication and paging.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Type

from fastapi import Depends, Header, Query, Request

from bitenet_admin.core.config import Settings
from bitenet_admin.core.exceptions import UnauthorizedError
from bitenet_admin.repositories import Page
from bitenet_admin.services.session import SessionApp, SessionStore, UserSession

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> SessionStore:
    return SessionStore(
        request.app.state.redis,
        SessionApp.ADMIN,
        ttl_seconds=settings.session_ttl_seconds,
    )


def _token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip() or None
    return authorization.strip() or None


async def require_session(
    authorization: Optional[str] = Header(None),
    store: SessionStore = Depends(get_session_store),
) -> UserSession:
    """
    Resolve ``Authorization: Bearer <token>`` to a live ADMIN session.

    Raises:
        UnauthorizedError: Missing token, unknown session or expired session
    """
    token = _token_from_header(authorization)
    if token is None:
        raise UnauthorizedError("Missing session token")

    session = await store.find(token)
    if not store.is_valid(session):
        logger.info(f"Rejected admin session {token}")
        raise UnauthorizedError("Session expired or invalid")
    return session


@dataclass
class PageParams:
    page: int
    page_size: int


def page_params(
    page: int = Query(1, ge=1),
    page_size: int = Query(30, ge=1, le=200),
) -> PageParams:
    return PageParams(page=page, page_size=page_size)


def as_paged(
    page: Page,
    schema: Type[Any],
    convert: Optional[Callable[[Any], Any]] = None,
) -> dict:
    """Serialize a repository ``Page`` with ``schema`` (or ``convert``) per record."""
    record: List[Any] = [
        convert(item) if convert else schema.model_validate(item)
        for item in page.record
    ]
    return {
        "page": page.page,
        "page_size": page.page_size,
        "page_count": page.page_count,
        "total_count": page.total_count,
        "record": record,
    }


def contains(column, value: Optional[str]):
    """``LIKE %value%`` criterion, or None when the filter is blank."""
    if not value:
        return None
    return column.contains(value, autoescape=True)


def criteria(*clauses) -> list:
    return [c for c in clauses if c is not None]
