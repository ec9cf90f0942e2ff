"""
System user endpoints: login/logout, admin CRUD and phone binding.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.config import Settings
from bitenet_admin.core.exceptions import ConflictError, ParameterError, UnauthorizedError
from bitenet_admin.core.security import compare_password, encode_password
from bitenet_admin.database import get_db
from bitenet_admin.models import SysUser
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    get_app_settings,
    get_session_store,
    page_params,
    require_session,
)
from bitenet_admin.schemas import (
    BindPhoneRequest,
    CaptchaResponse,
    DeletedResponse,
    LoginRequest,
    LoginResponse,
    PagedResult,
    PhoneCaptchaRequest,
    SessionResponse,
    SysUserCreate,
    SysUserResponse,
    SysUserUpdate,
)
from bitenet_admin.services.captcha import (
    CaptchaApp,
    CaptchaChannel,
    CaptchaIssuer,
    CaptchaScene,
)
from bitenet_admin.services.notifications import get_notification_service
from bitenet_admin.services.session import SessionStore, UserSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sys-users", tags=["System Users"])


def get_bind_phone_issuer(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    notifier=Depends(get_notification_service),
) -> CaptchaIssuer:
    return CaptchaIssuer(
        request.app.state.redis,
        notifier,
        CaptchaApp.ADMIN,
        CaptchaScene.BIND_PHONE,
        CaptchaChannel.SMS,
        constant_code=settings.constant_captcha,
        ttl_seconds=settings.captcha_ttl_seconds,
        brand_name=settings.sms_brand_name,
    )


async def _check_duplicates(
    users: SoftDeleteRepository,
    username: Optional[str] = None,
    phone: Optional[str] = None,
    mail: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> None:
    exclude = [SysUser.id != exclude_id] if exclude_id else []
    if username and await users.find_first(*exclude, username=username):
        raise ConflictError(f"Admin with username {username} already exists")
    if phone and await users.find_first(*exclude, phone=phone):
        raise ConflictError(f"Admin with phone {phone} already exists")
    if mail and await users.find_first(*exclude, mail=mail):
        raise ConflictError(f"Admin with mail {mail} already exists")


# =============================================================================
# AUTHENTICATION
# =============================================================================

@router.post("/auth", response_model=LoginResponse, summary="Admin Login")
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> LoginResponse:
    """Check credentials and open an ADMIN session; the session id is the bearer token."""
    users = SoftDeleteRepository(db, SysUser)
    user = await users.find_unique(username=credentials.username)

    if user is None or not compare_password(credentials.password, user.password):
        logger.warning(f"Failed login for {credentials.username}")
        raise UnauthorizedError("Invalid username or password")
    if not user.enabled:
        raise UnauthorizedError("Account is disabled")

    session = await store.update(user_id=user.id, account=user.username)
    logger.info(f"🔑 Admin #{user.id} ({user.username}) logged in")

    return LoginResponse(
        token=session.id,
        expire_at=session.expire_at,
        user=SysUserResponse.model_validate(user),
    )


@router.post("/logout", summary="Admin Logout")
async def logout(
    session: UserSession = Depends(require_session),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    await store.remove(session.id)
    return {"success": True}


@router.get("/me/session", response_model=SessionResponse)
async def current_session(session: UserSession = Depends(require_session)) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        user_id=session.user_id,
        account=session.account,
        create_at=session.create_at,
        update_at=session.update_at,
        expire_at=session.expire_at,
    )


@router.get("/me", response_model=SysUserResponse)
async def current_user(
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SysUser:
    return await SoftDeleteRepository(db, SysUser).find_unique_or_raise(id=session.user_id)


# =============================================================================
# PHONE BINDING
# =============================================================================

@router.post("/me/phone/captcha", response_model=CaptchaResponse, summary="Send Phone Binding Code")
async def send_bind_phone_captcha(
    body: PhoneCaptchaRequest,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    issuer: CaptchaIssuer = Depends(get_bind_phone_issuer),
) -> CaptchaResponse:
    users = SoftDeleteRepository(db, SysUser)
    await _check_duplicates(users, phone=body.phone, exclude_id=session.user_id)

    ticket = await issuer.send(body.phone)
    return CaptchaResponse(
        receiver=ticket.receiver,
        scene=ticket.scene.value,
        channel=ticket.channel.value,
        expire_at=ticket.expire_at,
    )


@router.post("/me/phone", response_model=SysUserResponse, summary="Bind Phone")
async def bind_phone(
    body: BindPhoneRequest,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    issuer: CaptchaIssuer = Depends(get_bind_phone_issuer),
) -> SysUser:
    """
    Bind a phone number to the current admin. The code can be used once and
    is only spent when the phone is free to bind.
    """
    users = SoftDeleteRepository(db, SysUser)
    await _check_duplicates(users, phone=body.phone, exclude_id=session.user_id)

    if not await issuer.consume(body.phone, body.code):
        raise ParameterError("Verification code is incorrect or expired")

    user = await users.find_unique_or_raise(id=session.user_id)
    user = await users.update(user, phone=body.phone)
    await db.commit()
    logger.info(f"Admin #{user.id} bound phone {body.phone}")
    return user


# =============================================================================
# ADMIN CRUD
# =============================================================================

@router.post("", response_model=SysUserResponse, status_code=201)
async def create_sys_user(
    body: SysUserCreate,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SysUser:
    users = SoftDeleteRepository(db, SysUser)
    await _check_duplicates(users, username=body.username, phone=body.phone, mail=body.mail)

    data = body.model_dump(exclude={"confirm_password"})
    data["password"] = encode_password(body.password)
    user = await users.create(**data)
    await db.commit()

    logger.info(f"Admin #{user.id} ({user.username}) created by #{session.user_id}")
    return user


@router.put("/{user_id}", response_model=SysUserResponse)
async def update_sys_user(
    user_id: int,
    body: SysUserUpdate,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SysUser:
    users = SoftDeleteRepository(db, SysUser)
    user = await users.find_unique_or_raise(id=user_id)
    await _check_duplicates(users, phone=body.phone, mail=body.mail, exclude_id=user_id)

    data = body.model_dump(exclude={"password", "confirm_password"})
    if body.password:
        data["password"] = encode_password(body.password)

    user = await users.update(user, **data)
    await db.commit()
    return user


@router.delete("/{user_id}", response_model=DeletedResponse)
async def delete_sys_user(
    user_id: int,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> DeletedResponse:
    if user_id == session.user_id:
        raise ParameterError("You cannot delete your own account")

    user = await SoftDeleteRepository(db, SysUser).delete(id=user_id)
    await db.commit()
    return DeletedResponse(id=user.id, delete_at=user.delete_at)


@router.get("/{user_id}", response_model=SysUserResponse)
async def get_sys_user(
    user_id: int,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SysUser:
    return await SoftDeleteRepository(db, SysUser).find_unique_or_raise(id=user_id)


@router.get("", response_model=PagedResult[SysUserResponse])
async def query_sys_users(
    name: Optional[str] = Query(None),
    username: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    mail: Optional[str] = Query(None),
    create_time_start: Optional[datetime] = Query(None),
    create_time_end: Optional[datetime] = Query(None),
    enabled: Optional[bool] = Query(None),
    paging: PageParams = Depends(page_params),
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    where = criteria(
        contains(SysUser.name, name),
        contains(SysUser.username, username),
        contains(SysUser.phone, phone),
        contains(SysUser.mail, mail),
        SysUser.created_at >= create_time_start if create_time_start else None,
        SysUser.created_at <= create_time_end if create_time_end else None,
    )
    page = await SoftDeleteRepository(db, SysUser).paginate(
        paging.page,
        paging.page_size,
        *where,
        enabled=enabled,
    )
    return as_paged(page, SysUserResponse)
