"""
Pydantic Schemas for Request/Response Validation

Admin back-office payloads:
- System users, login and phone binding
- Brands, restaurants, cuisine types and restaurant users
- Dashboard statistics
- Global configuration and SMS push records
- Brand pre-recharge and member-points wallets

Points and fees cross the API as display values (e.g. 12.5); the stored
form is multiplied by the wallet rounding (see core.scaling).
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar
import re

from pydantic import BaseModel, Field, field_validator, model_validator

from bitenet_admin.models import (
    BrandLevelType,
    RechargeRecordType,
    TransactionDirection,
)

T = TypeVar("T")


def _validate_mail(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not re.match(r'^[\w\.-]+@[\w\.-]+\.\w+$', v):
        raise ValueError('Invalid email format')
    return v


# =============================================================================
# COMMON
# =============================================================================

class PagedResult(BaseModel, Generic[T]):
    """One page of a paged query."""
    page: int
    page_size: int
    page_count: int
    total_count: int
    record: List[T]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    notification_service: str
    timestamp: datetime


class DeletedResponse(BaseModel):
    id: int
    delete_at: int


# =============================================================================
# SYSTEM USERS
# =============================================================================

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64, examples=["admin"])
    password: str = Field(..., min_length=1, max_length=64)


class SysUserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=32, examples=["Administrator"])
    username: str = Field(..., min_length=1, max_length=64, examples=["admin"])
    password: str = Field(..., min_length=1, max_length=64)
    confirm_password: str = Field(..., min_length=1, max_length=64)
    phone: Optional[str] = Field(None, max_length=32)
    mail: Optional[str] = Field(None, max_length=255)
    remark: Optional[str] = Field(None, max_length=255)
    enabled: bool = True

    @field_validator('mail')
    @classmethod
    def validate_mail(cls, v: Optional[str]) -> Optional[str]:
        return _validate_mail(v)

    @model_validator(mode='after')
    def passwords_match(self) -> "SysUserCreate":
        if self.password != self.confirm_password:
            raise ValueError('Two passwords must match')
        return self


class SysUserUpdate(BaseModel):
    """A blank password (and confirmation) keeps the current one."""
    name: str = Field(..., min_length=1, max_length=32)
    password: Optional[str] = Field(None, max_length=64)
    confirm_password: Optional[str] = Field(None, max_length=64)
    phone: Optional[str] = Field(None, max_length=32)
    mail: Optional[str] = Field(None, max_length=255)
    remark: Optional[str] = Field(None, max_length=255)
    enabled: bool = True

    @field_validator('mail')
    @classmethod
    def validate_mail(cls, v: Optional[str]) -> Optional[str]:
        return _validate_mail(v)

    @model_validator(mode='after')
    def passwords_match(self) -> "SysUserUpdate":
        if (self.password or self.confirm_password) and self.password != self.confirm_password:
            raise ValueError('Two passwords must match')
        return self


class SysUserResponse(BaseModel):
    id: int
    name: str
    username: str
    phone: Optional[str]
    mail: Optional[str]
    remark: Optional[str]
    enabled: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    expire_at: datetime
    user: SysUserResponse


class SessionResponse(BaseModel):
    id: str
    user_id: int
    account: str
    create_at: datetime
    update_at: datetime
    expire_at: datetime


class PhoneCaptchaRequest(BaseModel):
    phone: str = Field(..., min_length=5, max_length=32, examples=["+85291234567"])

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        cleaned = re.sub(r'[^\d]', '', v)
        if len(cleaned) < 5:
            raise ValueError('Phone number must have at least 5 digits')
        return v


class BindPhoneRequest(PhoneCaptchaRequest):
    code: str = Field(..., min_length=6, max_length=6, examples=["000000"])


class CaptchaResponse(BaseModel):
    receiver: str
    scene: str
    channel: str
    expire_at: datetime


# =============================================================================
# BRANDS
# =============================================================================

class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Golden Dragon"])
    en_name: str = Field(..., min_length=1, max_length=100)
    level_type: BrandLevelType = BrandLevelType.BASIC
    contacts: Optional[str] = Field(None, max_length=50)
    contacts_way: Optional[str] = Field(None, max_length=50)
    logo: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=500)
    en_description: Optional[str] = Field(None, max_length=500)
    expired_date: Optional[datetime] = Field(None, examples=["2026-12-31T00:00:00"])
    sort: Optional[int] = None


class BrandResponse(BaseModel):
    id: int
    name: str
    en_name: str
    level_type: BrandLevelType
    contacts: Optional[str]
    contacts_way: Optional[str]
    logo: Optional[str]
    description: Optional[str]
    en_description: Optional[str]
    expired_date: Optional[datetime]
    sort: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# =============================================================================
# RESTAURANTS
# =============================================================================

class RestaurantCreate(BaseModel):
    brand_id: int
    name: str = Field(..., min_length=1, max_length=255)
    en_name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., max_length=500)
    en_address: str = Field(..., max_length=500)
    region_code: str = Field(..., max_length=50)
    contacts: str = Field(..., max_length=50)
    contacts_way: str = Field(..., max_length=32)
    cover: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=500)
    en_description: Optional[str] = Field(None, max_length=500)
    minimum_charge: Optional[int] = Field(None, ge=0)
    is_main_store: bool = False
    cuisine_type_id: int = 0
    lat: Optional[str] = Field(None, max_length=20)
    lng: Optional[str] = Field(None, max_length=20)


class RestaurantResponse(BaseModel):
    id: int
    brand_id: int
    name: str
    en_name: str
    address: str
    en_address: str
    region_code: str
    contacts: str
    contacts_way: str
    cover: str
    description: Optional[str]
    en_description: Optional[str]
    minimum_charge: Optional[int]
    is_main_store: bool
    cuisine_type_id: int
    code: str
    index_code: str
    lat: Optional[str]
    lng: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class RestaurantWithBrandResponse(RestaurantResponse):
    brand_name: Optional[str] = None


class CuisineTypeCreate(BaseModel):
    cuisine_type_name: str = Field(..., min_length=1, max_length=100, examples=["粵菜"])
    cuisine_type_name_en: str = Field(..., min_length=1, max_length=100, examples=["Cantonese"])


class CuisineTypeResponse(BaseModel):
    id: int
    cuisine_type_name: str
    cuisine_type_name_en: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class StatisticsCountResponse(BaseModel):
    """Dashboard headline numbers; "daily" means created since local midnight."""
    restaurant_count: int
    daily_new_restaurants: int
    brand_count: int
    daily_new_brands: int


# =============================================================================
# RESTAURANT USERS
# =============================================================================

class RestaurantUserCreate(BaseModel):
    """
    New users get the default password and are brand main accounts.
    ``account`` defaults to ``<area code>-<phone>``.
    """
    brand_id: int
    restaurant_id: int
    user_name: str = Field(..., min_length=1, max_length=100)
    phone_area_code: str = Field(..., min_length=1, max_length=4, examples=["852"])
    phone: str = Field(..., min_length=1, max_length=32, examples=["91234567"])
    account: Optional[str] = Field(None, min_length=1, max_length=64)
    nickname: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=255)
    gender: Optional[str] = Field(None, max_length=10)
    is_enabled: bool = True
    disabled_reason: Optional[str] = Field(None, max_length=255)


class RestaurantUserUpdate(RestaurantUserCreate):
    """Password and brand-main flag are not editable here."""


class RestaurantUserResponse(BaseModel):
    id: int
    brand_id: int
    restaurant_id: int
    user_name: str
    phone_area_code: str
    phone: str
    account: str
    nickname: Optional[str]
    avatar: Optional[str]
    gender: Optional[str]
    is_enabled: bool
    disabled_reason: Optional[str]
    is_brand_main: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# =============================================================================
# GLOBAL CONFIG & SMS RECORDS
# =============================================================================

class GlobalConfigUpdate(BaseModel):
    bonus_points_range_start: Optional[float] = Field(None, ge=0)
    bonus_points_range_end: Optional[float] = Field(None, ge=0)
    app_sign_in_bonus: Optional[float] = Field(None, ge=0)
    invite_bonus: Optional[float] = Field(None, ge=0)
    push_fee_sms: Optional[float] = Field(None, ge=0)
    push_fee_app: Optional[float] = Field(None, ge=0)
    lucky_draw_cost: Optional[float] = Field(None, ge=0)


class GlobalConfigResponse(BaseModel):
    id: int
    bonus_points_range_start: float
    bonus_points_range_end: float
    app_sign_in_bonus: float
    invite_bonus: float
    push_fee_sms: float
    push_fee_app: float
    lucky_draw_cost: float
    update_by: Optional[int] = None
    updated_at: Optional[datetime] = None


class SmsPushRecordResponse(BaseModel):
    id: int
    brand_id: int
    restaurant_id: int
    phone_area_code: str
    phone: str
    context: str
    status: str
    created_at: Optional[datetime]
    brand_name: Optional[str] = None
    restaurant_name: Optional[str] = None

    class Config:
        from_attributes = True


# =============================================================================
# BRAND WALLETS
# =============================================================================

class RechargeRequest(BaseModel):
    """Amount is a display value; it is multiplied by the wallet rounding."""
    amount: float = Field(..., gt=0, examples=[100.5])
    remark: str = Field(..., max_length=255)
    remark_en: str = Field(..., max_length=255)


class WalletBalanceResponse(BaseModel):
    brand_id: int
    balance: float


class WalletTransactionResponse(BaseModel):
    id: int
    direction: TransactionDirection
    subject: str
    amount: float
    balance_before: float
    balance_after: float
    remark: Optional[str]
    remark_en: Optional[str]
    voucher_type: str
    voucher: str
    created_at: Optional[datetime]


class RechargeRecordResponse(BaseModel):
    id: int
    record_type: RechargeRecordType
    brand_id: int
    amount: float
    remark: Optional[str]
    remark_en: Optional[str]
    confirmed: bool
    balance: float


class PointsBalanceResponse(WalletBalanceResponse):
    """Brand member-points balance with the brand's live restaurants."""
    brand_name: str
    restaurant_names: List[str] = []
