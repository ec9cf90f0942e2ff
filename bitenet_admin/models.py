"""
SQLAlchemy Database Models

Back-office entities of the loyalty platform:
- System (admin) users
- Brands, restaurants and restaurant users
- Global configuration and SMS push records
- Brand pre-recharge wallets (accounts, balances, transactions, recharge records)

Every table is soft-deletable: a ``deleteAt`` integer column holds 0 for live
rows and the unix timestamp of the deletion otherwise. Reads and deletes go
through ``bitenet_admin.repositories.SoftDeleteRepository``.
"""

import enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from bitenet_admin.database import Base


# =============================================================================
# ENUMS
# =============================================================================

class BrandLevelType(str, enum.Enum):
    """Brand subscription tier."""
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    EXPIRED = "EXPIRED"


class WalletAccountType(str, enum.Enum):
    MEMBER_POINTS = "MEMBER_POINTS"
    RESTAURANT_PRE_RECHARGE = "RESTAURANT_PRE_RECHARGE"


class WalletAccountOwner(str, enum.Enum):
    MEMBER = "MEMBER"
    RESTAURANT = "RESTAURANT"


class WalletBalanceType(str, enum.Enum):
    CONSUMABLE = "CONSUMABLE"


class TransactionDirection(str, enum.Enum):
    """DEBIT adds to a balance, CREDIT takes from it."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class RechargeRecordType(str, enum.Enum):
    RECHARGE = "RECHARGE"
    DEDUCT = "DEDUCT"


class OperatorType(str, enum.Enum):
    ADMIN = "ADMIN"
    RESTAURANT = "RESTAURANT"


# =============================================================================
# MIXINS
# =============================================================================

class SoftDeleteMixin:
    """Adds the ``deleteAt`` sentinel column (0 = live)."""

    delete_at = Column("deleteAt", Integer, nullable=False, default=0, server_default="0", index=True)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# =============================================================================
# SYSTEM USERS
# =============================================================================

class SysUser(SoftDeleteMixin, TimestampMixin, Base):
    """Back-office administrator account."""
    __tablename__ = "sys_users"
    __table_args__ = (
        UniqueConstraint("username", "deleteAt", name="uq_sys_users_username_delete_at"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(32), nullable=False)
    username = Column(String(64), nullable=False, index=True)
    password = Column(String(100), nullable=False)
    phone = Column(String(32), nullable=True, index=True)
    mail = Column(String(255), nullable=True, index=True)
    remark = Column(String(255), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<SysUser #{self.id} - {self.username}>"


# =============================================================================
# BRANDS & RESTAURANTS
# =============================================================================

class Brand(SoftDeleteMixin, TimestampMixin, Base):
    """A restaurant brand; owns restaurants and a pre-recharge wallet."""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    en_name = Column(String(100), nullable=False)
    level_type = Column(
        Enum(BrandLevelType),
        default=BrandLevelType.BASIC,
        nullable=False,
        index=True
    )
    contacts = Column(String(50), nullable=True)
    contacts_way = Column(String(50), nullable=True)
    logo = Column(String(500), nullable=True)
    description = Column(String(500), nullable=True)
    en_description = Column(String(500), nullable=True)
    expired_date = Column(DateTime, nullable=True)
    sort = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<Brand #{self.id} - {self.name} - {self.level_type.value}>"


class Restaurant(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    brand_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    en_name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    en_address = Column(String(500), nullable=False)
    region_code = Column(String(50), nullable=False)
    contacts = Column(String(50), nullable=False)
    contacts_way = Column(String(32), nullable=False)
    cover = Column(String(500), nullable=False)
    description = Column(String(500), nullable=True)
    en_description = Column(String(500), nullable=True)
    minimum_charge = Column(Integer, nullable=True)
    is_main_store = Column(Boolean, default=False, nullable=False)
    cuisine_type_id = Column(Integer, default=0, nullable=False)

    # Generated on creation
    code = Column(String(32), nullable=False, unique=True)
    index_code = Column(String(16), nullable=False, index=True)
    lat = Column(String(20), nullable=True)
    lng = Column(String(20), nullable=True)

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name}>"


class CuisineType(SoftDeleteMixin, TimestampMixin, Base):
    """Cuisine category referenced by ``Restaurant.cuisine_type_id`` (0 = none)."""
    __tablename__ = "cuisine_types"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    cuisine_type_name = Column(String(100), nullable=False)
    cuisine_type_name_en = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<CuisineType #{self.id} - {self.cuisine_type_name_en}>"


class RestaurantUser(SoftDeleteMixin, TimestampMixin, Base):
    """Login account for restaurant staff."""
    __tablename__ = "restaurant_users"
    __table_args__ = (
        UniqueConstraint("account", "deleteAt", name="uq_restaurant_users_account_delete_at"),
        UniqueConstraint(
            "phone_area_code", "phone", "deleteAt",
            name="uq_restaurant_users_phone_delete_at",
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    brand_id = Column(Integer, nullable=False, index=True)
    restaurant_id = Column(Integer, nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    phone_area_code = Column(String(4), nullable=False)
    phone = Column(String(32), nullable=False)
    account = Column(String(64), nullable=False)
    password = Column(String(100), nullable=False)
    nickname = Column(String(100), nullable=True)
    avatar = Column(String(255), nullable=True)
    gender = Column(String(10), nullable=True)
    is_enabled = Column(Boolean, default=True, nullable=False)
    disabled_reason = Column(String(255), nullable=True)
    is_brand_main = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<RestaurantUser #{self.id} - {self.account}>"


# =============================================================================
# CONFIGURATION & RECORDS
# =============================================================================

class GlobalConfig(SoftDeleteMixin, TimestampMixin, Base):
    """
    Platform-wide settings, a single row with id 1.

    Point and fee columns are stored multiplied by 100 (see core.scaling).
    """
    __tablename__ = "global_configs"

    id = Column(Integer, primary_key=True)
    bonus_points_range_start = Column(BigInteger, default=0, nullable=False)
    bonus_points_range_end = Column(BigInteger, default=0, nullable=False)
    app_sign_in_bonus = Column(BigInteger, default=0, nullable=False)
    invite_bonus = Column(BigInteger, default=0, nullable=False)
    push_fee_sms = Column(BigInteger, default=0, nullable=False)
    push_fee_app = Column(BigInteger, default=0, nullable=False)
    lucky_draw_cost = Column(BigInteger, default=0, nullable=False)
    create_by = Column(Integer, nullable=True)
    update_by = Column(Integer, nullable=True)


class SmsPushRecord(SoftDeleteMixin, TimestampMixin, Base):
    """One SMS pushed to a member on behalf of a restaurant."""
    __tablename__ = "sms_push_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    brand_id = Column(Integer, nullable=False, index=True)
    restaurant_id = Column(Integer, nullable=False, index=True)
    phone_area_code = Column(String(4), nullable=False)
    phone = Column(String(32), nullable=False, index=True)
    context = Column(Text, nullable=False)
    status = Column(String(20), default="SENT", nullable=False)


# =============================================================================
# WALLETS
# =============================================================================

class WalletAccount(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "wallet_accounts"
    __table_args__ = (
        UniqueConstraint(
            "wallet_type", "owner_type", "owner_id", "deleteAt",
            name="uq_wallet_accounts_owner",
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    wallet_type = Column(Enum(WalletAccountType), nullable=False)
    owner_type = Column(Enum(WalletAccountOwner), nullable=False)
    owner_id = Column(Integer, nullable=False, index=True)
    rounding = Column(Integer, default=100, nullable=False)


class WalletBalance(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "wallet_balances"
    __table_args__ = (
        UniqueConstraint(
            "wallet_account_id", "balance_type", "deleteAt",
            name="uq_wallet_balances_account_type",
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    wallet_account_id = Column(Integer, nullable=False, index=True)
    wallet_type = Column(Enum(WalletAccountType), nullable=False)
    owner_type = Column(Enum(WalletAccountOwner), nullable=False)
    owner_id = Column(Integer, nullable=False)
    rounding = Column(Integer, default=100, nullable=False)
    balance_type = Column(Enum(WalletBalanceType), default=WalletBalanceType.CONSUMABLE, nullable=False)
    balance = Column(BigInteger, default=0, nullable=False)
    total_debit = Column(BigInteger, default=0, nullable=False)
    total_credit = Column(BigInteger, default=0, nullable=False)


class WalletTransaction(SoftDeleteMixin, TimestampMixin, Base):
    """Ledger line; one per balance movement."""
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        UniqueConstraint(
            "wallet_account_id", "direction", "voucher_type", "voucher", "deleteAt",
            name="uq_wallet_transactions_voucher",
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    wallet_account_id = Column(Integer, nullable=False, index=True)
    wallet_balance_id = Column(Integer, nullable=False)
    wallet_type = Column(Enum(WalletAccountType), nullable=False)
    owner_type = Column(Enum(WalletAccountOwner), nullable=False)
    owner_id = Column(Integer, nullable=False)
    rounding = Column(Integer, default=100, nullable=False)
    balance_type = Column(Enum(WalletBalanceType), nullable=False)
    direction = Column(Enum(TransactionDirection), nullable=False)
    subject = Column(String(50), nullable=False)
    amount = Column(BigInteger, nullable=False)
    balance_before = Column(BigInteger, nullable=False)
    balance_after = Column(BigInteger, nullable=False)
    remark = Column(String(255), nullable=True)
    remark_en = Column(String(255), nullable=True)
    voucher_type = Column(String(50), nullable=False)
    voucher = Column(String(100), nullable=False)


class RechargeRecord(SoftDeleteMixin, TimestampMixin, Base):
    """Admin-initiated top-up or deduction of a brand wallet."""
    __tablename__ = "recharge_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    record_type = Column(Enum(RechargeRecordType), nullable=False)
    operator_type = Column(Enum(OperatorType), nullable=False)
    operator_id = Column(Integer, nullable=False)
    brand_id = Column(Integer, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    rounding = Column(Integer, default=100, nullable=False)
    remark = Column(String(255), nullable=True)
    remark_en = Column(String(255), nullable=True)
    confirmed = Column(Boolean, default=False, nullable=False)
