"""
Brand wallet endpoints.

``/api/brand-wallets`` is the pre-recharge wallet an admin tops up or
deducts; ``/api/brand-points-wallets`` is the read-only member-points
wallet. Amounts are display values here; ``core.scaling`` converts them
with the wallet's rounding before anything is stored.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.scaling import down_scale, up_scale
from bitenet_admin.database import get_db
from bitenet_admin.models import (
    Brand,
    OperatorType,
    RechargeRecord,
    RechargeRecordType,
    Restaurant,
    WalletAccountOwner,
    WalletAccountType,
    WalletBalance,
    WalletBalanceType,
    WalletTransaction,
)
from bitenet_admin.repositories import Page, SoftDeleteRepository
from bitenet_admin.routers.deps import (
    PageParams,
    as_paged,
    contains,
    criteria,
    page_params,
    require_session,
)
from bitenet_admin.schemas import (
    PagedResult,
    PointsBalanceResponse,
    RechargeRecordResponse,
    RechargeRequest,
    WalletBalanceResponse,
    WalletTransactionResponse,
)
from bitenet_admin.services.session import UserSession
from bitenet_admin.services.wallet import TransactionDetail, WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/brand-wallets", tags=["Brand Wallets"])
points_router = APIRouter(
    prefix="/api/brand-points-wallets",
    tags=["Brand Points Wallets"],
    dependencies=[Depends(require_session)],
)

WALLET_TYPE = WalletAccountType.RESTAURANT_PRE_RECHARGE
POINTS_WALLET_TYPE = WalletAccountType.MEMBER_POINTS
OWNER_TYPE = WalletAccountOwner.RESTAURANT
VOUCHER_TYPE = "RECHARGE_RECORD"


# =============================================================================
# SHARED READS
# =============================================================================

async def _page_brand_balances(
    db: AsyncSession,
    wallet_type: WalletAccountType,
    name: Optional[str],
    paging: PageParams,
) -> tuple[Page, dict]:
    """A page of brands plus ``{brand_id: display balance}`` (brands without a wallet are absent)."""
    page = await SoftDeleteRepository(db, Brand).paginate(
        paging.page,
        paging.page_size,
        *criteria(contains(Brand.name, name)),
    )

    balances = {}
    if page.record:
        rows = await SoftDeleteRepository(db, WalletBalance).find_many(
            WalletBalance.owner_id.in_({b.id for b in page.record}),
            wallet_type=wallet_type,
            owner_type=OWNER_TYPE,
            balance_type=WalletBalanceType.CONSUMABLE,
        )
        balances = {row.owner_id: up_scale(row.balance, row.rounding) for row in rows}
    return page, balances


async def _brand_balance(db: AsyncSession, brand_id: int, wallet_type: WalletAccountType) -> float:
    await SoftDeleteRepository(db, Brand).find_unique_or_raise(id=brand_id)
    wallets = WalletService(db)

    account = await wallets.get_wallet(wallet_type, OWNER_TYPE, brand_id)
    balance = await wallets.get_balance(wallet_type, OWNER_TYPE, brand_id)
    await db.commit()
    return up_scale(balance, account.rounding)


async def _page_brand_transactions(
    db: AsyncSession,
    brand_id: int,
    wallet_type: WalletAccountType,
    paging: PageParams,
) -> dict:
    await SoftDeleteRepository(db, Brand).find_unique_or_raise(id=brand_id)
    account = await WalletService(db).get_wallet(wallet_type, OWNER_TYPE, brand_id)
    await db.commit()

    page = await SoftDeleteRepository(db, WalletTransaction).paginate(
        paging.page,
        paging.page_size,
        order_by=[WalletTransaction.created_at.desc(), WalletTransaction.id.desc()],
        wallet_account_id=account.id,
    )
    return as_paged(page, WalletTransactionResponse, _transaction_line)


def _transaction_line(line: WalletTransaction) -> WalletTransactionResponse:
    return WalletTransactionResponse(
        id=line.id,
        direction=line.direction,
        subject=line.subject,
        amount=up_scale(line.amount, line.rounding),
        balance_before=up_scale(line.balance_before, line.rounding),
        balance_after=up_scale(line.balance_after, line.rounding),
        remark=line.remark,
        remark_en=line.remark_en,
        voucher_type=line.voucher_type,
        voucher=line.voucher,
        created_at=line.created_at,
    )


# =============================================================================
# PRE-RECHARGE WALLET
# =============================================================================

@router.get("", response_model=PagedResult[WalletBalanceResponse])
async def query_brand_balances(
    name: Optional[str] = Query(None),
    paging: PageParams = Depends(page_params),
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Brands with their pre-recharge balance (0 for brands without a wallet)."""
    page, balances = await _page_brand_balances(db, WALLET_TYPE, name, paging)
    return as_paged(
        page,
        WalletBalanceResponse,
        lambda brand: WalletBalanceResponse(brand_id=brand.id, balance=balances.get(brand.id, 0)),
    )


@router.get("/{brand_id}/balance", response_model=WalletBalanceResponse)
async def get_brand_balance(
    brand_id: int,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> WalletBalanceResponse:
    balance = await _brand_balance(db, brand_id, WALLET_TYPE)
    return WalletBalanceResponse(brand_id=brand_id, balance=balance)


@router.get("/{brand_id}/transactions", response_model=PagedResult[WalletTransactionResponse])
async def query_brand_transactions(
    brand_id: int,
    paging: PageParams = Depends(page_params),
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Ledger lines of the brand wallet, newest first."""
    return await _page_brand_transactions(db, brand_id, WALLET_TYPE, paging)


async def _record_and_move(
    db: AsyncSession,
    brand_id: int,
    body: RechargeRequest,
    record_type: RechargeRecordType,
    operator_id: int,
) -> RechargeRecordResponse:
    await SoftDeleteRepository(db, Brand).find_unique_or_raise(id=brand_id)
    wallets = WalletService(db)
    account = await wallets.get_wallet(WALLET_TYPE, OWNER_TYPE, brand_id)

    record = await SoftDeleteRepository(db, RechargeRecord).create(
        record_type=record_type,
        operator_type=OperatorType.ADMIN,
        operator_id=operator_id,
        brand_id=brand_id,
        amount=down_scale(body.amount, account.rounding),
        rounding=account.rounding,
        remark=body.remark,
        remark_en=body.remark_en,
        confirmed=True,
    )
    detail = TransactionDetail(
        subject=record_type.value,
        amount=record.amount,
        voucher_type=VOUCHER_TYPE,
        voucher=str(record.id),
        remark=record.remark,
        remark_en=record.remark_en,
    )
    if record_type == RechargeRecordType.RECHARGE:
        line = await wallets.transfer_in(account, detail)
    else:
        line = await wallets.transfer_out(account, detail)

    await db.commit()
    logger.info(
        f"💰 Brand #{brand_id} {record_type.value} {body.amount} by admin #{operator_id} "
        f"(record #{record.id})"
    )
    return RechargeRecordResponse(
        id=record.id,
        record_type=record.record_type,
        brand_id=brand_id,
        amount=up_scale(record.amount, record.rounding),
        remark=record.remark,
        remark_en=record.remark_en,
        confirmed=record.confirmed,
        balance=up_scale(line.balance_after, account.rounding),
    )


@router.post("/{brand_id}/recharge", response_model=RechargeRecordResponse, status_code=201)
async def add_recharge(
    brand_id: int,
    body: RechargeRequest,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> RechargeRecordResponse:
    return await _record_and_move(db, brand_id, body, RechargeRecordType.RECHARGE, session.user_id)


@router.post("/{brand_id}/deduct", response_model=RechargeRecordResponse, status_code=201)
async def deduct_recharge(
    brand_id: int,
    body: RechargeRequest,
    session: UserSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> RechargeRecordResponse:
    """Refused with 412 when the balance is lower than the amount."""
    return await _record_and_move(db, brand_id, body, RechargeRecordType.DEDUCT, session.user_id)


# =============================================================================
# MEMBER-POINTS WALLET
# =============================================================================

@points_router.get("", response_model=PagedResult[PointsBalanceResponse])
async def query_brand_points_balances(
    name: Optional[str] = Query(None),
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Brands with their member-points balance and restaurant names."""
    page, balances = await _page_brand_balances(db, POINTS_WALLET_TYPE, name, paging)

    restaurant_names: dict = {}
    if page.record:
        restaurants = await SoftDeleteRepository(db, Restaurant).find_many(
            Restaurant.brand_id.in_({b.id for b in page.record}),
        )
        for restaurant in restaurants:
            restaurant_names.setdefault(restaurant.brand_id, []).append(restaurant.name)

    return as_paged(
        page,
        PointsBalanceResponse,
        lambda brand: PointsBalanceResponse(
            brand_id=brand.id,
            brand_name=brand.name,
            balance=balances.get(brand.id, 0),
            restaurant_names=restaurant_names.get(brand.id, []),
        ),
    )


@points_router.get("/{brand_id}/balance", response_model=WalletBalanceResponse)
async def get_brand_points_balance(brand_id: int, db: AsyncSession = Depends(get_db)) -> WalletBalanceResponse:
    balance = await _brand_balance(db, brand_id, POINTS_WALLET_TYPE)
    return WalletBalanceResponse(brand_id=brand_id, balance=balance)


@points_router.get("/{brand_id}/transactions", response_model=PagedResult[WalletTransactionResponse])
async def query_brand_points_transactions(
    brand_id: int,
    paging: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Points ledger of the brand, newest first."""
    return await _page_brand_transactions(db, brand_id, POINTS_WALLET_TYPE, paging)
