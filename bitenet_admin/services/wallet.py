"""
Wallet Service

Double-entry style wallets for members (points) and brands (pre-recharge).

- A wallet account is created on first use with rounding 100 and an empty
  CONSUMABLE balance.
- ``transfer_in`` (DEBIT) and ``transfer_out`` (CREDIT) move an already
  scaled integer amount and write one ledger line each.
- A voucher (voucher_type, voucher) can be used once per account and
  direction; reuse raises ``ParameterError``.

The service only flushes; the caller owns the transaction and commits.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bitenet_admin.core.exceptions import ParameterError
from bitenet_admin.core.scaling import DEFAULT_ROUNDING
from bitenet_admin.models import (
    TransactionDirection,
    WalletAccount,
    WalletAccountOwner,
    WalletAccountType,
    WalletBalance,
    WalletBalanceType,
    WalletTransaction,
)
from bitenet_admin.repositories import SoftDeleteRepository

logger = logging.getLogger(__name__)


@dataclass
class TransactionDetail:
    """What a balance movement is for. ``amount`` is already scaled."""
    subject: str
    amount: int
    voucher_type: str
    voucher: str
    remark: Optional[str] = None
    remark_en: Optional[str] = None


class WalletService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = SoftDeleteRepository(session, WalletAccount)
        self.balances = SoftDeleteRepository(session, WalletBalance)
        self.transactions = SoftDeleteRepository(session, WalletTransaction)

    async def get_wallet(
        self,
        wallet_type: WalletAccountType,
        owner_type: WalletAccountOwner,
        owner_id: int,
    ) -> WalletAccount:
        """Find the owner's wallet, creating it (and its balance) when missing."""
        account = await self.accounts.find_unique(
            wallet_type=wallet_type,
            owner_type=owner_type,
            owner_id=owner_id,
        )
        if account:
            return account

        account = await self.accounts.create(
            wallet_type=wallet_type,
            owner_type=owner_type,
            owner_id=owner_id,
            rounding=DEFAULT_ROUNDING,
        )
        await self.balances.create(
            wallet_account_id=account.id,
            wallet_type=wallet_type,
            owner_type=owner_type,
            owner_id=owner_id,
            rounding=account.rounding,
            balance_type=WalletBalanceType.CONSUMABLE,
            balance=0,
            total_debit=0,
            total_credit=0,
        )
        logger.info(f"Wallet #{account.id} created for {owner_type.value} #{owner_id} ({wallet_type.value})")
        return account

    async def get_balance(
        self,
        wallet_type: WalletAccountType,
        owner_type: WalletAccountOwner,
        owner_id: int,
    ) -> int:
        """Scaled CONSUMABLE balance (0 when no balance row exists)."""
        account = await self.get_wallet(wallet_type, owner_type, owner_id)
        balance = await self.balances.find_unique(
            wallet_account_id=account.id,
            balance_type=WalletBalanceType.CONSUMABLE,
        )
        return balance.balance if balance else 0

    async def transfer(
        self,
        from_account: WalletAccount,
        to_account: WalletAccount,
        detail: TransactionDetail,
    ) -> None:
        await self.transfer_out(from_account, detail)
        await self.transfer_in(to_account, detail)

    async def transfer_in(
        self,
        account: WalletAccount,
        detail: TransactionDetail,
        balance_type: WalletBalanceType = WalletBalanceType.CONSUMABLE,
    ) -> WalletTransaction:
        return await self._move(account, detail, balance_type, TransactionDirection.DEBIT)

    async def transfer_out(
        self,
        account: WalletAccount,
        detail: TransactionDetail,
        balance_type: WalletBalanceType = WalletBalanceType.CONSUMABLE,
    ) -> WalletTransaction:
        return await self._move(account, detail, balance_type, TransactionDirection.CREDIT)

    async def _move(
        self,
        account: WalletAccount,
        detail: TransactionDetail,
        balance_type: WalletBalanceType,
        direction: TransactionDirection,
    ) -> WalletTransaction:
        if detail.amount <= 0:
            raise ParameterError("Amount must be greater than 0")

        existed = await self.transactions.find_unique(
            wallet_account_id=account.id,
            direction=direction,
            voucher_type=detail.voucher_type,
            voucher=detail.voucher,
        )
        if existed:
            raise ParameterError(
                f"Voucher {detail.voucher_type}:{detail.voucher} already used",
                details={"wallet_account_id": account.id, "direction": direction.value},
            )

        balance = await self.balances.find_unique(
            wallet_account_id=account.id,
            balance_type=balance_type,
        )
        if balance is None:
            raise ParameterError(f"Wallet #{account.id} has no {balance_type.value} balance")

        balance_before = balance.balance
        if direction == TransactionDirection.DEBIT:
            balance.balance = WalletBalance.balance + detail.amount
            balance.total_debit = WalletBalance.total_debit + detail.amount
        else:
            if balance_before < detail.amount:
                raise ParameterError("Balance not enough")
            balance.balance = WalletBalance.balance - detail.amount
            balance.total_credit = WalletBalance.total_credit + detail.amount
        await self.session.flush()
        await self.session.refresh(balance)

        if balance.balance < 0:
            raise ParameterError("Balance not enough")

        transaction = await self.transactions.create(
            wallet_account_id=account.id,
            wallet_balance_id=balance.id,
            wallet_type=account.wallet_type,
            owner_type=account.owner_type,
            owner_id=account.owner_id,
            rounding=account.rounding,
            balance_type=balance_type,
            direction=direction,
            subject=detail.subject,
            amount=detail.amount,
            balance_before=balance_before,
            balance_after=balance.balance,
            remark=detail.remark,
            remark_en=detail.remark_en,
            voucher_type=detail.voucher_type,
            voucher=detail.voucher,
        )
        logger.info(
            f"Wallet #{account.id} {direction.value} {detail.amount} "
            f"({balance_before} -> {balance.balance}) voucher {detail.voucher_type}:{detail.voucher}"
        )
        return transaction
