"""
Tests for the wallet service and global configuration service.
"""

import pytest

from bitenet_admin.core.exceptions import ParameterError
from bitenet_admin.models import (
    TransactionDirection,
    WalletAccountOwner,
    WalletAccountType,
    WalletTransaction,
)
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.services.global_config import find_global_config, update_global_config
from bitenet_admin.services.wallet import TransactionDetail, WalletService

PRE_RECHARGE = WalletAccountType.RESTAURANT_PRE_RECHARGE
RESTAURANT = WalletAccountOwner.RESTAURANT


def detail(amount: int, voucher: str) -> TransactionDetail:
    return TransactionDetail(
        subject="RECHARGE",
        amount=amount,
        voucher_type="RECHARGE_RECORD",
        voucher=voucher,
        remark="充值",
        remark_en="Recharge",
    )


@pytest.fixture
def wallets(session) -> WalletService:
    return WalletService(session)


class TestGetWallet:

    async def test_created_once(self, wallets):
        first = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)
        second = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)

        assert first.id == second.id
        assert first.rounding == 100
        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 1) == 0

    async def test_owners_are_separate(self, wallets):
        a = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)
        b = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 2)

        assert a.id != b.id


class TestTransfers:

    async def test_transfer_in_and_out(self, wallets, session):
        account = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)

        credit = await wallets.transfer_in(account, detail(10000, "1"))
        debit = await wallets.transfer_out(account, detail(2550, "2"))

        assert credit.direction == TransactionDirection.DEBIT
        assert (credit.balance_before, credit.balance_after) == (0, 10000)
        assert debit.direction == TransactionDirection.CREDIT
        assert (debit.balance_before, debit.balance_after) == (10000, 7450)
        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 1) == 7450
        assert await SoftDeleteRepository(session, WalletTransaction).count(
            wallet_account_id=account.id
        ) == 2

    async def test_voucher_used_once_per_direction(self, wallets):
        account = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)
        await wallets.transfer_in(account, detail(100, "7"))

        with pytest.raises(ParameterError):
            await wallets.transfer_in(account, detail(100, "7"))

        # Same voucher in the other direction is a different ledger line
        await wallets.transfer_out(account, detail(100, "7"))
        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 1) == 0

    async def test_cannot_go_negative(self, wallets):
        account = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)
        await wallets.transfer_in(account, detail(100, "1"))

        with pytest.raises(ParameterError):
            await wallets.transfer_out(account, detail(101, "2"))
        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 1) == 100

    async def test_amount_must_be_positive(self, wallets):
        account = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)

        with pytest.raises(ParameterError):
            await wallets.transfer_in(account, detail(0, "1"))

    async def test_transfer_between_wallets(self, wallets):
        source = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 1)
        target = await wallets.get_wallet(PRE_RECHARGE, RESTAURANT, 2)
        await wallets.transfer_in(source, detail(500, "seed"))

        await wallets.transfer(source, target, detail(200, "move"))

        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 1) == 300
        assert await wallets.get_balance(PRE_RECHARGE, RESTAURANT, 2) == 200


class TestGlobalConfig:

    async def test_missing_config(self, session):
        assert await find_global_config(session) is None

    async def test_values_are_scaled(self, session):
        from bitenet_admin.models import GlobalConfig

        saved = await update_global_config(
            session, {"push_fee_sms": 1.5, "invite_bonus": 20}, operator_id=3,
        )

        stored = await SoftDeleteRepository(session, GlobalConfig).find_unique(id=1)
        assert stored.push_fee_sms == 150
        assert stored.invite_bonus == 2000
        assert saved["push_fee_sms"] == 1.5
        assert saved["update_by"] == 3

    async def test_partial_update(self, session):
        await update_global_config(session, {"push_fee_sms": 1.5, "push_fee_app": 1})

        result = await update_global_config(session, {"push_fee_app": 2, "push_fee_sms": None})

        assert result["push_fee_sms"] == 1.5
        assert result["push_fee_app"] == 2
        assert result["lucky_draw_cost"] == 0
