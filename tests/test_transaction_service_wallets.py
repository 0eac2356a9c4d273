from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock

from pydantic import ValidationError

from fintrack.models.transaction import TransactionSource
from fintrack.models.wallet import WalletType
from fintrack.schemas.transaction import TransactionCreate, TransactionType
from fintrack.schemas.wallet import WalletUpdate
from fintrack.services import transactions, wallets


class DummySession:
    def __init__(self) -> None:
        self.add = MagicMock()
        self.get: AsyncMock = AsyncMock()
        self.commit: AsyncMock = AsyncMock()
        self.refresh: AsyncMock = AsyncMock()
        self.delete: AsyncMock = AsyncMock()
        self.execute: AsyncMock = AsyncMock()


def _now() -> datetime:
    return datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


class TransactionWalletIntegrationTests(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.session = DummySession()
        self.user_id = uuid4()

    def _wallet(self, balance: str, *, user_id=None) -> SimpleNamespace:
        return SimpleNamespace(id=uuid4(), user_id=user_id or self.user_id, balance=Decimal(balance))

    async def test_expense_debits_wallet(self) -> None:
        wallet = self._wallet("100.00")
        self.session.get.return_value = wallet

        payload = TransactionCreate(
            type=TransactionType.EXPENSE,
            amount=Decimal("20.00"),
            description="Dinner",
            occurred_at=_now(),
            user_id=self.user_id,
            wallet_id=wallet.id,
        )

        transaction = await transactions.create_transaction(self.session, payload)

        self.session.get.assert_awaited_once_with(transactions.Wallet, wallet.id)
        self.session.add.assert_called_once_with(transaction)
        self.session.commit.assert_awaited_once()
        self.session.refresh.assert_awaited_once_with(transaction)
        self.assertEqual(transaction.wallet_id, wallet.id)
        self.assertEqual(transaction.source, "manual")
        self.assertEqual(wallet.balance, Decimal("80.00"))

    async def test_income_credits_wallet(self) -> None:
        wallet = self._wallet("50.00")
        self.session.get.return_value = wallet

        payload = TransactionCreate(
            type="INCOME",
            amount=Decimal("25.50"),
            description="Freelance",
            occurred_at=_now(),
            user_id=self.user_id,
            source=TransactionSource.CHAT,
            wallet_id=wallet.id,
        )

        transaction = await transactions.create_transaction(self.session, payload)

        self.assertEqual(wallet.balance, Decimal("75.50"))
        self.assertEqual(transaction.source, "chat")

    async def test_transfer_moves_balance_between_wallets(self) -> None:
        source = self._wallet("500.00")
        destination = self._wallet("10.00")
        self.session.get.side_effect = [source, destination]

        payload = TransactionCreate(
            type=TransactionType.TRANSFER,
            amount=Decimal("100"),
            description="Top up",
            occurred_at=_now(),
            user_id=self.user_id,
            wallet_id=source.id,
            to_wallet_id=destination.id,
        )

        transaction = await transactions.create_transaction(self.session, payload)

        self.assertEqual(source.balance, Decimal("400.00"))
        self.assertEqual(destination.balance, Decimal("110.00"))
        self.assertEqual(transaction.to_wallet_id, destination.id)

    async def test_transaction_without_wallet_leaves_balances_alone(self) -> None:
        payload = TransactionCreate(
            type=TransactionType.EXPENSE,
            amount=Decimal("10"),
            description="Snacks",
            occurred_at=_now(),
            user_id=self.user_id,
        )

        transaction = await transactions.create_transaction(self.session, payload)

        self.session.get.assert_not_called()
        self.assertIsNone(transaction.wallet_id)
        self.session.commit.assert_awaited_once()

    async def test_items_are_stored_as_plain_numbers(self) -> None:
        payload = TransactionCreate(
            type=TransactionType.EXPENSE,
            amount=Decimal("30000"),
            occurred_at=_now(),
            user_id=self.user_id,
            source=TransactionSource.OCR,
            items=[{"name": "Nasi goreng", "quantity": "2", "price": "15000"}],
        )

        transaction = await transactions.create_transaction(self.session, payload)

        self.assertEqual(transaction.items, [{"name": "Nasi goreng", "quantity": 2.0, "price": 15000.0}])

    async def test_rejects_wallet_from_other_user(self) -> None:
        wallet = self._wallet("0", user_id=uuid4())
        self.session.get.return_value = wallet

        payload = TransactionCreate(
            type=TransactionType.EXPENSE,
            amount=Decimal("5"),
            description="Mismatch",
            occurred_at=_now(),
            user_id=self.user_id,
            wallet_id=wallet.id,
        )

        with self.assertRaisesRegex(ValueError, "Wallet does not belong to user"):
            await transactions.create_transaction(self.session, payload)

        self.session.commit.assert_not_called()

    async def test_raises_when_wallet_missing(self) -> None:
        self.session.get.return_value = None
        payload = TransactionCreate(
            type=TransactionType.EXPENSE,
            amount=Decimal("5"),
            description="Missing wallet",
            occurred_at=_now(),
            user_id=self.user_id,
            wallet_id=uuid4(),
        )

        with self.assertRaisesRegex(ValueError, "Wallet not found"):
            await transactions.create_transaction(self.session, payload)

        self.session.commit.assert_not_called()


class TransactionPayloadValidationTests(IsolatedAsyncioTestCase):
    def test_destination_wallet_requires_transfer(self) -> None:
        with self.assertRaises(ValidationError):
            TransactionCreate(
                type=TransactionType.EXPENSE,
                amount=Decimal("5"),
                occurred_at=_now(),
                user_id=uuid4(),
                wallet_id=uuid4(),
                to_wallet_id=uuid4(),
            )

    def test_transfer_wallets_must_differ(self) -> None:
        wallet_id = uuid4()
        with self.assertRaises(ValidationError):
            TransactionCreate(
                type=TransactionType.TRANSFER,
                amount=Decimal("5"),
                occurred_at=_now(),
                user_id=uuid4(),
                wallet_id=wallet_id,
                to_wallet_id=wallet_id,
            )

    def test_amount_must_be_positive(self) -> None:
        with self.assertRaises(ValidationError):
            TransactionCreate(
                type=TransactionType.EXPENSE,
                amount=Decimal("0"),
                occurred_at=_now(),
                user_id=uuid4(),
            )


class TransactionDeletionTests(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.session = DummySession()
        self.user_id = uuid4()

    def _wallet(self, balance: str) -> SimpleNamespace:
        return SimpleNamespace(id=uuid4(), user_id=self.user_id, balance=Decimal(balance))

    def _entry(self, type_: TransactionType, amount: str, wallet=None, to_wallet=None) -> SimpleNamespace:
        return SimpleNamespace(
            id=uuid4(),
            type=type_,
            amount=Decimal(amount),
            wallet_id=wallet.id if wallet else None,
            to_wallet_id=to_wallet.id if to_wallet else None,
        )

    async def test_deleting_expense_refunds_wallet(self) -> None:
        wallet = self._wallet("80.00")
        self.session.get.return_value = wallet
        entry = self._entry(TransactionType.EXPENSE, "20", wallet)

        await transactions.delete_transaction(self.session, entry)

        self.assertEqual(wallet.balance, Decimal("100.00"))
        self.session.delete.assert_awaited_once_with(entry)
        self.session.commit.assert_awaited_once()

    async def test_deleting_income_takes_it_back(self) -> None:
        wallet = self._wallet("75.50")
        self.session.get.return_value = wallet

        await transactions.delete_transaction(self.session, self._entry(TransactionType.INCOME, "25.50", wallet))

        self.assertEqual(wallet.balance, Decimal("50.00"))

    async def test_deleting_transfer_restores_both_wallets(self) -> None:
        source = self._wallet("400.00")
        destination = self._wallet("110.00")
        self.session.get.side_effect = [source, destination]
        entry = self._entry(TransactionType.TRANSFER, "100", source, destination)

        await transactions.delete_transaction(self.session, entry)

        self.assertEqual(source.balance, Decimal("500.00"))
        self.assertEqual(destination.balance, Decimal("10.00"))
        self.assertEqual(
            [call.args for call in self.session.get.await_args_list],
            [(transactions.Wallet, source.id), (transactions.Wallet, destination.id)],
        )

    async def test_deleting_unbooked_entry_touches_no_wallet(self) -> None:
        entry = self._entry(TransactionType.TRANSFER, "100")

        await transactions.delete_transaction(self.session, entry)

        self.session.get.assert_not_called()
        self.session.delete.assert_awaited_once_with(entry)


class WalletMaintenanceTests(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.session = DummySession()
        self.wallet = SimpleNamespace(
            id=uuid4(), user_id=uuid4(), name="Cash", type=WalletType.CASH, currency="IDR", balance=Decimal("5")
        )

    async def test_update_changes_only_given_fields(self) -> None:
        result = await wallets.update_wallet(self.session, self.wallet, WalletUpdate(name="Dompet"))

        self.assertIs(result, self.wallet)
        self.assertEqual(self.wallet.name, "Dompet")
        self.assertEqual(self.wallet.type, WalletType.CASH)
        self.assertEqual(self.wallet.currency, "IDR")
        self.assertEqual(self.wallet.balance, Decimal("5"))
        self.session.commit.assert_awaited_once()
        self.session.refresh.assert_awaited_once_with(self.wallet)

    async def test_delete_removes_wallet_and_its_entries(self) -> None:
        self.session.execute.return_value = SimpleNamespace(rowcount=3)

        removed = await wallets.delete_wallet(self.session, self.wallet)

        self.assertEqual(removed, 3)
        self.session.execute.assert_awaited_once()
        statement = self.session.execute.await_args.args[0]
        self.assertEqual(statement.table.name, "transactions")
        self.session.delete.assert_awaited_once_with(self.wallet)
        self.session.commit.assert_awaited_once()
