from __future__ import annotations

import io
import unittest
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4
from unittest.mock import ANY, AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from fintrack.api.dependencies import get_auth_service, get_current_user
from fintrack.db import get_db
from fintrack.main import app
from fintrack.models.otp import OtpPurpose
from fintrack.models.wallet import WalletType
from fintrack.schemas import OtpSentResponse
from fintrack.schemas.chat_link import ChatLinkRecord, LinkCodeRecord
from fintrack.schemas.ocr import ReceiptScan
from fintrack.schemas.transaction import TransactionType
from fintrack.schemas.budget import BudgetStatus
from fintrack.schemas.report import CategorySpending, DailySummary, MonthlyReport
from fintrack.services.auth import AuthenticationError
from fintrack.services.ocr import ReceiptServiceUnavailable
from fintrack.services.rate_limit import RateLimiter, get_rate_limiter
from fintrack.services.whatsapp import get_whatsapp_sender

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def build_user(user_id: UUID | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id or uuid4(),
        display_name="Budi Santoso",
        email="budi@example.com",
        phone_number="081234567890",
        phone_verified=True,
        currency="IDR",
        language="id",
        is_active=True,
        created_at=NOW,
        updated_at=NOW,
    )


def build_transaction(*, user_id: UUID, source: str = "manual", **overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "type": TransactionType.EXPENSE,
        "amount": Decimal("50000.00"),
        "currency": "IDR",
        "description": "Makan siang",
        "category": "foodDrinks",
        "occurred_at": NOW,
        "items": None,
        "source": source,
        "user_id": user_id,
        "wallet_id": None,
        "to_wallet_id": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def build_wallet(*, user_id: UUID, name: str = "Cash", balance: str = "150000") -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        user_id=user_id,
        name=name,
        type=WalletType.CASH,
        balance=Decimal(balance),
        currency="IDR",
        created_at=NOW,
        updated_at=NOW,
    )



def build_budget(*, user_id: UUID, category: str = "foodDrinks", limit: str = "1000000") -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        user_id=user_id,
        category=category,
        limit_amount=Decimal(limit),
        currency="IDR",
        month=10,
        year=2026,
        created_at=NOW,
        updated_at=NOW,
    )

class RoutingTests(unittest.TestCase):
    """Ensure FastAPI routers respond and delegate as expected."""

    @classmethod
    def setUpClass(cls) -> None:
        targets = {
            "init_db": "fintrack.main.init_db",
            "init_bot": "fintrack.main.init_bot",
            "shutdown_bot": "fintrack.main.shutdown_bot",
            "dispose_engine": "fintrack.main.dispose_engine",
            "create_transaction": "fintrack.api.transactions.create_transaction",
            "list_transactions": "fintrack.api.transactions.list_transactions",
            "get_transaction": "fintrack.api.transactions.get_transaction",
            "delete_transaction": "fintrack.api.transactions.delete_transaction",
            "notify_transaction_recorded": "fintrack.api.transactions.notify_transaction_recorded",
            "create_wallet": "fintrack.api.wallets.create_wallet",
            "list_wallets": "fintrack.api.wallets.list_wallets",
            "get_wallet": "fintrack.api.wallets.get_wallet",
            "update_wallet": "fintrack.api.wallets.update_wallet",
            "delete_wallet": "fintrack.api.wallets.delete_wallet",
            "budget_statuses": "fintrack.api.budgets.budget_statuses",
            "create_budget": "fintrack.api.budgets.create_budget",
            "get_budget": "fintrack.api.budgets.get_budget",
            "update_budget": "fintrack.api.budgets.update_budget",
            "delete_budget": "fintrack.api.budgets.delete_budget",
            "monthly_report": "fintrack.api.reports.monthly_report",
            "send_daily_summary": "fintrack.api.reports.send_daily_summary",
            "ocr_get_wallet": "fintrack.api.ocr.get_wallet",
            "ocr_create_transaction": "fintrack.api.ocr.create_transaction",
            "ocr_notify": "fintrack.api.ocr.notify_transaction_recorded",
            "handle_update": "fintrack.api.telegram.handle_update",
            "issue_link_code": "fintrack.api.telegram.issue_link_code",
            "get_user_link": "fintrack.api.telegram.get_user_link",
            "deactivate_user": "fintrack.api.telegram.deactivate_user",
            "set_chat_id": "fintrack.api.telegram.set_chat_id",
        }
        cls._patchers = [patch(target, new_callable=AsyncMock) for target in targets.values()]
        cls.mocks = dict(zip(targets, (patcher.start() for patcher in cls._patchers)))

        cls.receipt_service = SimpleNamespace(parse_receipt=AsyncMock())
        cls.sender = SimpleNamespace(is_configured=True, aclose=AsyncMock())
        cls.auth_service = MagicMock()
        extra = [
            patch("fintrack.api.ocr.get_receipt_service", return_value=cls.receipt_service),
            patch("fintrack.main.get_whatsapp_sender", return_value=cls.sender),
            patch(
                "fintrack.api.telegram.get_settings",
                return_value=SimpleNamespace(telegram_webhook_secret="secret123", link_code_ttl_seconds=300),
            ),
        ]
        started = [patcher.start() for patcher in extra]
        cls.receipt_factory = started[0]
        cls._patchers.extend(extra)

        class _DummySession:
            async def refresh(self, *_args, **_kwargs):
                return None

        cls._dummy_session = _DummySession()
        cls.user = build_user()
        cls.limiter = RateLimiter()

        async def _override_db():
            yield cls._dummy_session

        app.dependency_overrides[get_db] = _override_db
        app.dependency_overrides[get_current_user] = lambda: cls.user
        app.dependency_overrides[get_auth_service] = lambda: cls.auth_service
        app.dependency_overrides[get_rate_limiter] = lambda: cls.limiter
        app.dependency_overrides[get_whatsapp_sender] = lambda: cls.sender

        cls._client_ctx = TestClient(app)
        cls.client = cls._client_ctx.__enter__()

    @classmethod
    def tearDownClass(cls) -> None:
        cls._client_ctx.__exit__(None, None, None)
        app.dependency_overrides.clear()
        for patcher in reversed(cls._patchers):
            patcher.stop()

    def setUp(self) -> None:
        for name, mock in self.mocks.items():
            if name not in {"init_db", "init_bot", "shutdown_bot", "dispose_engine"}:
                mock.reset_mock(return_value=True, side_effect=True)
        self.receipt_service.parse_receipt.reset_mock(return_value=True, side_effect=True)
        self.receipt_factory.side_effect = None
        self.auth_service.reset_mock()
        self.limiter.reset()

        self.transaction = build_transaction(user_id=self.user.id)
        self.wallet = build_wallet(user_id=self.user.id)
        self.mocks["create_transaction"].return_value = self.transaction
        self.mocks["list_transactions"].return_value = [self.transaction]
        self.mocks["get_transaction"].return_value = self.transaction
        self.mocks["create_wallet"].return_value = self.wallet
        self.mocks["list_wallets"].return_value = [
            self.wallet,
            build_wallet(user_id=self.user.id, name="BCA", balance="2500000"),
        ]
        self.mocks["get_wallet"].return_value = self.wallet
        self.mocks["ocr_get_wallet"].return_value = self.wallet
        self.mocks["update_wallet"].return_value = self.wallet
        self.mocks["delete_wallet"].return_value = 2
        self.budget = build_budget(user_id=self.user.id)
        self.mocks["get_budget"].return_value = self.budget
        self.mocks["create_budget"].return_value = self.budget
        self.mocks["update_budget"].return_value = self.budget

    def test_lifespan_hooks_ran(self) -> None:
        self.mocks["init_db"].assert_awaited()
        self.mocks["init_bot"].assert_awaited()

    def test_healthcheck(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    # --- transactions -------------------------------------------------

    def test_create_transaction_route(self) -> None:
        payload = {
            "type": "expense",
            "amount": "50000",
            "description": "Makan siang",
            "category": "foodDrinks",
            "occurred_at": "2026-10-19T10:00:00Z",
        }
        response = self.client.post("/api/transactions", json=payload)

        self.assertEqual(response.status_code, 201)
        tx_payload = self.mocks["create_transaction"].await_args.args[1]
        self.assertEqual(tx_payload.user_id, self.user.id)
        self.assertEqual(tx_payload.source.value, "manual")
        self.assertEqual(response.json()["user_id"], str(self.user.id))

    def test_create_transaction_rejects_destination_on_expense(self) -> None:
        payload = {"type": "expense", "amount": "10", "wallet_id": str(uuid4()), "to_wallet_id": str(uuid4())}
        response = self.client.post("/api/transactions", json=payload)

        self.assertEqual(response.status_code, 422)
        self.mocks["create_transaction"].assert_not_called()

    def test_create_transaction_foreign_wallet(self) -> None:
        self.mocks["create_transaction"].side_effect = ValueError("Wallet does not belong to user")
        response = self.client.post("/api/transactions", json={"type": "expense", "amount": "10"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Wallet does not belong to user")

    def test_list_transactions_route(self) -> None:
        response = self.client.get("/api/transactions?limit=5&transaction_type=expense")

        self.assertEqual(response.status_code, 200)
        kwargs = self.mocks["list_transactions"].await_args.kwargs
        self.assertEqual(kwargs["user_id"], self.user.id)
        self.assertEqual(kwargs["limit"], 5)
        self.assertEqual(kwargs["transaction_type"], TransactionType.EXPENSE)
        self.assertEqual(response.json()[0]["id"], str(self.transaction.id))

    def test_get_transaction_route(self) -> None:
        response = self.client.get(f"/api/transactions/{self.transaction.id}")
        self.assertEqual(response.status_code, 200)
        self.mocks["get_transaction"].assert_awaited_once_with(ANY, self.transaction.id)

    def test_get_transaction_of_other_user(self) -> None:
        self.mocks["get_transaction"].return_value = build_transaction(user_id=uuid4())
        response = self.client.get(f"/api/transactions/{uuid4()}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Transaction not found")

    def test_create_transaction_sends_notification(self) -> None:
        response = self.client.post("/api/transactions", json={"type": "expense", "amount": "10"})

        self.assertEqual(response.status_code, 201)
        self.mocks["notify_transaction_recorded"].assert_awaited_once_with(
            ANY, self.sender, self.user, self.transaction
        )

    def test_rejected_transaction_sends_nothing(self) -> None:
        self.mocks["create_transaction"].side_effect = ValueError("Wallet not found")
        self.client.post("/api/transactions", json={"type": "expense", "amount": "10"})

        self.mocks["notify_transaction_recorded"].assert_not_called()

    def test_delete_transaction_route(self) -> None:
        response = self.client.delete(f"/api/transactions/{self.transaction.id}")

        self.assertEqual(response.status_code, 204)
        self.mocks["delete_transaction"].assert_awaited_once_with(ANY, self.transaction)

    def test_delete_transaction_of_other_user(self) -> None:
        self.mocks["get_transaction"].return_value = build_transaction(user_id=uuid4())

        response = self.client.delete(f"/api/transactions/{uuid4()}")

        self.assertEqual(response.status_code, 404)
        self.mocks["delete_transaction"].assert_not_called()

    # --- wallets ------------------------------------------------------

    def test_create_wallet_route(self) -> None:
        response = self.client.post("/api/wallets", json={"name": "Cash", "type": "cash"})

        self.assertEqual(response.status_code, 201)
        wallet_payload = self.mocks["create_wallet"].await_args.args[1]
        self.assertEqual(wallet_payload.user_id, self.user.id)
        self.assertEqual(response.json()["name"], "Cash")

    def test_list_wallets_reports_total(self) -> None:
        response = self.client.get("/api/wallets")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["wallets"]), 2)
        self.assertEqual(Decimal(body["total"]), Decimal("2650000"))

    def test_get_wallet_not_found(self) -> None:
        self.mocks["get_wallet"].return_value = None
        response = self.client.get(f"/api/wallets/{uuid4()}")
        self.assertEqual(response.status_code, 404)

    def test_update_wallet_route(self) -> None:
        response = self.client.patch(f"/api/wallets/{self.wallet.id}", json={"name": "Dompet"})

        self.assertEqual(response.status_code, 200)
        wallet, update = self.mocks["update_wallet"].await_args.args[1:]
        self.assertIs(wallet, self.wallet)
        self.assertEqual(update.name, "Dompet")
        self.assertIsNone(update.type)

    def test_update_wallet_of_other_user(self) -> None:
        self.mocks["get_wallet"].return_value = build_wallet(user_id=uuid4())

        response = self.client.patch(f"/api/wallets/{uuid4()}", json={"name": "Dompet"})

        self.assertEqual(response.status_code, 404)
        self.mocks["update_wallet"].assert_not_called()

    def test_delete_wallet_route(self) -> None:
        response = self.client.delete(f"/api/wallets/{self.wallet.id}")

        self.assertEqual(response.status_code, 204)
        self.mocks["delete_wallet"].assert_awaited_once_with(ANY, self.wallet)

    def test_delete_missing_wallet(self) -> None:
        self.mocks["get_wallet"].return_value = None

        response = self.client.delete(f"/api/wallets/{uuid4()}")

        self.assertEqual(response.status_code, 404)
        self.mocks["delete_wallet"].assert_not_called()

    # --- budgets ------------------------------------------------------

    def test_list_budgets_for_month(self) -> None:
        self.mocks["budget_statuses"].return_value = [
            BudgetStatus(
                **{key: getattr(self.budget, key) for key in vars(self.budget)},
                spent=Decimal("850000"),
                remaining=Decimal("150000"),
                percentage=85,
            )
        ]

        response = self.client.get("/api/budgets?month=10&year=2026")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["percentage"], 85)
        self.mocks["budget_statuses"].assert_awaited_once_with(ANY, self.user.id, month=10, year=2026)

    def test_list_budgets_rejects_bad_month(self) -> None:
        response = self.client.get("/api/budgets?month=13")

        self.assertEqual(response.status_code, 422)
        self.mocks["budget_statuses"].assert_not_called()

    def test_create_budget_route(self) -> None:
        response = self.client.post(
            "/api/budgets",
            json={"category": "foodDrinks", "limit_amount": "1000000", "month": 10, "year": 2026},
        )

        self.assertEqual(response.status_code, 201)
        payload = self.mocks["create_budget"].await_args.args[1]
        self.assertEqual(payload.user_id, self.user.id)
        self.assertEqual(payload.category, "foodDrinks")

    def test_duplicate_budget_conflicts(self) -> None:
        self.mocks["create_budget"].side_effect = ValueError("Budget for this category and month already exists")

        response = self.client.post(
            "/api/budgets",
            json={"category": "foodDrinks", "limit_amount": "1000000", "month": 10, "year": 2026},
        )

        self.assertEqual(response.status_code, 409)

    def test_update_budget_route(self) -> None:
        response = self.client.patch(f"/api/budgets/{self.budget.id}", json={"limit_amount": "750000"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.mocks["update_budget"].await_args.args[2].limit_amount, Decimal("750000"))

    def test_delete_budget_of_other_user(self) -> None:
        self.mocks["get_budget"].return_value = build_budget(user_id=uuid4())

        response = self.client.delete(f"/api/budgets/{uuid4()}")

        self.assertEqual(response.status_code, 404)
        self.mocks["delete_budget"].assert_not_called()

    def test_delete_budget_route(self) -> None:
        response = self.client.delete(f"/api/budgets/{self.budget.id}")

        self.assertEqual(response.status_code, 204)
        self.mocks["delete_budget"].assert_awaited_once_with(ANY, self.budget)

    # --- reports ------------------------------------------------------

    def test_monthly_report_route(self) -> None:
        self.mocks["monthly_report"].return_value = MonthlyReport(
            month=10,
            year=2026,
            income=Decimal("5000000"),
            expense=Decimal("75000"),
            net=Decimal("4925000"),
            categories=[CategorySpending(category="foodDrinks", amount=Decimal("75000"))],
        )

        response = self.client.get("/api/reports/monthly?month=10&year=2026")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["categories"][0]["category"], "foodDrinks")
        self.mocks["monthly_report"].assert_awaited_once_with(ANY, self.user.id, 10, 2026)

    def test_daily_summary_route(self) -> None:
        self.mocks["send_daily_summary"].return_value = DailySummary(
            date=NOW.date(),
            income=Decimal("0"),
            expense=Decimal("75000"),
            balance=Decimal("4925000"),
            transaction_count=2,
            delivered=True,
        )

        response = self.client.post("/api/reports/daily-summary?date=2026-10-19")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["delivered"])
        args = self.mocks["send_daily_summary"].await_args.args
        self.assertIs(args[1], self.sender)
        self.assertEqual(args[3], NOW.date())

    # --- users --------------------------------------------------------

    def test_me_route(self) -> None:
        response = self.client.get("/api/users/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "budi@example.com")

    def test_me_requires_token(self) -> None:
        override = app.dependency_overrides.pop(get_current_user)
        try:
            missing = self.client.get("/api/users/me")
            invalid = self.client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
        finally:
            app.dependency_overrides[get_current_user] = override
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(invalid.json()["detail"], "Invalid authentication credentials")

    # --- auth ---------------------------------------------------------

    def test_register_route_passes_client_ip(self) -> None:
        self.auth_service.register = AsyncMock(
            return_value=OtpSentResponse(
                message="sent", phone="081234567890", type=OtpPurpose.REGISTER, dev_otp="123456"
            )
        )
        response = self.client.post(
            "/api/auth/register",
            json={"name": "Budi", "email": "budi@example.com", "phone": "0812", "password": "x"},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["dev_otp"], "123456")
        self.assertEqual(self.auth_service.register.await_args.kwargs["client_ip"], "203.0.113.7")

    def test_auth_error_is_mapped_to_status_and_code(self) -> None:
        self.auth_service.verify_registration = AsyncMock(
            side_effect=AuthenticationError("Kode OTP salah. Sisa percobaan: 2", "INVALID_OTP", 400, remaining=2)
        )
        response = self.client.post("/api/auth/verify-otp", json={"phone": "081234567890", "code": "000000"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "error": "Kode OTP salah. Sisa percobaan: 2", "code": "INVALID_OTP", "remaining": 2},
        )

    def test_unexpected_auth_failure_is_500(self) -> None:
        self.auth_service.login_email = AsyncMock(side_effect=RuntimeError("db down"))

        with self.assertLogs("fintrack.api.auth", level="ERROR"):
            response = self.client.post("/api/auth/login", json={"email": "a@b.co", "password": "x"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["code"], "SERVER_ERROR")

    def test_resend_not_found(self) -> None:
        self.auth_service.resend = AsyncMock(
            side_effect=AuthenticationError("Tidak ada permintaan OTP", "NOT_FOUND", 404)
        )
        response = self.client.post("/api/auth/resend-otp", json={"phone": "081234567890"})
        self.assertEqual(response.status_code, 404)
        self.assertNotIn("remaining", response.json())

    # --- ocr ----------------------------------------------------------

    def _upload(self, commit: bool, content_type: str = "image/jpeg", **data):
        files = {"file": ("receipt.jpg", io.BytesIO(b"fake-bytes"), content_type)}
        return self.client.post(
            "/api/ocr/receipt",
            data={"commit_transaction": "true" if commit else "false", **data},
            files=files,
        )

    def test_receipt_preview_route(self) -> None:
        self.receipt_service.parse_receipt.return_value = ReceiptScan(total=Decimal("45500"), merchant="Warung")

        response = self._upload(commit=False)

        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json()["message"], "Preview only, not stored.")
        self.assertEqual(response.json()["receipt"]["merchant"], "Warung")
        self.mocks["ocr_create_transaction"].assert_not_called()

    def test_receipt_commit_route(self) -> None:
        self.receipt_service.parse_receipt.return_value = ReceiptScan(
            total=Decimal("45500"), merchant="Warung", date="2026-10-18", category="foodDrinks"
        )
        self.mocks["ocr_create_transaction"].return_value = build_transaction(user_id=self.user.id, source="ocr")

        response = self._upload(commit=True, wallet_id=str(self.wallet.id))

        self.assertEqual(response.status_code, 201)
        tx_payload = self.mocks["ocr_create_transaction"].await_args.args[1]
        self.assertEqual(tx_payload.amount, Decimal("45500"))
        self.assertEqual(tx_payload.wallet_id, self.wallet.id)
        self.assertEqual(tx_payload.occurred_at.date().isoformat(), "2026-10-18")
        self.assertEqual(response.json()["source"], "ocr")

    def test_receipt_commit_without_total(self) -> None:
        self.receipt_service.parse_receipt.return_value = ReceiptScan(merchant="Warung")

        response = self._upload(commit=True)

        self.assertEqual(response.status_code, 422)
        self.mocks["ocr_create_transaction"].assert_not_called()

    def test_receipt_rejects_non_images(self) -> None:
        response = self._upload(commit=False, content_type="application/pdf")
        self.assertEqual(response.status_code, 400)
        self.receipt_service.parse_receipt.assert_not_called()

    def test_receipt_commit_sends_notification(self) -> None:
        self.receipt_service.parse_receipt.return_value = ReceiptScan(total=Decimal("45500"), merchant="Warung")
        stored = build_transaction(user_id=self.user.id, source="ocr")
        self.mocks["ocr_create_transaction"].return_value = stored

        self._upload(commit=True)

        self.mocks["ocr_notify"].assert_awaited_once_with(ANY, self.sender, self.user, stored)

    def test_receipt_scanning_not_configured(self) -> None:
        self.receipt_factory.side_effect = ReceiptServiceUnavailable("GEMINI_API_KEY is not configured")

        with self.assertLogs("fintrack.api.ocr", level="ERROR"):
            response = self._upload(commit=False)

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"], "Receipt scanning is not available.")

    def test_receipt_model_failure(self) -> None:
        self.receipt_service.parse_receipt.side_effect = RuntimeError("quota exceeded")

        with self.assertLogs("fintrack.api.ocr", level="ERROR"):
            response = self._upload(commit=False)

        self.assertEqual(response.status_code, 502)
        self.mocks["ocr_create_transaction"].assert_not_called()

    # --- currency -----------------------------------------------------

    def test_convert_currency_route(self) -> None:
        response = self.client.get("/api/currency/convert?amount=10&from=usd&to=IDR")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(Decimal(body["result"]), Decimal("158500"))
        self.assertEqual(body["from_currency"], "USD")
        self.assertEqual(body["compact"], "159rb")

    def test_list_currencies_route(self) -> None:
        response = self.client.get("/api/currency/rates")
        self.assertIn("IDR", response.json())

    # --- telegram -----------------------------------------------------

    def test_telegram_webhook_route(self) -> None:
        payload = {"update_id": 1}
        response = self.client.post("/api/telegram/webhook/secret123", json=payload)
        self.assertEqual(response.status_code, 204)
        self.mocks["handle_update"].assert_awaited_once_with(payload)

    def test_telegram_webhook_bad_secret(self) -> None:
        response = self.client.post("/api/telegram/webhook/wrong", json={"update_id": 1})
        self.assertEqual(response.status_code, 404)
        self.mocks["handle_update"].assert_not_called()

    def test_link_code_route(self) -> None:
        self.mocks["issue_link_code"].return_value = LinkCodeRecord(
            code="K7P2QX", user_id=self.user.id, created_at=NOW, expires_at=NOW
        )
        self.mocks["get_user_link"].return_value = ChatLinkRecord(
            user_id=self.user.id, chat_id="555", display_handle="budi", linked_at=NOW
        )

        response = self.client.post("/api/telegram/link-code")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"code": "K7P2QX", "expires_in": 300, "is_already_linked": True, "linked_username": "budi"},
        )

    def test_link_code_rate_limited(self) -> None:
        self.mocks["issue_link_code"].return_value = LinkCodeRecord(
            code="K7P2QX", user_id=self.user.id, created_at=NOW, expires_at=NOW
        )
        self.mocks["get_user_link"].return_value = None
        statuses = [self.client.post("/api/telegram/link-code").status_code for _ in range(11)]
        self.assertEqual(statuses[:10], [200] * 10)
        self.assertEqual(statuses[10], 429)

    def test_unlink_route(self) -> None:
        self.mocks["deactivate_user"].return_value = ChatLinkRecord(
            user_id=self.user.id, chat_id="555", linked_at=NOW
        )
        response = self.client.delete("/api/telegram/link")
        self.assertEqual(response.status_code, 204)
        self.mocks["set_chat_id"].assert_awaited_once_with(ANY, self.user.id, None)

    def test_unlink_when_not_linked(self) -> None:
        self.mocks["deactivate_user"].return_value = None
        response = self.client.delete("/api/telegram/link")
        self.assertEqual(response.status_code, 404)
        self.mocks["set_chat_id"].assert_not_called()
