from .auth import AuthenticationError, PhoneAuthService
from .budgets import (
    budget_statuses,
    budget_warning_for,
    create_budget,
    delete_budget,
    get_budget,
    list_budgets,
    update_budget,
)
from .chat_links import (
    LinkError,
    consume_link_code,
    deactivate_chat,
    deactivate_user,
    get_active_link,
    get_user_link,
    issue_link_code,
)
from .notifications import notify_transaction_recorded, send_daily_summary
from .ocr import ReceiptExtractionError, ReceiptServiceUnavailable, get_receipt_service
from .otp import OtpError, OtpIssue, OtpManager
from .rate_limit import RATE_LIMITS, RateLimiter, RateLimitRule, get_rate_limiter
from .reports import compute_category_spending, compute_monthly_totals, daily_summary, monthly_report
from .repositories import InMemoryRepository, Repository, SqlAlchemyRepository
from .transactions import create_transaction, delete_transaction, get_transaction, list_transactions
from .users import create_user, get_user, get_user_by_email, get_user_by_phone
from .wallets import (
    create_wallet,
    delete_wallet,
    ensure_default_wallets,
    get_wallet,
    list_wallets,
    match_wallet,
    total_balance,
    update_wallet,
)
from .whatsapp import DeliveryError, FonnteClient, get_whatsapp_sender

__all__ = [
    "AuthenticationError",
    "PhoneAuthService",
    "budget_statuses",
    "budget_warning_for",
    "create_budget",
    "delete_budget",
    "get_budget",
    "list_budgets",
    "update_budget",
    "LinkError",
    "consume_link_code",
    "deactivate_chat",
    "deactivate_user",
    "get_active_link",
    "get_user_link",
    "issue_link_code",
    "notify_transaction_recorded",
    "send_daily_summary",
    "ReceiptExtractionError",
    "ReceiptServiceUnavailable",
    "get_receipt_service",
    "OtpError",
    "OtpIssue",
    "OtpManager",
    "RATE_LIMITS",
    "RateLimiter",
    "RateLimitRule",
    "get_rate_limiter",
    "compute_category_spending",
    "compute_monthly_totals",
    "daily_summary",
    "monthly_report",
    "InMemoryRepository",
    "Repository",
    "SqlAlchemyRepository",
    "create_transaction",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
    "create_user",
    "get_user",
    "get_user_by_email",
    "get_user_by_phone",
    "create_wallet",
    "delete_wallet",
    "ensure_default_wallets",
    "get_wallet",
    "list_wallets",
    "match_wallet",
    "total_balance",
    "update_wallet",
    "DeliveryError",
    "FonnteClient",
    "get_whatsapp_sender",
]
