from .auth import (
    AccessTokenResponse,
    AuthErrorResponse,
    EmailLoginRequest,
    LoginPhoneRequest,
    OtpSentResponse,
    RegisterRequest,
    ResendOtpRequest,
    VerifyOtpRequest,
)
from .budget import BudgetCreate, BudgetCreateRequest, BudgetRead, BudgetStatus, BudgetUpdate
from .chat_link import ChatLinkRecord, LinkCodeRecord, LinkCodeResponse
from .ocr import ReceiptScan
from .otp import OneTimeCodeRecord
from .report import CategorySpending, DailySummary, MonthlyReport
from .transaction import (
    TransactionCreate,
    TransactionCreateRequest,
    TransactionItem,
    TransactionRead,
    TransactionSource,
    TransactionType,
)
from .user import UserCreate, UserRead
from .wallet import WalletCreate, WalletCreateRequest, WalletRead, WalletSummary, WalletUpdate

__all__ = [
    "AccessTokenResponse",
    "AuthErrorResponse",
    "BudgetCreate",
    "BudgetCreateRequest",
    "BudgetRead",
    "BudgetStatus",
    "BudgetUpdate",
    "CategorySpending",
    "DailySummary",
    "ChatLinkRecord",
    "EmailLoginRequest",
    "LinkCodeRecord",
    "LinkCodeResponse",
    "LoginPhoneRequest",
    "MonthlyReport",
    "OneTimeCodeRecord",
    "OtpSentResponse",
    "ReceiptScan",
    "RegisterRequest",
    "ResendOtpRequest",
    "TransactionCreate",
    "TransactionCreateRequest",
    "TransactionItem",
    "TransactionRead",
    "TransactionSource",
    "TransactionType",
    "UserCreate",
    "UserRead",
    "VerifyOtpRequest",
    "WalletCreate",
    "WalletCreateRequest",
    "WalletRead",
    "WalletSummary",
    "WalletUpdate",
]
