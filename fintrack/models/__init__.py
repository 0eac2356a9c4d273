from .base import Base
from .budget import Budget
from .chat_link import ChatLink, ChatLinkCode
from .otp import OneTimeCode, OtpPurpose
from .transaction import Transaction, TransactionSource, TransactionType
from .user import User
from .wallet import Wallet, WalletType

__all__ = [
    "Base",
    "Budget",
    "ChatLink",
    "ChatLinkCode",
    "OneTimeCode",
    "OtpPurpose",
    "Transaction",
    "TransactionSource",
    "TransactionType",
    "User",
    "Wallet",
    "WalletType",
]
