from .accounts import AccountRefs, extract_accounts, normalise_account_name
from .amounts import extract_amount
from .command import ParsedCommand, parse_command
from .description import build_description
from .keywords import DEFAULT_CATEGORY, classify_transaction_type, hint_category

__all__ = [
    "AccountRefs",
    "DEFAULT_CATEGORY",
    "ParsedCommand",
    "build_description",
    "classify_transaction_type",
    "extract_accounts",
    "extract_amount",
    "hint_category",
    "normalise_account_name",
    "parse_command",
]
