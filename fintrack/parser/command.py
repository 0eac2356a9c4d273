from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models.transaction import TransactionType
from .accounts import extract_accounts
from .amounts import extract_amount
from .description import build_description
from .keywords import classify_transaction_type, hint_category

UNRECOGNISED_FORMAT_MESSAGE = 'Format tidak dikenali. Contoh: "Makan 50000 dari Cash"'
MISSING_AMOUNT_MESSAGE = 'Jumlah tidak ditemukan. Contoh: "Makan 50000" atau "Makan 50rb"'


@dataclass(frozen=True)
class ParsedCommand:
    """Structured reading of a single chat message."""

    transaction_type: TransactionType
    amount: int
    description: str
    source_account_ref: Optional[str] = None
    destination_account_ref: Optional[str] = None
    category_hint: Optional[str] = None
    is_valid: bool = True
    error_reason: Optional[str] = None


def parse_command(text: str) -> ParsedCommand:
    """Turn free text like ``"Makan 50rb dari Cash"`` into a :class:`ParsedCommand`.

    Never raises: unusable input comes back with ``is_valid=False`` and a
    guidance string in ``error_reason``.
    """

    normalised = (text or "").strip().lower()
    if not normalised or normalised.startswith("/"):
        return ParsedCommand(
            transaction_type=TransactionType.EXPENSE,
            amount=0,
            description="",
            is_valid=False,
            error_reason=UNRECOGNISED_FORMAT_MESSAGE,
        )

    tx_type = classify_transaction_type(normalised)
    amount = extract_amount(normalised)
    if amount <= 0:
        return ParsedCommand(
            transaction_type=tx_type,
            amount=0,
            description=text,
            is_valid=False,
            error_reason=MISSING_AMOUNT_MESSAGE,
        )

    accounts = extract_accounts(normalised)
    description = build_description(text)
    return ParsedCommand(
        transaction_type=tx_type,
        amount=amount,
        description=description or tx_type.value,
        source_account_ref=accounts.source,
        destination_account_ref=accounts.destination,
        category_hint=hint_category(description),
        is_valid=True,
    )
