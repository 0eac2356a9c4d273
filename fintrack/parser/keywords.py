from __future__ import annotations

from typing import Optional

from ..models.transaction import TransactionType

TRANSFER_KEYWORDS: tuple[str, ...] = ("transfer", "pindah", "kirim", "tf")
INCOME_KEYWORDS: tuple[str, ...] = (
    "gaji",
    "pendapatan",
    "bonus",
    "terima",
    "masuk",
    "income",
    "salary",
    "freelance",
    "investasi",
)

# Checked in order: a text with both a transfer and an income keyword is a transfer.
TYPE_KEYWORDS: tuple[tuple[TransactionType, tuple[str, ...]], ...] = (
    (TransactionType.TRANSFER, TRANSFER_KEYWORDS),
    (TransactionType.INCOME, INCOME_KEYWORDS),
)

DEFAULT_CATEGORY = "others"

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("foodDrinks", ("makan", "minum", "kopi", "nasi", "snack", "food", "lunch", "dinner", "breakfast")),
    ("transportation", ("bensin", "transport", "grab", "gojek", "taxi", "parkir", "tol")),
    ("shopping", ("belanja", "beli", "shop", "tokped", "shopee")),
    ("entertainment", ("nonton", "hiburan", "game", "film", "bioskop")),
    ("bills", ("listrik", "air", "internet", "pulsa", "wifi", "tagihan")),
    ("health", ("obat", "dokter", "rumah sakit", "apotek")),
    ("education", ("buku", "kursus", "sekolah", "kuliah")),
    ("salary", ("gaji", "salary")),
    ("investment", ("investasi", "saham", "reksadana")),
    ("freelance", ("freelance", "project", "proyek")),
)


def classify_transaction_type(text: str) -> TransactionType:
    lowered = text.lower()
    for tx_type, keywords in TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return tx_type
    return TransactionType.EXPENSE


def hint_category(description: str) -> Optional[str]:
    """Best-effort category tag for a memo, first table entry wins."""
    lowered = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None
