from __future__ import annotations

import re
from typing import NamedTuple, Optional

ACCOUNT_ALIASES: tuple[tuple[str, str], ...] = (
    ("cash", "cash"),
    ("tunai", "cash"),
    ("kas", "cash"),
    ("bank", "bank"),
    ("bca", "bank"),
    ("bri", "bank"),
    ("mandiri", "bank"),
    ("bni", "bank"),
    ("ewallet", "ewallet"),
    ("gopay", "ewallet"),
    ("ovo", "ewallet"),
    ("dana", "ewallet"),
    ("shopeepay", "ewallet"),
)

_SOURCE_PATTERN = re.compile(r"(?:dari|from)\s+(\w+)", re.IGNORECASE)
_DESTINATION_PATTERN = re.compile(r"(?:ke|to)\s+(\w+)", re.IGNORECASE)


class AccountRefs(NamedTuple):
    source: Optional[str]
    destination: Optional[str]


def normalise_account_name(name: str) -> str:
    """Map a wallet alias to its canonical tag; unknown names pass through."""
    lowered = name.lower()
    for alias, canonical in ACCOUNT_ALIASES:
        if lowered == alias:
            return canonical
    return name


def extract_accounts(text: str) -> AccountRefs:
    source_match = _SOURCE_PATTERN.search(text)
    destination_match = _DESTINATION_PATTERN.search(text)
    return AccountRefs(
        source=normalise_account_name(source_match.group(1)) if source_match else None,
        destination=normalise_account_name(destination_match.group(1)) if destination_match else None,
    )
