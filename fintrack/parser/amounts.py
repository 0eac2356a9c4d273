from __future__ import annotations

import re

MILLION = 1_000_000
THOUSAND = 1_000

_NUMBER = r"(\d+(?:[.,]\d{3})*)"

# Ordered most specific first; only the first family that matches is used.
AMOUNT_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(_NUMBER + r"\s*(?:jt|juta)", re.IGNORECASE), MILLION),
    (re.compile(_NUMBER + r"\s*(?:rb|ribu)", re.IGNORECASE), THOUSAND),
    (re.compile(_NUMBER + r"\s*(?:m|mil)", re.IGNORECASE), MILLION),
    (re.compile(_NUMBER + r"\s*k", re.IGNORECASE), THOUSAND),
    (re.compile(r"(?:rp\.?\s*)?" + _NUMBER, re.IGNORECASE), 1),
)


def _digits_to_int(raw: str) -> int:
    return int(raw.replace(".", "").replace(",", ""))


def extract_amount(text: str) -> int:
    """Return the first monetary value found in ``text`` or 0.

    Indonesian magnitude suffixes are understood (``rb``/``ribu``/``k`` for
    thousands, ``jt``/``juta``/``m``/``mil`` for millions) and ``.``/``,``
    thousand separators are dropped, so ``50.000`` reads as 50000.
    """

    for pattern, multiplier in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return _digits_to_int(match.group(1)) * multiplier
    return 0
