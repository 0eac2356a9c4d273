from __future__ import annotations

import re

_AMOUNT_FRAGMENT = re.compile(r"\d+(?:[.,]\d{3})*\s*(?:jt|juta|rb|ribu|m|mil|k)?", re.IGNORECASE)
_ACCOUNT_FRAGMENT = re.compile(r"(?:dari|from|ke|to)\s+\w+", re.IGNORECASE)
_CURRENCY_MARKER = re.compile(r"rp\.?\s*", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def build_description(original: str) -> str:
    """Strip amounts, account fragments and the ``rp`` marker from a message.

    The stripping does not reuse the amount lexer's match, so a numeric
    leftover can survive when the two disagree.
    """

    text = _AMOUNT_FRAGMENT.sub("", original)
    text = _ACCOUNT_FRAGMENT.sub("", text)
    text = _CURRENCY_MARKER.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()
