"""Canonicalization of membership numbers, player ids and free text."""

import re
from decimal import Decimal

# Plain decimal literal: sign, digits with optional fraction, optional exponent.
# Python's float() would also accept "inf", "nan" and "1_000"; those stay text.
_NUMERIC_RE = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_MEMBERSHIP_RE = re.compile(r'-?\d+')
# Numbers with more integer digits than this are kept as text
MAX_DIGITS = 30


def normalize_text(value) -> str:
    """Trim text values and render other scalars as text.

    ``None`` becomes the empty string.
    """
    if value is None:
        return ''
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def normalize_identifier(value) -> str:
    """Canonicalize a membership number or player key.

    Numeric-looking values are reduced to the decimal text of their integer
    truncation, so ``"1050.0"``, ``"1050"`` and ``1050`` all become
    ``"1050"``. Anything that is not a clean numeric literal (``"1050abc"``,
    ``"AB-12"``) is kept as trimmed text, and so are numbers with
    MAX_DIGITS or more integer digits (``"1e5000"``). Never raises.

    Args:
        value: Raw identifier of any scalar type, or None.

    Returns:
        Canonical identifier; the empty string means "no identifier".
    """
    text = normalize_text(value)
    if not text:
        return ''
    if _NUMERIC_RE.fullmatch(text):
        number = Decimal(text)
        if number.adjusted() >= MAX_DIGITS:
            return text
        return str(int(number))
    return text


def is_membership_number(value: str) -> bool:
    """Check whether a canonical identifier has the numeric membership form."""
    return bool(value) and _MEMBERSHIP_RE.fullmatch(value) is not None


def format_name(first, last) -> str:
    """Join first and last name, dropping empty parts."""
    return f'{normalize_text(first)} {normalize_text(last)}'.strip()
