"""Regex patterns and predicates for payment card text classification."""

import re

from ..core.types import FieldKind

# 4 groups of 4 digits joined by single hyphens or single spaces, or 16 bare digits
CARD_NUMBER_PATTERN = re.compile(r"(?:\d{4}-){3}\d{4}|(?:\d{4} ){3}\d{4}|\d{16}", re.ASCII)

# MM/YY with MM in 01..12
EXPIRY_DATE_PATTERN = re.compile(r"(?:0[1-9]|1[0-2])/\d{2}", re.ASCII)


def is_card_number(text: str) -> bool:
    """
    Check if the whole text is a card number.

    Examples:
        >>> is_card_number("4111 1111 1111 1111")
        True
        >>> is_card_number("4111-1111-1111-1111")
        True
        >>> is_card_number("card 4111111111111111")
        False
    """
    return CARD_NUMBER_PATTERN.fullmatch(text) is not None


def is_expiry_date(text: str) -> bool:
    """
    Check if the whole text is an expiry date in MM/YY form.

    Examples:
        >>> is_expiry_date("09/27")
        True
        >>> is_expiry_date("13/27")
        False
    """
    return EXPIRY_DATE_PATTERN.fullmatch(text) is not None


def is_card_holder_name(text: str) -> bool:
    """Check if text is exactly two words made only of uppercase letters."""
    tokens = [token for token in text.strip().split(" ") if token]
    if len(tokens) != 2:
        return False

    return all(char.isalpha() and char.isupper() for token in tokens for char in token)


def classify(text: str) -> FieldKind:
    """Classify a recognized line; the first matching field kind wins."""
    if is_card_number(text):
        return FieldKind.CARD_NUMBER
    if is_expiry_date(text):
        return FieldKind.EXPIRY_DATE
    if is_card_holder_name(text):
        return FieldKind.CARD_HOLDER_NAME
    return FieldKind.UNCLASSIFIED
