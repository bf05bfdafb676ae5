"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
from typing import Optional
import re

CENTS = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a two-place Decimal.

    Handles various formats:
    - "123.45"
    - "£123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount with two decimal places

    Raises:
        ValueError: If amount string cannot be parsed or has fractions of a penny
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and thousands separators
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount != amount.quantize(CENTS):
        raise ValueError(f"Amount '{amount_str}' has fractions of a penny")
    if is_negative:
        amount = -amount
    return amount.quantize(CENTS)


def parse_optional_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Parse an amount that may legitimately be blank.

    Statement credit columns are empty on debit rows, so blank means
    "no amount" rather than an error.
    """
    if amount_str is None or not amount_str.strip():
        return None
    return parse_amount(amount_str)


def format_money(amount: Decimal) -> str:
    """Format an amount for display, e.g. "£1,234.50"."""
    return f"£{amount:,.2f}"
