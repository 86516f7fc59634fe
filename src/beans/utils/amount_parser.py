"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "1,234.56"
    - "€ 1200"

    The sign is not interpreted here; ledger amounts are validated as
    non-negative by the entry builder.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥₹]", "", amount_str)

    # Remove thousands separators
    amount_str = amount_str.replace(",", "").replace("_", "")

    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e!r}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")
    return amount
