from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Union

from easyprop.core.exceptions import ValidationException

Number = Union[int, float]

CRORE = 10_000_000
LAKH = 100_000


def round_half_up(value: Number) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13)."""
    return int(Decimal(value).quantize(Decimal(0), rounding=ROUND_HALF_UP))


def group_indian(amount: Number) -> str:
    """Render an integer part with Indian digit grouping (12,34,567)."""
    negative = amount < 0
    whole = str(round_half_up(abs(amount)))
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"-{whole}" if negative else whole


def format_price(price: Optional[Number]) -> str:
    if not price:
        return "N/A"
    if price >= CRORE:
        return f"₹{price / CRORE:.1f} Cr"
    if price >= LAKH:
        return f"₹{price / LAKH:.1f} L"
    return f"₹{group_indian(price)}"


def format_currency(amount: Number) -> str:
    if amount >= CRORE:
        return f"₹{amount / CRORE:.2f} Cr"
    if amount >= LAKH:
        return f"₹{amount / LAKH:.2f} L"
    return f"₹{group_indian(amount)}"


def calculate_emi(principal: Number, annual_rate: Number, tenure_years: Number) -> Dict[str, int]:
    """
    Monthly instalment for a reducing-balance loan.

    Args:
        principal: Loan amount
        annual_rate: Yearly interest rate in percent
        tenure_years: Loan tenure in years

    Returns:
        Dict with rounded ``emi``, ``total_amount`` and ``total_interest``
    """
    if principal <= 0 or tenure_years <= 0 or annual_rate < 0:
        raise ValidationException(
            "Principal and tenure must be positive and the rate non-negative",
            details={"principal": principal, "annual_rate": annual_rate, "tenure_years": tenure_years}
        )

    rate = annual_rate / 12 / 100
    months = tenure_years * 12

    if rate == 0:
        emi = principal / months
    else:
        growth = (1 + rate) ** months
        emi = principal * rate * growth / (growth - 1)

    total_amount = emi * months
    return {
        "emi": round_half_up(emi),
        "total_amount": round_half_up(total_amount),
        "total_interest": round_half_up(total_amount - principal),
    }
