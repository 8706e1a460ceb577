# app/services/commission.py
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Number

from app.core.errors import InvalidAmount

COMMISSION_RATE = Decimal("0.05")


def calculate_commission(gross) -> int:
    """Platform fee withheld from a gross amount, rounded half up."""
    if isinstance(gross, bool) or not isinstance(gross, Number):
        raise InvalidAmount("Amount must be a number", details={"transaction_amount": gross})
    try:
        amount = Decimal(str(gross))
    except InvalidOperation:
        raise InvalidAmount("Amount must be a number", details={"transaction_amount": str(gross)})
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount("Amount must be greater than zero", details={"transaction_amount": str(gross)})

    return int((amount * COMMISSION_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
