# main/currency.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def q2(x) -> Decimal:
    x = Decimal(x or 0)
    return x.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Decimal | None:
    """
    Parse a client-supplied amount into a 2dp Decimal.
    Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return q2(amount)


def rate(value) -> Decimal:
    return Decimal(str(value))
