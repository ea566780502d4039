"""Fixed-point currency helpers - two fraction digits, round half up"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str, None]


def to_money(value: MoneyLike) -> Decimal:
    """
    Coerce a user/storage value to a cent-rounded Decimal.

    None and blank strings are the "nothing entered yet" state and
    yield 0.00. Floats go through str() so 0.1 stays 0.1.

    Raises:
        ValueError: Value is not numeric or too large
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
        if not value:
            return ZERO
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid currency value: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid currency value: {value!r}")
    return round_money(amount)


def round_money(amount: Decimal) -> Decimal:
    """
    Raises:
        ValueError: Amount has too many digits to hold in cents
    """
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Currency value out of range: {amount}") from e


def to_cents(amount: MoneyLike) -> int:
    """Decimal dollars -> integer cents for storage and the wire"""
    return int(to_money(amount) * 100)


def from_cents(cents: int | None) -> Decimal:
    if cents is None:
        return ZERO
    return round_money(Decimal(cents) / 100)


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    return round_money(sum(amounts, ZERO))


def is_positive(value: MoneyLike) -> bool:
    """True for a numeric value strictly above zero; absent or junk is False"""
    try:
        return to_money(value) > 0
    except ValueError:
        return False
