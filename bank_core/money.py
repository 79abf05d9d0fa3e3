"""
Money Value Type

Fixed-scale decimal money with exactly 2 fractional digits. Every value is
normalized with banker's rounding (ROUND_HALF_EVEN) on construction and
after every arithmetic operation. NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation, getcontext
from dataclasses import dataclass
from typing import Any, Union

from .errors import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

SCALE = 2
QUANTUM = Decimal('0.01')

MoneyLike = Union['Money', Decimal, int, str]


def normalize(value: Any) -> Decimal:
    """
    Round a decimal input to 2 fractional digits using banker's rounding

    Args:
        value: Decimal, int or numeric string (anything else goes through str())

    Returns:
        Decimal with exponent -2

    Raises:
        InvalidAmount: If value is None or not a finite number
    """
    if value is None:
        raise InvalidAmount("Amount is required")
    if isinstance(value, Money):
        return value.amount
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"Cannot convert {value!r} to a decimal amount")
    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value!r}")
    try:
        rounded = amount.quantize(QUANTUM, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        raise InvalidAmount(f"Amount exceeds decimal precision: {value!r}")
    # -0.00 reads as 0.00
    return rounded.copy_abs() if rounded.is_zero() else rounded


@dataclass(frozen=True)
class Money:
    """
    Immutable 2-decimal money value.
    All balances and amounts in the core use this class.
    """
    amount: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'amount', normalize(self.amount))

    @classmethod
    def non_negative(cls, value: MoneyLike) -> 'Money':
        """Money for contexts that allow zero, such as initial balances"""
        money = value if isinstance(value, Money) else cls(value)
        if money.is_negative():
            raise InvalidAmount(f"Amount cannot be negative: {money.to_string()}")
        return money

    @classmethod
    def positive(cls, value: MoneyLike) -> 'Money':
        """Money for deposit, withdrawal and transfer amounts (strictly > 0)"""
        money = value if isinstance(value, Money) else cls(value)
        if not money.is_positive():
            raise InvalidAmount(f"Amount must be greater than 0: {money.to_string()}")
        return money

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + other.amount)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - other.amount)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount == other.amount

    def __hash__(self) -> int:
        return hash(self.amount)

    def __lt__(self, other: 'Money') -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')

    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def to_string(self) -> str:
        """Fixed-point string with 2 decimals, e.g. '1234.50'"""
        return f"{self.amount:.{SCALE}f}"

    def __str__(self) -> str:
        return self.to_string()


ZERO = Money(Decimal('0'))


def compare(a: MoneyLike, b: MoneyLike) -> int:
    """Total order over money values: -1, 0 or 1"""
    left, right = normalize(a), normalize(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0
