"""
Currency Module

Currency codes, integer-unit rounding and display formatting.
Loan amounts are whole currency units; rates are kept as Decimal and
only the per-installment charge is rounded, always upwards.
"""

from decimal import Decimal, ROUND_CEILING, getcontext
from enum import Enum
from typing import Union

getcontext().prec = 28

Number = Union[int, float, Decimal]


class Currency(Enum):
    """ISO 4217 currencies with display precision and symbol"""
    COP = ("COP", 0, "$")  # Colombian Peso, no minor units in practice
    MXN = ("MXN", 2, "$")  # Mexican Peso
    PEN = ("PEN", 2, "S/")  # Peruvian Sol
    USD = ("USD", 2, "US$")  # US Dollar

    def __init__(self, code: str, precision: int, symbol: str):
        self.code = code
        self.precision = precision
        self.symbol = symbol

    @classmethod
    def from_code(cls, code: str) -> 'Currency':
        try:
            return cls[code.upper()]
        except KeyError:
            raise ValueError(f"Unsupported currency: {code}")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def ceil_units(value: Number) -> int:
    """Round a currency amount up to the next whole unit"""
    return int(to_decimal(value).to_integral_value(rounding=ROUND_CEILING))


def percentage(part: Number, whole: Number) -> float:
    """part / whole * 100, or 0 when whole is zero"""
    whole = to_decimal(whole)
    if whole == 0:
        return 0.0
    return float(to_decimal(part) / whole * Decimal('100'))


def format_currency(amount: Number, currency: Currency = Currency.COP) -> str:
    """
    Format an amount the way es-CO locales display money.

    Thousands are separated with dots and decimals with a comma, e.g.
    ``$ 1.250.000`` for COP or ``US$ 1.250,50`` for USD.
    """
    value = to_decimal(amount)
    text = f"{abs(value):,.{currency.precision}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}{currency.symbol} {text}"
