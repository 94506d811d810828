"""
Money and Calendar Helpers

Parses the primitive strings callers hand in (amounts, rates, YYYYMMDD dates,
YYYYMM months) into exact values. NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from decimal import InvalidOperation as DecimalException
from datetime import date
from typing import Tuple, Union
import calendar
import re

from .errors import InvalidAmount, InvalidDate, InvalidRate

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')
CENT = Decimal('0.01')

_DATE_PATTERN = re.compile(r'^\d{8}$')
_MONTH_PATTERN = re.compile(r'^\d{6}$')
_AMOUNT_PATTERN = re.compile(r'^(\d+(\.\d{0,2})?|\.\d{1,2})$')
_RATE_PATTERN = re.compile(r'^(\d+(\.\d*)?|\.\d+)$')


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half-up"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Format for display with exactly two decimal places"""
    return str(quantize_money(value))


def validate_amount(amount: Union[Decimal, int]) -> Decimal:
    """
    Check that an amount is a finite, positive value with at most 2 decimals

    Raises:
        InvalidAmount: If the amount is not acceptable for a transaction
    """
    if not isinstance(amount, Decimal):
        if isinstance(amount, float) or not isinstance(amount, int):
            raise InvalidAmount(f"Amount must be a Decimal, got {type(amount).__name__}")
        amount = Decimal(amount)

    if not amount.is_finite() or amount <= ZERO:
        raise InvalidAmount("Amount must be greater than zero")

    if amount != amount.quantize(CENT):
        raise InvalidAmount("Amount must have up to 2 decimal places")

    return amount


def parse_amount(value: str) -> Decimal:
    """
    Parse a transaction amount such as "100", "100.5" or "100.50"

    Raises:
        InvalidAmount: If the string is not a positive amount with up to 2 decimals
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidAmount("Amount must be a non-empty string")

    text = value.strip()
    if not _AMOUNT_PATTERN.match(text):
        if re.match(r'^\d*\.\d{3,}$', text):
            raise InvalidAmount("Amount must have up to 2 decimal places")
        raise InvalidAmount(f"Amount must be a positive number, got '{value}'")

    return validate_amount(Decimal(text))


def parse_rate(value: str) -> Decimal:
    """
    Parse an annual interest rate in percent, e.g. "2.20"

    Range checking is left to the rate schedule.

    Raises:
        InvalidRate: If the string is not a plain non-negative number
    """
    if not isinstance(value, str) or not _RATE_PATTERN.match(value.strip()):
        raise InvalidRate(f"Rate must be a number between 0 and 100, got '{value}'")

    try:
        return Decimal(value.strip())
    except DecimalException:
        raise InvalidRate(f"Rate must be a number between 0 and 100, got '{value}'")


def parse_date(value: str) -> date:
    """
    Parse a YYYYMMDD string into a date

    Raises:
        InvalidDate: If the string is malformed or names an impossible day
    """
    if not isinstance(value, str) or not _DATE_PATTERN.match(value.strip()):
        raise InvalidDate(f"Invalid date '{value}'. Please use YYYYMMdd.")

    text = value.strip()
    try:
        return date(int(text[:4]), int(text[4:6]), int(text[6:8]))
    except ValueError:
        raise InvalidDate(f"Invalid date '{value}': no such calendar day")


def parse_year_month(value: str) -> Tuple[int, int]:
    """
    Parse a YYYYMM string into (year, month)

    Raises:
        InvalidDate: If the string is malformed or the month is not 01-12
    """
    if not isinstance(value, str) or not _MONTH_PATTERN.match(value.strip()):
        raise InvalidDate(f"Invalid month '{value}'. Please use YYYYMM.")

    text = value.strip()
    year, month = int(text[:4]), int(text[4:6])
    validate_year_month(year, month)
    return year, month


def validate_year_month(year: int, month: int) -> None:
    """Raise InvalidDate unless (year, month) names a real calendar month"""
    if not 1 <= month <= 12 or not date.min.year <= year <= date.max.year:
        raise InvalidDate(f"Invalid month {year:04d}{month:02d}")


def format_date(value: date) -> str:
    """Format a date as YYYYMMDD"""
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month"""
    validate_year_month(year, month)
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)
