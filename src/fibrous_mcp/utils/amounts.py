"""Lossless conversion between smallest-unit integers and decimal strings.

All arithmetic is done on Python ints and strings, never floats: 18-decimal
token amounts routinely exceed the 2**53 range a double can represent.

Reducing precision (``to_smallest_unit`` with too many fractional digits,
``pretty_format`` with ``max_decimals``) always truncates toward zero.
"""

import re
from enum import Enum
from typing import Union

from fibrous_mcp.errors import InvalidFormatError

MIN_DECIMALS = 0
MAX_DECIMALS = 30
MAX_AMOUNT_LENGTH = 77  # digits in 2**256 - 1
DEFAULT_MAX_DISPLAY_DECIMALS = 6

_DIGITS_RE = re.compile(r"[0-9]+")


class AmountOperation(str, Enum):
    TO_SMALLEST_UNIT = "toSmallestUnit"
    TO_HUMAN_UNIT = "toHumanUnit"


# "parse"/"format" are the names older clients send
_OPERATION_ALIASES = {
    "parse": AmountOperation.TO_SMALLEST_UNIT,
    "format": AmountOperation.TO_HUMAN_UNIT,
}


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidFormatError(f"Decimals must be an integer, got: {decimals!r}")
    if not MIN_DECIMALS <= decimals <= MAX_DECIMALS:
        raise InvalidFormatError(
            f"Decimals must be between {MIN_DECIMALS} and {MAX_DECIMALS}, got: {decimals}"
        )


def _check_not_empty_or_negative(amount: str) -> None:
    if not isinstance(amount, str) or not amount.strip():
        raise InvalidFormatError("Amount cannot be empty")
    if amount.startswith("-"):
        raise InvalidFormatError("Amount cannot be negative")


def parse_amount(amount: str) -> int:
    """Parse a smallest-unit integer string.

    Raises:
        InvalidFormatError: empty, negative, non-digit, or longer than 77 digits
    """
    _check_not_empty_or_negative(amount)
    if not _DIGITS_RE.fullmatch(amount):
        raise InvalidFormatError("Invalid amount format")
    if len(amount) > MAX_AMOUNT_LENGTH:
        raise InvalidFormatError("Amount overflow")
    return int(amount)


def to_smallest_unit(human_amount: str, decimals: int) -> str:
    """Convert a human decimal string to a smallest-unit integer string.

    Fractional digits beyond ``decimals`` are truncated, not rounded:
    ``to_smallest_unit("1.23456789", 4) == "12345"``.

    Args:
        human_amount: Decimal string such as "1.5" or ".25"
        decimals: Token decimals, 0-30

    Returns:
        Integer string in the token's smallest unit

    Raises:
        InvalidFormatError: empty, negative, scientific notation, more than
            one decimal point, or any other non-digit character
    """
    _check_decimals(decimals)
    _check_not_empty_or_negative(human_amount)

    if "e" in human_amount.lower():
        raise InvalidFormatError("Scientific notation is not supported")

    parts = human_amount.split(".")
    if len(parts) > 2:
        raise InvalidFormatError("Invalid amount format: multiple decimal points")

    whole = parts[0]
    fraction = parts[1] if len(parts) == 2 else ""

    if not whole and not fraction:
        raise InvalidFormatError("Invalid amount format")
    if (whole and not _DIGITS_RE.fullmatch(whole)) or (fraction and not _DIGITS_RE.fullmatch(fraction)):
        raise InvalidFormatError("Invalid amount format")

    fraction = fraction[:decimals].ljust(decimals, "0")
    return str(int((whole or "0") + fraction))


def to_human_unit(smallest_unit_amount: str, decimals: int) -> str:
    """Convert a smallest-unit integer string to a human decimal string.

    Trailing fractional zeros are stripped; a whole amount is returned
    without a decimal point (``to_human_unit("1000000", 6) == "1"``).

    Raises:
        InvalidFormatError: input is not a non-negative digit string
    """
    _check_decimals(decimals)
    value = parse_amount(smallest_unit_amount)

    if decimals == 0:
        return str(value)

    digits = str(value).rjust(decimals + 1, "0")
    whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    return f"{whole}.{fraction}" if fraction else whole


def pretty_format(
    smallest_unit_amount: str,
    decimals: int,
    max_decimals: int = DEFAULT_MAX_DISPLAY_DECIMALS,
) -> str:
    """Human-readable amount with at most ``max_decimals`` fractional digits.

    Extra digits are truncated: ``pretty_format("1234567890123456789", 18, 4) == "1.2345"``.
    """
    if max_decimals < 0:
        raise InvalidFormatError(f"max_decimals cannot be negative, got: {max_decimals}")

    human = to_human_unit(smallest_unit_amount, decimals)
    if "." not in human:
        return human

    whole, fraction = human.split(".")
    fraction = fraction[:max_decimals].rstrip("0")
    return f"{whole}.{fraction}" if fraction else whole


def convert_amount(
    amount: str,
    decimals: int,
    operation: Union[AmountOperation, str],
) -> str:
    """Convert an amount in the direction named by ``operation``.

    Args:
        amount: Amount string
        decimals: Token decimals, 0-30
        operation: "toSmallestUnit" or "toHumanUnit" ("parse"/"format" accepted)

    Raises:
        InvalidFormatError: bad amount, decimals or operation
    """
    if not isinstance(operation, AmountOperation):
        op = _OPERATION_ALIASES.get(operation)
        if op is None:
            try:
                op = AmountOperation(operation)
            except ValueError:
                raise InvalidFormatError(f"Unknown amount operation: {operation}") from None
        operation = op

    if operation == AmountOperation.TO_SMALLEST_UNIT:
        return to_smallest_unit(amount, decimals)
    return to_human_unit(amount, decimals)
