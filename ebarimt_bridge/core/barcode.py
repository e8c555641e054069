# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Barcode classification

Detects whether an item barcode belongs to the GS1 family (EAN-8, UPC-A,
EAN-13, GTIN-14) or to the ISBN family (ISBN-10, ISBN-13 with a 978/979
prefix) and validates its check digit. Anything else is UNDEFINED.
"""

import re

from ebarimt_bridge.core.types import BarcodeType

_SEPARATORS = re.compile(r"[\s-]")
_DIGITS = re.compile(r"[0-9]+")
ISBN13_PREFIXES = ("978", "979")
GS1_LENGTHS = (8, 12, 13, 14)


def gs1_check_digit(body: str) -> int:
    """Check digit for a GS1 body (all digits except the check digit).

    Weights alternate 3, 1, 3, ... starting from the rightmost body digit.
    """
    total = 0
    for position, char in enumerate(reversed(body)):
        weight = 3 if position % 2 == 0 else 1
        total += int(char) * weight
    return (10 - total % 10) % 10


def is_valid_gs1(code: str) -> bool:
    if len(code) < 2 or not _DIGITS.fullmatch(code):
        return False
    return gs1_check_digit(code[:-1]) == int(code[-1])


def is_valid_isbn10(code: str) -> bool:
    if len(code) != 10 or not _DIGITS.fullmatch(code[:9]):
        return False

    check = code[9]
    if check == "X":
        check_value = 10
    elif _DIGITS.fullmatch(check):
        check_value = int(check)
    else:
        return False

    total = sum(int(char) * weight for char, weight in zip(code[:9], range(10, 1, -1)))
    return (total + check_value) % 11 == 0


def detect_barcode_type(barcode) -> str:
    """Classify a raw barcode as GS1, ISBN or UNDEFINED."""
    if not barcode or not isinstance(barcode, str):
        return BarcodeType.UNDEFINED.value

    cleaned = _SEPARATORS.sub("", barcode)
    if not cleaned:
        return BarcodeType.UNDEFINED.value

    # ISBN-10 is the only format allowed a non-digit (X) check character
    if len(cleaned) == 10:
        return BarcodeType.ISBN.value if is_valid_isbn10(cleaned) else BarcodeType.UNDEFINED.value

    if not _DIGITS.fullmatch(cleaned):
        return BarcodeType.UNDEFINED.value

    length = len(cleaned)

    if length == 13 and cleaned.startswith(ISBN13_PREFIXES):
        return BarcodeType.ISBN.value if is_valid_gs1(cleaned) else BarcodeType.UNDEFINED.value

    if length in GS1_LENGTHS:
        return BarcodeType.GS1.value if is_valid_gs1(cleaned) else BarcodeType.UNDEFINED.value

    return BarcodeType.UNDEFINED.value
