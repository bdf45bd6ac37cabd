"""Barcode generation and validation for products and variants.

Numeric formats (EAN-13, UPC-A) carry a trailing check digit computed from a
weighted digit sum. CODE128 output is an alphanumeric fallback for contexts
that do not need a numeric symbology.

Seeds are padded on the left with zeros; over-long seeds keep their
leading digits.
"""

from collections.abc import Mapping
from enum import Enum
import re

from .errors import ValidationError, errmsg
from .validation import require_positive, require_present, require_str

EAN13_LENGTH = 13
UPCA_LENGTH = 12
CODE128_DEFAULT_LENGTH = 12
CODE128_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
VARIANT_SEPARATOR = "-"

_DIGITS = re.compile(r"[0-9]+")
_NON_DIGITS = re.compile(r"[^0-9]")
_CODE128_CHARS = re.compile(r"[0-9A-Z]+")


class BarcodeFormat(str, Enum):
    EAN13 = "EAN13"
    UPCA = "UPCA"
    CODE128 = "CODE128"

    @classmethod
    def parse(cls, value: "str | BarcodeFormat") -> "BarcodeFormat":
        """Accept an enum member or its case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper().replace("-", ""))
        except ValueError:
            raise ValidationError(f"{errmsg.INVALID_BARCODE_FORMAT}: {value!r}") from None


def _is_ascii_digits(code: str, length: int) -> bool:
    # str.isdigit() accepts non-ASCII digits, so match the character class.
    return isinstance(code, str) and len(code) == length and bool(_DIGITS.fullmatch(code))


def _normalize_digits(seed: str, width: int) -> str:
    require_str(seed, errmsg.BARCODE_INPUT_STRING)
    digits = _NON_DIGITS.sub("", seed)
    return digits.rjust(width, "0")[:width]


def _check_digit(digits: str, first_weight: int, second_weight: int) -> int:
    total = 0
    for i, ch in enumerate(digits):
        total += int(ch) * (first_weight if i % 2 == 0 else second_weight)
    return (10 - total % 10) % 10


def ean13_check_digit(digits12: str) -> int:
    """Check digit over 12 digits, weights 1,3,1,3,..."""
    return _check_digit(digits12, 1, 3)


def upca_check_digit(digits11: str) -> int:
    """Check digit over 11 digits, weights 3,1,3,1,..."""
    return _check_digit(digits11, 3, 1)


def generate_ean13(seed: str) -> str:
    """Derive a 13-digit EAN-13 code from the digit characters of ``seed``."""
    base = _normalize_digits(seed, EAN13_LENGTH - 1)
    return f"{base}{ean13_check_digit(base)}"


def generate_upca(seed: str) -> str:
    """Derive a 12-digit UPC-A code from the digit characters of ``seed``."""
    base = _normalize_digits(seed, UPCA_LENGTH - 1)
    return f"{base}{upca_check_digit(base)}"


def validate_ean13(code: str) -> bool:
    if not _is_ascii_digits(code, EAN13_LENGTH):
        return False
    return ean13_check_digit(code[:-1]) == int(code[-1])


def validate_upca(code: str) -> bool:
    if not _is_ascii_digits(code, UPCA_LENGTH):
        return False
    return upca_check_digit(code[:-1]) == int(code[-1])


def _string_hash(seed: str) -> int:
    """32-bit signed rolling hash: ``h = h * 31 + ord(c)`` with wraparound."""
    h = 0
    for ch in seed:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def generate_code128(seed: str, length: int = CODE128_DEFAULT_LENGTH) -> str:
    """Deterministic ``[0-9A-Z]`` code of exactly ``length`` characters."""
    if isinstance(length, bool) or not isinstance(length, int):
        raise ValidationError(errmsg.BARCODE_LENGTH_POSITIVE)
    require_positive(length, errmsg.BARCODE_LENGTH_POSITIVE)
    require_str(seed, errmsg.BARCODE_INPUT_STRING)

    h = _string_hash(seed)
    base = len(CODE128_ALPHABET)
    remaining = abs(h)
    chars = []
    for i in range(length):
        chars.append(CODE128_ALPHABET[remaining % base])
        remaining //= base
        if remaining == 0:
            remaining = abs(h + i)
    return "".join(chars)


def variant_seed(sku: str, variant_attributes: Mapping[str, str] | None = None) -> str:
    """SKU plus variant attribute values in sorted key order."""
    if not variant_attributes:
        return sku
    values = [str(variant_attributes[k]) for k in sorted(variant_attributes) if variant_attributes[k]]
    if not values:
        return sku
    return f"{sku}{VARIANT_SEPARATOR.join(values)}"


def generate_product_barcode(
    sku: str,
    variant_attributes: Mapping[str, str] | None = None,
    fmt: "BarcodeFormat | str" = BarcodeFormat.EAN13,
) -> str:
    """Barcode for a product, or for one of its variants.

    Two variants of the same SKU with different attribute values get
    different seeds. Collisions remain possible since the numeric formats
    hash the seed down to at most 10 digits.
    """
    require_str(sku, errmsg.SKU_REQUIRED)
    require_present(sku, errmsg.SKU_REQUIRED)
    fmt = BarcodeFormat.parse(fmt)
    seed = variant_seed(sku, variant_attributes)

    if fmt is BarcodeFormat.CODE128:
        return generate_code128(seed, CODE128_DEFAULT_LENGTH)

    hashed = str(abs(_string_hash(seed))).rjust(9, "0")
    if fmt is BarcodeFormat.UPCA:
        return generate_upca(hashed)
    return generate_ean13(hashed)


def detect_format(code: str) -> BarcodeFormat:
    """Classify a scanned code by its structure."""
    if validate_ean13(code):
        return BarcodeFormat.EAN13
    if validate_upca(code):
        return BarcodeFormat.UPCA
    if isinstance(code, str) and _CODE128_CHARS.fullmatch(code):
        # Numeric codes of EAN/UPC length that failed their checksum are misreads.
        if not (_DIGITS.fullmatch(code) and len(code) in (EAN13_LENGTH, UPCA_LENGTH)):
            return BarcodeFormat.CODE128
    raise ValidationError(f"{errmsg.BARCODE_UNRECOGNIZED}: {code!r}")


def format_barcode_display(code: str) -> str:
    """Group an EAN-13 code as ``X-XXXXXX-XXXXXX`` for printing."""
    require_str(code, errmsg.BARCODE_INPUT_STRING)
    if len(code) == EAN13_LENGTH:
        return f"{code[:1]}-{code[1:7]}-{code[7:13]}"
    return code
