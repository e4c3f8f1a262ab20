"""Small text helpers: string comparison and decimal/hex conversion of 32-bit words."""

from __future__ import annotations

_UINT32_MAX = 0xFFFFFFFF
_HEX_DIGITS = "0123456789ABCDEF"
_ASCII_FOLD = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def _check_uint32(value: int) -> int:
    if not 0 <= value <= _UINT32_MAX:
        raise ValueError(f"value {value!r} does not fit in an unsigned 32-bit word")
    return value


def str_cmp(first: str, second: str, ignore_case: bool = False) -> bool:
    """Return True if both strings are equal.

    With ``ignore_case`` only the ASCII letters A-Z are folded to lower case.
    """
    if ignore_case:
        return first.translate(_ASCII_FOLD) == second.translate(_ASCII_FOLD)
    return first == second


def num_to_str(num: int) -> str:
    """Render an unsigned 32-bit number in decimal."""
    return str(_check_uint32(num))


def to_hex32(value: int) -> str:
    """Render an unsigned 32-bit number as eight upper-case hex digits."""
    _check_uint32(value)
    return "".join(_HEX_DIGITS[(value >> shift) & 0xF] for shift in range(28, -4, -4))


def parse_hex32(text: str) -> int:
    """Read a 32-bit number from the first eight hex digits of ``text``.

    Raises ValueError if fewer than eight characters are given or any of the
    first eight is not a hex digit. Characters after the eighth are ignored.
    """
    digits = text[:8]
    if len(digits) < 8:
        raise ValueError(f"expected 8 hex digits, got {text!r}")
    value = 0
    for char in digits:
        if "0" <= char <= "9":
            digit = ord(char) - ord("0")
        elif "A" <= char <= "F":
            digit = ord(char) - ord("A") + 10
        elif "a" <= char <= "f":
            digit = ord(char) - ord("a") + 10
        else:
            raise ValueError(f"invalid hex digit {char!r} in {text!r}")
        value = (value << 4) | digit
    return value