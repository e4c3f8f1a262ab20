"""Splitting a command line into alphabetic and numeric fields."""

from __future__ import annotations

import enum
from dataclasses import dataclass

MAX_FIELDS = 5


class FieldKind(enum.Enum):
    """Kind of a field, decided by its first character."""

    ALPHA = "a"
    NUMERIC = "n"


@dataclass(frozen=True)
class Field:
    text: str
    kind: FieldKind


def _wrap_int32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


@dataclass(frozen=True)
class ParsedInput:
    """A command line split into at most MAX_FIELDS fields."""

    fields: tuple[Field, ...] = ()

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def _field(self, index: int) -> Field | None:
        if 0 <= index < len(self.fields):
            return self.fields[index]
        return None

    def field_string(self, index: int) -> str | None:
        """Return the text of field ``index``, or None if there is no such field."""
        field = self._field(index)
        return None if field is None else field.text

    def field_integer(self, index: int) -> int:
        """Return field ``index`` read as a decimal number, or 0.

        Only numeric fields are read; every character contributes
        ``ord(char) - ord('0')`` taken as a byte, and the result wraps to a
        signed 32-bit value.
        """
        field = self._field(index)
        if field is None or field.kind is not FieldKind.NUMERIC:
            return 0
        result = 0
        for char in field.text:
            digit = (ord(char) - ord("0")) & 0xFF
            result = _wrap_int32(result * 10 + digit)
        return result

    def is_command(self, name: str, min_arguments: int) -> bool:
        """Return True if the first field is ``name`` and enough arguments follow."""
        if len(self.fields) < min_arguments + 1:
            return False
        return self.fields[0].text == name


def parse_fields(line: str) -> ParsedInput:
    """Split ``line`` into fields.

    Letters and digits form fields; anything else separates them. Upper-case
    ASCII letters are folded to lower case. A field that starts with a letter
    is alphabetic, one that starts with a digit is numeric, and it runs until
    the next separator. Once the fifth field has begun, scanning stops and
    that field keeps the rest of the line unprocessed.
    """
    line = line.split("\0", 1)[0]
    chars = list(line)
    starts: list[tuple[int, FieldKind]] = []
    in_field = False

    for pos, char in enumerate(chars):
        if len(starts) == MAX_FIELDS:
            break
        if "a" <= char <= "z" or "A" <= char <= "Z":
            chars[pos] = char.lower()
            kind = FieldKind.ALPHA
        elif "0" <= char <= "9":
            kind = FieldKind.NUMERIC
        else:
            in_field = False
            chars[pos] = "\0"
            continue
        if not in_field:
            starts.append((pos, kind))
            in_field = True

    buffer = "".join(chars)
    fields = tuple(
        Field(buffer[start:].split("\0", 1)[0], kind) for start, kind in starts
    )
    return ParsedInput(fields)