"""UTF-16 code-unit view over a Python string.

The matching engine counts positions in UTF-16 code units ("native index
space"). Python strings count code points. Utf16View bridges the two without
encoding the whole string: it records where the astral characters (those
outside the Basic Multilingual Plane, two code units each) sit and derives
every other position arithmetically.

Index translation:
    native = char + (astral chars before char)
    char   = native - (astral chars starting before native)

A native index that falls between the two halves of a surrogate pair maps
to the character that contains it.

Thread Safety:
Utf16View is immutable after construction and safe to share across threads.

"""

from __future__ import annotations

import re
import sys
from array import array
from bisect import bisect_left

# array('H') stores code units in machine byte order.
UTF16_CODEC = "utf-16-le" if sys.byteorder == "little" else "utf-16-be"

_ASTRAL = re.compile("[\U00010000-\U0010ffff]")


def encode_units(text: str) -> array:
    """Encode ``text`` to an ``array('H')`` of UTF-16 code units.

    Lone surrogates in ``text`` are kept as single units.
    """
    units = array("H")
    units.frombytes(text.encode(UTF16_CODEC, "surrogatepass"))
    return units


def decode_units(units: array) -> str:
    """Decode an ``array('H')`` of UTF-16 code units back to a string."""
    return units.tobytes().decode(UTF16_CODEC, "surrogatepass")


class Utf16View:
    """Fixed-width code-unit view of a string.

    Usage:
            >>> view = Utf16View("a\U0001F600b")
            >>> len(view)
            4
            >>> view.to_units(2), view.to_chars(3)
            (3, 2)

    """

    __slots__ = ("_text", "_astral_chars", "_astral_units", "_length")

    def __init__(self, text: str) -> None:
        self._text = text
        # Host and native start of every astral character, ascending.
        if text.isascii():
            self._astral_chars: list[int] = []
        else:
            self._astral_chars = [m.start() for m in _ASTRAL.finditer(text)]
        self._astral_units = [c + i for i, c in enumerate(self._astral_chars)]
        self._length = len(text) + len(self._astral_units)

    @property
    def text(self) -> str:
        """The host string."""
        return self._text

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        return f"Utf16View(chars={len(self._text)}, units={self._length})"

    def to_units(self, char_index: int) -> int:
        """Translate a host (code point) index to a native index."""
        if not self._astral_chars:
            return char_index
        return char_index + bisect_left(self._astral_chars, char_index)

    def to_chars(self, native_index: int) -> int:
        """Translate a native index to a host (code point) index."""
        if not self._astral_units:
            return native_index
        return native_index - bisect_left(self._astral_units, native_index)

    def is_boundary(self, native_index: int) -> bool:
        """Return True unless ``native_index`` splits a surrogate pair."""
        if not self._astral_units:
            return True
        k = bisect_left(self._astral_units, native_index)
        return not (k > 0 and self._astral_units[k - 1] == native_index - 1)

    def units(self, start: int, end: int) -> array:
        """Copy the code units in ``[start, end)`` into a new ``array('H')``.

        Bounds must already lie within ``[0, len(self)]``.
        """
        if start >= end:
            return array("H")
        if not self._astral_units:
            return encode_units(self._text[start:end])
        first = self.to_chars(start)
        last = self.to_chars(end - 1) + 1
        encoded = encode_units(self._text[first:last])
        skip = start - self.to_units(first)
        return encoded[skip : skip + (end - start)]

    def unit_at(self, native_index: int) -> int:
        """Return the single code unit at ``native_index``."""
        if not 0 <= native_index < self._length:
            raise IndexError(f"native index {native_index} out of range")
        return self.units(native_index, native_index + 1)[0]
