"""Protocols for Ristra.

Defines the capability interface the matching engine consumes to read
subject text. The engine never holds a host string directly: it holds a
TextProvider and pulls bounded chunks of UTF-16 code units on demand.
"""

from __future__ import annotations

from collections.abc import MutableSequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class TextProvider(Protocol):
    """Chunked, random-access text in native (UTF-16 code unit) index space.

    A provider keeps one window of materialized code units. ``access`` moves
    the window; the ``chunk_*`` attributes describe it afterwards.

    Thread Safety:
        Providers are owned by a single bound handle. They are not safe to
        share; use ``clone()`` to obtain an independent cursor over the
        same text.

    """

    @property
    def chunk_native_start(self) -> int:
        """Native index of the first unit in the window."""
        ...

    @property
    def chunk_native_limit(self) -> int:
        """Native index one past the last unit in the window."""
        ...

    @property
    def chunk_offset(self) -> int:
        """Current position, relative to ``chunk_native_start``."""
        ...

    @property
    def chunk_contents(self) -> memoryview:
        """Read-only view of the units in the window."""
        ...

    def length(self) -> int:
        """Total number of code units."""
        ...

    def access(self, native_index: int, forward: bool = True) -> bool:
        """Move the window over ``native_index``.

        Forward access covers the unit at ``native_index``; backward access
        covers the unit before it. Returns False when out of bounds.
        """
        ...

    def extract(self, native_start: int, native_end: int, dest: MutableSequence[int]) -> int:
        """Copy ``[native_start, native_end)`` into ``dest``; return units written."""
        ...

    def map_offset_to_native(self) -> int:
        """Native index of the current window position."""
        ...

    def map_native_to_offset(self, native_index: int) -> int:
        """Window-relative offset of ``native_index``."""
        ...

    def clone(self, deep: bool = False) -> TextProvider:
        """Independent provider over the same text."""
        ...

    def close(self) -> None:
        """Release the window."""
        ...
