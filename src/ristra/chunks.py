"""Chunked text source: pull-based windows of UTF-16 code units.

ChunkedTextSource implements the TextProvider protocol over a host string.
The engine asks for a position with ``access``; the source materializes a
bounded chunk of code units around it into a fixed-capacity window and the
engine reads from the window until it needs another position.

Window invariants:
- ``chunk_native_start <= chunk_native_start + chunk_offset <= chunk_native_limit``
- ``chunk_native_limit - chunk_native_start <= capacity``
- a reload never cuts a surrogate pair, except at the requested index
- the buffer behind the window is allocated once and never resized

The buffer is exported through a memoryview for the life of the source,
which makes the runtime reject any resize of the underlying array. When
``validate_windows`` is on, every entry point also checks that the buffer
is still the one the window was created with.

Thread Safety:
A source is single-owner state bound to one PatternHandle. Use clone() to
get an independent cursor over the same string.

"""

from __future__ import annotations

from array import array
from collections.abc import MutableSequence
from types import TracebackType

from ristra.config import MIN_CHUNK_CAPACITY, get_match_config
from ristra.errors import BufferOverflowError, EngineStatusError, Status
from ristra.profiling import get_match_accumulator
from ristra.units import Utf16View


class ChunkedTextSource:
    """TextProvider over a Python string.

    Usage:
            >>> source = ChunkedTextSource("hello world", capacity=4)
            >>> source.access(6)
            True
            >>> source.chunk_native_start, source.chunk_native_limit
            (6, 10)
            >>> bytes(source.chunk_contents).decode("utf-16-le")
            'worl'

    """

    __slots__ = (
        "_view",
        "_capacity",
        "_buffer",
        "_window",  # exported view of _buffer; pins its storage
        "_native_start",
        "_native_limit",
        "_offset",
        "_chunk_length",
        "_validate",
        "_closed",
    )

    def __init__(
        self,
        text: str | Utf16View,
        *,
        capacity: int | None = None,
        validate: bool | None = None,
    ) -> None:
        """Create a source over ``text``.

        Args:
            text: Host string, or an existing view over one
            capacity: Window size in code units (defaults to the active
                MatchConfig.chunk_capacity)
            validate: Check buffer stability on each call (defaults to the
                active MatchConfig.validate_windows)
        """
        config = get_match_config()
        if capacity is None:
            capacity = config.chunk_capacity
        if capacity < MIN_CHUNK_CAPACITY:
            raise ValueError(f"capacity must be at least {MIN_CHUNK_CAPACITY}, got {capacity}")

        self._view = text if isinstance(text, Utf16View) else Utf16View(text)
        self._capacity = capacity
        self._buffer = array("H", bytes(2 * capacity))
        self._window = memoryview(self._buffer)
        self._native_start = 0
        self._native_limit = 0
        self._offset = 0
        self._chunk_length = 0
        self._validate = config.validate_windows if validate is None else validate
        self._closed = False

    # -- window state ---------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def chunk_native_start(self) -> int:
        return self._native_start

    @property
    def chunk_native_limit(self) -> int:
        return self._native_limit

    @property
    def chunk_offset(self) -> int:
        return self._offset

    @property
    def chunk_length(self) -> int:
        return self._chunk_length

    @property
    def chunk_contents(self) -> memoryview:
        self._check("chunk_contents")
        return self._window[: self._chunk_length].toreadonly()

    @property
    def native_index(self) -> int:
        """Current position in native index space."""
        return self._native_start + self._offset

    @property
    def view(self) -> Utf16View:
        return self._view

    @property
    def text(self) -> str:
        return self._view.text

    @property
    def closed(self) -> bool:
        return self._closed

    def _check(self, operation: str) -> None:
        if self._closed:
            raise EngineStatusError(Status.INVALID_STATE_ERROR, operation, "text source is closed")
        if self._validate and (
            len(self._buffer) != self._capacity or self._window.obj is not self._buffer
        ):
            raise AssertionError("chunk window buffer moved")

    # -- TextProvider -----------------------------------------------------

    def length(self) -> int:
        """Total number of code units."""
        return len(self._view)

    def __len__(self) -> int:
        return len(self._view)

    def access(self, native_index: int, forward: bool = True) -> bool:
        """Move the window over ``native_index``.

        Forward access covers the unit at ``native_index`` (or an empty window
        at the end of text); backward access covers the unit just before it.

        Returns:
            False if ``native_index`` is outside ``[0, length]`` or, for a
            backward access, nothing precedes it.
        """
        self._check("access")
        self._offset = 0

        target = native_index if forward else native_index - 1
        if self._native_start <= target < self._native_limit:
            self._offset = native_index - self._native_start
            return True

        length = len(self._view)
        if not 0 <= native_index <= length:
            return False
        if not forward and native_index == 0:
            self._set_window(0, 0, 0)
            return False

        if forward:
            start = native_index
            limit = min(native_index + self._capacity, length)
            if limit < length and not self._view.is_boundary(limit):
                limit -= 1
        else:
            start = max(0, native_index - self._capacity)
            limit = native_index
            if start > 0 and not self._view.is_boundary(start):
                start += 1

        chunk = self._view.units(start, limit)
        self._window[: len(chunk)] = chunk
        self._set_window(start, limit, 0 if forward else limit - start)

        acc = get_match_accumulator()
        if acc is not None:
            acc.record_chunk_load()
        return True

    def _set_window(self, start: int, limit: int, offset: int) -> None:
        self._native_start = start
        self._native_limit = limit
        self._chunk_length = limit - start
        self._offset = offset

    def extract(self, native_start: int, native_end: int, dest: MutableSequence[int]) -> int:
        """Copy the code units in ``[native_start, native_end)`` into ``dest``.

        Bounds are clamped to ``[0, length]``. A terminating 0 is written
        after the copied units when ``dest`` has room for it. The window is
        invalidated.

        Returns:
            Number of units written

        Raises:
            BufferOverflowError: ``dest`` is too small; ``required`` holds the
                full length, the units that fit have been copied
        """
        self._check("extract")
        length = len(self._view)
        start = min(max(native_start, 0), length)
        limit = min(max(native_end, 0), length)
        self._set_window(limit, limit, 0)

        units = self._view.units(start, limit) if start < limit else array("H")
        capacity = len(dest)
        written = min(capacity, len(units))
        dest[:written] = units[:written]
        if written < capacity:
            dest[written] = 0
        if written < len(units):
            raise BufferOverflowError(required=len(units), written=written)
        return written

    def map_offset_to_native(self) -> int:
        """Native index of the current window position."""
        return self._native_start + self._offset

    def map_native_to_offset(self, native_index: int) -> int:
        """Window-relative offset of ``native_index``."""
        return native_index - self._native_start

    def clone(self, deep: bool = False) -> ChunkedTextSource:
        """Shallow clone: same string, empty window at the same native start."""
        self._check("clone")
        if deep:
            raise EngineStatusError(Status.UNSUPPORTED_ERROR, "clone", "deep cloning not supported")
        twin = ChunkedTextSource(self._view, capacity=self._capacity, validate=self._validate)
        twin._set_window(self._native_start, self._native_start, 0)
        return twin

    def close(self) -> None:
        """Release the window buffer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._window.release()

    # -- host index translation --------------------------------------------

    def to_host(self, native_index: int) -> int:
        """Translate a native index to a host string index."""
        return self._view.to_chars(native_index)

    def from_host(self, index: int) -> int:
        """Translate a host string index to a native index."""
        return self._view.to_units(index)

    def __enter__(self) -> ChunkedTextSource:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"[{self._native_start}, {self._native_limit})"
        return f"ChunkedTextSource(length={len(self._view)}, window={state})"
