"""MatchCursor and MatchResult: lazy iteration over matches.

A cursor owns one lease for its whole life. It binds the leased handle to a
ChunkedTextSource over the subject, then produces one MatchResult per
``next()`` by driving the handle's scan primitive. Results are snapshots in
host string positions; they hold no engine state.

The lease is released exactly once, when the cursor:
- runs out of matches
- is closed explicitly or by leaving its ``with`` block
- hits an engine error
- is garbage collected

Thread Safety:
A cursor belongs to the thread iterating it. MatchResult is frozen and safe
to share.

"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType, TracebackType
from typing import Any

from ristra.chunks import ChunkedTextSource
from ristra.engine import PatternHandle
from ristra.errors import RistraError
from ristra.options import MatchingOptions
from ristra.pool import Lease
from ristra.profiling import get_match_accumulator

_NO_NAMES: Mapping[str, int] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class MatchResult:
    """One match: the whole-match range followed by every capture group.

    Ranges are ``(start, end)`` host string indices. A group that did not
    take part in the match has the empty range ``(len(source), len(source))``
    and reports ``None`` from ``group()``.

    Usage:
            >>> m = compile("a(b)c").first_match("xabc")
            >>> m.range, m.span(1), m[1]
            ((1, 4), (2, 3), 'b')

    """

    source: str
    spans: tuple[tuple[int, int], ...]
    participating: tuple[bool, ...]
    names: Mapping[str, int] = field(default_factory=lambda: _NO_NAMES)

    def _index(self, group: int | str) -> int:
        if isinstance(group, str):
            try:
                return self.names[group]
            except KeyError:
                raise IndexError(f"no such group: {group!r}") from None
        if not 0 <= group < len(self.spans):
            raise IndexError(f"no such group: {group}")
        return group

    @property
    def range(self) -> tuple[int, int]:
        """Range of the whole match."""
        return self.spans[0]

    @property
    def ranges(self) -> tuple[tuple[int, int], ...]:
        """Ranges of the capture groups only."""
        return self.spans[1:]

    def span(self, group: int | str = 0) -> tuple[int, int]:
        return self.spans[self._index(group)]

    def start(self, group: int | str = 0) -> int:
        return self.span(group)[0]

    def end(self, group: int | str = 0) -> int:
        return self.span(group)[1]

    def participated(self, group: int | str = 0) -> bool:
        return self.participating[self._index(group)]

    def group(self, group: int | str = 0) -> str | None:
        index = self._index(group)
        if not self.participating[index]:
            return None
        start, end = self.spans[index]
        return self.source[start:end]

    def __getitem__(self, group: int | str) -> str | None:
        return self.group(group)

    def groups(self, default: Any = None) -> tuple[Any, ...]:
        return tuple(
            self.group(i) if self.participating[i] else default
            for i in range(1, len(self.spans))
        )

    def groupdict(self, default: Any = None) -> dict[str, Any]:
        return {
            name: self.group(index) if self.participating[index] else default
            for name, index in self.names.items()
        }

    def __len__(self) -> int:
        """Number of capture groups."""
        return len(self.spans) - 1

    def __str__(self) -> str:
        start, end = self.spans[0]
        return self.source[start:end]

    def __repr__(self) -> str:
        return f"MatchResult(range={self.range}, substring={str(self)!r})"


def snapshot(handle: PatternHandle, text: ChunkedTextSource, names: Mapping[str, int]) -> MatchResult:
    """Copy the handle's current match into a MatchResult in host positions."""
    source = text.text
    sentinel = (len(source), len(source))
    spans: list[tuple[int, int]] = []
    participating: list[bool] = []
    for group in range(handle.group_count() + 1):
        start = handle.group_start(group)
        end = handle.group_end(group)
        if start < 0 or end < start:
            spans.append(sentinel)
            participating.append(False)
        else:
            spans.append((text.to_host(start), text.to_host(end)))
            participating.append(True)
    return MatchResult(source, tuple(spans), tuple(participating), names)


class MatchCursor(Iterator[MatchResult]):
    """Forward-only, non-restartable iterator of MatchResult.

    Usage:
            >>> with pattern.matches("xabcabc") as cursor:
            ...     for match in cursor:
            ...         print(match.range)
            (1, 4)
            (4, 7)

    """

    __slots__ = ("_lease", "_text", "_options", "_names", "_done")

    def __init__(
        self,
        lease: Lease,
        source: str,
        options: MatchingOptions = MatchingOptions(0),
        span: tuple[int, int] | None = None,
    ) -> None:
        """Bind ``lease``'s handle to ``source``.

        Args:
            lease: Lease to drive; the cursor takes ownership of it
            source: Subject string
            options: Anchoring and boundary behavior
            span: Optional ``(start, end)`` host indices to restrict matching to

        Raises:
            EngineStatusError: binding failed; the lease has been released
        """
        self._lease = lease
        self._options = options
        self._names = _NO_NAMES
        self._done = False
        self._text: ChunkedTextSource | None = None
        try:
            self._text = ChunkedTextSource(source)
            handle = lease.handle
            region = None
            if span is not None:
                region = (self._text.from_host(span[0]), self._text.from_host(span[1]))
            handle.bind(self._text, region)
            handle.set_boundary_modes(
                transparent_bounds=bool(options & MatchingOptions.WITH_TRANSPARENT_BOUNDS),
                anchoring_bounds=not (options & MatchingOptions.WITHOUT_ANCHORING_BOUNDS),
            )
            self._names = handle.group_index
        except BaseException:
            self.close()
            raise

    @property
    def closed(self) -> bool:
        return self._done

    @property
    def lease(self) -> Lease:
        return self._lease

    def __iter__(self) -> MatchCursor:
        return self

    def __next__(self) -> MatchResult:
        if self._done:
            raise StopIteration
        handle = self._lease.handle
        anchored = bool(self._options & MatchingOptions.ANCHORED)
        try:
            found = handle.is_looking_at(-1) if anchored else handle.find_next()
            result = snapshot(handle, self._text, self._names) if found else None
        except RistraError:
            self.close()
            raise
        if result is None or anchored:
            self.close()
        if result is None:
            raise StopIteration
        acc = get_match_accumulator()
        if acc is not None:
            acc.record_match()
        return result

    def close(self) -> None:
        """Stop iterating and release the lease. Safe to call more than once."""
        if self._done:
            return
        self._done = True
        try:
            self._lease.release()
        finally:
            if self._text is not None:
                self._text.close()
                self._text = None

    def __enter__(self) -> MatchCursor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()
