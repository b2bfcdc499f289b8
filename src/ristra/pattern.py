"""Pattern: the public compiled regular expression.

A Pattern compiles once and may then be matched from any number of threads
at the same time. Each ``matches()`` call checks a handle out of the
pattern's pool for the lifetime of the returned cursor; under contention it
gets a clone instead of waiting.

Example:
    >>> from ristra import Pattern
    >>> pattern = Pattern("a(b)c")
    >>> [m.range for m in pattern.matches("xabcabc")]
    [(1, 4), (4, 7)]

Thread Safety:
    Pattern is safe to share across threads. Cursors are not; each thread
    iterates its own.

"""

from __future__ import annotations

from types import TracebackType

from ristra.cursor import MatchCursor, MatchResult
from ristra.engine import PatternHandle
from ristra.options import MatchingOptions, PatternOptions
from ristra.pool import CheckoutPool


class Pattern:
    """Compiled, shareable regular expression."""

    __slots__ = ("_pool",)

    def __init__(self, pattern: str, options: PatternOptions | int = PatternOptions(0)) -> None:
        """Compile ``pattern``.

        Args:
            pattern: Regular expression source
            options: Compile-time flags

        Raises:
            CompileError: the pattern is malformed
        """
        self._pool = CheckoutPool(PatternHandle.open(pattern, options))

    @property
    def pattern(self) -> str:
        return self._pool.canonical.pattern

    @property
    def options(self) -> PatternOptions:
        return self._pool.canonical.options

    @property
    def group_names(self) -> tuple[str, ...]:
        return self._pool.canonical.group_names

    @property
    def group_count(self) -> int:
        return self._pool.canonical.group_count()

    @property
    def pool(self) -> CheckoutPool:
        return self._pool

    @property
    def closed(self) -> bool:
        return self._pool.closed

    def matches(
        self,
        string: str,
        options: MatchingOptions = MatchingOptions(0),
        span: tuple[int, int] | None = None,
    ) -> MatchCursor:
        """Iterate over the matches of this pattern in ``string``.

        Args:
            string: Subject text
            options: Anchoring and region boundary behavior
            span: Optional ``(start, end)`` indices of ``string`` to search

        Returns:
            A cursor holding a lease until it is exhausted or closed.

        Raises:
            CloneError: the pattern was busy and could not be cloned
            EngineStatusError: ``span`` is out of range, the boundary options
                are an unsupported combination, or the pattern is closed
        """
        return MatchCursor(self._pool.checkout(options), string, options, span)

    def first_match(
        self,
        string: str,
        options: MatchingOptions = MatchingOptions(0),
        span: tuple[int, int] | None = None,
    ) -> MatchResult | None:
        """Return the first match in ``string``, or None."""
        with self.matches(string, options, span) as cursor:
            return next(cursor, None)

    def close(self) -> None:
        """Dispose of the compiled pattern.

        Cursors already running keep working; new ``matches()`` calls fail.
        """
        self._pool.close()

    def __enter__(self) -> Pattern:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        if self.options:
            return f"Pattern({self.pattern!r}, {self.options!r})"
        return f"Pattern({self.pattern!r})"
