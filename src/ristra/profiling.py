"""Ristra MatchAccumulator: opt-in profiling for pattern matching.

This module provides accumulated metrics while matching:
- Checkouts served by the canonical handle vs. clones
- Releases
- Matches produced
- Chunk window reloads

Zero overhead when disabled (get_match_accumulator() returns None).

Example:
    from ristra import compile
    from ristra.profiling import profiled_matching

    with profiled_matching() as metrics:
        list(compile("a(b)c").matches("xabcabc"))

    print(metrics.summary())
    # {"total_ms": 0.1, "checkouts": 1, "clones": 0, ...}

Thread Safety:
    The accumulator lives in a ContextVar. Worker threads start with an empty
    context, so only work done in the profiling context is counted.

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any


@dataclass
class MatchAccumulator:
    """Accumulated metrics during matching.

    Attributes:
        start_time: Profiling start timestamp.
        checkouts: Leases handed out (canonical and cloned).
        clones: Leases served by a clone because the canonical handle was busy.
        releases: Leases released.
        matches: Match results produced by cursors.
        chunk_loads: Chunk window reloads (cache misses in ``access``).

    """

    start_time: float = field(default_factory=perf_counter)
    checkouts: int = 0
    clones: int = 0
    releases: int = 0
    matches: int = 0
    chunk_loads: int = 0

    def record_checkout(self, *, cloned: bool) -> None:
        self.checkouts += 1
        if cloned:
            self.clones += 1

    def record_release(self) -> None:
        self.releases += 1

    def record_match(self) -> None:
        self.matches += 1

    def record_chunk_load(self) -> None:
        self.chunk_loads += 1

    @property
    def total_duration_ms(self) -> float:
        """Total profiling duration in milliseconds."""
        return (perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get summary of match metrics."""
        return {
            "total_ms": round(self.total_duration_ms, 2),
            "checkouts": self.checkouts,
            "clones": self.clones,
            "releases": self.releases,
            "matches": self.matches,
            "chunk_loads": self.chunk_loads,
        }


_accumulator: ContextVar[MatchAccumulator | None] = ContextVar(
    "match_accumulator",
    default=None,
)


def get_match_accumulator() -> MatchAccumulator | None:
    """Get current accumulator (None if profiling disabled)."""
    return _accumulator.get()


@contextmanager
def profiled_matching() -> Iterator[MatchAccumulator]:
    """Context manager for profiled matching.

    Creates a MatchAccumulator and makes it available via
    get_match_accumulator() for the duration of the with block.

    Yields:
        MatchAccumulator that will be populated during matching.

    """
    acc = MatchAccumulator()
    token: Token[MatchAccumulator | None] = _accumulator.set(acc)
    try:
        yield acc
    finally:
        _accumulator.reset(token)


__all__ = [
    "MatchAccumulator",
    "get_match_accumulator",
    "profiled_matching",
]
