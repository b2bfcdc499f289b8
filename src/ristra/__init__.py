"""
Ristra: shareable regular expressions over chunked UTF-16 text

Compile a pattern once and match it from any number of threads. Each match
operation gets exclusive use of a compiled handle; when the handle is busy
the caller gets a clone instead of waiting. Subject strings are read by the
engine through bounded windows of UTF-16 code units, never copied up front.

Quick Start:
    >>> import ristra
    >>> pattern = ristra.compile("a(b)c")
    >>> for match in pattern.matches("xabcabc"):
    ...     print(match.range, match[1])
    (1, 4) b
    (4, 7) b

    >>> # Anchored: at most one match, at the start of the region
    >>> from ristra import MatchingOptions
    >>> pattern = ristra.compile("^ab")
    >>> pattern.first_match("xab", MatchingOptions.ANCHORED) is None
    True

Installation:
    pip install ristra              # Core (zero deps)
    pip install ristra[test]        # + pytest, hypothesis
"""

from ristra.chunks import ChunkedTextSource
from ristra.config import (
    MatchConfig,
    get_match_config,
    match_config_context,
    reset_match_config,
    set_match_config,
)
from ristra.cursor import MatchCursor, MatchResult
from ristra.engine import PatternHandle
from ristra.errors import (
    BufferOverflowError,
    CloneError,
    CompileError,
    EngineStatusError,
    RistraError,
    Status,
)
from ristra.options import MatchingOptions, PatternOptions
from ristra.pattern import Pattern
from ristra.pool import CheckoutPool, Lease, ReuseDescriptor, ReuseState
from ristra.profiling import MatchAccumulator, get_match_accumulator, profiled_matching
from ristra.protocols import TextProvider
from ristra.units import Utf16View

__version__ = "0.1.0"


def compile(pattern: str, options: PatternOptions | int = PatternOptions(0)) -> Pattern:
    """Compile a regular expression into a shareable Pattern.

    Args:
        pattern: Regular expression source
        options: Compile-time flags

    Returns:
        Pattern ready for concurrent use

    Raises:
        CompileError: the pattern is malformed

    Example:
        >>> ristra.compile("(?P<word>\\\\w+)").first_match("hi there")["word"]
        'hi'
    """
    return Pattern(pattern, options)


__all__ = [
    # Main API
    "compile",
    "Pattern",
    "MatchCursor",
    "MatchResult",
    "MatchingOptions",
    "PatternOptions",
    # Text adapter
    "ChunkedTextSource",
    "TextProvider",
    "Utf16View",
    # Engine and pool
    "CheckoutPool",
    "Lease",
    "PatternHandle",
    "ReuseDescriptor",
    "ReuseState",
    # Configuration
    "MatchConfig",
    "get_match_config",
    "match_config_context",
    "reset_match_config",
    "set_match_config",
    # Profiling
    "MatchAccumulator",
    "get_match_accumulator",
    "profiled_matching",
    # Errors
    "BufferOverflowError",
    "CloneError",
    "CompileError",
    "EngineStatusError",
    "RistraError",
    "Status",
]
