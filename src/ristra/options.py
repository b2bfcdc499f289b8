"""Compile-time and match-time option flags.

PatternOptions are fixed when a Pattern is compiled. MatchingOptions are
chosen per match operation and travel with the lease that serves it.

Thread Safety:
Both are IntFlag enums (inherently immutable).

"""

import re
from enum import IntFlag


class PatternOptions(IntFlag):
    """Compile-time flags, numbered like the engine's native flag values.

    UNIX_LINES and ERROR_ON_UNKNOWN_ESCAPES describe how the ``re`` engine
    always behaves (only ``\\n`` terminates a line, unknown ASCII-letter
    escapes are errors); they are accepted and have no further effect.
    """

    UNIX_LINES = 1
    CASE_INSENSITIVE = 2
    COMMENTS = 4
    MULTILINE = 8
    LITERAL = 16
    DOTALL = 32
    ERROR_ON_UNKNOWN_ESCAPES = 512


class MatchingOptions(IntFlag):
    """Per-match flags.

    WITH_TRANSPARENT_BOUNDS and WITHOUT_ANCHORING_BOUNDS are supported only
    together; either one alone is rejected when the match starts.
    """

    ANCHORED = 1 << 0  # at most one match, anchored at the region start
    WITH_TRANSPARENT_BOUNDS = 1 << 1  # lookaround may see outside the region
    WITHOUT_ANCHORING_BOUNDS = 1 << 2  # ^ and $ ignore the region edges


_RE_FLAGS: dict[PatternOptions, re.RegexFlag] = {
    PatternOptions.CASE_INSENSITIVE: re.IGNORECASE,
    PatternOptions.COMMENTS: re.VERBOSE,
    PatternOptions.MULTILINE: re.MULTILINE,
    PatternOptions.DOTALL: re.DOTALL,
}

_SUPPORTED = PatternOptions(0)
for _flag in PatternOptions:
    _SUPPORTED |= _flag
del _flag


def unsupported_bits(value: int) -> int:
    """Return the bits of ``value`` that name no PatternOptions member."""
    return int(value) & ~int(_SUPPORTED)


def re_flags(options: PatternOptions) -> re.RegexFlag:
    """Translate PatternOptions to ``re`` compile flags.

    LITERAL is not a ``re`` flag; it is applied by escaping the pattern.
    """
    flags = re.RegexFlag(0)
    for option, flag in _RE_FLAGS.items():
        if options & option:
            flags |= flag
    return flags


__all__ = [
    "MatchingOptions",
    "PatternOptions",
    "re_flags",
    "unsupported_bits",
]
