"""PatternHandle: one compiled pattern plus its bound match state.

The handle is the narrow engine surface the rest of Ristra drives. The
compiled automaton is a ``re.Pattern`` (immutable, safe to share); everything
else on the handle is mutable per-match state:

- the bound TextProvider and its native length
- the region ``[start, end)`` and its boundary modes
- the most recent match and where the next search resumes

Text is pulled through the provider's chunk window, lazily on the first scan
of a binding and only for the span the boundary modes let a match observe.

Boundary modes:
    Two combinations are supported.

    Opaque, anchoring bounds (default) treat the region edges as the text
    edges: the region is scanned on its own, so ``^``/``$``/``\\A``/``\\Z``
    anchor to the region and lookaround cannot see past it.

    Transparent, non-anchoring bounds scan the whole text from the region
    start: anchors match only at the true text edges and lookaround sees
    text on both sides of the region. A match must still end inside the
    region; when the plain scan runs past the region end, the scan is
    repeated with a trailing lookahead that keeps the match inside it.

    ``re`` cannot scope anchors and lookaround separately, so the other two
    combinations raise UNSUPPORTED_ERROR.

All positions are native (UTF-16 code unit) indices. Failures raise
EngineStatusError carrying the engine Status.

Thread Safety:
A handle is NOT safe for concurrent use. CheckoutPool hands each match
operation exclusive use of one handle; clones share only the compiled
``re.Pattern``.

"""

from __future__ import annotations

import re
from array import array
from collections.abc import Mapping
from dataclasses import dataclass

from ristra.errors import CloneError, CompileError, EngineStatusError, Status
from ristra.options import PatternOptions, re_flags, unsupported_bits
from ristra.protocols import TextProvider
from ristra.units import Utf16View, decode_units

# Engine messages mapped to status codes; first match wins.
_SYNTAX_CODES: tuple[tuple[str, Status], ...] = (
    ("bad escape", Status.REGEX_BAD_ESCAPE_SEQUENCE),
    ("missing )", Status.REGEX_MISMATCHED_PAREN),
    ("unbalanced parenthesis", Status.REGEX_MISMATCHED_PAREN),
    ("unterminated character set", Status.REGEX_MISSING_CLOSE_BRACKET),
    ("bad character range", Status.REGEX_INVALID_RANGE),
    ("min repeat greater than max repeat", Status.REGEX_MAX_LT_MIN),
    ("repetition number is too large", Status.REGEX_NUMBER_TOO_BIG),
    ("look-behind requires fixed-width", Status.REGEX_LOOK_BEHIND_LIMIT),
    ("invalid group reference", Status.REGEX_INVALID_BACK_REF),
    ("unknown group name", Status.REGEX_INVALID_BACK_REF),
    ("cannot refer to an open group", Status.REGEX_INVALID_BACK_REF),
    ("group name", Status.REGEX_INVALID_CAPTURE_GROUP_NAME),
    ("unknown flag", Status.REGEX_INVALID_FLAG),
    ("global flags not at the start", Status.REGEX_INVALID_FLAG),
)


_GLOBAL_FLAGS = re.compile(r"(?:\(\?[aiLmsux]+\))+")


def _confine(compiled: re.Pattern[str], tail: int) -> re.Pattern[str]:
    """Variant of ``compiled`` whose matches leave at least ``tail`` characters after them."""
    source = compiled.pattern
    # Global flags must stay at the start; they are carried in compiled.flags.
    lead = _GLOBAL_FLAGS.match(source)
    if lead is not None:
        source = source[lead.end() :]
    close = "\n)" if compiled.flags & re.VERBOSE else ")"
    try:
        return re.compile(f"(?:{source}{close}(?=[\\s\\S]{{{tail}}})", compiled.flags)
    except re.error as exc:
        raise EngineStatusError(
            Status.UNSUPPORTED_ERROR, "find_next", f"cannot confine match to region: {exc.msg}"
        ) from exc


def _compile_error(pattern: str, exc: re.error) -> CompileError:
    message = exc.msg
    code = Status.REGEX_RULE_SYNTAX
    for fragment, status in _SYNTAX_CODES:
        if fragment in message:
            code = status
            break
    line = exc.lineno if exc.pos is not None else None
    offset = exc.colno - 1 if exc.colno is not None else None
    return CompileError(pattern, code, line=line, offset=offset, reason=message)


@dataclass(frozen=True, slots=True)
class _Subject:
    """Decoded span of the bound text that scans run against."""

    base: int  # native index of string[0]
    limit: int  # native index one past the end
    string: str
    view: Utf16View

    def to_char(self, native_index: int) -> int:
        return self.view.to_chars(native_index - self.base)

    def to_native(self, char_index: int) -> int:
        return self.base + self.view.to_units(char_index)


_EMPTY_VIEW = Utf16View("")


class PatternHandle:
    """Compiled pattern with mutable bound state.

    Usage:
            >>> from ristra.chunks import ChunkedTextSource
            >>> handle = PatternHandle.open("a(b)c")
            >>> handle.bind(ChunkedTextSource("xabcabc"))
            >>> handle.find_next(), handle.group_start(0), handle.group_end(0)
            (True, 1, 4)

    """

    __slots__ = (
        "_pattern",
        "_options",
        "_compiled",
        "_text",
        "_length",
        "_region_start",
        "_region_end",
        "_transparent_bounds",
        "_anchoring_bounds",
        "_subject",
        "_match",
        "_match_subject",
        "_next_start",
        "_exhausted",
        "_closed",
    )

    def __init__(self, pattern: str, options: PatternOptions, compiled: re.Pattern[str]) -> None:
        """Wrap an already compiled pattern. Use ``open()`` to compile."""
        self._pattern = pattern
        self._options = options
        self._compiled = compiled
        self._closed = False
        self._text: TextProvider | None = None
        self._transparent_bounds = False
        self._anchoring_bounds = True
        self._set_text(None)

    @classmethod
    def open(cls, pattern: str, options: PatternOptions | int = PatternOptions(0)) -> PatternHandle:
        """Compile ``pattern``.

        Raises:
            CompileError: the pattern is malformed or uses unknown options
        """
        bad = unsupported_bits(options)
        if bad:
            raise CompileError(
                pattern, Status.REGEX_INVALID_FLAG, reason=f"unknown option bits {bad:#x}"
            )
        options = PatternOptions(options)
        source = re.escape(pattern) if options & PatternOptions.LITERAL else pattern
        try:
            compiled = re.compile(source, re_flags(options))
        except re.error as exc:
            raise _compile_error(pattern, exc) from exc
        except OverflowError as exc:
            raise CompileError(pattern, Status.REGEX_NUMBER_TOO_BIG, reason=str(exc)) from exc
        return cls(pattern, options, compiled)

    def clone(self) -> PatternHandle:
        """Independent handle over the same compiled pattern, with no text bound.

        Raises:
            CloneError: the handle has been closed
        """
        if self._closed:
            raise CloneError(self._pattern, Status.INVALID_STATE_ERROR)
        return PatternHandle(self._pattern, self._options, self._compiled)

    def close(self) -> None:
        """Release the binding and mark the handle unusable."""
        if self._closed:
            return
        self._set_text(None)
        self._closed = True

    # -- properties -------------------------------------------------------

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def options(self) -> PatternOptions:
        return self._options

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def text(self) -> TextProvider | None:
        """The bound text provider, or None after ``reset_binding``."""
        return self._text

    @property
    def region(self) -> tuple[int, int]:
        return self._region_start, self._region_end

    @property
    def transparent_bounds(self) -> bool:
        return self._transparent_bounds

    @property
    def anchoring_bounds(self) -> bool:
        return self._anchoring_bounds

    @property
    def group_names(self) -> tuple[str, ...]:
        return tuple(self._compiled.groupindex)

    @property
    def group_index(self) -> Mapping[str, int]:
        """Read-only mapping of group names to group numbers."""
        return self._compiled.groupindex

    # -- binding ----------------------------------------------------------

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise EngineStatusError(Status.INVALID_STATE_ERROR, operation, "handle is closed")

    def _set_text(self, text: TextProvider | None) -> None:
        if self._text is not None:
            self._text.close()
        self._text = text
        self._length = 0 if text is None else text.length()
        self._reset_region(0, self._length)

    def _reset_region(self, start: int, end: int) -> None:
        self._region_start = start
        self._region_end = end
        self._subject = None
        self._match: re.Match[str] | None = None
        self._match_subject: _Subject | None = None
        self._next_start = start
        self._exhausted = False

    def bind(self, text: TextProvider, region: tuple[int, int] | None = None) -> None:
        """Make ``text`` the subject, optionally narrowed to ``region``.

        The handle keeps a shallow clone of ``text`` so the caller's window is
        never moved. Any previous match state is discarded.
        """
        self._check_open("bind")
        self._set_text(text.clone())
        if region is not None:
            self.set_region(*region)

    def set_region(self, start: int, end: int) -> None:
        """Limit matching to ``[start, end)`` and discard match state."""
        self._check_open("set_region")
        if not 0 <= start <= end <= self._length:
            raise EngineStatusError(
                Status.INDEX_OUTOFBOUNDS_ERROR,
                "set_region",
                f"[{start}, {end}) is not within [0, {self._length}]",
            )
        self._reset_region(start, end)

    def set_boundary_modes(self, transparent_bounds: bool, anchoring_bounds: bool) -> None:
        """Choose lookaround transparency and anchor behavior at region edges.

        Supported: opaque with anchoring bounds, transparent without them.

        Raises:
            EngineStatusError: UNSUPPORTED_ERROR for the other two combinations
        """
        self._check_open("set_boundary_modes")
        if transparent_bounds == anchoring_bounds:
            raise EngineStatusError(
                Status.UNSUPPORTED_ERROR,
                "set_boundary_modes",
                f"transparent_bounds={transparent_bounds} with anchoring_bounds={anchoring_bounds}",
            )
        self._transparent_bounds = transparent_bounds
        self._anchoring_bounds = anchoring_bounds
        self._subject = None

    def reset_binding(self) -> None:
        """Return to a neutral state so the handle can be parked.

        Drops the text (zero-length subject), restores opaque and anchoring
        bounds, and clears any match.
        """
        self._check_open("reset_binding")
        self._set_text(None)
        self._transparent_bounds = False
        self._anchoring_bounds = True

    # -- scanning ---------------------------------------------------------

    def _load_subject(self) -> _Subject:
        if self._anchoring_bounds:
            base, limit = self._region_start, self._region_end
        else:
            base, limit = 0, self._length
        subject = self._subject
        if subject is not None and subject.base == base and subject.limit == limit:
            return subject
        if self._text is None or base == limit:
            subject = _Subject(base, limit, "", _EMPTY_VIEW)
        else:
            subject = self._pull(self._text, base, limit)
        self._subject = subject
        return subject

    @staticmethod
    def _pull(text: TextProvider, base: int, limit: int) -> _Subject:
        units = array("H")
        position = base
        while position < limit:
            if not text.access(position, True):
                raise EngineStatusError(
                    Status.INDEX_OUTOFBOUNDS_ERROR, "access", f"native index {position}"
                )
            offset = text.chunk_offset
            take = min(text.chunk_native_limit, limit) - position
            if take <= 0:
                raise EngineStatusError(
                    Status.REGEX_INTERNAL_ERROR, "access", f"empty window at {position}"
                )
            units.frombytes(text.chunk_contents[offset : offset + take].tobytes())
            position += take
        string = decode_units(units)
        return _Subject(base, limit, string, Utf16View(string))

    def _scan(self, subject: _Subject, position: int, anchored: bool) -> re.Match[str] | None:
        run = self._compiled.match if anchored else self._compiled.search
        start = subject.to_char(position)
        found = run(subject.string, start)
        if self._anchoring_bounds:
            return found
        # Transparent bounds: the subject is the whole text.
        end = subject.to_char(self._region_end)
        if found is None or found.end() <= end:
            return found
        confined = _confine(self._compiled, len(subject.string) - end)
        run = confined.match if anchored else confined.search
        return run(subject.string, start)

    def _record(self, subject: _Subject, found: re.Match[str] | None) -> bool:
        self._match = found
        self._match_subject = subject if found is not None else None
        if found is None:
            self._exhausted = True
            return False
        end = subject.to_native(found.end())
        if found.end() == found.start():
            # Resume one character past an empty match.
            end = subject.to_native(found.end() + 1) if found.end() < len(subject.string) else end + 1
        self._next_start = end
        self._exhausted = False
        return True

    def find_next(self) -> bool:
        """Find the next match after the previous one (or from the region start)."""
        self._check_open("find_next")
        if self._exhausted or self._next_start > self._region_end:
            self._match = None
            self._match_subject = None
            self._exhausted = True
            return False
        subject = self._load_subject()
        return self._record(subject, self._scan(subject, self._next_start, anchored=False))

    def is_looking_at(self, index: int = -1) -> bool:
        """Match anchored at ``index``, or at the region start for ``-1``.

        A non-negative index resets the region to the whole text first. The
        match need not extend to the end of the text.
        """
        self._check_open("is_looking_at")
        if index >= 0:
            if index > self._length:
                raise EngineStatusError(
                    Status.INDEX_OUTOFBOUNDS_ERROR, "is_looking_at", f"index {index}"
                )
            self._reset_region(0, self._length)
            position = index
        elif index == -1:
            position = self._region_start
        else:
            raise EngineStatusError(Status.ILLEGAL_ARGUMENT_ERROR, "is_looking_at", f"index {index}")
        subject = self._load_subject()
        return self._record(subject, self._scan(subject, position, anchored=True))

    # -- groups -----------------------------------------------------------

    def group_count(self) -> int:
        """Number of capture groups (group 0 excluded)."""
        self._check_open("group_count")
        return self._compiled.groups

    def group_number(self, name: str) -> int:
        """Group number of the named group ``name``."""
        self._check_open("group_number")
        try:
            return self._compiled.groupindex[name]
        except KeyError:
            raise EngineStatusError(
                Status.REGEX_INVALID_CAPTURE_GROUP_NAME, "group_number", repr(name)
            ) from None

    def _group(self, group: int, operation: str) -> tuple[re.Match[str], _Subject]:
        self._check_open(operation)
        if self._match is None or self._match_subject is None:
            raise EngineStatusError(Status.REGEX_INVALID_STATE, operation, "no current match")
        if not 0 <= group <= self._compiled.groups:
            raise EngineStatusError(Status.INDEX_OUTOFBOUNDS_ERROR, operation, f"group {group}")
        return self._match, self._match_subject

    def group_start(self, group: int) -> int:
        """Native start of ``group`` in the last match, or -1 if it did not participate."""
        found, subject = self._group(group, "group_start")
        start = found.start(group)
        return -1 if start < 0 else subject.to_native(start)

    def group_end(self, group: int) -> int:
        """Native end of ``group`` in the last match, or -1 if it did not participate."""
        found, subject = self._group(group, "group_end")
        end = found.end(group)
        return -1 if end < 0 else subject.to_native(end)

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"region=[{self._region_start}, {self._region_end})"
        return f"PatternHandle({self._pattern!r}, {state})"
