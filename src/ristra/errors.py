"""Exception classes and engine status codes for Ristra.

Every failure the matching engine reports carries a ``Status`` code. The
numbering follows the ICU regular-expression status values so that codes
stay stable across engines and are meaningful in logs.

Thread Safety:
Exceptions and Status members are immutable once raised.

"""

from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    """Engine status codes."""

    ZERO_ERROR = 0
    ILLEGAL_ARGUMENT_ERROR = 1
    INDEX_OUTOFBOUNDS_ERROR = 8
    BUFFER_OVERFLOW_ERROR = 15
    UNSUPPORTED_ERROR = 16
    INVALID_STATE_ERROR = 27

    # Regular-expression specific codes
    REGEX_INTERNAL_ERROR = 0x10300
    REGEX_RULE_SYNTAX = 0x10301
    REGEX_INVALID_STATE = 0x10302
    REGEX_BAD_ESCAPE_SEQUENCE = 0x10303
    REGEX_MISMATCHED_PAREN = 0x10306
    REGEX_NUMBER_TOO_BIG = 0x10307
    REGEX_BAD_INTERVAL = 0x10308
    REGEX_MAX_LT_MIN = 0x10309
    REGEX_INVALID_BACK_REF = 0x1030A
    REGEX_INVALID_FLAG = 0x1030B
    REGEX_LOOK_BEHIND_LIMIT = 0x1030C
    REGEX_MISSING_CLOSE_BRACKET = 0x1030F
    REGEX_INVALID_RANGE = 0x10310
    REGEX_INVALID_CAPTURE_GROUP_NAME = 0x10315

    @property
    def is_success(self) -> bool:
        return self <= Status.ZERO_ERROR


class RistraError(Exception):
    """Base exception for all Ristra errors.

    Subclass this for specific error categories.
    """

    pass


class CompileError(RistraError):
    """A pattern failed to compile.

    Raised from Pattern construction; the pattern object is never created.
    """

    def __init__(
        self,
        pattern: str,
        code: Status,
        line: int | None = None,
        offset: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize compile error with optional fault location.

        Args:
            pattern: Source text of the pattern
            code: Engine status describing the fault
            line: Line of the syntax fault (1-indexed)
            offset: Offset of the fault within that line (0-indexed)
            reason: Engine message, if any
        """
        self.pattern = pattern
        self.code = code
        self.line = line
        self.offset = offset
        self.reason = reason

        location = ""
        if line is not None:
            location = f" at {line}:{offset}" if offset is not None else f" at line {line}"
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot compile {pattern!r}{location} ({code.name}){detail}")


class CloneError(RistraError):
    """The engine could not duplicate a compiled pattern.

    Fails a single checkout; the pool stays usable.
    """

    def __init__(self, pattern: str, code: Status) -> None:
        self.pattern = pattern
        self.code = code
        super().__init__(f"Cannot clone {pattern!r} ({code.name})")


class EngineStatusError(RistraError):
    """A bind, scan, or group-access call reported a non-success status."""

    def __init__(self, status: Status, operation: str, message: str | None = None) -> None:
        """Initialize engine status error.

        Args:
            status: Status reported by the engine
            operation: Name of the failing operation (e.g. "set_region")
            message: Optional extra detail
        """
        self.status = status
        self.operation = operation
        detail = f": {message}" if message else ""
        super().__init__(f"{operation} failed with {status.name}{detail}")


class BufferOverflowError(RistraError, OverflowError):
    """A destination buffer was too small for an extract.

    Carries the capacity that would have been required so the caller can
    retry with a larger buffer. The units that fit were still copied.
    """

    def __init__(self, required: int, written: int) -> None:
        self.required = required
        self.written = written
        self.status = Status.BUFFER_OVERFLOW_ERROR
        super().__init__(f"Buffer too small: {required} code units required, {written} written")


__all__ = [
    "BufferOverflowError",
    "CloneError",
    "CompileError",
    "EngineStatusError",
    "RistraError",
    "Status",
]
