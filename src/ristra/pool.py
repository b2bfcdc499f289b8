"""Checkout pool: exclusive leases on one compiled pattern handle.

A Pattern owns exactly one canonical PatternHandle. Matching mutates a
handle, so a match operation must own it exclusively while it runs. The
pool gates the canonical handle with a binary token:

    checkout():
        token free  -> take it, lease the canonical handle  (LEASED)
        token taken -> clone the handle, lease the clone     (CLONE)

    release():
        LEASED -> reset the handle's binding, return the token
        CLONE  -> close the clone; the pool is untouched

Checkout never waits: the token is taken with a non-blocking acquire and
contention turns into a clone instead of a queue. Releasing a lease twice
is a no-op.

Thread Safety:
    checkout() and Lease.release() may be called from any thread. A lease
    itself (and the handle it carries) belongs to one match operation.

"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, auto
from types import TracebackType

from ristra.engine import PatternHandle
from ristra.errors import EngineStatusError, Status
from ristra.options import MatchingOptions
from ristra.profiling import get_match_accumulator
from ristra.utils.logger import get_logger

logger = get_logger(__name__)


class ReuseState(Enum):
    """Provenance of a handle."""

    AVAILABLE = auto()  # canonical handle, parked in the pool
    LEASED = auto()  # canonical handle, on loan
    CLONE = auto()  # private copy made under contention


@dataclass(frozen=True, slots=True)
class ReuseDescriptor:
    """Tags a handle with its provenance; decides what release does.

    Attributes:
        state: AVAILABLE, LEASED or CLONE
        options: Matching options the lease was taken under
        token: The pool token held by a LEASED handle

    """

    state: ReuseState
    options: MatchingOptions = MatchingOptions(0)
    token: threading.BoundedSemaphore | None = None


_AVAILABLE = ReuseDescriptor(ReuseState.AVAILABLE)


class Lease:
    """Temporary exclusive use of a PatternHandle.

    Usage:
            >>> with pool.checkout() as lease:
            ...     lease.handle.bind(source)
            ...     lease.handle.find_next()

    """

    __slots__ = ("_pool", "_handle", "_descriptor", "_released", "_guard")

    def __init__(self, pool: CheckoutPool, handle: PatternHandle, descriptor: ReuseDescriptor) -> None:
        self._pool = pool
        self._handle = handle
        self._descriptor = descriptor
        self._released = False
        self._guard = threading.Lock()

    @property
    def handle(self) -> PatternHandle:
        return self._handle

    @property
    def descriptor(self) -> ReuseDescriptor:
        return self._descriptor

    @property
    def options(self) -> MatchingOptions:
        return self._descriptor.options

    @property
    def is_clone(self) -> bool:
        return self._descriptor.state is ReuseState.CLONE

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Give the handle back. Only the first call has any effect."""
        with self._guard:
            if self._released:
                return
            self._released = True
        self._pool._give_back(self)

    def __enter__(self) -> Lease:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __del__(self) -> None:
        if not self._released:
            self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else self._descriptor.state.name
        return f"Lease({self._handle.pattern!r}, {state})"


class CheckoutPool:
    """Availability gate around a Pattern's canonical handle."""

    __slots__ = ("_handle", "_token", "_state", "_closed", "_close_lock")

    def __init__(self, handle: PatternHandle) -> None:
        self._handle = handle
        self._token = threading.BoundedSemaphore(1)
        self._state = _AVAILABLE
        self._closed = False
        # Orders release against close(); checkout never takes it.
        self._close_lock = threading.Lock()

    @property
    def canonical(self) -> PatternHandle:
        """The pool's own handle. Mutate it only through a lease."""
        return self._handle

    @property
    def descriptor(self) -> ReuseDescriptor:
        """Current descriptor of the canonical handle."""
        return self._state

    @property
    def available(self) -> bool:
        return not self._closed and self._state.state is ReuseState.AVAILABLE

    @property
    def closed(self) -> bool:
        return self._closed

    def checkout(self, options: MatchingOptions = MatchingOptions(0)) -> Lease:
        """Lease the canonical handle, or a clone of it if it is busy.

        Never blocks.

        Raises:
            CloneError: the canonical handle was busy and could not be cloned
            EngineStatusError: the pool has been closed
        """
        if self._closed:
            raise EngineStatusError(Status.INVALID_STATE_ERROR, "checkout", "pattern is closed")

        acc = get_match_accumulator()
        if self._token.acquire(blocking=False):
            if self._closed:
                self._retire()
                raise EngineStatusError(Status.INVALID_STATE_ERROR, "checkout", "pattern is closed")
            descriptor = ReuseDescriptor(ReuseState.LEASED, options, self._token)
            self._state = descriptor
            if acc is not None:
                acc.record_checkout(cloned=False)
            return Lease(self, self._handle, descriptor)

        clone = self._handle.clone()
        logger.debug("Handle for %r is leased; serving a clone", self._handle.pattern)
        if acc is not None:
            acc.record_checkout(cloned=True)
        return Lease(self, clone, ReuseDescriptor(ReuseState.CLONE, options))

    def release(self, lease: Lease) -> None:
        """Release ``lease``; same as ``lease.release()``."""
        if lease._pool is not self:
            raise ValueError("lease was not checked out from this pool")
        lease.release()

    def _give_back(self, lease: Lease) -> None:
        acc = get_match_accumulator()
        if acc is not None:
            acc.record_release()

        if lease.descriptor.state is ReuseState.CLONE:
            lease.handle.close()
            logger.debug("Closed clone of %r", self._handle.pattern)
            return

        with self._close_lock:
            if self._closed:
                self._handle.close()
                logger.debug("Closed handle for %r on release", self._handle.pattern)
                return
            try:
                self._handle.reset_binding()
            finally:
                self._state = _AVAILABLE
                self._token.release()

    def _retire(self) -> None:
        # Caller holds the token after close(); the handle is never returned.
        with self._close_lock:
            self._handle.close()

    def close(self) -> None:
        """Close the canonical handle.

        A handle that is on loan is closed when its lease is released.
        Outstanding clones are unaffected.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            if self._token.acquire(blocking=False):
                self._handle.close()
                logger.debug("Closed handle for %r", self._handle.pattern)

    def __repr__(self) -> str:
        state = "closed" if self._closed else self._state.state.name
        return f"CheckoutPool({self._handle.pattern!r}, {state})"
