"""Tests for CheckoutPool and Lease."""

import gc
import logging

import pytest

from ristra.chunks import ChunkedTextSource
from ristra.engine import PatternHandle
from ristra.errors import CloneError, EngineStatusError, Status
from ristra.options import MatchingOptions
from ristra.pool import CheckoutPool, ReuseState


def make_pool(pattern: str = "a(b)c") -> CheckoutPool:
    return CheckoutPool(PatternHandle.open(pattern))


class TestCheckout:
    def test_first_checkout_leases_canonical(self) -> None:
        pool = make_pool()
        lease = pool.checkout(MatchingOptions.ANCHORED)
        assert lease.handle is pool.canonical
        assert not lease.is_clone
        assert lease.descriptor.state is ReuseState.LEASED
        assert lease.descriptor.token is not None
        assert lease.options == MatchingOptions.ANCHORED
        assert pool.descriptor is lease.descriptor
        assert not pool.available

    def test_contention_serves_clone(self) -> None:
        pool = make_pool()
        first = pool.checkout()
        second = pool.checkout()
        assert second.is_clone
        assert second.handle is not pool.canonical
        assert second.handle is not first.handle
        assert second.descriptor.state is ReuseState.CLONE
        assert second.descriptor.token is None
        assert pool.descriptor.state is ReuseState.LEASED

    def test_clone_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        pool = make_pool()
        pool.checkout()
        with caplog.at_level(logging.DEBUG, logger="ristra.pool"):
            pool.checkout()
        assert "serving a clone" in caplog.text

    def test_clone_failure_fails_only_that_checkout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pool = make_pool()
        held = pool.checkout()

        def refuse(self: PatternHandle) -> PatternHandle:
            raise CloneError(self.pattern, Status.REGEX_INTERNAL_ERROR)

        monkeypatch.setattr(PatternHandle, "clone", refuse)
        with pytest.raises(CloneError):
            pool.checkout()

        held.release()
        assert pool.available
        again = pool.checkout()
        assert again.handle is pool.canonical


class TestRelease:
    def test_release_parks_canonical(self) -> None:
        pool = make_pool()
        lease = pool.checkout()
        lease.handle.bind(ChunkedTextSource("xabc"))
        lease.handle.set_boundary_modes(transparent_bounds=True, anchoring_bounds=False)
        lease.release()
        assert lease.released
        assert pool.available
        assert pool.descriptor.state is ReuseState.AVAILABLE
        assert pool.canonical.text is None
        assert pool.canonical.anchoring_bounds
        assert not pool.canonical.transparent_bounds
        assert not pool.canonical.closed

    def test_release_closes_clone(self) -> None:
        pool = make_pool()
        first = pool.checkout()
        clone = pool.checkout()
        clone.release()
        assert clone.handle.closed
        assert not pool.canonical.closed
        assert pool.descriptor is first.descriptor

    def test_double_release_is_noop(self) -> None:
        pool = make_pool()
        lease = pool.checkout()
        lease.release()
        lease.release()
        pool.release(lease)
        # One token only: the next checkout gets the canonical, the one after a clone.
        first = pool.checkout()
        second = pool.checkout()
        assert not first.is_clone
        assert second.is_clone

    def test_release_through_pool(self) -> None:
        pool = make_pool()
        lease = pool.checkout()
        pool.release(lease)
        assert pool.available

    def test_foreign_lease_rejected(self) -> None:
        pool = make_pool()
        other = make_pool()
        lease = other.checkout()
        with pytest.raises(ValueError, match="not checked out"):
            pool.release(lease)
        assert not lease.released

    def test_context_manager_releases(self) -> None:
        pool = make_pool()
        with pool.checkout() as lease:
            assert not pool.available
        assert lease.released
        assert pool.available

    def test_abandoned_lease_is_released(self) -> None:
        pool = make_pool()
        lease = pool.checkout()
        del lease
        gc.collect()
        assert pool.available

    def test_canonical_reused_after_release(self) -> None:
        pool = make_pool()
        for _ in range(3):
            with pool.checkout() as lease:
                assert lease.handle is pool.canonical

    def test_repr(self) -> None:
        pool = make_pool("ab")
        lease = pool.checkout()
        assert repr(lease) == "Lease('ab', LEASED)"
        assert repr(pool) == "CheckoutPool('ab', LEASED)"
        lease.release()
        assert repr(lease) == "Lease('ab', released)"
        assert repr(pool) == "CheckoutPool('ab', AVAILABLE)"


class TestClose:
    def test_close_available_pool(self) -> None:
        pool = make_pool()
        pool.close()
        assert pool.closed
        assert pool.canonical.closed
        assert not pool.available
        assert repr(pool) == "CheckoutPool('a(b)c', closed)"

    def test_checkout_after_close(self) -> None:
        pool = make_pool()
        pool.close()
        with pytest.raises(EngineStatusError) as exc_info:
            pool.checkout()
        assert exc_info.value.status is Status.INVALID_STATE_ERROR

    def test_close_is_idempotent(self) -> None:
        pool = make_pool()
        pool.close()
        pool.close()

    def test_close_while_leased_defers_to_release(self) -> None:
        pool = make_pool()
        lease = pool.checkout()
        pool.close()
        assert not pool.canonical.closed
        lease.release()
        assert pool.canonical.closed

    def test_outstanding_clone_survives_close(self) -> None:
        pool = make_pool()
        first = pool.checkout()
        clone = pool.checkout()
        pool.close()
        clone.handle.bind(ChunkedTextSource("xabc"))
        assert clone.handle.find_next()
        clone.release()
        first.release()
        assert clone.handle.closed
        assert pool.canonical.closed
