"""Thread safety tests for shared Patterns.

A Pattern is documented as safe to match from many threads at once. These
tests verify that:
1. Simultaneous match operations each get an exclusive handle
2. Results never leak between subjects under contention
3. The pool ends every run parked and reusable

These tests use real threading to catch actual concurrency bugs.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from ristra import Pattern
from ristra.engine import PatternHandle
from ristra.pool import CheckoutPool


class TestConcurrentMatching:
    """Verify a shared Pattern gives correct results under contention."""

    def test_simultaneous_leases_are_distinct(self) -> None:
        """Leases held at the same time never share a handle."""
        pool = CheckoutPool(PatternHandle.open("a"))
        count = 8
        barrier = threading.Barrier(count)
        handles: list[int] = []
        clones: list[bool] = []
        lock = threading.Lock()

        def hold() -> None:
            lease = pool.checkout()
            barrier.wait()
            with lock:
                handles.append(id(lease.handle))
                clones.append(lease.is_clone)
            barrier.wait()
            lease.release()

        threads = [threading.Thread(target=hold) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(handles)) == count
        assert clones.count(False) == 1
        assert pool.available

    def test_many_threads_correct_results(self) -> None:
        """Every thread sees exactly the matches of its own subject."""
        pattern = Pattern("n(\\d+)")

        def work(i: int) -> list[str | None]:
            subject = f"x n{i} y n{i + 1} z"
            return [m[1] for m in pattern.matches(subject)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = {executor.submit(work, i): i for i in range(400)}
            for future in as_completed(futures):
                i = futures[future]
                assert future.result() == [str(i), str(i + 1)]

        assert pattern.pool.available
        assert pattern.pool.canonical.text is None

    def test_cursors_iterated_in_lockstep(self) -> None:
        """Cursors opened together and advanced together stay independent."""
        pattern = Pattern("[a-z]")
        count = 6
        barrier = threading.Barrier(count)
        errors: list[str] = []

        def work(thread_id: int) -> None:
            letter = "abcdef"[thread_id]
            subject = letter * 5
            with pattern.matches(subject) as cursor:
                for _ in range(5):
                    barrier.wait()
                    match = next(cursor)
                    if str(match) != letter:
                        errors.append(f"thread {thread_id} saw {match!r}")

        threads = [threading.Thread(target=work, args=(i,)) for i in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors, errors
        assert pattern.pool.available

    def test_close_races_with_matching(self) -> None:
        """Closing a pattern mid-run never breaks cursors that already started."""
        pattern = Pattern("a")
        count = 4
        started = threading.Barrier(count + 1)
        results: list[int] = []
        lock = threading.Lock()

        def work() -> None:
            with pattern.matches("aaaa") as cursor:
                started.wait()
                found = len(list(cursor))
            with lock:
                results.append(found)

        threads = [threading.Thread(target=work) for _ in range(count)]
        for t in threads:
            t.start()
        started.wait()
        pattern.close()
        for t in threads:
            t.join()

        assert results == [4] * count
        assert pattern.pool.canonical.closed
