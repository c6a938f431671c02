"""Concurrency test utilities for multi-threaded integration tests.

Lets tests fire the same service call from many threads at once, each with
its own repository container, to check that counters and unique keys hold
up under contention.
"""

import asyncio
from threading import Thread, Barrier
from typing import Awaitable, Callable, Optional, List


def run_in_threads(
    targets: List[Callable[[], None]], join_timeout: float = 30.0
) -> List[Optional[BaseException]]:
    """Execute multiple functions concurrently in separate threads.

    Args:
        targets: List of functions to execute concurrently
        join_timeout: Maximum time to wait for threads to complete

    Returns:
        List of exceptions (or None) aligned with targets
    """
    threads: List[Thread] = []
    errors: List[Optional[BaseException]] = [None] * len(targets)

    def wrap(i: int, fn: Callable[[], None]) -> None:
        try:
            fn()
        except BaseException as e:
            errors[i] = e

    for i, target in enumerate(targets):
        t = Thread(target=wrap, args=(i, target), daemon=True)
        threads.append(t)
        t.start()

    for t in threads:
        t.join(timeout=join_timeout)

    return errors


def session_worker(
    session_factory: Callable, fn: Callable, barrier: Optional[Barrier] = None
) -> Callable[[], None]:
    """Wrap a coroutine function to run on its own thread with its own session.

    Args:
        session_factory: Function that creates new Session instances
        fn: Coroutine function receiving the Session as first argument
        barrier: Optional barrier every worker waits on before starting

    Returns:
        Wrapped function that manages session and event loop lifecycle
    """
    def _inner():
        sess = session_factory()
        try:
            if barrier is not None:
                barrier.wait()
            asyncio.run(fn(sess))
        finally:
            sess.close()
    return _inner


def async_worker(
    fn: Callable[[], Awaitable[None]], barrier: Optional[Barrier] = None
) -> Callable[[], None]:
    """Wrap a coroutine function so a thread can run it on a private event loop."""
    def _inner():
        if barrier is not None:
            barrier.wait()
        asyncio.run(fn())
    return _inner


def barrier_sync(n: int) -> Barrier:
    """Create a threading barrier for synchronizing n threads.

    Args:
        n: Number of threads to synchronize

    Returns:
        Threading barrier for coordinating starts
    """
    return Barrier(n)
