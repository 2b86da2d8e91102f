"""
Async Patterns — one delayed fetch, three ways to consume it
=============================================================
Every demo endpoint boils down to "wait, then produce a value (or fail)".
This module exposes that single operation in the three styles the course
compares:

    fetch_with_callback — schedule callback(error, data) on the event loop
    fetch_as_future     — return an asyncio.Future settled after the delay
    fetch_async         — coroutine; await it and get the value or an exception

Failure injection lives in FailurePolicy so callers (and tests) decide how
often a fetch fails instead of depending on the global random module.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Callable, Optional


class SimulatedFailure(Exception):
    """Deliberately injected fetch failure."""


class FailurePolicy:
    """Decides whether a simulated fetch fails.

    A uniform draw in [0, 1) at or below `probability` is a failure.
    A probability of 0 never fails; 1 always fails.
    """

    def __init__(self, probability: float = 0.1, rng: Optional[Callable[[], float]] = None):
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {probability}")
        self.probability = probability
        self._rng = rng or random.random

    def should_fail(self) -> bool:
        if self.probability <= 0.0:
            return False
        return self._rng() <= self.probability

    @classmethod
    def never(cls) -> FailurePolicy:
        return cls(0.0)

    @classmethod
    def always(cls) -> FailurePolicy:
        return cls(1.0)

    def __repr__(self) -> str:
        return f"FailurePolicy(probability={self.probability})"


async def simulate_delay(ms: int) -> None:
    """Non-blocking wait of `ms` milliseconds."""
    await asyncio.sleep(ms / 1000)


def fetch_with_callback(
    value: Any,
    callback: Callable[[Optional[BaseException], Any], None],
    delay_ms: int,
) -> asyncio.TimerHandle:
    """Call `callback(None, value)` after `delay_ms` on the running loop.

    The error slot is part of the callback convention; this fetch never fills it.
    """
    loop = asyncio.get_running_loop()
    return loop.call_later(delay_ms / 1000, callback, None, value)


def fetch_as_future(
    value: Any,
    delay_ms: int,
    policy: FailurePolicy,
    failure_message: str,
) -> asyncio.Future:
    """Return a future that resolves to `value` or fails with SimulatedFailure."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def settle():
        if future.done():
            return
        if policy.should_fail():
            future.set_exception(SimulatedFailure(failure_message))
        else:
            future.set_result(value)

    loop.call_later(delay_ms / 1000, settle)
    return future


async def fetch_async(
    value: Any,
    delay_ms: int,
    policy: FailurePolicy,
    failure_message: str,
) -> Any:
    await simulate_delay(delay_ms)
    if policy.should_fail():
        raise SimulatedFailure(failure_message)
    return value
