"""Bounded waiting for externally driven state transitions."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

from pipeline_promotion.errors import TransportFaultError

log = logging.getLogger(__name__)

type PollOutcome = Literal["terminal", "timeout", "cancelled"]


class PollPolicy(Protocol):
    """Decides how long to sleep before the next attempt."""

    def next_delay(self, attempt: int, elapsed: float) -> float | None:
        """Return the delay before attempt ``attempt + 1``, or None to give up."""


@dataclass(frozen=True, kw_only=True)
class DeadlinePolicy:
    """Poll every ``interval`` seconds until ``timeout`` seconds have passed."""

    timeout: float = 1800
    interval: float = 30

    def next_delay(self, attempt: int, elapsed: float) -> float | None:
        remaining = self.timeout - elapsed
        if remaining <= 0:
            return None
        return min(self.interval, remaining)


@dataclass(frozen=True, kw_only=True)
class BackoffPolicy:
    """Fixed number of attempts with an exponential delay kept in a window."""

    attempts: int = 30
    min_delay: float = 10
    max_delay: float = 30
    factor: float = 2

    def next_delay(self, attempt: int, elapsed: float) -> float | None:
        if attempt >= self.attempts:
            return None
        delay = self.min_delay * self.factor ** (attempt - 1)
        return max(self.min_delay, min(delay, self.max_delay))


@dataclass(frozen=True, kw_only=True)
class PollResult[T]:
    """Outcome of a bounded wait.

    ``value`` is the last observation (None if nothing was ever observed).
    It is only guaranteed to be terminal when ``outcome == "terminal"``.
    """

    outcome: PollOutcome
    value: T | None
    attempts: int
    elapsed: float

    @property
    def is_terminal(self) -> bool:
        return self.outcome == "terminal"


async def await_terminal[T](
    fetch: Callable[[], Awaitable[T]],
    is_terminal: Callable[[T], bool],
    *,
    policy: PollPolicy,
    max_transport_retries: int = 3,
    cancel: asyncio.Event | None = None,
) -> PollResult[T]:
    """Repeatedly call ``fetch`` until ``is_terminal`` holds or the policy gives up.

    Args:
        fetch: Performs one fresh status read
        is_terminal: Decides whether an observation ends the wait
        policy: Wall-clock (``DeadlinePolicy``) or attempt based (``BackoffPolicy``)
        max_transport_retries: Consecutive transport faults tolerated before
            the fault is raised instead of retried
        cancel: Optional external signal ending the wait promptly

    Returns:
        A terminal result on the first terminal observation, otherwise a
        timeout or cancelled result

    Raises:
        TransportFaultError: If ``fetch`` kept failing at the transport level

    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    attempts = 0
    consecutive_faults = 0
    last: T | None = None

    while True:
        if cancel is not None and cancel.is_set():
            return PollResult(
                outcome="cancelled",
                value=last,
                attempts=attempts,
                elapsed=loop.time() - started,
            )

        attempts += 1
        try:
            observed = await fetch()
        except TransportFaultError as exc:
            consecutive_faults += 1
            if consecutive_faults > max_transport_retries:
                raise TransportFaultError(
                    f"Giving up after {consecutive_faults} consecutive transport "
                    f"faults: {exc}",
                    cause=exc.cause or exc,
                ) from exc
            log.warning(
                "Transport fault on attempt %d (%d/%d): %s",
                attempts,
                consecutive_faults,
                max_transport_retries,
                exc,
            )
        else:
            consecutive_faults = 0
            last = observed
            if is_terminal(observed):
                return PollResult(
                    outcome="terminal",
                    value=observed,
                    attempts=attempts,
                    elapsed=loop.time() - started,
                )

        elapsed = loop.time() - started
        delay = policy.next_delay(attempts, elapsed)
        if delay is None:
            log.info("Gave up waiting after %d attempt(s), %.1fs", attempts, elapsed)
            return PollResult(
                outcome="timeout", value=last, attempts=attempts, elapsed=elapsed
            )

        if await _sleep(delay, cancel):
            return PollResult(
                outcome="cancelled",
                value=last,
                attempts=attempts,
                elapsed=loop.time() - started,
            )


async def _sleep(delay: float, cancel: asyncio.Event | None) -> bool:
    """Sleep for ``delay`` seconds; return True if ``cancel`` fired meanwhile."""
    if cancel is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True
