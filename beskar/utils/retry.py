# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Retry logic with exponential backoff bounded by elapsed time.

Unlike a fixed number of attempts, retries here stop once the next wait would
push the total elapsed time past ``max_elapsed_time``. The last error is then
re-raised unchanged.

Features:
- Exponential backoff (delays grow by ``multiplier`` up to ``max_interval``)
- Jitter (each delay is randomized by ``randomization_factor``)
- Notify callback invoked with the error and the upcoming delay
- Only ``retryable_exceptions`` are retried; anything else propagates at once
- An error carrying ``retry_after`` waits at least that many seconds

Example:
    >>> config = BackoffConfig(max_elapsed_time=30.0)
    >>>
    >>> async def list_peers():
    ...     return await lister.fetch()
    >>>
    >>> peers = await retry_notify(
    ...     list_peers,
    ...     config,
    ...     notify=lambda err, delay: logger.warning(f"{err}, retrying in {delay:.2f}s"),
    ... )
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from beskar.utils.logger import logger

T = TypeVar("T")

NotifyFunc = Callable[[BaseException, float], None]


@dataclass
class BackoffConfig:
    """Exponential backoff settings.

    Attributes:
        initial_interval: First delay in seconds before jitter
        multiplier: Growth factor applied after every attempt
        randomization_factor: Delay is picked in ``[d*(1-f), d*(1+f)]``
        max_interval: Upper bound of the un-jittered delay in seconds
        max_elapsed_time: Total time budget in seconds, None for no limit
    """

    initial_interval: float = 0.5
    multiplier: float = 1.5
    randomization_factor: float = 0.5
    max_interval: float = 60.0
    max_elapsed_time: Optional[float] = 900.0


class ExponentialBackoff:
    """Computes successive retry delays for a single retry loop."""

    def __init__(
        self,
        config: BackoffConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        """Restart the schedule and the elapsed-time clock."""
        self._current = self.config.initial_interval
        self._start = self._clock()

    @property
    def elapsed(self) -> float:
        """Seconds since the schedule was (re)started."""
        return self._clock() - self._start

    def _randomize(self, interval: float) -> float:
        delta = self.config.randomization_factor * interval
        return interval - delta + random.random() * 2 * delta

    def next_delay(self, min_delay: float = 0.0) -> Optional[float]:
        """Return the next delay in seconds, or None once the budget is spent.

        Args:
            min_delay: Lower bound for this delay, e.g. a server-requested wait
        """
        elapsed = self.elapsed
        delay = max(self._randomize(self._current), min_delay)

        if self._current >= self.config.max_interval / self.config.multiplier:
            self._current = self.config.max_interval
        else:
            self._current *= self.config.multiplier

        max_elapsed = self.config.max_elapsed_time
        if max_elapsed is not None and elapsed + delay > max_elapsed:
            return None
        return delay


async def retry_notify(
    operation: Callable[[], Awaitable[T]],
    config: Optional[BackoffConfig] = None,
    notify: Optional[NotifyFunc] = None,
    retryable_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Run an async operation until it succeeds or the time budget runs out.

    Args:
        operation: Zero-argument coroutine function to execute
        config: Backoff settings (defaults to BackoffConfig())
        notify: Called with (error, delay) after each failed attempt that
            will be retried
        retryable_exceptions: Exception types that trigger a retry
        sleep: Coroutine used to wait between attempts
        clock: Monotonic clock used to measure elapsed time

    Returns:
        Result from operation

    Raises:
        Exception: The last error once the budget is exhausted, or any
            non-retryable error immediately
    """
    backoff = ExponentialBackoff(config or BackoffConfig(), clock=clock)
    attempt = 0

    while True:
        attempt += 1
        try:
            result = await operation()
        except retryable_exceptions as e:
            delay = backoff.next_delay(getattr(e, "retry_after", None) or 0.0)
            if delay is None:
                logger.error(
                    f"Giving up after {attempt} attempt(s) "
                    f"({backoff.elapsed:.2f}s elapsed). Last error: {e}"
                )
                raise
            if notify is not None:
                notify(e, delay)
            await sleep(delay)
            continue

        if attempt > 1:
            logger.info(f"Operation succeeded after {attempt} attempts")
        return result
