# /*
# Copyright 2026 The Pipeline Reconciler Authors.
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
# */

"""Bounded, cancellable polling of readiness probes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    stop_when_event_set,
    wait_fixed,
)

from pipeline_reconciler import logger as default_logger
from pipeline_reconciler.constants import DEFAULT_POLL_INTERVAL_SECONDS
from pipeline_reconciler.errors import ResourceTimeoutError, WaitCancelledError
from pipeline_reconciler.probes import Readiness


class Deadline:
    """Wall-clock budget shared by every wait of a run.

    Attributes:
        budget: Total number of seconds available.
    """

    def __init__(self, budget: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.budget = budget
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        return max(0.0, self.budget - self.elapsed())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


def wait_for(
    probe: Callable[[], Readiness],
    timeout: float,
    *,
    interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
    description: str = "resource",
    logger: logging.Logger | None = None,
) -> int:
    """Poll ``probe`` until it reports READY.

    The probe runs at least once, even with a zero timeout. Setting ``cancel``
    interrupts the current sleep and ends the wait without probing again.
    Errors raised by the probe are not retried.

    Args:
        probe: Readiness check to poll.
        timeout: Seconds after which polling gives up.
        interval: Seconds to sleep between attempts.
        cancel: Event that aborts the wait when set.
        description: What is being waited for, used in logs and errors.
        logger: Logger for progress messages.

    Returns:
        Number of probe attempts made.

    Raises:
        ResourceTimeoutError: If the probe is not READY within ``timeout``.
        WaitCancelledError: If ``cancel`` is set before the probe is READY.
    """
    log = logger or default_logger
    cancel = cancel if cancel is not None else threading.Event()
    attempts = 0

    def _attempt() -> Readiness:
        nonlocal attempts
        if cancel.is_set():
            raise WaitCancelledError(f"Wait for {description} cancelled")
        attempts += 1
        return probe()

    def _log_wait(retry_state: RetryCallState) -> None:
        readiness = retry_state.outcome.result()
        log.info("Waiting for %s (%s, attempt %d)...", description, readiness.value, retry_state.attempt_number)

    retrying = Retrying(
        stop=stop_after_delay(timeout) | stop_when_event_set(cancel),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda readiness: readiness is not Readiness.READY),
        sleep=cancel.wait,
        before_sleep=_log_wait,
    )
    try:
        retrying(_attempt)
    except RetryError as err:
        if cancel.is_set():
            raise WaitCancelledError(f"Wait for {description} cancelled") from err
        raise ResourceTimeoutError(description, timeout) from err
    log.info("%s is ready after %d attempt(s)", description.capitalize(), attempts)
    return attempts
