# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Bounded polling wait."""
import logging
from enum import Enum
from time import monotonic, sleep
from typing import Any, Callable, Optional, Tuple, Type

from mfd_common_libs import log_levels, add_logging_level
from .exceptions import DeadlineExceeded, VSphereRuntimeError, VSphereWrongParameter

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class ProbeState(Enum):
    """Outcome of single probe invocation."""

    READY = "ready"
    NOT_READY = "not_ready"
    FATAL = "fatal"


class ProbeResult(object):
    """Tagged result of readiness probe."""

    def __init__(
        self,
        state: ProbeState,
        payload: Any = None,
        reason: str = "",
        error: Optional[BaseException] = None,
    ):
        """
        Initialize instance.

        :param state: Outcome of probe.
        :param payload: Result carried by ready probe.
        :param reason: Why the target is not ready yet.
        :param error: Error carried by fatal probe.
        """
        self.state = state
        self.payload = payload
        self.reason = reason
        self.error = error

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}({self.state.name}, reason='{self.reason}')"

    @classmethod
    def ready(cls, payload: Any = None) -> "ProbeResult":
        """Target is ready, payload is returned to the waiter."""
        return cls(ProbeState.READY, payload=payload)

    @classmethod
    def not_ready(cls, reason: str = "") -> "ProbeResult":
        """Target is not ready yet, waiter retries."""
        return cls(ProbeState.NOT_READY, reason=reason)

    @classmethod
    def fatal(cls, error: BaseException) -> "ProbeResult":
        """Target will never become ready, waiter stops immediately."""
        return cls(ProbeState.FATAL, error=error)


def wait_until(
    probe: Callable[[], ProbeResult],
    timeout: float,
    interval: float,
    description: str = "target",
    clock: Callable[[], float] = monotonic,
    sleeper: Callable[[float], None] = sleep,
) -> Any:
    """
    Invoke probe until it reports readiness or the deadline passes.

    The start time is captured once. Elapsed time is compared against timeout
    after every failed probe and again after every sleep, so a probe is never
    invoked once elapsed time reached timeout. A ready result reported at or
    after timeout is a timeout too. Exceptions raised by the probe itself are
    not caught.

    :param probe: Callable returning ProbeResult.
    :param timeout: Maximum wait in seconds. Zero or negative means single attempt.
    :param interval: Sleep between attempts in seconds.
    :param description: What is being waited for, used in messages.
    :param clock: Monotonic time source.
    :param sleeper: Sleep function.

    :return: Payload of the first ready probe.
    :raise DeadlineExceeded: Probe did not succeed in time.
    :raise VSphereWrongParameter: Negative interval.
    """
    if interval < 0:
        raise VSphereWrongParameter(f"Poll interval must not be negative: {interval}")

    start = clock()
    attempt = 0
    last = None
    while True:
        attempt += 1
        last = probe()
        if last.state is ProbeState.READY:
            elapsed = clock() - start
            if elapsed >= timeout:
                raise DeadlineExceeded(
                    f"Timeout after {timeout}s waiting for {description} ({attempt} attempt(s)), "
                    f"ready only after {elapsed}s"
                )
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"{description} ready after {attempt} attempt(s)",
            )
            return last.payload
        if last.state is ProbeState.FATAL:
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"{description} failed permanently: {last.error}",
            )
            if isinstance(last.error, BaseException):
                raise last.error
            raise VSphereRuntimeError(f"{description} failed permanently")

        logger.log(
            level=log_levels.MODULE_DEBUG,
            msg=f"{description} not ready (attempt {attempt}): {last.reason}",
        )
        if clock() - start >= timeout:
            break
        sleeper(interval)
        if clock() - start >= timeout:
            break

    raise DeadlineExceeded(
        f"Timeout after {timeout}s waiting for {description} ({attempt} attempt(s)), last state: {last.reason}"
    )


def probe_from_callable(
    func: Callable[[], Any],
    transient: Tuple[Type[BaseException], ...] = (),
) -> Callable[[], ProbeResult]:
    """
    Adapt plain callable to probe.

    Truthy return value is ready with that value as payload, falsy is not ready.
    Exceptions of transient types are not ready, other exceptions are fatal.

    :param func: Callable to check.
    :param transient: Exception types meaning "not ready yet".

    :return: Probe.
    """

    def _probe() -> ProbeResult:
        try:
            value = func()
        except transient as e:
            return ProbeResult.not_ready(f"{type(e).__name__}: {e}")
        except Exception as e:
            return ProbeResult.fatal(e)
        if value:
            return ProbeResult.ready(value)
        return ProbeResult.not_ready(f"{getattr(func, '__name__', 'probe')} returned {value!r}")

    return _probe
