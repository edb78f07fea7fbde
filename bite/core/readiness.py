"""Waiting for an instance to get an address and accept SSH connections.

Both waits run under one ``DeadlineWindow`` that starts before the address
phase and is not reset for the reachability phase.
"""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from typing import Any

from bite.constants import CONNECT_TIMEOUT_SECONDS, POLL_INTERVAL_SECONDS
from bite.core.exceptions import InstanceUnavailableError, ReadinessTimeoutError
from bite.core.interfaces import InstanceDescriptor
from bite.core.locator import InstanceLocator

logger = logging.getLogger(__name__)


class DeadlineWindow:
    """A fixed time budget measured from construction.

    Parameters
    ----------
    max_duration : float
        Budget in seconds
    clock : Callable[[], float]
        Monotonic clock, ``time.monotonic`` by default
    """

    def __init__(
        self, max_duration: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.max_duration = max_duration
        self.clock = clock
        self.started_at = clock()

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.max_duration - self.elapsed())

    def expired(self) -> bool:
        return self.elapsed() >= self.max_duration


class ReadinessPoller:
    """Polls an instance until it has an address and SSH is listening.

    Parameters
    ----------
    locator : InstanceLocator
        Used to re-fetch the instance on every poll
    poll_interval : float
        Delay between address polls in seconds
    connect_timeout : float
        Timeout of a single TCP connection attempt in seconds
    sleep : Callable[[float], None]
        Sleep function, ``time.sleep`` by default
    clock : Callable[[], float]
        Monotonic clock for deadlines, ``time.monotonic`` by default
    connect : Callable[..., Any]
        Connection factory with the signature of ``socket.create_connection``
    """

    def __init__(
        self,
        locator: InstanceLocator,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        connect: Callable[..., Any] = socket.create_connection,
    ) -> None:
        self.locator = locator
        self.poll_interval = poll_interval
        self.connect_timeout = connect_timeout
        self.sleep = sleep
        self.clock = clock
        self.connect = connect

    def start_deadline(self, max_wait: float) -> DeadlineWindow:
        """Open the deadline window shared by both phases."""
        return DeadlineWindow(max_wait, clock=self.clock)

    def await_address(
        self, descriptor: InstanceDescriptor, deadline: DeadlineWindow
    ) -> str:
        """Poll the instance until it has an assigned address.

        The instance is queried once per iteration, including the first,
        so the state observed is never older than one poll interval.

        Parameters
        ----------
        descriptor : InstanceDescriptor
            Instance to watch
        deadline : DeadlineWindow
            Shared readiness deadline

        Returns
        -------
        str
            Assigned network address

        Raises
        ------
        ReadinessTimeoutError
            With phase "address" if the deadline elapses first
        InstanceUnavailableError
            If the instance starts terminating while being polled
        """
        logger.info("Waiting for IP address of %s...", descriptor.instance_id)
        polls = 0

        while True:
            current = self.locator.refresh(descriptor)
            polls += 1

            if current.assigned_address:
                logger.debug(
                    "Instance %s has address %s after %d polls",
                    current.instance_id,
                    current.assigned_address,
                    polls,
                )
                return current.assigned_address

            if current.power_state.is_terminal:
                raise InstanceUnavailableError(
                    current.instance_id, current.power_state.value
                )

            if deadline.expired():
                raise ReadinessTimeoutError("address", deadline.elapsed())

            self.sleep(min(self.poll_interval, deadline.remaining()))

    def await_reachability(
        self, address: str, port: int, deadline: DeadlineWindow
    ) -> None:
        """Retry TCP connections to address:port until one succeeds.

        Refused, timed out and unreachable attempts are all treated as "not
        ready yet" and retried straight away; each attempt is bounded by
        ``connect_timeout``. A successful connection is closed unused.

        Parameters
        ----------
        address : str
            Instance address
        port : int
            SSH port
        deadline : DeadlineWindow
            Shared readiness deadline

        Raises
        ------
        ReadinessTimeoutError
            With phase "reachability" if the deadline elapses first
        """
        logger.info("Waiting for ssh on %s:%s...", address, port)
        attempts = 0

        while True:
            attempts += 1
            try:
                conn = self.connect((address, port), timeout=self.connect_timeout)
            except OSError as e:
                if deadline.expired():
                    logger.debug(
                        "Last connection attempt to %s:%s failed: %s", address, port, e
                    )
                    raise ReadinessTimeoutError("reachability", deadline.elapsed()) from e
                continue

            conn.close()
            logger.debug(
                "%s:%s accepted a connection after %d attempts", address, port, attempts
            )
            return

    def wait_until_ready(
        self, descriptor: InstanceDescriptor, port: int, deadline: DeadlineWindow
    ) -> str:
        """Run the address phase then the reachability phase.

        Returns
        -------
        str
            Address that accepted a connection on port
        """
        address = self.await_address(descriptor, deadline)
        self.await_reachability(address, port, deadline)
        return address
