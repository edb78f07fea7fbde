"""Sequencing of lookup, start, readiness wait, persist and handoff."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from bite.constants import (
    DEFAULT_MAX_START_DELAY_SECONDS,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_USERNAME,
    LaunchStrategy,
)
from bite.core.exceptions import CrossReferenceMissingError, MissingTargetLineError
from bite.core.interfaces import InstanceDescriptor
from bite.core.locator import InstanceLocator
from bite.core.readiness import ReadinessPoller
from bite.lifecycle import LifecycleController
from bite.services.ssh import SSHManager, exec_ssh
from bite.services.ssh_config import ConfigSection, SSHConfigStore

logger = logging.getLogger(__name__)


@dataclass
class LaunchRequest:
    """What to connect to and what to do once it is reachable.

    Attributes
    ----------
    target : str
        SSH config alias (alias strategy) or Name tag (tag strategy)
    strategy : LaunchStrategy
        How target is resolved to an instance
    persist : bool
        Write the address into the alias's HostName line
    handoff : bool
        Open an SSH session once the instance is reachable
    boot : bool
        Allow starting a stopped instance
    command : str | None
        Run this command instead of an interactive session
    """

    target: str
    strategy: LaunchStrategy = LaunchStrategy.ALIAS
    persist: bool = True
    handoff: bool = False
    boot: bool = False
    command: str | None = None


@dataclass
class LaunchResult:
    """Outcome of a successful launch."""

    instance_id: str
    address: str
    started: bool = False
    config_updated: bool = False
    exit_code: int | None = None


class SessionLauncher:
    """Drives one instance from lookup to an open connection.

    Stages run strictly in order and the first exception aborts the rest;
    the SSH config is only written after the instance proved reachable.

    Parameters
    ----------
    locator : InstanceLocator
        Instance lookup
    lifecycle : LifecycleController
        Start requests for stopped instances
    poller : ReadinessPoller
        Address and reachability waits
    ssh_config : SSHConfigStore
        SSH config file used by the alias strategy and for persisting
    ssh_port : int
        Port probed for reachability and used for the session
    ssh_username : str
        Remote user when the alias section carries no User line
    max_start_delay : float
        Deadline for the combined readiness wait, in seconds
    key_file : str | None
        Private key for command execution over paramiko
    shell_handoff : Callable[..., None] | None
        Replaces the process with an interactive session, ``exec_ssh`` by default
    ssh_manager_factory : Callable[..., Any] | None
        Builds the paramiko session for commands, ``SSHManager`` by default
    """

    def __init__(
        self,
        locator: InstanceLocator,
        lifecycle: LifecycleController,
        poller: ReadinessPoller,
        ssh_config: SSHConfigStore,
        ssh_port: int = DEFAULT_SSH_PORT,
        ssh_username: str = DEFAULT_SSH_USERNAME,
        max_start_delay: float = DEFAULT_MAX_START_DELAY_SECONDS,
        key_file: str | None = None,
        shell_handoff: Callable[..., None] | None = None,
        ssh_manager_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.locator = locator
        self.lifecycle = lifecycle
        self.poller = poller
        self.ssh_config = ssh_config
        self.ssh_port = ssh_port
        self.ssh_username = ssh_username
        self.max_start_delay = max_start_delay
        self.key_file = key_file
        self.shell_handoff = shell_handoff or exec_ssh
        self.ssh_manager_factory = ssh_manager_factory or SSHManager

    def launch(self, request: LaunchRequest) -> LaunchResult:
        """Resolve, start, wait, then persist and/or hand off.

        Parameters
        ----------
        request : LaunchRequest
            Target and post-readiness actions

        Returns
        -------
        LaunchResult
            Instance, confirmed address and what was done. Not returned when
            an interactive session replaces the process.

        Raises
        ------
        BiteError
            From whichever stage failed first
        ProviderError
            If a provider call fails outright
        """
        section, descriptor = self._resolve(request)
        logger.info(
            "Using instance %s, currently %s",
            descriptor.label,
            descriptor.power_state.value,
        )

        started = self.lifecycle.ensure_running(descriptor, request.boot)

        deadline = self.poller.start_deadline(self.max_start_delay)
        address = self.poller.wait_until_ready(descriptor, self.ssh_port, deadline)
        logger.info(
            "Instance %s reachable at %s after %.1fs",
            descriptor.instance_id,
            address,
            deadline.elapsed(),
        )

        result = LaunchResult(
            instance_id=descriptor.instance_id, address=address, started=started
        )

        if request.persist and section is not None:
            result.config_updated = self.ssh_config.update_address(
                section.alias, address
            )

        if request.handoff:
            result.exit_code = self._handoff(section, address, request.command)

        return result

    def _resolve(
        self, request: LaunchRequest
    ) -> tuple[ConfigSection | None, InstanceDescriptor]:
        if request.strategy is LaunchStrategy.TAG:
            logger.debug("Looking up instance by Name tag %r", request.target)
            return None, self.locator.resolve_by_tag(request.target)

        section = self.ssh_config.find_section(request.target)

        if not section.cross_reference_token:
            raise CrossReferenceMissingError(section.alias)

        if request.persist and section.address_line_index is None:
            raise MissingTargetLineError(section.alias)

        logger.debug(
            "Host %s is bound to %s", section.alias, section.cross_reference_token
        )
        return section, self.locator.resolve_by_token(section.cross_reference_token)

    def _handoff(
        self, section: ConfigSection | None, address: str, command: str | None
    ) -> int | None:
        username = (section.user if section else None) or self.ssh_username

        if command:
            ssh_manager = self.ssh_manager_factory(
                host=address,
                username=username,
                port=self.ssh_port,
                key_file=self.key_file,
            )
            try:
                ssh_manager.connect()
                return ssh_manager.execute_command(command)
            finally:
                ssh_manager.close()

        if section is not None:
            # ssh picks up User, Port and IdentityFile from the alias
            self.shell_handoff(section.alias)
        else:
            self.shell_handoff(address, username=username, port=self.ssh_port)
        return None
