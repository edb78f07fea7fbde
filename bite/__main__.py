#!/usr/bin/env python3
"""bite - wake up an EC2 instance and connect to it."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import boto3

for _noisy_module in ["botocore", "boto3", "urllib3", "paramiko"]:
    logging.getLogger(_noisy_module).setLevel(logging.WARNING)

from bite.cli.main import main  # noqa: E402
from bite.constants import LaunchStrategy  # noqa: E402
from bite.core.config import ConfigLoader  # noqa: E402
from bite.core.interfaces import ComputeProvider  # noqa: E402
from bite.core.launcher import LaunchRequest, SessionLauncher  # noqa: E402
from bite.core.locator import InstanceLocator  # noqa: E402
from bite.core.readiness import ReadinessPoller  # noqa: E402
from bite.lifecycle import LifecycleController  # noqa: E402
from bite.providers import get_provider  # noqa: E402
from bite.services.ssh_config import SSHConfigStore  # noqa: E402

logger = logging.getLogger(__name__)


class Bite:
    """Connect to EC2 instances by SSH config alias or Name tag."""

    def __init__(
        self,
        compute_provider_factory: Callable[[dict[str, Any]], ComputeProvider] | None = None,
        shell_handoff: Callable[..., None] | None = None,
        ssh_manager_factory: Callable[..., Any] | None = None,
        boto3_client_factory: Callable | None = None,
    ) -> None:
        """Initialize Bite with optional dependency injection."""
        self._config_loader = ConfigLoader()
        self._compute_provider_factory = compute_provider_factory
        self._shell_handoff = shell_handoff
        self._ssh_manager_factory = ssh_manager_factory
        self._boto3_client_factory = boto3_client_factory or boto3.client

    def _load_settings(self, **overrides: Any) -> dict[str, Any]:
        config = self._config_loader.load_config()
        return self._config_loader.get_settings(config, overrides)

    def _create_compute_provider(self, settings: dict[str, Any]) -> ComputeProvider:
        if self._compute_provider_factory is not None:
            return self._compute_provider_factory(settings)

        compute_class = get_provider(settings["provider"])
        return compute_class(
            region=settings["region"],
            address_type=settings["address_type"],
            boto3_client_factory=self._boto3_client_factory,
        )

    def _build_launcher(self, settings: dict[str, Any]) -> SessionLauncher:
        provider = self._create_compute_provider(settings)
        locator = InstanceLocator(provider)

        return SessionLauncher(
            locator=locator,
            lifecycle=LifecycleController(provider),
            poller=ReadinessPoller(
                locator,
                poll_interval=settings["poll_interval"],
                connect_timeout=settings["connect_timeout"],
            ),
            ssh_config=SSHConfigStore(settings["ssh_config"]),
            ssh_port=settings["ssh_port"],
            ssh_username=settings["ssh_username"],
            max_start_delay=settings["max_start_delay"],
            key_file=settings["key_file"],
            shell_handoff=self._shell_handoff,
            ssh_manager_factory=self._ssh_manager_factory,
        )

    @staticmethod
    def _apply_verbosity(verbose: bool) -> None:
        if verbose:
            logging.getLogger().setLevel(logging.DEBUG)

    def connect(
        self,
        alias: str,
        boot: bool = False,
        ssh: bool = False,
        region: str | None = None,
        verbose: bool = False,
    ) -> None:
        """Refresh the HostName of an SSH config alias bound to an instance.

        The alias's section in ~/.ssh/config must carry a
        ``# bite: <instance-id>`` comment and a HostName line.

        Parameters
        ----------
        alias : str
            Host alias in the SSH config
        boot : bool
            Start the instance if it is stopped
        ssh : bool
            Open an SSH session once the config is updated
        region : str | None
            Region override
        verbose : bool
            Enable debug logging
        """
        self._apply_verbosity(verbose)
        settings = self._load_settings(region=region)
        launcher = self._build_launcher(settings)

        # fire parses numeric-looking arguments into numbers
        result = launcher.launch(
            LaunchRequest(
                target=str(alias),
                strategy=LaunchStrategy.ALIAS,
                persist=True,
                handoff=ssh,
                boot=boot,
            )
        )

        if not result.config_updated:
            logger.info("HostName for alias %s is already %s", alias, result.address)

    def run(
        self,
        name: str,
        command: str | None = None,
        boot: bool = False,
        region: str | None = None,
        verbose: bool = False,
    ) -> int | None:
        """Connect to the instance with the given Name tag.

        Opens an interactive ssh session, or runs one command and returns
        its exit code. Nothing is written to the SSH config.

        Parameters
        ----------
        name : str
            Name tag of the instance
        command : str | None
            Command to run instead of an interactive shell
        boot : bool
            Start the instance if it is stopped
        region : str | None
            Region override
        verbose : bool
            Enable debug logging

        Returns
        -------
        int | None
            Remote command exit code when a command was given
        """
        self._apply_verbosity(verbose)
        settings = self._load_settings(region=region)
        launcher = self._build_launcher(settings)

        result = launcher.launch(
            LaunchRequest(
                target=str(name),
                strategy=LaunchStrategy.TAG,
                persist=False,
                handoff=True,
                boot=boot,
                command=str(command) if command is not None else None,
            )
        )
        return result.exit_code

    def hosts(self) -> None:
        """List SSH config aliases bound to instances."""
        settings = self._load_settings()
        sections = SSHConfigStore(settings["ssh_config"]).linked_sections()

        if not sections:
            print(f"No '# bite:' hosts in {settings['ssh_config']}")
            return

        print(f"{'ALIAS':<24} {'INSTANCE-ID':<22} {'HOSTNAME':<40}")
        print("-" * 86)

        for section in sections:
            print(
                f"{section.alias:<24} {section.cross_reference_token:<22} "
                f"{section.address or '-':<40}"
            )


if __name__ == "__main__":
    sys.exit(main())
