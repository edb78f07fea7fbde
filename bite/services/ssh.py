"""Handing a ready instance over to an SSH session."""

import logging
import os
import shlex
import socket
import time

import paramiko
from paramiko.channel import ChannelFile

from bite.constants import (
    DEFAULT_SSH_PORT,
    MAX_COMMAND_LENGTH,
    SSH_CONNECT_MAX_RETRIES,
)

logger = logging.getLogger(__name__)


def build_ssh_argv(
    host: str,
    username: str | None = None,
    port: int = DEFAULT_SSH_PORT,
    command: str | None = None,
) -> list[str]:
    """Build the argument vector for the system ssh client.

    Parameters
    ----------
    host : str
        Address or SSH config alias to connect to
    username : str | None
        Remote user; omitted so ssh config decides when None
    port : int
        Remote port; omitted from argv when it is the default
    command : str | None
        Remote command; an interactive shell when None

    Returns
    -------
    list[str]
        Arguments starting with "ssh"
    """
    argv = ["ssh"]

    if username:
        argv += ["-l", username]

    if port != DEFAULT_SSH_PORT:
        argv += ["-p", str(port)]

    argv.append(host)

    if command:
        argv += ["--", command]

    return argv


def exec_ssh(
    host: str,
    username: str | None = None,
    port: int = DEFAULT_SSH_PORT,
    command: str | None = None,
) -> None:
    """Replace the current process with an ssh session.

    Does not return on success. The session's lifetime is entirely the ssh
    client's from here on.

    Raises
    ------
    OSError
        If the ssh executable cannot be started
    """
    argv = build_ssh_argv(host, username=username, port=port, command=command)
    logger.debug("exec %s", shlex.join(argv))

    for handler in logging.getLogger().handlers:
        handler.flush()

    os.execvp(argv[0], argv)


class SSHManager:
    """Runs a single command on an instance over paramiko.

    Parameters
    ----------
    host : str
        Remote host IP address or hostname
    username : str
        SSH username
    port : int
        SSH port (default: 22)
    key_file : str | None
        Private key file; the SSH agent and default keys are used when None

    Attributes
    ----------
    client : paramiko.SSHClient | None
        SSH client instance (None when not connected)
    """

    def __init__(
        self,
        host: str,
        username: str,
        port: int = DEFAULT_SSH_PORT,
        key_file: str | None = None,
    ) -> None:
        self.host = host
        self.username = username
        self.port = port
        self.key_file = key_file
        self.client: paramiko.SSHClient | None = None

    def connect(self, max_retries: int = SSH_CONNECT_MAX_RETRIES) -> None:
        """Establish SSH connection with retry logic.

        The port is already known to accept TCP connections, but sshd may
        still be finishing its startup, so the handshake is retried with
        exponential backoff: 1s, 2s, 4s, 8s.

        Parameters
        ----------
        max_retries : int
            Maximum number of connection attempts

        Raises
        ------
        ConnectionError
            If connection fails after all retry attempts
        paramiko.AuthenticationException
            If the server rejects every available key
        """
        for attempt in range(max_retries):
            try:
                logger.debug(
                    "Attempting SSH connection (attempt %s/%s)...",
                    attempt + 1,
                    max_retries,
                )

                self.client = paramiko.SSHClient()
                self.client.load_system_host_keys()
                self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

                self.client.connect(
                    hostname=self.host,
                    port=self.port,
                    username=self.username,
                    key_filename=self.key_file,
                    timeout=10,
                    auth_timeout=30,
                    banner_timeout=10,
                )
                return

            except paramiko.AuthenticationException:
                raise

            except (
                paramiko.ssh_exception.NoValidConnectionsError,
                paramiko.ssh_exception.SSHException,
                TimeoutError,
                ConnectionRefusedError,
                ConnectionResetError,
                socket.timeout,
            ) as e:
                if attempt < max_retries - 1:
                    time.sleep(2**attempt)
                    continue
                raise ConnectionError(
                    f"Failed to establish SSH connection after {max_retries} attempts"
                ) from e

    def stream_output(self, stdout: ChannelFile, stderr: ChannelFile) -> None:
        """Log remote output line by line until the command completes.

        Parameters
        ----------
        stdout : ChannelFile
            SSH channel stdout stream
        stderr : ChannelFile
            SSH channel stderr stream
        """
        for line in iter(stdout.readline, ""):
            logger.info(line.rstrip("\n"), extra={"stream": "stdout"})

        for line in stderr.readlines():
            logger.info(line.rstrip("\n"), extra={"stream": "stderr"})

    def execute_command(self, command: str) -> int:
        """Execute command and stream its output.

        Parameters
        ----------
        command : str
            Shell command to execute (run in a bash shell in the home directory)

        Returns
        -------
        int
            Command exit code

        Raises
        ------
        RuntimeError
            If SSH connection is not established
        ValueError
            If command is empty or exceeds maximum length
        """
        if not self.client:
            raise RuntimeError("SSH connection not established")

        if not command or not command.strip():
            raise ValueError("Command cannot be empty")

        if len(command) > MAX_COMMAND_LENGTH:
            raise ValueError(
                f"Command length ({len(command)}) exceeds maximum of {MAX_COMMAND_LENGTH} characters"
            )

        shell_command = f"cd ~ && bash -c {shlex.quote(command)}"
        stdin, stdout, stderr = self.client.exec_command(shell_command)

        try:
            stdin.close()
            self.stream_output(stdout, stderr)
            return stdout.channel.recv_exit_status()
        finally:
            stdout.close()
            stderr.close()

    def close(self) -> None:
        """Close SSH connection."""
        if self.client:
            self.client.close()
            self.client = None
