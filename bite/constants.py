"""Global constants for bite.

Timing values for the readiness wait and defaults shared by the settings
loader and the CLI. These are provider-agnostic.
"""

from enum import Enum

DEFAULT_MAX_START_DELAY_SECONDS = 30
"""Overall budget in seconds for an instance to become reachable.

A single window shared by the address phase and the reachability phase.
Time spent waiting for an address is not available to the SSH probe.
"""

POLL_INTERVAL_SECONDS = 1.0
"""Fixed delay in seconds between instance description polls.

No backoff is applied: address assignment usually follows a start request
within seconds, and the overall window is short.
"""

CONNECT_TIMEOUT_SECONDS = 1.0
"""Timeout in seconds for a single TCP connection attempt to the SSH port."""

DEFAULT_SSH_PORT = 22

DEFAULT_SSH_USERNAME = "ec2-user"
"""Remote username used when the SSH config section carries no User line."""

DEFAULT_SSH_CONFIG_PATH = "~/.ssh/config"

DEFAULT_SETTINGS_PATH = "~/.config/bite/bite.yaml"
"""Settings file location used when BITE_CONFIG is not set."""

CROSS_REFERENCE_MARKER = "# bite:"
"""Comment prefix binding an SSH config section to an instance ID.

Example::

    # bite: i-0123456789abcdef0
    Host devbox
      HostName 10.0.1.23
"""

SSH_CONNECT_MAX_RETRIES = 5
"""Maximum paramiko connection attempts when running a single command."""

MAX_COMMAND_LENGTH = 10000
"""Maximum length in characters for commands sent to the remote instance."""

EXIT_SUCCESS = 0

EXIT_ERROR = 1

EXIT_CONFIG_ERROR = 2

EXIT_INTERRUPTED = 130


class AddressType(str, Enum):
    """Which instance address to resolve and persist."""

    PRIVATE = "private"
    PUBLIC = "public"


class LaunchStrategy(str, Enum):
    """How a target name is turned into an instance."""

    ALIAS = "alias"
    TAG = "tag"
