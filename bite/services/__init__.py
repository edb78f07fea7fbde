"""Provider-agnostic services (SSH config file, SSH sessions)."""

from __future__ import annotations

from bite.services.ssh import SSHManager, build_ssh_argv, exec_ssh
from bite.services.ssh_config import ConfigSection, SSHConfigStore

__all__ = [
    "ConfigSection",
    "SSHConfigStore",
    "SSHManager",
    "build_ssh_argv",
    "exec_ssh",
]
