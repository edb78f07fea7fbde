"""Core bite functionality."""

from __future__ import annotations

from bite.core.exceptions import (
    BiteError,
    ConfigIOError,
    CrossReferenceMissingError,
    HostAliasNotFoundError,
    InstanceNotFoundError,
    InstanceStoppedError,
    InstanceUnavailableError,
    MissingTargetLineError,
    ReadinessTimeoutError,
)
from bite.core.interfaces import ComputeProvider, InstanceDescriptor, PowerState

__all__ = [
    "BiteError",
    "ConfigIOError",
    "CrossReferenceMissingError",
    "HostAliasNotFoundError",
    "InstanceNotFoundError",
    "InstanceStoppedError",
    "InstanceUnavailableError",
    "MissingTargetLineError",
    "ReadinessTimeoutError",
    "ComputeProvider",
    "InstanceDescriptor",
    "PowerState",
]
