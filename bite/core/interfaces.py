"""Provider-facing types and protocols."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class PowerState(str, Enum):
    """Instance power states as reported by the provider."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    UNKNOWN = "unknown"

    @classmethod
    def from_provider(cls, value: str | None) -> PowerState:
        """Map a raw provider state name to a PowerState.

        Parameters
        ----------
        value : str | None
            State name, e.g. ``"running"``

        Returns
        -------
        PowerState
            Matching member, or UNKNOWN for anything unrecognized
        """
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        """Whether the instance can never be started again."""
        return self in (PowerState.SHUTTING_DOWN, PowerState.TERMINATED)


@dataclass(frozen=True)
class InstanceDescriptor:
    """Snapshot of an instance's observable state at one point in time.

    Attributes
    ----------
    instance_id : str
        Provider instance identifier
    power_state : PowerState
        Power state at the time of the query
    assigned_address : str | None
        Network address, present once the provider has allocated one
    name : str | None
        Value of the Name tag, if any
    region : str | None
        Region the instance lives in
    """

    instance_id: str
    power_state: PowerState
    assigned_address: str | None = None
    name: str | None = None
    region: str | None = None

    @property
    def label(self) -> str:
        """Instance ID followed by its Name tag and region, when known."""
        details = ", ".join(value for value in (self.name, self.region) if value)
        return f"{self.instance_id} ({details})" if details else self.instance_id


class ComputeProvider(Protocol):
    """Operations the readiness pipeline needs from a cloud provider."""

    def describe_instance(self, instance_id: str) -> InstanceDescriptor | None:
        """Return a fresh descriptor for one instance, or None if unknown."""
        ...

    def describe_instances_by_tag(self, name: str) -> list[InstanceDescriptor]:
        """Return descriptors of instances whose Name tag equals name."""
        ...

    def start_instance(self, instance_id: str) -> None:
        """Request a start without waiting for it to complete."""
        ...
