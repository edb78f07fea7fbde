"""Exceptions raised by the instance readiness pipeline.

Every exception here is terminal for a run. The CLI turns them into an
operator-facing message and a non-zero exit code.
"""

from __future__ import annotations

from pathlib import Path


class BiteError(Exception):
    """Base class for all bite failures."""


class InstanceNotFoundError(BiteError):
    """No instance matched the identity or tag that was looked up.

    Parameters
    ----------
    identity : str
        Instance ID or Name tag that was searched for
    kind : str
        Either "id" or "tag"
    """

    def __init__(self, identity: str, kind: str = "id") -> None:
        self.identity = identity
        self.kind = kind
        if kind == "tag":
            message = f"No instance found with Name tag '{identity}'"
        else:
            message = f"No instance found with ID '{identity}'"
        super().__init__(message)


class InstanceStoppedError(BiteError):
    """Instance is stopped and starting it was not authorized."""

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(
            f"Instance {instance_id} is stopped, use --boot to start it"
        )


class InstanceUnavailableError(BiteError):
    """Instance is in a state it cannot come back from."""

    def __init__(self, instance_id: str, state: str) -> None:
        self.instance_id = instance_id
        self.state = state
        super().__init__(f"Instance {instance_id} is {state} and cannot be started")


class ReadinessTimeoutError(BiteError):
    """Deadline elapsed while waiting for an address or for SSH.

    Parameters
    ----------
    phase : str
        "address" or "reachability"
    waited : float
        Seconds elapsed since the readiness wait started
    """

    def __init__(self, phase: str, waited: float) -> None:
        self.phase = phase
        self.waited = waited
        if phase == "address":
            what = "instance to get an IP address"
        else:
            what = "ssh to become available"
        super().__init__(f"Timeout waiting for {what} after {waited:.0f}s")


class HostAliasNotFoundError(BiteError):
    """SSH config has no section for the requested alias."""

    def __init__(self, alias: str, path: Path | str) -> None:
        self.alias = alias
        self.path = path
        super().__init__(f"No such host '{alias}' in {path}")


class CrossReferenceMissingError(BiteError):
    """SSH config section exists but names no instance."""

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(
            f"Host '{alias}' has no '# bite: <instance-id>' comment"
        )


class MissingTargetLineError(BiteError):
    """SSH config section has no HostName line to rewrite."""

    def __init__(self, alias: str | None = None) -> None:
        self.alias = alias
        if alias:
            message = f"Host '{alias}' has no HostName line to update"
        else:
            message = "No HostName line to update"
        super().__init__(message)


class ConfigIOError(BiteError):
    """Reading or replacing the SSH config file failed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
