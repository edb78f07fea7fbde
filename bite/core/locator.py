"""Resolution of a host identity to a single instance."""

from __future__ import annotations

import logging

from bite.core.exceptions import InstanceNotFoundError
from bite.core.interfaces import ComputeProvider, InstanceDescriptor

logger = logging.getLogger(__name__)


class InstanceLocator:
    """Find instances through a configured compute provider.

    Parameters
    ----------
    provider : ComputeProvider
        Provider client carrying credentials and region
    """

    def __init__(self, provider: ComputeProvider) -> None:
        self.provider = provider

    def resolve_by_token(self, token: str) -> InstanceDescriptor:
        """Look up the instance whose ID equals token.

        Parameters
        ----------
        token : str
            Instance ID taken from a ``# bite:`` comment

        Returns
        -------
        InstanceDescriptor
            Current state of the instance

        Raises
        ------
        InstanceNotFoundError
            If the provider knows no such instance
        """
        descriptor = self.provider.describe_instance(token)

        if descriptor is None:
            raise InstanceNotFoundError(token, kind="id")

        logger.debug("Resolved %s: state=%s", token, descriptor.power_state.value)
        return descriptor

    def resolve_by_tag(self, name: str) -> InstanceDescriptor:
        """Look up an instance by its Name tag.

        When several instances share the tag the first one returned by the
        provider is used.

        Parameters
        ----------
        name : str
            Exact Name tag value

        Returns
        -------
        InstanceDescriptor
            Current state of the first matching instance

        Raises
        ------
        InstanceNotFoundError
            If no instance carries the tag
        """
        matches = self.provider.describe_instances_by_tag(name)

        if not matches:
            raise InstanceNotFoundError(name, kind="tag")

        if len(matches) > 1:
            logger.warning(
                "Name tag '%s' matches %d instances, using %s (others: %s)",
                name,
                len(matches),
                matches[0].instance_id,
                ", ".join(m.instance_id for m in matches[1:]),
            )

        return matches[0]

    def refresh(self, descriptor: InstanceDescriptor) -> InstanceDescriptor:
        """Fetch a new snapshot of an already resolved instance."""
        return self.resolve_by_token(descriptor.instance_id)
