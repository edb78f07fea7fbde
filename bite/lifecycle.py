"""Power state checks and start requests for a resolved instance."""

from __future__ import annotations

import logging

from bite.core.exceptions import InstanceStoppedError, InstanceUnavailableError
from bite.core.interfaces import ComputeProvider, InstanceDescriptor, PowerState

logger = logging.getLogger(__name__)


class LifecycleController:
    """Moves a stopped instance towards running, when allowed to.

    Parameters
    ----------
    provider : ComputeProvider
        Provider client used to issue the start request
    """

    def __init__(self, provider: ComputeProvider) -> None:
        self.provider = provider

    def ensure_running(
        self, descriptor: InstanceDescriptor, authorized_to_start: bool
    ) -> bool:
        """Start the instance if it is stopped.

        Only the start request is issued here; waiting for the instance to
        come up is left to the readiness poller.

        Parameters
        ----------
        descriptor : InstanceDescriptor
            Freshly resolved instance
        authorized_to_start : bool
            Whether the operator allowed starting a stopped instance

        Returns
        -------
        bool
            True if a start request was issued

        Raises
        ------
        InstanceUnavailableError
            If the instance is terminated or shutting down
        InstanceStoppedError
            If the instance is stopped and starting it was not authorized
        """
        state = descriptor.power_state

        if state.is_terminal:
            raise InstanceUnavailableError(descriptor.instance_id, state.value)

        if state is not PowerState.STOPPED:
            logger.debug(
                "Instance %s is %s, nothing to start", descriptor.instance_id, state.value
            )
            return False

        if not authorized_to_start:
            raise InstanceStoppedError(descriptor.instance_id)

        self.provider.start_instance(descriptor.instance_id)
        return True
