"""Tests for starting stopped instances."""

import pytest

from bite.core.exceptions import InstanceStoppedError, InstanceUnavailableError
from bite.core.interfaces import PowerState
from bite.lifecycle import LifecycleController
from tests.unit.fakes.fake_compute_provider import FakeComputeProvider, descriptor


def test_stopped_without_authorization_never_starts(
    fake_provider: FakeComputeProvider,
) -> None:
    controller = LifecycleController(fake_provider)

    with pytest.raises(InstanceStoppedError, match="--boot"):
        controller.ensure_running(
            descriptor(state=PowerState.STOPPED), authorized_to_start=False
        )

    assert fake_provider.started == []


def test_stopped_with_authorization_issues_start(
    fake_provider: FakeComputeProvider,
) -> None:
    controller = LifecycleController(fake_provider)

    started = controller.ensure_running(
        descriptor(state=PowerState.STOPPED), authorized_to_start=True
    )

    assert started is True
    assert fake_provider.started == ["i-0123456789abcdef0"]
    assert fake_provider.describe_calls == []


@pytest.mark.parametrize(
    "state",
    [PowerState.RUNNING, PowerState.PENDING, PowerState.STOPPING, PowerState.UNKNOWN],
)
@pytest.mark.parametrize("authorized", [True, False])
def test_non_stopped_states_are_noop(
    fake_provider: FakeComputeProvider, state: PowerState, authorized: bool
) -> None:
    controller = LifecycleController(fake_provider)

    assert controller.ensure_running(descriptor(state=state), authorized) is False
    assert fake_provider.started == []


@pytest.mark.parametrize("state", [PowerState.TERMINATED, PowerState.SHUTTING_DOWN])
def test_terminal_states_are_unavailable(
    fake_provider: FakeComputeProvider, state: PowerState
) -> None:
    controller = LifecycleController(fake_provider)

    with pytest.raises(InstanceUnavailableError) as exc_info:
        controller.ensure_running(descriptor(state=state), authorized_to_start=True)

    assert exc_info.value.state == state.value
    assert fake_provider.started == []


def test_power_state_from_unknown_provider_value() -> None:
    assert PowerState.from_provider("hibernating") is PowerState.UNKNOWN
    assert PowerState.from_provider(None) is PowerState.UNKNOWN
    assert PowerState.from_provider("shutting-down") is PowerState.SHUTTING_DOWN
