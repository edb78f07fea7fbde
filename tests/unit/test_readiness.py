"""Tests for the address and reachability waits."""

from unittest.mock import MagicMock

import pytest

from bite.core.exceptions import InstanceUnavailableError, ReadinessTimeoutError
from bite.core.interfaces import PowerState
from bite.core.locator import InstanceLocator
from bite.core.readiness import DeadlineWindow, ReadinessPoller
from bite.providers.exceptions import ProviderAPIError
from tests.unit.fakes.fake_clock import FakeClock
from tests.unit.fakes.fake_compute_provider import FakeComputeProvider, descriptor

INSTANCE_ID = "i-0123456789abcdef0"


def make_poller(
    provider: FakeComputeProvider, clock: FakeClock, connect: MagicMock | None = None
) -> ReadinessPoller:
    return ReadinessPoller(
        InstanceLocator(provider),
        poll_interval=1.0,
        connect_timeout=1.0,
        sleep=clock.sleep,
        clock=clock,
        connect=connect or MagicMock(),
    )


class TestDeadlineWindow:
    """Tests for deadline arithmetic."""

    def test_elapsed_and_remaining(self, fake_clock: FakeClock) -> None:
        deadline = DeadlineWindow(30, clock=fake_clock)
        fake_clock.advance(12)

        assert deadline.elapsed() == 12
        assert deadline.remaining() == 18
        assert not deadline.expired()

    def test_remaining_never_negative(self, fake_clock: FakeClock) -> None:
        deadline = DeadlineWindow(5, clock=fake_clock)
        fake_clock.advance(9)

        assert deadline.remaining() == 0
        assert deadline.expired()


class TestAwaitAddress:
    """Tests for the address phase."""

    @pytest.mark.parametrize("pending_polls", [0, 1, 4])
    def test_returns_address_after_n_plus_one_queries(
        self, fake_clock: FakeClock, pending_polls: int
    ) -> None:
        provider = FakeComputeProvider()
        provider.script(
            INSTANCE_ID,
            [descriptor(state=PowerState.PENDING, address=None)] * pending_polls
            + [descriptor(address="10.0.0.7")],
        )
        poller = make_poller(provider, fake_clock)
        deadline = poller.start_deadline(30)

        address = poller.await_address(descriptor(address=None), deadline)

        assert address == "10.0.0.7"
        assert len(provider.describe_calls) == pending_polls + 1
        assert fake_clock.sleeps == [1.0] * pending_polls

    def test_times_out_without_overshooting(self, fake_clock: FakeClock) -> None:
        provider = FakeComputeProvider([descriptor(state=PowerState.PENDING, address=None)])
        poller = make_poller(provider, fake_clock)
        deadline = poller.start_deadline(3.5)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            poller.await_address(descriptor(address=None), deadline)

        assert exc_info.value.phase == "address"
        assert deadline.elapsed() <= 3.5 + 1.0
        assert fake_clock.sleeps == [1.0, 1.0, 1.0, 0.5]

    def test_zero_budget_queries_once(self, fake_clock: FakeClock) -> None:
        provider = FakeComputeProvider([descriptor(address=None)])
        poller = make_poller(provider, fake_clock)
        deadline = poller.start_deadline(1)
        fake_clock.advance(1)

        with pytest.raises(ReadinessTimeoutError):
            poller.await_address(descriptor(address=None), deadline)

        assert len(provider.describe_calls) == 1
        assert fake_clock.sleeps == []

    def test_always_queries_even_if_descriptor_has_address(
        self, fake_clock: FakeClock
    ) -> None:
        provider = FakeComputeProvider([descriptor(address="10.0.0.9")])
        poller = make_poller(provider, fake_clock)

        address = poller.await_address(
            descriptor(address="10.0.0.1"), poller.start_deadline(30)
        )

        assert address == "10.0.0.9"
        assert provider.describe_calls == [INSTANCE_ID]

    def test_instance_terminating_while_polling(self, fake_clock: FakeClock) -> None:
        provider = FakeComputeProvider()
        provider.script(
            INSTANCE_ID,
            [
                descriptor(state=PowerState.PENDING, address=None),
                descriptor(state=PowerState.SHUTTING_DOWN, address=None),
            ],
        )
        poller = make_poller(provider, fake_clock)

        with pytest.raises(InstanceUnavailableError):
            poller.await_address(descriptor(address=None), poller.start_deadline(30))

        assert len(provider.describe_calls) == 2

    def test_api_error_propagates_without_retry(self, fake_clock: FakeClock) -> None:
        provider = FakeComputeProvider([descriptor(address=None)])
        provider.error = ProviderAPIError("throttled", error_code="RequestLimitExceeded")
        poller = make_poller(provider, fake_clock)

        with pytest.raises(ProviderAPIError):
            poller.await_address(descriptor(address=None), poller.start_deadline(30))

        assert len(provider.describe_calls) == 1
        assert fake_clock.sleeps == []


class TestAwaitReachability:
    """Tests for the reachability phase."""

    def test_closes_successful_connection(self, fake_clock: FakeClock) -> None:
        conn = MagicMock()
        connect = MagicMock(return_value=conn)
        poller = make_poller(FakeComputeProvider(), fake_clock, connect)

        poller.await_reachability("10.0.0.5", 22, poller.start_deadline(30))

        connect.assert_called_once_with(("10.0.0.5", 22), timeout=1.0)
        conn.close.assert_called_once()

    def test_retries_every_failure_kind(self, fake_clock: FakeClock) -> None:
        conn = MagicMock()
        connect = MagicMock(
            side_effect=[
                ConnectionRefusedError("refused"),
                TimeoutError("timed out"),
                OSError(113, "No route to host"),
                conn,
            ]
        )
        poller = make_poller(FakeComputeProvider(), fake_clock, connect)

        poller.await_reachability("10.0.0.5", 22, poller.start_deadline(30))

        assert connect.call_count == 4
        assert fake_clock.sleeps == []
        conn.close.assert_called_once()

    def test_times_out(self, fake_clock: FakeClock) -> None:
        def refuse(address, timeout):
            fake_clock.advance(timeout)
            raise TimeoutError("timed out")

        connect = MagicMock(side_effect=refuse)
        poller = make_poller(FakeComputeProvider(), fake_clock, connect)
        deadline = poller.start_deadline(5)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            poller.await_reachability("10.0.0.5", 22, deadline)

        assert exc_info.value.phase == "reachability"
        assert connect.call_count == 5


class TestSharedDeadline:
    """Both phases draw on one budget."""

    def test_time_spent_on_address_reduces_reachability_budget(
        self, fake_clock: FakeClock
    ) -> None:
        provider = FakeComputeProvider()
        provider.script(
            INSTANCE_ID,
            [descriptor(state=PowerState.PENDING, address=None)] * 25
            + [descriptor(address="10.0.0.7")],
        )

        def refuse(address, timeout):
            fake_clock.advance(timeout)
            raise ConnectionRefusedError("refused")

        connect = MagicMock(side_effect=refuse)
        poller = make_poller(provider, fake_clock, connect)
        deadline = poller.start_deadline(30)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            poller.wait_until_ready(descriptor(address=None), 22, deadline)

        assert exc_info.value.phase == "reachability"
        assert connect.call_count == 5

    def test_wait_until_ready_returns_address(self, fake_clock: FakeClock) -> None:
        provider = FakeComputeProvider([descriptor(address="10.0.0.7")])
        connect = MagicMock()
        poller = make_poller(provider, fake_clock, connect)

        address = poller.wait_until_ready(
            descriptor(address=None), 22, poller.start_deadline(30)
        )

        assert address == "10.0.0.7"
        connect.assert_called_once_with(("10.0.0.7", 22), timeout=1.0)
