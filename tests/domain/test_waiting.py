from __future__ import annotations

import pytest

from cloudsettle.domain.errors import (
    RemoteAPIError,
    RemoteObjectNotFound,
    UnexpectedStateError,
    WaitAborted,
    WaitTimeoutError,
)
from cloudsettle.domain.outcomes import NETWORKING_CONFLICTS
from cloudsettle.domain.ports import MutationInvoker, RemoteObjectAccessor
from cloudsettle.domain.states import ClusterStatus
from cloudsettle.domain.waiting import WaitSpec, wait_for_state
from tests.support.cloud import FakeClock, ScriptedRefresh, not_found


def _spec(
    refresh: ScriptedRefresh[str],
    *,
    pending: set[str] | None = None,
    target: set[str] | None = None,
    timeout: float = 300,
    initial_delay: float = 0,
    poll_interval: float = 10,
    **kwargs: object,
) -> WaitSpec[dict[str, object], str]:
    return WaitSpec(
        refresh=refresh,
        pending=frozenset(pending if pending is not None else {"creating"}),
        target=frozenset(target if target is not None else {"available"}),
        timeout=timeout,
        initial_delay=initial_delay,
        poll_interval=poll_interval,
        object_id="vol-1",
        operation="become available",
        **kwargs,  # type: ignore[arg-type]
    )


def test_target_on_first_refresh_returns_without_sleeping(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["available"])

    snapshot = clock.waiter().wait(_spec(refresh))

    assert snapshot == {"label": "available", "call": 1}
    assert refresh.calls == 1
    assert clock.sleeps == []


@pytest.mark.parametrize("pending_polls", [1, 3, 7])
def test_pending_labels_are_polled_until_target(clock: FakeClock, pending_polls: int) -> None:
    refresh = ScriptedRefresh(["creating"] * pending_polls + ["available"])

    snapshot = clock.waiter().wait(_spec(refresh, poll_interval=5))

    assert snapshot is not None
    assert refresh.calls == pending_polls + 1
    assert clock.sleeps == [5] * pending_polls


def test_creating_twice_then_available_succeeds_on_third_call(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["creating", "creating", "available"])

    snapshot = clock.waiter().wait(_spec(refresh))

    assert snapshot == {"label": "available", "call": 3}
    assert refresh.calls == 3


def test_always_pending_times_out_within_deadline(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["creating"])

    with pytest.raises(WaitTimeoutError) as exc:
        clock.waiter().wait(_spec(refresh, timeout=30, initial_delay=5, poll_interval=10))

    assert clock.now <= 5 + 30
    assert exc.value.last_label == "creating"
    assert exc.value.object_id == "vol-1"
    assert "last state: creating" in str(exc.value)


def test_final_sleep_is_clipped_to_remaining_time(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["creating"])

    with pytest.raises(WaitTimeoutError):
        clock.waiter().wait(_spec(refresh, timeout=25, poll_interval=10))

    assert clock.sleeps == [10, 10, 5]
    assert refresh.calls == 4


def test_initial_delay_never_exceeds_timeout(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["creating"])

    with pytest.raises(WaitTimeoutError):
        clock.waiter().wait(_spec(refresh, timeout=10, initial_delay=50))

    assert clock.sleeps == [10]
    assert refresh.calls == 1


def test_not_found_completes_a_deletion_wait(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["deleting", "deleting", not_found()])

    snapshot = clock.waiter().wait(
        _spec(refresh, pending={"deleting"}, target={"deleted"})
    )

    assert snapshot is None
    assert refresh.calls == 3


def test_not_found_completes_a_deletion_wait_with_enum_labels(clock: FakeClock) -> None:
    refresh = ScriptedRefresh([ClusterStatus.DELETING, not_found()])
    spec = WaitSpec(
        refresh=refresh,
        pending=frozenset({ClusterStatus.DELETING}),
        target=frozenset({ClusterStatus.DELETED}),
        timeout=60,
    )

    assert spec.awaits_deletion
    assert clock.waiter().wait(spec) is None


def test_not_found_when_awaiting_other_target_is_fatal_without_sleeping(
    clock: FakeClock,
) -> None:
    refresh = ScriptedRefresh([not_found()])

    with pytest.raises(RemoteObjectNotFound) as exc:
        clock.waiter().wait(_spec(refresh, pending=set(), target={"active"}))

    assert clock.sleeps == []
    assert refresh.calls == 1
    assert isinstance(exc.value.__cause__, RemoteAPIError)


def test_unexpected_label_fails_after_one_refresh(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["error"])

    with pytest.raises(UnexpectedStateError) as exc:
        clock.waiter().wait(_spec(refresh))

    assert refresh.calls == 1
    assert clock.sleeps == []
    assert exc.value.label == "error"
    assert "available" in str(exc.value)


def test_empty_pending_set_accepts_any_non_target_label(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["building", "queued", "available"])

    snapshot = clock.waiter().wait(_spec(refresh, pending=set()))

    assert snapshot is not None
    assert refresh.calls == 3


def test_transient_refresh_errors_keep_polling(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(
        [RemoteAPIError("busy", status_code=503), "creating", "available"]
    )

    snapshot = clock.waiter().wait(_spec(refresh))

    assert snapshot is not None
    assert refresh.calls == 3


def test_retryable_conflict_keeps_polling_only_with_policy(clock: FakeClock) -> None:
    conflict = RemoteAPIError("exhausted", status_code=409, subtype="IpAddressGenerationFailure")

    refresh = ScriptedRefresh([conflict, "available"])
    assert clock.waiter().wait(_spec(refresh, conflicts=NETWORKING_CONFLICTS)) is not None

    with pytest.raises(WaitAborted):
        clock.waiter().wait(_spec(ScriptedRefresh([conflict, "available"])))


def test_non_api_error_aborts_the_wait(clock: FakeClock) -> None:
    refresh = ScriptedRefresh([RuntimeError("cluster reported error")])

    with pytest.raises(WaitAborted) as exc:
        clock.waiter().wait(_spec(refresh))

    assert isinstance(exc.value.__cause__, RuntimeError)
    assert "cluster reported error" in str(exc.value)


def test_continuous_target_occurrence_requires_consecutive_hits(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["available", "creating", "available", "available"])

    snapshot = clock.waiter().wait(_spec(refresh, continuous_target_occurrence=2))

    assert snapshot == {"label": "available", "call": 4}
    assert refresh.calls == 4


def test_wait_for_state_uses_injected_sleep_and_clock() -> None:
    clock = FakeClock(start=1000)
    refresh = ScriptedRefresh(["creating", "available"])

    snapshot = wait_for_state(
        _spec(refresh, initial_delay=3, poll_interval=4), sleep=clock.sleep, clock=clock
    )

    assert snapshot is not None
    assert clock.sleeps == [3, 4]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"target": set()}, "at least one target"),
        ({"pending": {"available"}}, "both pending and target"),
        ({"timeout": -1}, "non-negative"),
        ({"poll_interval": 0}, "poll_interval"),
        ({"continuous_target_occurrence": 0}, "continuous_target_occurrence"),
    ],
)
def test_wait_spec_rejects_invalid_parameters(kwargs: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        _spec(ScriptedRefresh(["available"]), **kwargs)  # type: ignore[arg-type]


def test_scripted_refresh_satisfies_accessor_protocol() -> None:
    assert isinstance(ScriptedRefresh(["available"]), RemoteObjectAccessor)
    assert isinstance(lambda: None, MutationInvoker)


def test_wait_present_returns_the_snapshot(clock: FakeClock) -> None:
    refresh = ScriptedRefresh(["creating", "available"])

    snapshot = clock.waiter().wait_present(_spec(refresh))

    assert snapshot == {"label": "available", "call": 2}


def test_wait_present_refuses_deletion_waits(clock: FakeClock) -> None:
    refresh = ScriptedRefresh([not_found()])

    with pytest.raises(ValueError, match="deletion wait"):
        clock.waiter().wait_present(_spec(refresh, pending={"deleting"}, target={"deleted"}))

    assert refresh.calls == 0
