"""Tests for resilience policies and job polling."""

from __future__ import annotations

import warnings

import pytest
import requests

from services.resilience import (
    CircuitBreakerOpenError,
    CircuitBreakerState,
    ResiliencePolicy,
    UpstreamFailure,
    UpstreamTimeout,
    poll_until,
)


def test_resilience_policy_retries_then_succeeds() -> None:
    attempts = {"count": 0}

    def flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise requests.ConnectionError("transient")
        return "ok"

    policy = ResiliencePolicy(name="test", max_attempts=3)
    result = policy.execute(flaky)

    assert result == "ok"
    assert attempts["count"] == 3
    assert policy.breaker.state == CircuitBreakerState.CLOSED


def test_default_policy_makes_a_single_attempt() -> None:
    attempts = {"count": 0}

    def failing() -> str:
        attempts["count"] += 1
        raise ConnectionError("down")

    policy = ResiliencePolicy(name="stage")

    with pytest.raises(UpstreamFailure):
        policy.execute(failing)
    assert attempts["count"] == 1


def test_request_timeout_maps_to_upstream_timeout() -> None:
    def slow() -> str:
        raise requests.Timeout("read timed out")

    with pytest.raises(UpstreamTimeout):
        ResiliencePolicy(name="slow").execute(slow)


def test_malformed_response_maps_to_upstream_failure() -> None:
    def malformed() -> str:
        raise ValueError("missing id")

    with pytest.raises(UpstreamFailure, match="missing id"):
        ResiliencePolicy(name="shape").execute(malformed)


def test_circuit_breaker_opens_after_failed_calls() -> None:
    policy = ResiliencePolicy(
        name="test",
        max_attempts=1,
        failure_threshold=2,
        recovery_timeout_seconds=60,
    )

    with pytest.raises(UpstreamFailure):
        policy.execute(lambda: (_ for _ in ()).throw(RuntimeError("fail1")))
    with pytest.raises(UpstreamFailure):
        policy.execute(lambda: (_ for _ in ()).throw(RuntimeError("fail2")))

    assert policy.breaker.state == CircuitBreakerState.OPEN

    with pytest.raises(CircuitBreakerOpenError):
        policy.execute(lambda: "should not run")


def test_poll_until_sleeps_before_every_attempt() -> None:
    statuses = iter(["RUNNING", "RUNNING", "SUCCEEDED"])
    sleeps: list[float] = []

    result = poll_until(
        lambda: next(statuses),
        is_done=lambda status: status == "SUCCEEDED",
        name="job",
        attempts=5,
        delay_seconds=2.5,
        sleep=sleeps.append,
    )

    assert result == "SUCCEEDED"
    assert sleeps == [2.5, 2.5, 2.5]


def test_poll_until_raises_timeout_after_bounded_attempts() -> None:
    calls = {"count": 0}
    sleeps: list[float] = []

    def fetch() -> str:
        calls["count"] += 1
        return "RUNNING"

    with pytest.raises(UpstreamTimeout):
        poll_until(
            fetch,
            is_done=lambda status: status == "SUCCEEDED",
            name="job",
            attempts=4,
            delay_seconds=1.0,
            sleep=sleeps.append,
        )

    assert calls["count"] == 4
    assert len(sleeps) == 4


def test_poll_error_consumes_one_attempt() -> None:
    responses: list[object] = [requests.ConnectionError("blip"), "done"]

    def fetch() -> str:
        value = responses.pop(0)
        if isinstance(value, Exception):
            raise value
        return str(value)

    result = poll_until(
        fetch,
        is_done=lambda status: status == "done",
        name="doc",
        attempts=2,
        delay_seconds=0,
        sleep=lambda _: None,
    )

    assert result == "done"
    assert responses == []


def test_poll_until_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        poll_until(
            lambda: "x",
            is_done=lambda _: True,
            name="job",
            attempts=0,
            delay_seconds=0,
        )


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _fail() -> str:
    raise RuntimeError("provider down")


def test_open_breaker_lets_one_probe_through_after_recovery() -> None:
    clock = _Clock()
    policy = ResiliencePolicy(
        name="probe",
        failure_threshold=1,
        recovery_timeout_seconds=30,
        clock=clock,
    )
    with pytest.raises(UpstreamFailure):
        policy.execute(_fail)

    clock.now += 10
    with pytest.raises(CircuitBreakerOpenError):
        policy.execute(lambda: "refused")

    clock.now += 25
    assert policy.execute(lambda: "recovered") == "recovered"
    assert policy.breaker.state == CircuitBreakerState.CLOSED


def test_failed_probe_reopens_breaker() -> None:
    clock = _Clock()
    policy = ResiliencePolicy(
        name="probe",
        failure_threshold=3,
        recovery_timeout_seconds=30,
        clock=clock,
    )
    for _ in range(3):
        with pytest.raises(UpstreamFailure):
            policy.execute(_fail)
    assert policy.breaker.state == CircuitBreakerState.OPEN

    clock.now += 31
    with pytest.raises(UpstreamFailure):
        policy.execute(_fail)

    assert policy.breaker.state == CircuitBreakerState.OPEN
    with pytest.raises(CircuitBreakerOpenError):
        policy.execute(lambda: "refused")


def test_retrying_policy_emits_no_deprecation_warnings() -> None:
    attempts = {"count": 0}

    def flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 2:
            raise requests.Timeout("slow")
        return "ok"

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        assert ResiliencePolicy(name="retry", max_attempts=2).execute(flaky) == "ok"
