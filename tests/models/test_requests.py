"""Unit tests for LatestRequestGate."""

import pytest

from models.callback import CallbackStatus
from models.errors import PermissionDeniedError, RequestFailedError, RequestTimeoutError
from models.observable import CallbackSet
from models.requests import LatestRequestGate, RequestStatus


class Outcome:
    """Collects whatever a CallbackSet delivers."""

    def __init__(self) -> None:
        self.results = []
        self.errors = []

    def callbacks(self) -> CallbackSet:
        return CallbackSet(on_result=self.results.append, on_error=self.errors.append)


@pytest.fixture
def gate(scheduler):
    return LatestRequestGate(scheduler, label="test.lookup", owner="test")


class TestLatestRequestGate:
    def test_answer_arrives_after_latency(self, scheduler, gate):
        outcome = Outcome()

        ticket = gate.issue(1.0, lambda: 42, outcome.callbacks())
        scheduler.advance(0.5)
        assert outcome.results == []
        assert ticket.in_flight

        scheduler.advance(0.5)

        assert outcome.results == [42]
        assert ticket.status == RequestStatus.COMPLETED
        assert ticket.settled_at == scheduler.now()

    def test_answer_computed_at_fire_time(self, scheduler, gate):
        state = {"value": "old"}
        outcome = Outcome()

        gate.issue(1.0, lambda: state["value"], outcome.callbacks())
        state["value"] = "new"
        scheduler.advance(1)

        assert outcome.results == ["new"]

    def test_newer_request_supersedes_older(self, scheduler, gate):
        first, second = Outcome(), Outcome()

        old = gate.issue(1.0, lambda: "first", first.callbacks())
        scheduler.advance(0.5)
        new = gate.issue(1.0, lambda: "second", second.callbacks())
        scheduler.advance(2)

        assert first.results == [] and first.errors == []
        assert second.results == ["second"]
        assert old.status == RequestStatus.SUPERSEDED
        assert new.status == RequestStatus.COMPLETED
        assert gate.is_current(new)
        assert gate.history == [old, new]

    def test_superseded_callbacks_are_cancelled(self, scheduler, gate):
        old = gate.issue(1.0, lambda: None)
        gate.issue(1.0, lambda: None)

        callback = scheduler.timeline.get(old.callback_ids[0])

        assert callback.status == CallbackStatus.CANCELLED

    def test_timeout_rejects(self, scheduler, gate):
        outcome = Outcome()

        ticket = gate.issue(5.0, lambda: "late", outcome.callbacks(), timeout=1.0)
        scheduler.advance(1)

        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], RequestTimeoutError)
        assert ticket.status == RequestStatus.TIMED_OUT

        scheduler.advance(10)
        assert outcome.results == []

    def test_timeout_wins_a_tie(self, scheduler, gate):
        outcome = Outcome()

        ticket = gate.issue(1.0, lambda: "answer", outcome.callbacks(), timeout=1.0)
        scheduler.advance(1)

        assert ticket.status == RequestStatus.TIMED_OUT
        assert outcome.results == []

    def test_answer_cancels_timeout(self, scheduler, gate):
        ticket = gate.issue(1.0, lambda: "answer", timeout=5.0)

        scheduler.advance(1)

        deadline = scheduler.timeline.get(ticket.callback_ids[1])
        assert deadline.status == CallbackStatus.CANCELLED

    def test_screen_error_passed_through(self, scheduler, gate):
        outcome = Outcome()
        error = PermissionDeniedError("camera")

        def produce():
            raise error

        ticket = gate.issue(1.0, produce, outcome.callbacks())
        scheduler.advance(1)

        assert outcome.errors == [error]
        assert ticket.status == RequestStatus.FAILED

    def test_unexpected_error_wrapped(self, scheduler, gate):
        outcome = Outcome()

        def produce():
            raise KeyError("missing")

        gate.issue(1.0, produce, outcome.callbacks())
        scheduler.advance(1)

        assert isinstance(outcome.errors[0], RequestFailedError)
        assert "test.lookup failed" in outcome.errors[0].message

    def test_cancel(self, scheduler, gate):
        outcome = Outcome()
        ticket = gate.issue(1.0, lambda: "answer", outcome.callbacks())

        assert gate.cancel() is True
        assert gate.cancel() is False

        scheduler.advance(2)

        assert ticket.status == RequestStatus.CANCELLED
        assert outcome.results == [] and outcome.errors == []

    def test_callbacks_use_owner(self, scheduler, gate):
        gate.issue(1.0, lambda: None, timeout=2.0)

        assert len(scheduler.pending("test")) == 2
