"""Unit tests for Observable and CallbackSet."""

import logging

from models.errors import RequestFailedError
from models.observable import CallbackSet, Observable
from tests.fixtures.core.times import START_TIME


class Screen(Observable):
    screen_name = "test"

    def poke(self, value):
        self._notify("poked", START_TIME, value=value)


class TestObservable:
    def test_listeners_called_in_subscription_order(self):
        screen = Screen()
        calls = []
        screen.subscribe(lambda change: calls.append(("a", change.payload["value"])))
        screen.subscribe(lambda change: calls.append(("b", change.payload["value"])))

        screen.poke(1)

        assert calls == [("a", 1), ("b", 1)]

    def test_change_fields(self):
        screen = Screen()
        changes = []
        screen.subscribe(changes.append)

        screen.poke("x")

        assert changes[0].screen == "test"
        assert changes[0].kind == "poked"
        assert changes[0].at == START_TIME

    def test_unsubscribe(self):
        screen = Screen()
        calls = []
        token = screen.subscribe(calls.append)

        assert screen.unsubscribe(token) is True
        assert screen.unsubscribe(token) is False

        screen.poke(1)
        assert calls == []
        assert screen.listener_count == 0

    def test_failing_listener_is_isolated(self, caplog):
        screen = Screen()
        calls = []

        def broken(change):
            raise RuntimeError("listener bug")

        screen.subscribe(broken)
        screen.subscribe(calls.append)

        with caplog.at_level(logging.ERROR, logger="models.observable"):
            screen.poke(1)

        assert len(calls) == 1
        assert "listener bug" in caplog.text


class TestCallbackSet:
    def test_resolve_once(self):
        results = []
        callbacks = CallbackSet(on_result=results.append)

        assert callbacks.resolve(1) is True
        assert callbacks.resolve(2) is False
        assert results == [1]
        assert callbacks.settled

    def test_reject_after_resolve_ignored(self):
        errors = []
        callbacks = CallbackSet(on_result=lambda r: None, on_error=errors.append)

        callbacks.resolve(True)

        assert callbacks.reject(RequestFailedError("late")) is False
        assert errors == []

    def test_missing_handlers_are_fine(self):
        callbacks = CallbackSet()

        assert callbacks.reject(RequestFailedError("nobody listening")) is True
