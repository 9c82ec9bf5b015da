"""Tests for the event bus and service registry."""
import gc

import pytest

from events import AppEvent, event_bus
from i18n import get_language, set_language, t
from registry import Services, registry


@pytest.fixture(autouse=True)
def clean_bus():
    event_bus.clear()
    registry.clear()
    yield
    event_bus.clear()
    registry.clear()


class Listener:
    def __init__(self):
        self.received = []

    def on_event(self, data):
        self.received.append(data)


class TestEventBus:
    def test_bound_method_receives_events(self):
        listener = Listener()
        event_bus.subscribe(AppEvent.SIGNED_IN, listener.on_event)
        event_bus.emit(AppEvent.SIGNED_IN, "ada")
        assert listener.received == ["ada"]

    def test_bound_method_is_weak(self):
        listener = Listener()
        event_bus.subscribe(AppEvent.SIGNED_IN, listener.on_event)
        del listener
        gc.collect()
        event_bus.emit(AppEvent.SIGNED_IN, "ada")

    def test_lambda_survives_until_unsubscribed(self):
        received = []
        sub = event_bus.subscribe(AppEvent.SIGNED_OUT, lambda data: received.append(data))
        gc.collect()
        event_bus.emit(AppEvent.SIGNED_OUT, 1)
        sub.unsubscribe()
        event_bus.emit(AppEvent.SIGNED_OUT, 2)
        assert received == [1]
        assert sub.active is False

    def test_failing_handler_does_not_block_others(self):
        received = []

        def broken(data):
            raise RuntimeError("boom")

        sub1 = event_bus.subscribe(AppEvent.NAVIGATED_TO_MAIN, broken, strong=True)
        sub2 = event_bus.subscribe(AppEvent.NAVIGATED_TO_MAIN, lambda data: received.append(data))
        event_bus.emit(AppEvent.NAVIGATED_TO_MAIN, "session")
        assert received == ["session"]
        sub1.unsubscribe()
        sub2.unsubscribe()

    def test_emit_without_listeners(self):
        event_bus.emit(AppEvent.BIOMETRIC_PREFERENCE_CHANGED, True)


class TestRegistry:
    def test_register_and_get(self):
        registry.register(Services.AUTH, "auth")
        assert registry.get(Services.AUTH) == "auth"
        assert registry.is_registered(Services.AUTH)

    def test_missing_service(self):
        assert registry.get(Services.AUTH_FLOW) is None
        with pytest.raises(KeyError):
            registry.require(Services.AUTH_FLOW)


class TestI18n:
    def test_romanian_translation(self):
        try:
            set_language("ro")
            assert t("skip") == "Sari peste"
        finally:
            set_language("en")
        assert get_language() == "en"

    def test_unknown_key_returns_key(self):
        assert t("does_not_exist") == "does_not_exist"
