import asyncio
import logging

import pytest

from wlanpi_wireless.lib.event_bus import EventBus


def test_listeners_receive_arguments_in_registration_order():
    bus = EventBus("wlan0")
    calls = []
    bus.on("control", lambda tag, args: calls.append(("first", tag, args)))
    bus.on("control", lambda tag, args: calls.append(("second", tag, args)))

    assert bus.emit("control", "CTRL-EVENT-SCAN-RESULTS", {}) is True
    assert calls == [
        ("first", "CTRL-EVENT-SCAN-RESULTS", {}),
        ("second", "CTRL-EVENT-SCAN-RESULTS", {}),
    ]


def test_emit_without_listeners_is_false():
    assert EventBus("wlan0").emit("scanned", {}) is False


def test_listener_can_unsubscribe_itself_while_being_notified():
    bus = EventBus("wlan0")
    calls = []

    def first(line):
        calls.append("first")
        bus.remove_listener("data", first)

    def second(line):
        calls.append("second")

    bus.on("data", first)
    bus.on("data", second)
    bus.emit("data", "OK")
    bus.emit("data", "OK")

    assert calls == ["first", "second", "second"]


def test_listener_added_during_emit_is_called_from_next_emit():
    bus = EventBus("wlan0")
    calls = []

    def late(line):
        calls.append("late")

    def first(line):
        calls.append("first")
        bus.on("data", late)

    bus.on("data", first)
    bus.emit("data", "OK")
    assert calls == ["first"]
    bus.emit("data", "OK")
    assert calls == ["first", "first", "late"]


def test_once_fires_a_single_time_and_can_be_removed_by_listener():
    bus = EventBus("wlan0")
    calls = []
    listener = calls.append
    bus.once("scanned", listener)
    bus.emit("scanned", {"a": "1"})
    bus.emit("scanned", {"a": "2"})
    assert calls == [{"a": "1"}]

    bus.once("scanned", listener)
    assert bus.remove_listener("scanned", listener) is True
    assert bus.listeners("scanned") == []


def test_remove_unknown_listener_is_false():
    bus = EventBus("wlan0")
    assert bus.remove_listener("data", print) is False


def test_failing_listener_is_logged_and_does_not_stop_others(caplog):
    bus = EventBus("wlan0")
    calls = []

    def broken(line):
        raise RuntimeError("boom")

    bus.on("data", broken)
    bus.on("data", calls.append)
    with caplog.at_level(logging.ERROR, logger="wlanpi_wireless.lib.event_bus"):
        bus.emit("data", "PONG")

    assert calls == ["PONG"]
    assert "boom" in caplog.text
    assert any(record.exc_info for record in caplog.records)


def test_error_listener_receives_listener_failures():
    bus = EventBus("wlan0")
    errors = []
    failure = RuntimeError("boom")

    def broken(line):
        raise failure

    bus.on("error", errors.append)
    bus.on("data", broken)
    bus.emit("data", "PONG")

    assert errors == [failure]


def test_unhandled_error_event_is_logged_not_raised(caplog):
    bus = EventBus("wlan0")
    with caplog.at_level(logging.ERROR, logger="wlanpi_wireless.lib.event_bus"):
        assert bus.emit("error", RuntimeError("stderr noise")) is False

    assert "stderr noise" in caplog.text


@pytest.mark.asyncio
async def test_coroutine_listeners_are_scheduled():
    bus = EventBus("wlan0")
    received = asyncio.Event()

    async def listener(args):
        received.set()

    bus.on("connected", listener)
    bus.emit("connected", {})
    await asyncio.wait_for(received.wait(), 1)
    await bus.wait_for_complete()
    assert bus.complete


@pytest.mark.asyncio
async def test_failing_coroutine_listener_is_logged(caplog):
    bus = EventBus("wlan0")

    async def listener(args):
        raise ValueError("listener blew up")

    bus.on("connected", listener)
    with caplog.at_level(logging.ERROR, logger="wlanpi_wireless.lib.event_bus"):
        bus.emit("connected", {})
        await bus.wait_for_complete()
        # done callbacks run on the next loop iteration
        await asyncio.sleep(0)

    assert "listener blew up" in caplog.text
    assert any(
        record.exc_info and record.exc_info[0] is ValueError
        for record in caplog.records
    )
