"""Tests for bounded polling waits."""
import time

import pytest

from storeshots.core import Selector
from storeshots.tools import wait

from fake_app import EMPTY_SCREEN, MAIN_SCREEN, FakeDevice


class ScriptedDevice(FakeDevice):
    """Serves a fixed sequence of dumps, repeating the last one."""

    def __init__(self, dumps):
        super().__init__()
        self.dumps = list(dumps)
        self.calls = 0

    def dump_hierarchy(self):
        index = min(self.calls, len(self.dumps) - 1)
        self.calls += 1
        return self.dumps[index]


def test_poll_until_returns_first_result():
    results = iter([None, None, "ready"])

    found, value, waited = wait._poll_until(1.0, 0.01, lambda: next(results))

    assert found is True
    assert value == "ready"
    assert waited < 1.0


def test_poll_until_checks_at_least_once():
    calls = []

    found, _, _ = wait._poll_until(0.0001, 0.01, lambda: calls.append(1))

    assert found is False
    assert len(calls) >= 1


def test_poll_until_respects_timeout():
    start = time.monotonic()

    found, _, waited = wait._poll_until(0.05, 0.01, lambda: None)

    assert found is False
    assert waited >= 0.05
    assert time.monotonic() - start < 1.0


def test_wait_for_element_rejects_invalid_poll_interval():
    with pytest.raises(ValueError, match="poll_interval"):
        wait.wait_for_element(FakeDevice(), Selector(label="Settings"), timeout=1, poll_interval=0)


def test_wait_for_element_finds_late_element():
    device = ScriptedDevice([EMPTY_SCREEN, EMPTY_SCREEN, MAIN_SCREEN])

    outcome = wait.wait_for_element(
        device, Selector(label="Settings", clickable=True), timeout=1.0, poll_interval=0.01
    )

    assert outcome["found"] is True
    assert outcome["element"].label == "Settings"
    assert device.calls == 3


def test_wait_for_element_times_out():
    device = ScriptedDevice([EMPTY_SCREEN])

    outcome = wait.wait_for_element(
        device, Selector(label="Analysis"), timeout=0.05, poll_interval=0.01
    )

    assert outcome["found"] is False
    assert outcome["element"] is None
    assert outcome["waited"] >= 0.05


def test_wait_for_stable_ui_after_changes_stop():
    device = ScriptedDevice([EMPTY_SCREEN, MAIN_SCREEN, EMPTY_SCREEN, MAIN_SCREEN])

    outcome = wait.wait_for_stable_ui(device, timeout=1.0, poll_interval=0.01)

    assert outcome["stable"] is True
    assert device.calls == 5


def test_wait_for_stable_ui_bounded_by_timeout():
    class FlickeringDevice(FakeDevice):
        def __init__(self):
            super().__init__()
            self.calls = 0

        def dump_hierarchy(self):
            self.calls += 1
            return MAIN_SCREEN if self.calls % 2 else EMPTY_SCREEN

    outcome = wait.wait_for_stable_ui(FlickeringDevice(), timeout=0.05, poll_interval=0.01)

    assert outcome["stable"] is False
    assert outcome["waited"] < 0.5


def test_wait_for_stable_ui_zero_timeout_skips_polling():
    device = ScriptedDevice([MAIN_SCREEN])

    outcome = wait.wait_for_stable_ui(device, timeout=0)

    assert outcome == {"stable": False, "waited": 0.0}
    assert device.calls == 0


def test_device_error_wrapped_as_runtime_error():
    class DeadDevice(FakeDevice):
        def dump_hierarchy(self):
            raise ConnectionError("uiautomator gone")

    with pytest.raises(RuntimeError, match="uiautomator gone"):
        wait.wait_for_element(DeadDevice(), Selector(label="Settings"), timeout=0.05, poll_interval=0.01)


def test_wait_for_stable_ui_sleeps_min_wait_before_polling():
    device = ScriptedDevice([MAIN_SCREEN])
    start = time.monotonic()

    outcome = wait.wait_for_stable_ui(device, timeout=1.0, poll_interval=0.01, min_wait=0.1)

    assert outcome["stable"] is True
    assert outcome["waited"] >= 0.1
    assert time.monotonic() - start >= 0.1
    assert device.calls == 2


def test_wait_for_stable_ui_zero_timeout_still_sleeps_min_wait():
    device = ScriptedDevice([MAIN_SCREEN])

    outcome = wait.wait_for_stable_ui(device, timeout=0, min_wait=0.05)

    assert outcome == {"stable": False, "waited": 0.05}
    assert device.calls == 0
