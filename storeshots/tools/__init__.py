"""Device tools used by the screenshot walkthrough."""
from .snapshot import (
    CapturedScreenshot,
    ScreenshotRecorder,
    capture_ui_snapshot,
    find_element,
    screenshot,
    setup_snapshot,
)
from .interaction import tap_element, swipe_element
from .navigation import launch_app, stop_app
from .wait import wait_for_element, wait_for_stable_ui

__all__ = [
    # Snapshot tools
    "CapturedScreenshot",
    "ScreenshotRecorder",
    "capture_ui_snapshot",
    "find_element",
    "screenshot",
    "setup_snapshot",
    # Interaction tools
    "tap_element",
    "swipe_element",
    # Navigation tools
    "launch_app",
    "stop_app",
    # Wait tools
    "wait_for_element",
    "wait_for_stable_ui",
]
