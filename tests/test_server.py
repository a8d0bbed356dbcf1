"""Tests for the storeshots MCP server tools.

Note: Integration tests require a connected Android device or emulator.
Run with: pytest tests/test_server.py -v
"""
import base64

import pytest

from storeshots import WalkthroughResult
from storeshots.core import DeviceInfo

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class TestErrorHandling:

    def test_invalid_device_id_raises_valueerror(self):
        from storeshots.server import capture_screenshot
        with pytest.raises(ValueError, match="Invalid device_id format"):
            capture_screenshot(device_id="invalid;command")


class TestToolRegistration:

    def test_tools_registered(self):
        import anyio
        from storeshots.server import mcp

        tools = anyio.run(mcp.list_tools)
        names = {tool.name for tool in tools}

        assert names == {"run_screenshot_walkthrough", "device_list", "capture_screenshot"}


def test_device_list(monkeypatch):
    from storeshots import server

    class FakeManager:
        def list_devices(self):
            return [
                DeviceInfo(serial="emulator-5554", state="device", model="Pixel_7"),
                DeviceInfo(serial="R58M", state="offline"),
            ]

    monkeypatch.setattr(server, "get_device_manager", lambda: FakeManager())

    result = server.device_list()

    assert result["count"] == 2
    assert result["available_count"] == 1
    assert result["devices"][0]["model"] == "Pixel_7"


def test_run_screenshot_walkthrough_applies_arguments(monkeypatch, tmp_path):
    from storeshots import server

    monkeypatch.delenv("STORESHOTS_CONFIG", raising=False)
    seen = {}

    def fake_run(config):
        seen["config"] = config
        return WalkthroughResult()

    monkeypatch.setattr(server, "run_walkthrough", fake_run)

    result = server.run_screenshot_walkthrough(
        package="com.example.timeslots",
        device_id="emulator-5554",
        output_dir=str(tmp_path),
    )

    assert result == {"captured": [], "skipped": [], "count": 0}
    assert seen["config"].package == "com.example.timeslots"
    assert seen["config"].device_id == "emulator-5554"
    assert seen["config"].output_dir == tmp_path


@pytest.mark.integration
def test_capture_screenshot_returns_png(connected_device):
    from storeshots.server import capture_screenshot

    result = capture_screenshot()

    assert base64.b64decode(result["image"])[:8] == PNG_SIGNATURE
