import pytest

from storeshots.core.device_manager import (
    DeviceInfo,
    DeviceManager,
    parse_adb_devices,
    validate_device_id,
)
from storeshots.core.exceptions import (
    DeviceConnectionError,
    DeviceNotFoundError,
    InvalidDeviceIdError,
    MultipleDevicesError,
)


ADB_OUTPUT = """List of devices attached
emulator-5554          device product:sdk_gphone64 model:Pixel_7 transport_id:1
192.168.1.100:5555     unauthorized transport_id:2

"""


class DummyDevice:
    def __init__(self, serial, alive=True):
        self.serial = serial
        self.alive = alive
        self.device_info = {"model": "Pixel 7 Pro"}

    @property
    def info(self):
        if not self.alive:
            raise ConnectionError("gone")
        return {}


class TestValidateDeviceId:

    def test_none_is_valid(self):
        assert validate_device_id(None) is True

    def test_valid_formats(self):
        for device_id in ("emulator-5554", "192.168.1.100:5555", "ABC123DEF456"):
            assert validate_device_id(device_id) is True

    def test_empty_or_whitespace_is_invalid(self):
        assert validate_device_id("") is False
        assert validate_device_id("   ") is False

    def test_too_long_is_invalid(self):
        assert validate_device_id("a" * 256) is False

    def test_command_injection_is_invalid(self):
        malicious_inputs = [
            "device; rm -rf /",
            "device && cat /etc/passwd",
            "device | ls",
            "device`whoami`",
            "device$(cat /etc/passwd)",
            "../../../etc/passwd",
            "device\nmalicious",
        ]
        for malicious_id in malicious_inputs:
            assert validate_device_id(malicious_id) is False, f"Should reject: {malicious_id}"


def test_parse_adb_devices():
    devices = parse_adb_devices(ADB_OUTPUT)

    assert devices == [
        DeviceInfo(
            serial="emulator-5554",
            state="device",
            model="Pixel_7",
            product="sdk_gphone64",
            transport_id="1",
        ),
        DeviceInfo(serial="192.168.1.100:5555", state="unauthorized", transport_id="2"),
    ]
    assert [d.is_available for d in devices] == [True, False]


def test_resolve_uses_single_device(monkeypatch):
    manager = DeviceManager()
    monkeypatch.setattr(manager, "list_devices", lambda: parse_adb_devices(ADB_OUTPUT))

    assert manager.resolve_device_id(None) == "emulator-5554"


def test_resolve_errors_on_multiple_devices(monkeypatch):
    manager = DeviceManager()
    devices = [
        DeviceInfo(serial="device-1", state="device"),
        DeviceInfo(serial="device-2", state="device"),
    ]
    monkeypatch.setattr(manager, "list_devices", lambda: devices)

    with pytest.raises(MultipleDevicesError) as excinfo:
        manager.resolve_device_id(None)
    assert excinfo.value.serials == ["device-1", "device-2"]


def test_resolve_errors_without_devices(monkeypatch):
    manager = DeviceManager()
    monkeypatch.setattr(manager, "list_devices", lambda: [])

    with pytest.raises(DeviceNotFoundError):
        manager.resolve_device_id(None)


def test_resolve_rejects_invalid_id():
    with pytest.raises(InvalidDeviceIdError):
        DeviceManager().resolve_device_id("device; reboot")


def test_connect_caches_connection(monkeypatch):
    manager = DeviceManager()
    calls = []

    def fake_connect(device_id):
        calls.append(device_id)
        return DummyDevice(device_id)

    monkeypatch.setattr("storeshots.core.device_manager.u2.connect", fake_connect)

    first = manager.connect("emulator-5554")
    second = manager.connect("emulator-5554")

    assert first is second
    assert calls == ["emulator-5554"]


def test_connect_failure_raises_connection_error(monkeypatch):
    manager = DeviceManager()

    def fake_connect(device_id):
        raise OSError("adb server not running")

    monkeypatch.setattr("storeshots.core.device_manager.u2.connect", fake_connect)

    with pytest.raises(DeviceConnectionError, match="adb server not running"):
        manager.connect("emulator-5554")


def test_get_device_invalidates_lost_connection(monkeypatch):
    manager = DeviceManager()
    devices = iter([DummyDevice("emulator-5554", alive=False), DummyDevice("emulator-5554")])
    monkeypatch.setattr("storeshots.core.device_manager.u2.connect", lambda _: next(devices))

    with pytest.raises(DeviceConnectionError, match="Connection lost"):
        with manager.get_device("emulator-5554"):
            pass

    with manager.get_device("emulator-5554") as device:
        assert device.alive is True


def test_get_device_name_is_filesystem_safe():
    name = DeviceManager().get_device_name(DummyDevice("emulator-5554"))

    assert name == "Pixel_7_Pro"
