"""Device connection manager.

Lists devices over ADB, validates serials and keeps one cached
uiautomator2 connection per serial for the lifetime of a walkthrough.
"""

import contextlib
import logging
import re
import subprocess
import threading
from dataclasses import dataclass
from typing import Dict, Generator, List, Optional

import uiautomator2 as u2

from .exceptions import (
    DeviceConnectionError,
    DeviceNotFoundError,
    InvalidDeviceIdError,
    MultipleDevicesError,
)

logger = logging.getLogger(__name__)

# Validation patterns
DEVICE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9._:-]+$")
MAX_DEVICE_ID_LENGTH = 255
ADB_TIMEOUT_SECONDS = 10


@dataclass
class DeviceInfo:
    """Information about a connected device."""

    serial: str
    state: str  # "device", "offline", "unauthorized"
    model: Optional[str] = None
    product: Optional[str] = None
    transport_id: Optional[str] = None

    @property
    def is_available(self) -> bool:
        """Check if device is available for use."""
        return self.state == "device"


def validate_device_id(device_id: Optional[str]) -> bool:
    """Validate device ID format (Command Injection prevention).

    Args:
        device_id: ADB device serial number

    Returns:
        bool: True if valid
    """
    if device_id is None:
        return True  # None means use the only connected device
    if not device_id or not device_id.strip():
        return False
    if len(device_id) > MAX_DEVICE_ID_LENGTH:
        return False
    return DEVICE_ID_PATTERN.match(device_id) is not None


def parse_adb_devices(output: str) -> List[DeviceInfo]:
    """Parse `adb devices -l` output into DeviceInfo records."""
    devices = []
    for line in output.strip().split("\n")[1:]:  # Skip header
        if not line.strip():
            continue
        parts = line.split()
        if len(parts) < 2:
            continue

        extra = {}
        for part in parts[2:]:
            key, sep, value = part.partition(":")
            if sep and key in ("model", "product", "transport_id"):
                extra[key] = value

        devices.append(DeviceInfo(serial=parts[0], state=parts[1], **extra))
    return devices


class DeviceManager:
    """Manages Android device connections.

    Features:
    - Thread-safe connection caching
    - Implicit selection when exactly one device is connected
    - Cache invalidation when a connection is lost
    """

    def __init__(self):
        self._cache: Dict[str, u2.Device] = {}
        self._cache_lock = threading.Lock()

    def list_devices(self) -> List[DeviceInfo]:
        """List all connected Android devices.

        Returns:
            List of DeviceInfo objects (empty when ADB is unusable)
        """
        try:
            result = subprocess.run(
                ["adb", "devices", "-l"],
                capture_output=True,
                text=True,
                timeout=ADB_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            logger.error("ADB devices command timed out")
            return []
        except FileNotFoundError:
            logger.error("ADB not found in PATH")
            return []
        return parse_adb_devices(result.stdout)

    def get_available_devices(self) -> List[DeviceInfo]:
        """Get only available (state=device) devices."""
        return [d for d in self.list_devices() if d.is_available]

    def resolve_device_id(self, device_id: Optional[str]) -> str:
        """Resolve the serial to connect to.

        An explicit serial is validated and returned as-is. Without one,
        the single available device is used.

        Raises:
            InvalidDeviceIdError: Malformed serial
            DeviceNotFoundError: No devices available
            MultipleDevicesError: More than one device and none chosen
        """
        if not validate_device_id(device_id):
            raise InvalidDeviceIdError(device_id or "")
        if device_id is not None:
            return device_id

        devices = self.get_available_devices()
        if not devices:
            raise DeviceNotFoundError()
        if len(devices) > 1:
            raise MultipleDevicesError([d.serial for d in devices])
        return devices[0].serial

    def connect(self, device_id: Optional[str] = None) -> u2.Device:
        """Return a cached connection, connecting on first use.

        Raises:
            InvalidDeviceIdError: Invalid device ID format
            DeviceNotFoundError: No devices available
            DeviceConnectionError: Connection failed
        """
        serial = self.resolve_device_id(device_id)

        with self._cache_lock:
            device = self._cache.get(serial)
            if device is None:
                logger.info(f"Connecting to device: {serial}")
                try:
                    device = u2.connect(serial)
                except Exception as e:
                    logger.error(f"Failed to connect to device: {e}")
                    raise DeviceConnectionError(serial, str(e))
                self._cache[serial] = device
        return device

    @contextlib.contextmanager
    def get_device(
        self, device_id: Optional[str] = None
    ) -> Generator[u2.Device, None, None]:
        """Get a verified device connection.

        Yields:
            uiautomator2 Device object

        Raises:
            DeviceConnectionError: Connection failed or was lost
        """
        device = self.connect(device_id)
        serial = device.serial

        try:
            device.info  # Ping to verify connection
        except Exception as e:
            with self._cache_lock:
                self._cache.pop(serial, None)
            logger.warning(f"Device connection lost, cache invalidated: {serial}")
            raise DeviceConnectionError(serial, f"Connection lost: {e}")
        yield device

    def get_device_name(self, device: u2.Device) -> str:
        """Return a filesystem-safe model name used to prefix screenshots."""
        try:
            model = device.device_info.get("model") or device.serial
        except Exception as e:
            logger.debug(f"Could not read device model: {e}")
            model = device.serial
        return re.sub(r"[^A-Za-z0-9._-]+", "_", str(model)).strip("_") or "device"



# Global singleton
_device_manager: Optional[DeviceManager] = None
_manager_lock = threading.Lock()


def get_device_manager() -> DeviceManager:
    """Get the global DeviceManager instance."""
    global _device_manager
    with _manager_lock:
        if _device_manager is None:
            _device_manager = DeviceManager()
        return _device_manager
