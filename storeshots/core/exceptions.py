"""Custom exceptions for the store screenshot walkthrough.

Exception Hierarchy:
    StoreshotsError (base)
    ├── DeviceConnectionError
    │   ├── DeviceNotFoundError
    │   └── MultipleDevicesError
    ├── InvalidDeviceIdError
    ├── AppLaunchError
    └── ConfigError
"""


class StoreshotsError(Exception):
    """Base exception for storeshots."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dict for MCP response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# === Device Errors ===


class DeviceConnectionError(StoreshotsError):
    """Failed to connect to Android device."""

    def __init__(self, device_id: str, reason: str = None):
        message = f"Failed to connect to device: {device_id}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, {"device_id": device_id, "reason": reason})
        self.device_id = device_id


class DeviceNotFoundError(DeviceConnectionError):
    """Device not found or not connected."""

    def __init__(self, device_id: str = None):
        if device_id:
            message = f"Device not found: {device_id}"
        else:
            message = "No Android devices connected"
        super().__init__(device_id or "none", message)


class MultipleDevicesError(DeviceConnectionError):
    """More than one device connected and none was chosen."""

    def __init__(self, serials: list):
        super().__init__(
            "default",
            f"{len(serials)} devices connected, set STORESHOTS_DEVICE to pick one",
        )
        self.details["serials"] = list(serials)
        self.serials = list(serials)


class InvalidDeviceIdError(StoreshotsError):
    """Invalid device ID format (potential command injection)."""

    def __init__(self, device_id: str):
        super().__init__(
            f"Invalid device_id format: {device_id}",
            {"device_id": device_id, "hint": "Device ID must match [a-zA-Z0-9._:-]+"},
        )
        self.device_id = device_id


# === Walkthrough Errors ===


class AppLaunchError(StoreshotsError):
    """Application under test did not reach a running state."""

    def __init__(self, package: str, timeout: float, reason: str = None):
        message = f"App {package} not running after {timeout:.1f}s"
        if reason:
            message += f" ({reason})"
        super().__init__(message, {"package": package, "timeout": timeout, "reason": reason})
        self.package = package
        self.timeout = timeout


class ConfigError(StoreshotsError):
    """Walkthrough configuration is invalid."""

    def __init__(self, message: str, key: str = None):
        details = {}
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.key = key

