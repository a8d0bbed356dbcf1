"""Core modules for storeshots."""
from .exceptions import (
    StoreshotsError,
    DeviceConnectionError,
    DeviceNotFoundError,
    MultipleDevicesError,
    InvalidDeviceIdError,
    AppLaunchError,
    ConfigError,
)
from .ref_system import ElementInfo, Snapshot, parse_hierarchy
from .device_manager import DeviceManager, DeviceInfo, get_device_manager, validate_device_id
from .config import Selector, WalkthroughConfig, DEFAULT_SELECTORS, SELECTOR_NAMES, load_config

__all__ = [
    # Exceptions
    "StoreshotsError",
    "DeviceConnectionError",
    "DeviceNotFoundError",
    "MultipleDevicesError",
    "InvalidDeviceIdError",
    "AppLaunchError",
    "ConfigError",
    # Ref System
    "ElementInfo",
    "Snapshot",
    "parse_hierarchy",
    # Device Manager
    "DeviceManager",
    "DeviceInfo",
    "get_device_manager",
    "validate_device_id",
    # Config
    "Selector",
    "WalkthroughConfig",
    "DEFAULT_SELECTORS",
    "SELECTOR_NAMES",
    "load_config",
]
