"""storeshots MCP server.

Exposes the store screenshot walkthrough to MCP clients so an agent or
editor can refresh store-listing screenshots on a connected device.

Tools Available:
    - run_screenshot_walkthrough: Launch the app and capture 01..04 screenshots
    - device_list: List connected devices
    - capture_screenshot: Capture the current screen as base64 PNG

Run with:
    python -m storeshots.server
"""
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .core import get_device_manager, load_config, validate_device_id
from .tools.snapshot import screenshot as _screenshot
from .walkthrough import run_walkthrough

logger = logging.getLogger(__name__)

# MCP Server
mcp = FastMCP("storeshots")


def run_screenshot_walkthrough(
    package: Optional[str] = None,
    activity: Optional[str] = None,
    device_id: Optional[str] = None,
    output_dir: Optional[str] = None,
    config_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Launch the app and capture the store screenshot sequence.

    Arguments override values from config_path, $STORESHOTS_CONFIG and
    STORESHOTS_* environment variables.

    Returns:
        Dictionary containing:
        - captured: List of {label, path, width, height} in capture order
        - skipped: List of {label, reason} for steps whose element was absent
        - count: Number of screenshots captured
    """
    config = load_config(
        config_path,
        package=package,
        activity=activity,
        device_id=device_id,
        output_dir=output_dir,
    )
    return run_walkthrough(config).to_dict()


def device_list() -> Dict[str, Any]:
    """List all connected Android devices.

    Returns:
        Dictionary containing:
        - count: Number of connected devices
        - available_count: Devices in "device" state
        - devices: List of {serial, state, model, product, available}
    """
    devices = get_device_manager().list_devices()
    available_count = sum(1 for d in devices if d.is_available)
    logger.info(f"Found {len(devices)} devices ({available_count} available)")

    return {
        "count": len(devices),
        "available_count": available_count,
        "devices": [
            {
                "serial": d.serial,
                "state": d.state,
                "model": d.model,
                "product": d.product,
                "available": d.is_available,
            }
            for d in devices
        ],
    }


def capture_screenshot(device_id: Optional[str] = None, scale: float = 1.0) -> Dict[str, Any]:
    """Capture the current screen as a base64 PNG."""
    if not validate_device_id(device_id):
        raise ValueError(f"Invalid device_id format: {device_id}")

    with get_device_manager().get_device(device_id) as device:
        return _screenshot(device, scale=scale)


# === Tool Registrations ===

_TOOLS = {
    "run_screenshot_walkthrough": run_screenshot_walkthrough,
    "device_list": device_list,
    "capture_screenshot": capture_screenshot,
}

for _name, _func in _TOOLS.items():
    mcp.tool(name=_name)(_func)


# === Entry Point ===

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    mcp.run()
