"""Navigation tools: app lifecycle for the application under test."""
import logging
from typing import Any, Dict, Optional

from ..core import AppLaunchError
from ._errors import wrap_tool_errors

logger = logging.getLogger(__name__)


def launch_app(
    device,
    package: str,
    activity: Optional[str] = None,
    timeout: float = 20.0,
    stop_first: bool = True,
) -> Dict[str, Any]:
    """Start an application and block until its process is running.

    Args:
        device: uiautomator2 Device
        package: App package name (e.g., "com.example.app")
        activity: Activity to launch (optional, uses default launcher)
        timeout: Seconds to wait for the app to reach the foreground
        stop_first: Stop app before starting (ensures fresh start)

    Returns:
        Dictionary with:
        - success: True
        - package: Package that was started
        - pid: Process id of the running app

    Raises:
        AppLaunchError: App failed to start or never came to the foreground
    """
    try:
        if activity:
            device.app_start(package, activity, stop=stop_first)
        else:
            device.app_start(package, stop=stop_first)
        pid = device.app_wait(package, timeout=timeout, front=True)
    except Exception as e:
        logger.error(f"Failed to start app {package}: {e}")
        raise AppLaunchError(package, timeout, str(e)) from e

    if not pid:
        logger.error(f"App {package} did not reach the foreground")
        raise AppLaunchError(package, timeout, "not in foreground")

    logger.info(f"Started app: {package} (pid {pid})")
    return {
        "success": True,
        "package": package,
        "activity": activity,
        "pid": pid,
    }


@wrap_tool_errors(logger, "Failed to stop app")
def stop_app(device, package: str) -> Dict[str, Any]:
    """Stop an application."""
    device.app_stop(package)

    logger.info(f"Stopped app: {package}")
    return {
        "success": True,
        "package": package,
    }
