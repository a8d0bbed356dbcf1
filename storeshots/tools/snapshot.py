"""Snapshot tools: UI hierarchy queries and the screenshot capture mechanism.

UI queries always dump a fresh hierarchy; nothing is cached between
navigation steps.
"""
import base64
import logging
import re
from contextlib import closing
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional

from ..core import ElementInfo, Selector, Snapshot, get_device_manager
from ._errors import wrap_tool_errors

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def capture_ui_snapshot(device) -> Snapshot:
    """Dump the current hierarchy and parse it into a Snapshot."""
    return Snapshot.from_xml(device.dump_hierarchy())


@wrap_tool_errors(logger, "Failed to query element", pass_through=(ValueError,))
def find_element(device, selector: Selector) -> Optional[ElementInfo]:
    """Return the first element matching selector right now, or None."""
    snapshot = capture_ui_snapshot(device)
    element = snapshot.first(within=selector.within_criteria(), **selector.criteria())
    if element is None:
        logger.debug(f"No element matching {selector.describe()}")
    return element


@dataclass
class CapturedScreenshot:
    label: str
    path: Path
    width: int
    height: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "path": str(self.path),
            "width": self.width,
            "height": self.height,
        }


@dataclass
class ScreenshotRecorder:
    """Saves labeled screenshots for one device into one directory.

    Files are named "<device_name>-<label>.png". Labels are kept literal,
    so they must already be filesystem-safe.
    """

    device: Any
    output_dir: Path
    device_name: str

    def path_for(self, label: str) -> Path:
        return self.output_dir / f"{self.device_name}-{label}.png"

    @wrap_tool_errors(logger, "Failed to capture screenshot", pass_through=(ValueError,))
    def snapshot(self, label: str) -> CapturedScreenshot:
        """Capture the screen and store it under label.

        Raises:
            ValueError: Label is empty or contains unsafe characters
            RuntimeError: Capture or write failed
        """
        if not _LABEL_RE.match(label or ""):
            raise ValueError(f"Invalid screenshot label: {label!r}")

        img = self.device.screenshot(format="pillow")
        path = self.path_for(label)
        img.save(path, format="PNG")

        shot = CapturedScreenshot(label=label, path=path, width=img.width, height=img.height)
        logger.info(f"Screenshot {label} saved: {path} ({img.width}x{img.height})")
        return shot


def setup_snapshot(device, output_dir, device_name: Optional[str] = None) -> ScreenshotRecorder:
    """One-time screenshot setup for a run.

    Creates the output directory and resolves the device name prefix.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    if device_name is None:
        device_name = get_device_manager().get_device_name(device)
    logger.info(f"Screenshots for {device_name} will be written to {output_dir}")
    return ScreenshotRecorder(device=device, output_dir=output_dir, device_name=device_name)


@wrap_tool_errors(logger, "Failed to capture screenshot", pass_through=(ValueError,))
def screenshot(device, scale: float = 1.0) -> Dict[str, Any]:
    """Capture screenshot as base64 PNG.

    Args:
        device: uiautomator2 Device
        scale: Scale factor (0.1-1.0, lower = smaller payload)

    Returns:
        Dictionary containing:
        - image: Base64 encoded PNG image data
        - format: "png"
        - width: Image width in pixels
        - height: Image height in pixels
    """
    if not (0.1 <= scale <= 1.0):
        raise ValueError("scale must be between 0.1 and 1.0")

    img = device.screenshot(format="pillow")
    if scale < 1.0:
        new_width = max(1, int(img.width * scale))
        new_height = max(1, int(img.height * scale))
        img = img.resize((new_width, new_height))

    with closing(BytesIO()) as buffer:
        img.save(buffer, format="PNG", optimize=True)
        base64_data = base64.b64encode(buffer.getvalue()).decode("utf-8")

    logger.info(f"Screenshot captured: {img.width}x{img.height}")
    return {
        "image": base64_data,
        "format": "png",
        "width": img.width,
        "height": img.height,
    }
