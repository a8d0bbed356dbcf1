"""Interaction tools: taps and swipes on resolved elements."""
import logging
from typing import Any, Dict, Optional

from ..core import ElementInfo
from ._errors import wrap_tool_errors

logger = logging.getLogger(__name__)

# Fraction of the element's extent kept clear at each end of a swipe
SWIPE_MARGIN = 0.2


def _describe_target(element: ElementInfo, description: Optional[str]) -> str:
    """Return a human-friendly target description for logs."""
    if description:
        return description
    if element.label:
        return f"{element.label!r} (ref={element.ref})"
    return f"ref={element.ref}"


@wrap_tool_errors(logger, "Tap failed", pass_through=(ValueError,))
def tap_element(
    device,
    element: ElementInfo,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Tap the center of an element."""
    pos_x, pos_y = element.center
    device.click(pos_x, pos_y)

    logger.info(f"Tapped at ({pos_x}, {pos_y}): {_describe_target(element, description)}")
    return {
        "success": True,
        "position": {"x": pos_x, "y": pos_y},
        "ref": element.ref,
    }


@wrap_tool_errors(logger, "Swipe failed", pass_through=(ValueError,))
def swipe_element(
    device,
    element: ElementInfo,
    direction: str = "up",
    duration: float = 0.3,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Swipe inside an element's bounds.

    "up" moves content up (finger travels bottom to top), like scrolling a
    list forward.

    Raises:
        ValueError: Unknown direction
    """
    left, top, right, bottom = element.bounds
    center_x, center_y = element.center
    dx = int(element.width * SWIPE_MARGIN)
    dy = int(element.height * SWIPE_MARGIN)

    direction_map = {
        "up": (center_x, bottom - dy, center_x, top + dy),
        "down": (center_x, top + dy, center_x, bottom - dy),
        "left": (right - dx, center_y, left + dx, center_y),
        "right": (left + dx, center_y, right - dx, center_y),
    }
    if direction.lower() not in direction_map:
        raise ValueError(
            f"Invalid direction: {direction}. "
            "Use 'up', 'down', 'left', or 'right'"
        )

    sx, sy, ex, ey = direction_map[direction.lower()]
    device.swipe(sx, sy, ex, ey, duration=duration)

    logger.info(
        f"Swiped {direction} from ({sx}, {sy}) to ({ex}, {ey}): "
        f"{_describe_target(element, description)}"
    )
    return {
        "success": True,
        "start": {"x": sx, "y": sy},
        "end": {"x": ex, "y": ey},
        "direction": direction,
        "duration": duration,
    }
