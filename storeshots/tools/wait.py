"""Wait tools for the walkthrough.

Every wait is bounded. Settling after a navigation keeps the full pause
as a minimum and then polls until the hierarchy stops changing.
"""
import logging
import time
from typing import Any, Dict

from ..core import Selector
from .snapshot import capture_ui_snapshot, find_element
from ._errors import wrap_tool_errors

logger = logging.getLogger(__name__)


def _validate_polling(timeout: float, poll_interval: float) -> None:
    """Validate polling configuration."""
    if timeout <= 0:
        raise ValueError("timeout must be greater than 0")
    if poll_interval <= 0:
        raise ValueError("poll_interval must be greater than 0")


def _poll_until(
    timeout: float,
    poll_interval: float,
    check,
) -> tuple[bool, Any, float]:
    """Poll until check returns a non-None result or timeout."""
    start_time = time.monotonic()
    while True:
        result = check()
        elapsed = time.monotonic() - start_time
        if result is not None:
            return True, result, elapsed
        remaining = timeout - elapsed
        if remaining <= 0:
            return False, None, elapsed
        time.sleep(min(poll_interval, remaining))


@wrap_tool_errors(logger, "Wait for element failed", pass_through=(ValueError,))
def wait_for_element(
    device,
    selector: Selector,
    timeout: float = 5.0,
    poll_interval: float = 0.5,
) -> Dict[str, Any]:
    """Wait for an element to appear.

    Re-queries the hierarchy on every poll until a match is found or the
    timeout elapses. At least one query is always made.

    Returns:
        Dictionary with:
        - found: True if element was found
        - element: ElementInfo of the first match (None if not found)
        - waited: Seconds waited

    Raises:
        ValueError: Invalid timeout or poll_interval
    """
    _validate_polling(timeout, poll_interval)

    found, element, waited = _poll_until(
        timeout, poll_interval, lambda: find_element(device, selector)
    )
    if found:
        logger.info(f"Element found after {waited:.2f}s: ref={element.ref}")
    else:
        logger.info(
            f"Element not found after {waited:.2f}s timeout: {selector.describe()}"
        )
    return {"found": found, "element": element, "waited": waited}


@wrap_tool_errors(logger, "Wait for stable UI failed", pass_through=(ValueError,))
def wait_for_stable_ui(
    device,
    timeout: float,
    poll_interval: float = 0.5,
    min_wait: float = 0.0,
) -> Dict[str, Any]:
    """Wait until two consecutive hierarchy dumps are identical.

    Sleeps min_wait unconditionally first, so animations that never show
    in the hierarchy dump still get that long to finish. Polling then lasts
    at most timeout. A timeout of zero skips polling.

    Returns:
        Dictionary with:
        - stable: True if the UI stopped changing before the timeout
        - waited: Seconds waited, min_wait included
    """
    min_wait = max(min_wait, 0.0)
    if min_wait:
        time.sleep(min_wait)
    if timeout <= 0:
        return {"stable": False, "waited": min_wait}
    _validate_polling(timeout, poll_interval)

    last_hash = [None]

    def check():
        current = capture_ui_snapshot(device).xml_hash
        previous, last_hash[0] = last_hash[0], current
        return True if current == previous else None

    stable, _, polled = _poll_until(timeout, poll_interval, check)
    waited = min_wait + polled
    if stable:
        logger.debug(f"UI stable after {waited:.2f}s")
    else:
        logger.info(f"UI still changing after {waited:.2f}s, continuing")
    return {"stable": stable, "waited": waited}
