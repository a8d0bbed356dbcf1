"""Screenshot walkthrough runner.

Launches the app under test, walks a fixed sequence of screens and saves
a labeled screenshot at each one:

    01-MainView       always, once the app is running
    02-TimeslotList   after one upward swipe on the first scrollable container
    03-Settings       after tapping the settings button, then navigates back
    04-Analysis       after tapping the analysis button

Steps 02-04 are best effort. A missing element skips that step and is
recorded in the result; it never fails the run. Anything else (no device,
launch failure, screenshot write failure) raises immediately and ends the
run, so no step runs after a fatal error.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .core import WalkthroughConfig, get_device_manager
from .tools import (
    CapturedScreenshot,
    find_element,
    launch_app,
    setup_snapshot,
    stop_app,
    swipe_element,
    tap_element,
    wait_for_element,
    wait_for_stable_ui,
)

logger = logging.getLogger(__name__)

MAIN_VIEW = "01-MainView"
TIMESLOT_LIST = "02-TimeslotList"
SETTINGS = "03-Settings"
ANALYSIS = "04-Analysis"


@dataclass
class SkippedStep:
    label: str
    reason: str


@dataclass
class WalkthroughResult:
    """Outcome of one walkthrough run."""

    captured: List[CapturedScreenshot] = field(default_factory=list)
    skipped: List[SkippedStep] = field(default_factory=list)

    @property
    def labels(self) -> List[str]:
        return [shot.label for shot in self.captured]

    def to_dict(self) -> dict:
        return {
            "captured": [shot.to_dict() for shot in self.captured],
            "skipped": [{"label": s.label, "reason": s.reason} for s in self.skipped],
            "count": len(self.captured),
        }


class ScreenshotWalkthrough:
    """Runs the store screenshot walkthrough against one device.

    Use as a context manager so the app is launched on entry and stopped
    on exit:

        with ScreenshotWalkthrough(load_config()) as walkthrough:
            result = walkthrough.run()

    Args:
        config: Validated walkthrough configuration
        device: Already connected device; connects through the device
            manager when omitted
        device_name: Screenshot filename prefix; read from the device
            model when omitted
    """

    def __init__(
        self,
        config: WalkthroughConfig,
        device=None,
        device_name: Optional[str] = None,
    ):
        self.config = config
        self.device = device
        self._device_name = device_name
        self.recorder = None
        self.result = WalkthroughResult()

    def __enter__(self) -> "ScreenshotWalkthrough":
        try:
            self.set_up()
        except BaseException as exc:
            # A started app may still be running after a failed launch wait
            self._tear_down_after(exc)
            raise
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None:
            self.tear_down()
        else:
            self._tear_down_after(exc)
        return False

    def _tear_down_after(self, exc: BaseException):
        """Tear down without letting a teardown error replace exc."""
        try:
            self.tear_down()
        except Exception as teardown_exc:
            logger.error(f"Teardown failed after earlier error ({exc}): {teardown_exc}")

    def set_up(self):
        """Connect, configure screenshot capture and launch the app.

        Raises:
            DeviceConnectionError: No usable device
            AppLaunchError: App did not start within launch_timeout
        """
        config = self.config
        if self.device is None:
            self.device = get_device_manager().connect(config.device_id)

        self.recorder = setup_snapshot(
            self.device, config.output_dir, device_name=self._device_name
        )
        launch_app(
            self.device,
            config.package,
            activity=config.activity,
            timeout=config.launch_timeout,
        )

    def tear_down(self):
        if self.device is not None and self.config.stop_app_on_teardown:
            stop_app(self.device, self.config.package)

    # === Step helpers ===

    def settle(self, seconds: float):
        """Pause for seconds, then give the UI up to as long again to stop changing.

        The pause always happens. Failing to read the hierarchy afterwards
        only costs the stability check, never the run.
        """
        try:
            wait_for_stable_ui(
                self.device,
                seconds,
                poll_interval=self.config.poll_interval,
                min_wait=seconds,
            )
        except (RuntimeError, ValueError) as e:
            logger.warning(f"UI stability check failed after {seconds:.1f}s pause, continuing: {e}")

    def capture(self, label: str):
        shot = self.recorder.snapshot(label)
        self.result.captured.append(shot)

    def skip(self, label: str, reason: str):
        logger.info(f"Skipping {label}: {reason}")
        self.result.skipped.append(SkippedStep(label=label, reason=reason))

    def wait_for(self, name: str):
        """Wait up to element_timeout for a named selector; element or None."""
        outcome = wait_for_element(
            self.device,
            self.config.selector(name),
            timeout=self.config.element_timeout,
            poll_interval=self.config.poll_interval,
        )
        return outcome["element"] if outcome["found"] else None

    # === Steps ===

    def capture_main_view(self):
        self.settle(self.config.initial_settle)
        self.capture(MAIN_VIEW)
        self.settle(self.config.step_settle)

    def capture_timeslot_list(self):
        container = find_element(self.device, self.config.selector("timeslot_list"))
        if container is None:
            self.skip(TIMESLOT_LIST, "no scrollable container")
            return

        swipe_element(self.device, container, direction="up", description="timeslot list")
        self.settle(self.config.step_settle)
        self.capture(TIMESLOT_LIST)

    def capture_settings(self):
        button = self.wait_for("settings_button")
        if button is None:
            self.skip(SETTINGS, "settings button not found")
            return

        tap_element(self.device, button, description="settings button")
        self.settle(self.config.step_settle)
        self.capture(SETTINGS)

        back = find_element(self.device, self.config.selector("back_button"))
        if back is None:
            logger.info("No navigation bar button to return from settings")
            return
        tap_element(self.device, back, description="back button")
        self.settle(self.config.step_settle)

    def capture_analysis(self):
        button = self.wait_for("analysis_button")
        if button is None:
            self.skip(ANALYSIS, "analysis button not found")
            return

        tap_element(self.device, button, description="analysis button")
        self.settle(self.config.step_settle)
        self.capture(ANALYSIS)

    def run(self) -> WalkthroughResult:
        """Run every step once, in order. Requires set_up()."""
        if self.recorder is None:
            raise RuntimeError("Walkthrough is not set up; call set_up() first")

        self.capture_main_view()
        self.capture_timeslot_list()
        self.capture_settings()
        self.capture_analysis()

        logger.info(
            f"Walkthrough finished: {len(self.result.captured)} screenshots "
            f"({', '.join(self.result.labels)}), {len(self.result.skipped)} skipped"
        )
        return self.result


def run_walkthrough(
    config: WalkthroughConfig,
    device=None,
    device_name: Optional[str] = None,
) -> WalkthroughResult:
    """Set up, run and tear down one walkthrough."""
    with ScreenshotWalkthrough(config, device=device, device_name=device_name) as walkthrough:
        return walkthrough.run()
